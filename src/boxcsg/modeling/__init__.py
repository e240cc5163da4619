"""Geometry core: transforms, solids, box conversion, BSP booleans and voxelization."""

from __future__ import annotations

from .transform import (
    apply_transform,
    axis_rotation_matrix,
    build_transform,
    rotation_euler_matrix,
    translation_matrix,
)
from .solid import EPSILON, Plane, Polygon, Solid, audit_solid
from .primitives import box_to_solid, make_cube
from .csg import (
    OPERATORS,
    boolean_difference,
    boolean_intersection,
    boolean_union,
    combine_solids,
    normalize_operator,
    split_polygon,
)
from .voxelize import voxelize

__all__ = [
    "EPSILON",
    "OPERATORS",
    "Plane",
    "Polygon",
    "Solid",
    "apply_transform",
    "audit_solid",
    "axis_rotation_matrix",
    "boolean_difference",
    "boolean_intersection",
    "boolean_union",
    "box_to_solid",
    "build_transform",
    "combine_solids",
    "make_cube",
    "normalize_operator",
    "rotation_euler_matrix",
    "split_polygon",
    "translation_matrix",
    "voxelize",
]
