"""boxcsg: boolean operations on rotatable boxes, rebuilt as voxel boxes."""

from __future__ import annotations

from .boxes import Box, VoxelBox
from .errors import (
    CSGError,
    DegenerateGeometryError,
    InvalidResolutionError,
    MalformedSolidError,
    UnboundedVoxelizationError,
    VoxelizationCancelled,
)
from .pipeline import CombineResult, combine, replace_in_list

__all__ = [
    "__version__",
    "Box",
    "CSGError",
    "CombineResult",
    "DegenerateGeometryError",
    "InvalidResolutionError",
    "MalformedSolidError",
    "UnboundedVoxelizationError",
    "VoxelBox",
    "VoxelizationCancelled",
    "combine",
    "replace_in_list",
]

__version__ = "0.1.0"
