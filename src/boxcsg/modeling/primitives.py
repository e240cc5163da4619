from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from boxcsg.boxes import Box
from boxcsg.errors import DegenerateGeometryError
from .solid import Polygon, Solid
from .transform import apply_transform, build_transform, is_zero_rotation

logger = logging.getLogger(__name__)

# Corner i sits at (+x if i & 1, +y if i & 2, +z if i & 4); faces wind outward.
_CUBE_FACES: tuple[tuple[int, int, int, int], ...] = (
    (0, 4, 6, 2),  # -X
    (1, 3, 7, 5),  # +X
    (0, 1, 5, 4),  # -Y
    (2, 6, 7, 3),  # +Y
    (0, 2, 3, 1),  # -Z
    (4, 5, 7, 6),  # +Z
)
_CORNER_SIGNS = np.array(
    [[1.0 if i & 1 else -1.0, 1.0 if i & 2 else -1.0, 1.0 if i & 4 else -1.0] for i in range(8)],
    dtype=float,
)


def _cube_corners(center: Sequence[float], radius: Sequence[float]) -> np.ndarray:
    c = np.asarray(center, dtype=float).reshape(3)
    r = np.asarray(radius, dtype=float).reshape(3)
    return c + _CORNER_SIGNS * r


def _solid_from_corners(corners: np.ndarray) -> Solid:
    return Solid(tuple(Polygon(corners[list(face)]) for face in _CUBE_FACES))


def make_cube(
    center: Sequence[float] = (0.0, 0.0, 0.0),
    radius: Sequence[float] = (0.5, 0.5, 0.5),
) -> Solid:
    """Axis-aligned hexahedron spanning ``center +- radius`` on each axis."""

    r = np.asarray(radius, dtype=float).reshape(3)
    if not np.all(np.isfinite(r)) or np.any(r <= 0):
        raise DegenerateGeometryError(f"Cube half-extents must be positive, got {tuple(r)}.")
    return _solid_from_corners(_cube_corners(center, r))


def box_to_solid(box: Box) -> Solid:
    """Convert a host box (with optional pivot rotation) into a closed solid."""

    start = np.asarray(box.from_, dtype=float)
    end = np.asarray(box.to, dtype=float)
    values = np.concatenate([start, end, np.asarray(box.origin), np.asarray(box.rotation)])
    if not np.all(np.isfinite(values)):
        raise DegenerateGeometryError("Box coordinates, pivot and rotation must be finite.")

    center = (start + end) / 2.0
    half = (end - start) / 2.0
    if np.any(half <= 0):
        raise DegenerateGeometryError(
            f"Box from {tuple(start)} to {tuple(end)} has a zero or negative extent."
        )

    corners = _cube_corners(center, half)
    if not is_zero_rotation(box.rotation):
        # Transform shared corners once so adjacent faces keep identical edges.
        corners = apply_transform(build_transform(box.origin, box.rotation), corners)
    solid = _solid_from_corners(corners)
    logger.debug("Converted box %s -> %s into %d faces", box.from_, box.to, solid.n_polygons)
    return solid
