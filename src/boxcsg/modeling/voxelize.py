"""Reconstruct a solid as axis-aligned voxel boxes using ray-parity sampling."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from boxcsg.boxes import VoxelBox
from boxcsg.errors import InvalidResolutionError, UnboundedVoxelizationError, VoxelizationCancelled
from boxcsg.settings import VoxelSettings
from .solid import EPSILON, Solid, audit_solid

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
CancelCheck = Callable[[], bool]


@dataclass(frozen=True)
class _RayTarget:
    normal: np.ndarray
    w: float
    denom: float
    axes: np.ndarray
    corners: np.ndarray
    edges: np.ndarray
    lengths: np.ndarray
    orientation: float


def validate_step(step: float) -> float:
    try:
        value = float(step)
    except (TypeError, ValueError) as exc:
        raise InvalidResolutionError(f"Resolution must be a number, got {step!r}.") from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidResolutionError(f"Resolution must be positive and finite, got {step!r}.")
    return value


def grid_shape(mins: np.ndarray, maxs: np.ndarray, step: float) -> tuple[int, int, int]:
    """Cells per axis covering the half-open range [min, max)."""

    extents = (np.asarray(maxs, dtype=float) - np.asarray(mins, dtype=float)) / step
    counts = [max(0, math.ceil(float(e) - EPSILON)) for e in extents]
    return counts[0], counts[1], counts[2]


def _prepare_targets(solid: Solid, direction: np.ndarray) -> list[_RayTarget]:
    targets: list[_RayTarget] = []
    for poly in solid.polygons:
        normal = poly.plane.normal
        denom = float(normal @ direction)
        if abs(denom) <= EPSILON:
            continue
        # Drop the dominant axis; the cyclic order keeps the winding when normal[k] > 0.
        k = int(np.argmax(np.abs(normal)))
        axes = np.array([(k + 1) % 3, (k + 2) % 3])
        corners = poly.vertices[:, axes]
        edges = np.roll(corners, -1, axis=0) - corners
        lengths = np.linalg.norm(edges, axis=1)
        keep = lengths > EPSILON * EPSILON
        if np.count_nonzero(keep) < 3:
            continue
        targets.append(
            _RayTarget(
                normal=normal,
                w=poly.plane.w,
                denom=denom,
                axes=axes,
                corners=corners[keep],
                edges=edges[keep],
                lengths=lengths[keep],
                orientation=1.0 if normal[k] > 0 else -1.0,
            )
        )
    return targets


def _inside_projection(target: _RayTarget, points: np.ndarray) -> np.ndarray:
    """Point-in-convex-polygon test in the projected plane, inclusive within EPSILON."""

    rel = points[:, np.newaxis, :] - target.corners[np.newaxis, :, :]
    cross = target.edges[np.newaxis, :, 0] * rel[..., 1] - target.edges[np.newaxis, :, 1] * rel[..., 0]
    distance = target.orientation * cross / target.lengths[np.newaxis, :]
    return np.all(distance >= -EPSILON, axis=1)


def _distinct_hits(rows: list[np.ndarray], n_points: int) -> np.ndarray:
    if not rows:
        return np.zeros(n_points, dtype=int)
    stacked = np.sort(np.vstack(rows), axis=0)
    finite = np.isfinite(stacked)
    distinct = np.ones(stacked.shape, dtype=bool)
    with np.errstate(invalid="ignore"):
        distinct[1:] = np.diff(stacked, axis=0) > EPSILON
    return np.count_nonzero(finite & distinct, axis=0)


def classify_points(points: np.ndarray, targets: list[_RayTarget], direction: np.ndarray) -> np.ndarray:
    """Return True for points whose ray crosses the surface an odd number of times.

    Hits closer than EPSILON along the ray and crossing in the same direction
    are merged, so seams between adjacent faces are counted once.
    """

    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    entering: list[np.ndarray] = []
    leaving: list[np.ndarray] = []
    for target in targets:
        t = (target.w - pts @ target.normal) / target.denom
        hits = pts + t[:, np.newaxis] * direction
        inside = (t > EPSILON) & _inside_projection(target, hits[:, target.axes])
        params = np.where(inside, t, np.inf)
        if target.denom < 0:
            entering.append(params)
        else:
            leaving.append(params)
    crossings = _distinct_hits(entering, pts.shape[0]) + _distinct_hits(leaving, pts.shape[0])
    return crossings % 2 == 1


def contains_points(solid: Solid, points: np.ndarray, settings: VoxelSettings | None = None) -> np.ndarray:
    """Inside/outside test for arbitrary points using the voxelizer's ray rule."""

    settings = settings or VoxelSettings()
    direction = np.asarray(settings.ray_direction, dtype=float)
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    return classify_points(pts, _prepare_targets(solid, direction), direction)


def voxelize(
    solid: Solid,
    step: float,
    settings: VoxelSettings | None = None,
    *,
    progress: ProgressCallback | None = None,
    should_cancel: CancelCheck | None = None,
) -> list[VoxelBox]:
    """Sample ``solid`` on a grid of cell size ``step`` and emit one box per inside cell.

    Cells are anchored at the solid's bounding-box minimum and emitted in
    x, y, z lexicographic order. ``should_cancel`` is polled before each
    x-slab and ``progress(done, total)`` is reported after each one.
    """

    step = validate_step(step)
    settings = settings or VoxelSettings()
    audit_solid(solid)
    if solid.is_empty:
        return []

    mins, maxs = solid.bounds()
    nx, ny, nz = grid_shape(mins, maxs, step)
    total = nx * ny * nz
    if total > settings.max_samples:
        raise UnboundedVoxelizationError(
            f"Voxel grid {nx}x{ny}x{nz} ({total} samples) exceeds the limit of "
            f"{settings.max_samples}; increase the resolution step."
        )
    logger.debug("Voxel grid %dx%dx%d at step %g", nx, ny, nz, step)
    if total == 0:
        return []

    direction = np.asarray(settings.ray_direction, dtype=float)
    targets = _prepare_targets(solid, direction)

    iy, iz = np.meshgrid(np.arange(ny), np.arange(nz), indexing="ij")
    iy = iy.ravel()
    iz = iz.ravel()
    ys = mins[1] + (iy + 0.5) * step
    zs = mins[2] + (iz + 0.5) * step
    y_floor = mins[1] + iy * step
    z_floor = mins[2] + iz * step

    voxels: list[VoxelBox] = []
    for ix in range(nx):
        if should_cancel is not None and should_cancel():
            raise VoxelizationCancelled(f"Voxelization cancelled after {ix} of {nx} slabs.")
        x_floor = float(mins[0] + ix * step)
        points = np.column_stack([np.full(ys.shape, mins[0] + (ix + 0.5) * step), ys, zs])
        inside = classify_points(points, targets, direction)
        for k in np.flatnonzero(inside):
            start = (x_floor, float(y_floor[k]), float(z_floor[k]))
            voxels.append(VoxelBox(from_=start, to=(start[0] + step, start[1] + step, start[2] + step)))
        if progress is not None:
            progress(ix + 1, nx)

    logger.debug("Voxelized %d polygons into %d of %d cells", solid.n_polygons, len(voxels), total)
    return voxels
