"""Run box -> solid -> boolean -> voxel reconstruction for a pair of host boxes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union

from boxcsg.boxes import Box, VoxelBox
from boxcsg.modeling.csg import Operator, combine_solids, normalize_operator
from boxcsg.modeling.primitives import box_to_solid
from boxcsg.modeling.solid import audit_solid
from boxcsg.modeling.voxelize import CancelCheck, ProgressCallback, validate_step, voxelize
from boxcsg.settings import VoxelSettings

logger = logging.getLogger(__name__)

BoxLike = Union[Box, Mapping[str, Any]]


@dataclass(frozen=True)
class CombineResult:
    voxels: tuple[VoxelBox, ...]
    replaced: tuple[BoxLike, BoxLike]
    operator: str
    resolution: float

    @property
    def count(self) -> int:
        return len(self.voxels)


def _as_box(value: BoxLike) -> Box:
    if isinstance(value, Box):
        return value
    if isinstance(value, Mapping):
        return Box.from_dict(value)
    raise TypeError(f"Expected a Box or a mapping, got {type(value).__name__}.")


def combine(
    box_a: BoxLike,
    box_b: BoxLike,
    operator: Operator,
    resolution: float,
    settings: VoxelSettings | None = None,
    *,
    progress: ProgressCallback | None = None,
    should_cancel: CancelCheck | None = None,
) -> CombineResult:
    """Combine two host boxes and rebuild the result as voxel boxes.

    ``box_a`` is the target and ``box_b`` the modifier (the subtrahend for
    ``subtract``). Every error is raised before a result exists, so callers
    can leave their scene untouched on failure.
    """

    target = _as_box(box_a)
    modifier = _as_box(box_b)
    mode = normalize_operator(operator)
    step = validate_step(resolution)

    logger.info("Running %s CSG at resolution %g", mode.upper(), step)
    solid_a = box_to_solid(target)
    solid_b = box_to_solid(modifier)
    audit_solid(solid_a, strict=True)
    audit_solid(solid_b, strict=True)

    result_solid = combine_solids(solid_a, solid_b, mode)
    voxels = voxelize(result_solid, step, settings, progress=progress, should_cancel=should_cancel)
    logger.info("CSG %s complete: %d voxels generated", mode, len(voxels))
    return CombineResult(voxels=tuple(voxels), replaced=(box_a, box_b), operator=mode, resolution=step)


def replace_in_list(elements: Sequence[Any], result: CombineResult) -> list[Any]:
    """Return a copy of ``elements`` with the replaced boxes swapped for the voxels.

    Voxels take the position of the first replaced element; elements are
    matched by identity first and equality second.
    """

    items = list(elements)
    positions: list[int] = []
    for source in result.replaced:
        free = [i for i in range(len(items)) if i not in positions]
        index = next((i for i in free if items[i] is source), None)
        if index is None:
            index = next((i for i in free if items[i] == source), None)
        if index is None:
            raise ValueError("Replaced box is not present in the element list.")
        positions.append(index)

    insert_at = min(positions)
    kept = [item for i, item in enumerate(items) if i not in positions]
    return kept[:insert_at] + list(result.voxels) + kept[insert_at:]


def combine_request(
    request: Mapping[str, Any],
    settings: VoxelSettings | None = None,
    default_resolution: float = 1.0,
) -> CombineResult:
    """Run a JSON-shaped request ``{"a", "b", "operator", "resolution"}``."""

    missing = [key for key in ("a", "b", "operator") if key not in request]
    if missing:
        raise ValueError(f"Request is missing required keys: {', '.join(missing)}.")
    return combine(
        request["a"],
        request["b"],
        request["operator"],
        request.get("resolution", default_resolution),
        settings,
    )


def result_to_dict(result: CombineResult) -> dict[str, Any]:
    return {
        "operator": result.operator,
        "resolution": result.resolution,
        "count": result.count,
        "voxels": [voxel.to_dict() for voxel in result.voxels],
    }
