from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from ._config import get_user_config

DEFAULT_MAX_SAMPLES = 2_000_000


@dataclass(frozen=True)
class VoxelSettings:
    """Controls voxel grid limits and the parity ray."""

    max_samples: int = DEFAULT_MAX_SAMPLES
    ray_direction: tuple[float, float, float] = (1.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if self.max_samples <= 0:
            raise ValueError("max_samples must be positive.")
        direction = np.asarray(self.ray_direction, dtype=float).reshape(3)
        norm = float(np.linalg.norm(direction))
        if not np.isfinite(norm) or norm == 0:
            raise ValueError("ray_direction must be a non-zero finite vector.")
        unit = direction / norm
        object.__setattr__(self, "ray_direction", (float(unit[0]), float(unit[1]), float(unit[2])))


def load_voxel_settings(ray_direction: Sequence[float] | None = None) -> VoxelSettings:
    """Build settings from the user config file."""

    settings = VoxelSettings(max_samples=get_user_config().max_samples)
    if ray_direction is not None:
        settings = replace(settings, ray_direction=tuple(ray_direction))
    return settings
