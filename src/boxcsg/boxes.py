"""Host-facing box shapes: the rotatable source Box and the output VoxelBox."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

Vec3 = tuple[float, float, float]


def _vec3(values: Sequence[float], name: str) -> Vec3:
    try:
        items = [float(v) for v in values]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{name}' must be a sequence of three numbers.") from exc
    if len(items) != 3:
        raise ValueError(f"'{name}' must have exactly three components, got {len(items)}.")
    return (items[0], items[1], items[2])


@dataclass(frozen=True)
class Box:
    """Axis-aligned box with a rotation (degrees, X then Y then Z) about ``origin``."""

    from_: Vec3
    to: Vec3
    origin: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "from_", _vec3(self.from_, "from"))
        object.__setattr__(self, "to", _vec3(self.to, "to"))
        object.__setattr__(self, "origin", _vec3(self.origin, "origin"))
        object.__setattr__(self, "rotation", _vec3(self.rotation, "rotation"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Box":
        missing = [key for key in ("from", "to") if key not in data]
        if missing:
            raise ValueError(f"Box is missing required keys: {', '.join(missing)}.")
        return cls(
            from_=data["from"],
            to=data["to"],
            origin=data.get("origin", (0.0, 0.0, 0.0)),
            rotation=data.get("rotation", (0.0, 0.0, 0.0)),
        )

    def to_dict(self) -> dict[str, list[float]]:
        return {
            "from": list(self.from_),
            "to": list(self.to),
            "origin": list(self.origin),
            "rotation": list(self.rotation),
        }


@dataclass(frozen=True)
class VoxelBox:
    """Axis-aligned cube of side ``step`` emitted by the voxelizer."""

    from_: Vec3
    to: Vec3

    @property
    def size(self) -> Vec3:
        return (self.to[0] - self.from_[0], self.to[1] - self.from_[1], self.to[2] - self.from_[2])

    def to_dict(self) -> dict[str, list[float]]:
        return {"from": list(self.from_), "to": list(self.to)}
