from __future__ import annotations


class CSGError(ValueError):
    """Base class for geometry pipeline failures."""


class DegenerateGeometryError(CSGError):
    """Raised when a box has a zero or negative extent, or non-finite values."""


class InvalidResolutionError(CSGError):
    """Raised when the voxel step is not a positive finite number."""


class UnboundedVoxelizationError(CSGError):
    """Raised when a voxel grid would exceed the configured sample ceiling."""


class MalformedSolidError(CSGError):
    """Raised when a solid is not a closed, finite boundary."""


class VoxelizationCancelled(CSGError):
    """Raised when a caller requests cancellation of a running voxel scan."""
