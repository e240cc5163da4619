from __future__ import annotations

from typing import Sequence

import numpy as np


def _normalize_axis(axis: Sequence[float]) -> np.ndarray:
    vec = np.asarray(axis, dtype=float).reshape(3)
    norm = np.linalg.norm(vec)
    if norm == 0:
        raise ValueError("Rotation axis must be non-zero.")
    return vec / norm


def translation_matrix(offset: Sequence[float]) -> np.ndarray:
    dx, dy, dz = np.asarray(offset, dtype=float).reshape(3)
    mat = np.eye(4)
    mat[:3, 3] = [dx, dy, dz]
    return mat


def axis_rotation_matrix(axis: Sequence[float], angle_deg: float) -> np.ndarray:
    """Rotation about an axis through the origin (right-handed, degrees)."""
    axis_vec = _normalize_axis(axis)
    angle_rad = np.deg2rad(angle_deg)
    x, y, z = axis_vec
    c = np.cos(angle_rad)
    s = np.sin(angle_rad)
    C = 1.0 - c
    return np.array(
        [
            [x * x * C + c, x * y * C - z * s, x * z * C + y * s, 0.0],
            [y * x * C + z * s, y * y * C + c, y * z * C - x * s, 0.0],
            [z * x * C - y * s, z * y * C + x * s, z * z * C + c, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=float,
    )


def rotation_euler_matrix(
    angles_deg: Sequence[float],
    origin: Sequence[float] = (0.0, 0.0, 0.0),
    order: str = "xyz",
) -> np.ndarray:
    """Compose per-axis rotations about ``origin``.

    ``order`` lists the axes in the order they are applied, so the default
    ``"xyz"`` yields ``T(origin) @ Rz @ Ry @ Rx @ T(-origin)``.
    """
    angles = np.asarray(angles_deg, dtype=float).reshape(3)
    order = order.lower()
    if len(order) != 3 or set(order) != {"x", "y", "z"}:
        raise ValueError("order must be a permutation of 'xyz'.")
    matrices = {
        "x": axis_rotation_matrix((1.0, 0.0, 0.0), angles[0]),
        "y": axis_rotation_matrix((0.0, 1.0, 0.0), angles[1]),
        "z": axis_rotation_matrix((0.0, 0.0, 1.0), angles[2]),
    }
    mat = np.eye(4)
    for axis in order:
        mat = matrices[axis] @ mat
    origin = np.asarray(origin, dtype=float).reshape(3)
    to_origin = translation_matrix(-origin)
    back = translation_matrix(origin)
    return back @ mat @ to_origin


def is_zero_rotation(rotation_deg: Sequence[float]) -> bool:
    return not np.any(np.asarray(rotation_deg, dtype=float).reshape(3))


def build_transform(pivot: Sequence[float], rotation_deg: Sequence[float]) -> np.ndarray:
    """Rotate about ``pivot`` by X, then Y, then Z degrees.

    A zero rotation gives exactly the identity matrix.
    """
    return rotation_euler_matrix(rotation_deg, origin=pivot, order="xyz")


def apply_transform(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1), dtype=float)])
    return (np.asarray(matrix, dtype=float) @ homogeneous.T).T[:, :3]
