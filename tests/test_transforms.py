from __future__ import annotations

import numpy as np
import pytest

from boxcsg.modeling import (
    apply_transform,
    axis_rotation_matrix,
    build_transform,
    rotation_euler_matrix,
    translation_matrix,
)


def test_zero_rotation_is_exact_identity():
    matrix = build_transform((3.5, -4.0, 12.25), (0.0, 0.0, 0.0))
    assert np.array_equal(matrix, np.eye(4))


def test_rotate_z_90_about_pivot():
    matrix = build_transform((1.0, 0.0, 0.0), (0.0, 0.0, 90.0))
    moved = apply_transform(matrix, [(2.0, 0.0, 0.0)])
    assert np.allclose(moved, [[1.0, 1.0, 0.0]], atol=1e-12)


def test_pivot_is_fixed_point():
    pivot = (8.0, -2.0, 5.0)
    matrix = build_transform(pivot, (22.5, -45.0, 67.5))
    assert np.allclose(apply_transform(matrix, [pivot]), [pivot], atol=1e-12)


def test_composition_order_is_z_y_x():
    pivot = np.array([1.0, 2.0, 3.0])
    angles = (10.0, 20.0, 30.0)
    rx = axis_rotation_matrix((1.0, 0.0, 0.0), angles[0])
    ry = axis_rotation_matrix((0.0, 1.0, 0.0), angles[1])
    rz = axis_rotation_matrix((0.0, 0.0, 1.0), angles[2])
    expected = translation_matrix(pivot) @ rz @ ry @ rx @ translation_matrix(-pivot)
    assert np.allclose(build_transform(pivot, angles), expected, atol=1e-12)


def test_euler_matches_sequential_rotations():
    points = np.array([[1.0, 2.0, 3.0], [-4.0, 0.5, 2.0]])
    sequential = apply_transform(axis_rotation_matrix((1.0, 0.0, 0.0), 10.0), points)
    sequential = apply_transform(axis_rotation_matrix((0.0, 1.0, 0.0), 20.0), sequential)
    sequential = apply_transform(axis_rotation_matrix((0.0, 0.0, 1.0), 30.0), sequential)

    euler = apply_transform(build_transform((0.0, 0.0, 0.0), (10.0, 20.0, 30.0)), points)
    assert np.allclose(sequential, euler, atol=1e-12)


def test_order_changes_result():
    xyz = rotation_euler_matrix((90.0, 90.0, 0.0), order="xyz")
    yxz = rotation_euler_matrix((90.0, 90.0, 0.0), order="yxz")
    assert not np.allclose(xyz, yxz)


def test_invalid_order_rejected():
    with pytest.raises(ValueError):
        rotation_euler_matrix((0.0, 0.0, 0.0), order="xxy")


def test_zero_axis_rejected():
    with pytest.raises(ValueError):
        axis_rotation_matrix((0.0, 0.0, 0.0), 45.0)
