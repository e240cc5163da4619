from __future__ import annotations

import numpy as np
import pytest

from boxcsg.boxes import Box
from boxcsg.modeling import (
    Plane,
    Polygon,
    Solid,
    audit_solid,
    boolean_difference,
    boolean_intersection,
    boolean_union,
    box_to_solid,
    combine_solids,
    make_cube,
    normalize_operator,
    split_polygon,
)


def _square_z0() -> Polygon:
    return Polygon([(0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (2.0, 2.0, 0.0), (0.0, 2.0, 0.0)])


def test_split_spanning_polygon_conserves_area():
    square = _square_z0()
    result = split_polygon(Plane(normal=(1.0, 0.0, 0.0), w=1.0), square)

    assert len(result.front) == 1
    assert len(result.back) == 1
    assert not result.coplanar_front and not result.coplanar_back
    front, back = result.front[0], result.back[0]
    assert front.area + back.area == pytest.approx(square.area)
    assert front.area == pytest.approx(2.0)
    assert np.all(front.vertices[:, 0] >= 1.0)
    assert np.all(back.vertices[:, 0] <= 1.0)
    assert front.plane is square.plane and back.plane is square.plane


def test_coplanar_polygons_sorted_by_normal():
    square = _square_z0()
    plane = Plane(normal=(0.0, 0.0, 1.0), w=0.0)

    same = split_polygon(plane, square)
    assert same.coplanar_front == [square]
    flipped = split_polygon(plane, square.flipped())
    assert len(flipped.coplanar_back) == 1


def test_near_coplanar_within_tolerance():
    nudged = Polygon([(0.0, 0.0, 1e-7), (2.0, 0.0, 0.0), (2.0, 2.0, 1e-7), (0.0, 2.0, 0.0)])
    result = split_polygon(Plane(normal=(0.0, 0.0, 1.0), w=0.0), nudged)
    assert result.coplanar_front == [nudged]


def test_one_sided_polygons():
    square = _square_z0()
    assert split_polygon(Plane(normal=(0.0, 0.0, 1.0), w=-1.0), square).front == [square]
    assert split_polygon(Plane(normal=(0.0, 0.0, 1.0), w=1.0), square).back == [square]


@pytest.mark.parametrize(
    "operator, volume",
    [("union", 15.0), ("subtract", 7.0), ("intersect", 1.0)],
)
def test_overlapping_box_volumes(box_a: Box, box_b: Box, operator: str, volume: float):
    result = combine_solids(box_to_solid(box_a), box_to_solid(box_b), operator)
    assert result.volume == pytest.approx(volume, abs=1e-9)
    audit_solid(result)


def test_named_wrappers_match_combine(box_a: Box, box_b: Box):
    a = box_to_solid(box_a)
    b = box_to_solid(box_b)
    assert boolean_union(a, b).volume == pytest.approx(15.0)
    assert boolean_difference(a, b).volume == pytest.approx(7.0)
    assert boolean_intersection(a, b).volume == pytest.approx(1.0)


def test_inputs_not_modified(box_a: Box, box_b: Box):
    a = box_to_solid(box_a)
    b = box_to_solid(box_b)
    before = [poly.vertices.copy() for poly in a.polygons]
    polygons = a.polygons

    combine_solids(a, b, "subtract")

    assert a.polygons is polygons
    for original, poly in zip(before, a.polygons):
        assert np.array_equal(original, poly.vertices)


def test_disjoint_intersection_is_empty():
    a = make_cube(center=(0.5, 0.5, 0.5))
    b = make_cube(center=(3.5, 3.5, 3.5))
    result = combine_solids(a, b, "intersect")
    assert result.volume == pytest.approx(0.0, abs=1e-12)
    assert combine_solids(a, b, "union").volume == pytest.approx(2.0)
    assert combine_solids(a, b, "subtract").volume == pytest.approx(1.0)


def test_rotated_cutter_inside_box():
    outer = box_to_solid(Box(from_=(0.0, 0.0, 0.0), to=(4.0, 4.0, 4.0)))
    cutter = box_to_solid(
        Box(from_=(1.0, 1.0, 1.0), to=(3.0, 3.0, 3.0), origin=(2.0, 2.0, 2.0), rotation=(0.0, 0.0, 45.0))
    )
    result = combine_solids(outer, cutter, "subtract")
    assert result.volume == pytest.approx(56.0, abs=1e-6)
    audit_solid(result)


def test_empty_operands():
    cube = make_cube()
    empty = Solid()
    assert combine_solids(empty, cube, "union") is cube
    assert combine_solids(cube, empty, "subtract") is cube
    assert combine_solids(empty, cube, "subtract").is_empty
    assert combine_solids(cube, empty, "intersect").is_empty


def test_unknown_operator():
    with pytest.raises(ValueError, match="Unsupported operator 'xor'"):
        combine_solids(make_cube(), make_cube(), "xor")


@pytest.mark.parametrize("name, volume", [("Union", 15.0), (" SUBTRACT ", 7.0), ("INTERSECT", 1.0)])
def test_operator_names_are_case_insensitive(box_a: Box, box_b: Box, name: str, volume: float):
    assert normalize_operator(name) == name.strip().lower()
    result = combine_solids(box_to_solid(box_a), box_to_solid(box_b), name)
    assert result.volume == pytest.approx(volume)


def test_inverse_flips_volume():
    cube = make_cube(radius=(1.0, 1.0, 1.0))
    assert cube.inverse().volume == pytest.approx(-8.0)
