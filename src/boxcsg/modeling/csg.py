"""Boolean operations on solids via binary space partition clipping.

Both inputs must be watertight; the combiner does not audit them. The BSP
trees built here are private working state, the input solids are never
modified and every call returns a new :class:`Solid`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal

import numpy as np

from .solid import EPSILON, Plane, Polygon, Solid

logger = logging.getLogger(__name__)

Operator = Literal["union", "subtract", "intersect"]
OPERATORS: tuple[str, ...] = ("union", "subtract", "intersect")

COPLANAR = 0
FRONT = 1
BACK = 2
SPANNING = 3


@dataclass
class SplitResult:
    coplanar_front: list[Polygon] = field(default_factory=list)
    coplanar_back: list[Polygon] = field(default_factory=list)
    front: list[Polygon] = field(default_factory=list)
    back: list[Polygon] = field(default_factory=list)


def _split_into(
    plane: Plane,
    polygon: Polygon,
    coplanar_front: list[Polygon],
    coplanar_back: list[Polygon],
    front: list[Polygon],
    back: list[Polygon],
) -> None:
    distances = plane.signed_distance(polygon.vertices)
    types = [BACK if d < -EPSILON else FRONT if d > EPSILON else COPLANAR for d in distances]
    polygon_type = 0
    for vertex_type in types:
        polygon_type |= vertex_type

    if polygon_type == COPLANAR:
        if float(plane.normal @ polygon.plane.normal) > 0:
            coplanar_front.append(polygon)
        else:
            coplanar_back.append(polygon)
    elif polygon_type == FRONT:
        front.append(polygon)
    elif polygon_type == BACK:
        back.append(polygon)
    else:
        verts = polygon.vertices
        n = polygon.n_vertices
        front_verts: list[np.ndarray] = []
        back_verts: list[np.ndarray] = []
        for i in range(n):
            j = (i + 1) % n
            ti, tj = types[i], types[j]
            vi, vj = verts[i], verts[j]
            if ti != BACK:
                front_verts.append(vi)
            if ti != FRONT:
                back_verts.append(vi)
            if (ti | tj) == SPANNING:
                t = (plane.w - float(plane.normal @ vi)) / float(plane.normal @ (vj - vi))
                cut = vi + (vj - vi) * t
                front_verts.append(cut)
                back_verts.append(cut)
        # Both fragments share the cut vertices and keep the parent's plane.
        if len(front_verts) >= 3:
            front.append(Polygon(np.array(front_verts), polygon.plane))
        if len(back_verts) >= 3:
            back.append(Polygon(np.array(back_verts), polygon.plane))


def split_polygon(plane: Plane, polygon: Polygon) -> SplitResult:
    """Classify ``polygon`` against ``plane``, splitting it if it spans the plane."""

    result = SplitResult()
    _split_into(plane, polygon, result.coplanar_front, result.coplanar_back, result.front, result.back)
    return result


class BSPNode:
    """Node of a BSP tree holding the polygons coplanar with its splitting plane."""

    def __init__(self, polygons: Iterable[Polygon] | None = None) -> None:
        self.plane: Plane | None = None
        self.front: BSPNode | None = None
        self.back: BSPNode | None = None
        self.polygons: list[Polygon] = []
        if polygons is not None:
            self.build(list(polygons))

    def invert(self) -> None:
        """Swap solid and empty space."""
        self.polygons = [poly.flipped() for poly in self.polygons]
        if self.plane is not None:
            self.plane = self.plane.flipped()
        if self.front is not None:
            self.front.invert()
        if self.back is not None:
            self.back.invert()
        self.front, self.back = self.back, self.front

    def clip_polygons(self, polygons: list[Polygon]) -> list[Polygon]:
        """Remove the parts of ``polygons`` that lie inside this tree's solid."""
        if self.plane is None:
            return list(polygons)
        front: list[Polygon] = []
        back: list[Polygon] = []
        for poly in polygons:
            _split_into(self.plane, poly, front, back, front, back)
        if self.front is not None:
            front = self.front.clip_polygons(front)
        if self.back is not None:
            back = self.back.clip_polygons(back)
        else:
            back = []
        return front + back

    def clip_to(self, other: "BSPNode") -> None:
        self.polygons = other.clip_polygons(self.polygons)
        if self.front is not None:
            self.front.clip_to(other)
        if self.back is not None:
            self.back.clip_to(other)

    def all_polygons(self) -> list[Polygon]:
        polygons = list(self.polygons)
        if self.front is not None:
            polygons.extend(self.front.all_polygons())
        if self.back is not None:
            polygons.extend(self.back.all_polygons())
        return polygons

    def build(self, polygons: list[Polygon]) -> None:
        if not polygons:
            return
        if self.plane is None:
            self.plane = polygons[0].plane
        front: list[Polygon] = []
        back: list[Polygon] = []
        for poly in polygons:
            _split_into(self.plane, poly, self.polygons, self.polygons, front, back)
        if front:
            if self.front is None:
                self.front = BSPNode()
            self.front.build(front)
        if back:
            if self.back is None:
                self.back = BSPNode()
            self.back.build(back)


def normalize_operator(operator: str) -> Operator:
    """Case-insensitive operator lookup; raises ValueError for unknown names."""

    key = str(operator).strip().lower()
    if key not in OPERATORS:
        raise ValueError(f"Unsupported operator '{operator}'. Expected one of: {', '.join(OPERATORS)}.")
    return key  # type: ignore[return-value]


def _trivial_result(a: Solid, b: Solid, operator: str) -> Solid | None:
    if not a.is_empty and not b.is_empty:
        return None
    if operator == "union":
        return b if a.is_empty else a
    if operator == "subtract":
        return Solid() if a.is_empty else a
    return Solid()


def combine_solids(a: Solid, b: Solid, operator: Operator) -> Solid:
    """Return ``a`` combined with ``b`` under ``operator``."""

    operator = normalize_operator(operator)
    trivial = _trivial_result(a, b, operator)
    if trivial is not None:
        return trivial

    node_a = BSPNode(a.polygons)
    node_b = BSPNode(b.polygons)

    if operator == "union":
        node_a.clip_to(node_b)
        node_b.clip_to(node_a)
        node_b.invert()
        node_b.clip_to(node_a)
        node_b.invert()
        node_a.build(node_b.all_polygons())
    elif operator == "subtract":
        node_a.invert()
        node_a.clip_to(node_b)
        node_b.clip_to(node_a)
        node_b.invert()
        node_b.clip_to(node_a)
        node_b.invert()
        node_a.build(node_b.all_polygons())
        node_a.invert()
    else:
        node_a.invert()
        node_b.clip_to(node_a)
        node_b.invert()
        node_a.clip_to(node_b)
        node_b.clip_to(node_a)
        node_a.build(node_b.all_polygons())
        node_a.invert()

    result = Solid(tuple(node_a.all_polygons()))
    logger.debug(
        "CSG %s: %d + %d polygons -> %d polygons",
        operator,
        a.n_polygons,
        b.n_polygons,
        result.n_polygons,
    )
    return result


def boolean_union(a: Solid, b: Solid) -> Solid:
    return combine_solids(a, b, "union")


def boolean_difference(a: Solid, b: Solid) -> Solid:
    return combine_solids(a, b, "subtract")


def boolean_intersection(a: Solid, b: Solid) -> Solid:
    return combine_solids(a, b, "intersect")
