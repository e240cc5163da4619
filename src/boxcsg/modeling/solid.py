from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from boxcsg.errors import MalformedSolidError
from .transform import apply_transform, translation_matrix

# Shared tolerance for plane membership, ray parallelism and ray parameter checks.
EPSILON = 1e-5


def vector_area(points: np.ndarray) -> np.ndarray:
    """Newell vector area of a closed planar loop (normal * area)."""

    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    centered = pts - pts.mean(axis=0)
    return 0.5 * np.cross(centered, np.roll(centered, -1, axis=0)).sum(axis=0)


@dataclass(frozen=True, eq=False)
class Plane:
    normal: np.ndarray
    w: float

    def __post_init__(self) -> None:
        normal = np.array(self.normal, dtype=float).reshape(3)
        normal.setflags(write=False)
        object.__setattr__(self, "normal", normal)
        object.__setattr__(self, "w", float(self.w))

    @classmethod
    def from_points(cls, points: np.ndarray) -> "Plane":
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        area_vec = vector_area(pts)
        norm = float(np.linalg.norm(area_vec))
        if not np.isfinite(norm) or norm <= EPSILON * EPSILON:
            raise MalformedSolidError("Polygon has zero area; cannot derive a plane.")
        normal = area_vec / norm
        return cls(normal=normal, w=float(normal @ pts.mean(axis=0)))

    def flipped(self) -> "Plane":
        return Plane(normal=-self.normal, w=-self.w)

    def signed_distance(self, points: np.ndarray) -> np.ndarray:
        return np.asarray(points, dtype=float) @ self.normal - self.w


@dataclass(frozen=True, eq=False)
class Polygon:
    """Convex planar polygon with read-only vertices and a derived plane.

    Fragments produced by splitting pass their parent's plane explicitly so
    that every piece of a face stays on exactly the same plane.
    """

    vertices: np.ndarray
    plane: Plane | None = None

    def __post_init__(self) -> None:
        verts = np.array(self.vertices, dtype=float).reshape(-1, 3)
        if verts.shape[0] < 3:
            raise MalformedSolidError(f"Polygon needs at least 3 vertices, got {verts.shape[0]}.")
        if not np.all(np.isfinite(verts)):
            raise MalformedSolidError("Polygon has non-finite vertices.")
        verts.setflags(write=False)
        object.__setattr__(self, "vertices", verts)
        if self.plane is None:
            object.__setattr__(self, "plane", Plane.from_points(verts))

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def area(self) -> float:
        return float(np.linalg.norm(vector_area(self.vertices)))

    def flipped(self) -> "Polygon":
        return Polygon(self.vertices[::-1], self.plane.flipped())

    def transformed(self, matrix: np.ndarray) -> "Polygon":
        return Polygon(apply_transform(matrix, self.vertices))


@dataclass(frozen=True, eq=False)
class Solid:
    """Boundary representation: a closed set of outward-facing polygons."""

    polygons: tuple[Polygon, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "polygons", tuple(self.polygons))

    @property
    def is_empty(self) -> bool:
        return not self.polygons

    @property
    def n_polygons(self) -> int:
        return len(self.polygons)

    @property
    def vertices(self) -> np.ndarray:
        if not self.polygons:
            return np.zeros((0, 3), dtype=float)
        return np.vstack([poly.vertices for poly in self.polygons])

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        verts = self.vertices
        if verts.shape[0] == 0:
            return np.zeros(3), np.zeros(3)
        return verts.min(axis=0), verts.max(axis=0)

    @property
    def volume(self) -> float:
        # Divergence theorem over planar faces.
        total = 0.0
        for poly in self.polygons:
            total += float(vector_area(poly.vertices) @ poly.vertices[0])
        return total / 3.0

    def transform(self, matrix: np.ndarray) -> "Solid":
        mat = np.asarray(matrix, dtype=float)
        if mat.shape != (4, 4):
            raise ValueError("transform requires a 4x4 matrix.")
        return Solid(tuple(poly.transformed(mat) for poly in self.polygons))

    def translate(self, offset: Sequence[float]) -> "Solid":
        return self.transform(translation_matrix(offset))

    def inverse(self) -> "Solid":
        return Solid(tuple(poly.flipped() for poly in self.polygons))


def _edge_key(a: np.ndarray, b: np.ndarray) -> tuple[tuple[float, ...], tuple[float, ...]]:
    return tuple(float(v) for v in a), tuple(float(v) for v in b)


def count_unpaired_edges(solid: Solid) -> int:
    """Count directed edges that lack exactly one reversed partner."""

    counts: Counter = Counter()
    for poly in solid.polygons:
        verts = poly.vertices
        for i in range(poly.n_vertices):
            counts[_edge_key(verts[i], verts[(i + 1) % poly.n_vertices])] += 1

    unpaired = 0
    for (start, end), count in counts.items():
        if count != 1 or counts.get((end, start), 0) != 1:
            unpaired += 1
    return unpaired


def audit_solid(solid: Solid, strict: bool = False) -> None:
    """Raise MalformedSolidError unless the solid is a closed, finite boundary.

    The default check verifies that the face vector areas cancel, which holds
    for closed surfaces even when BSP splitting leaves T-junctions. ``strict``
    additionally requires every directed edge to be matched by exactly one
    reversed edge, which only holds for unsplit solids such as converted boxes.
    """

    if solid.is_empty:
        return
    if not np.all(np.isfinite(solid.vertices)):
        raise MalformedSolidError("Solid has non-finite vertices.")

    area_vectors = np.array([vector_area(poly.vertices) for poly in solid.polygons])
    total_area = float(np.linalg.norm(area_vectors, axis=1).sum())
    closure = float(np.linalg.norm(area_vectors.sum(axis=0)))
    if closure > EPSILON * max(total_area, 1.0):
        raise MalformedSolidError(
            f"Solid surface is open: face areas do not cancel (residual {closure:.3g})."
        )

    if strict:
        unpaired = count_unpaired_edges(solid)
        if unpaired:
            raise MalformedSolidError(f"Solid is not watertight: {unpaired} unpaired edges.")
