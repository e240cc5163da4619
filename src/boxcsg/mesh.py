from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from boxcsg.boxes import VoxelBox
from boxcsg.modeling.solid import Solid

# Same corner numbering as the box converter: bit 0 -> x, bit 1 -> y, bit 2 -> z.
_BOX_QUADS = (
    (0, 4, 6, 2),
    (1, 3, 7, 5),
    (0, 1, 5, 4),
    (2, 6, 7, 3),
    (0, 2, 3, 1),
    (4, 5, 7, 6),
)

# Outward normal of each quad above.
BOX_QUAD_NORMALS = (
    (-1.0, 0.0, 0.0),
    (1.0, 0.0, 0.0),
    (0.0, -1.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, 0.0, -1.0),
    (0.0, 0.0, 1.0),
)


@dataclass
class MeshAnalysis:
    n_vertices: int
    n_faces: int
    degenerate_faces: int
    boundary_edges: int
    nonmanifold_edges: int
    invalid_vertices: int

    @property
    def is_manifold(self) -> bool:
        return self.nonmanifold_edges == 0

    @property
    def is_watertight(self) -> bool:
        return self.boundary_edges == 0 and self.is_manifold

    def issues(self) -> list[str]:
        issues: list[str] = []
        if self.invalid_vertices > 0:
            issues.append(f"{self.invalid_vertices} invalid vertices (NaN/inf)")
        if self.degenerate_faces > 0:
            issues.append(f"{self.degenerate_faces} degenerate faces")
        if self.boundary_edges > 0:
            issues.append(f"{self.boundary_edges} boundary edges (not watertight)")
        if self.nonmanifold_edges > 0:
            issues.append(f"{self.nonmanifold_edges} non-manifold edges")
        return issues


@dataclass
class Mesh:
    """Indexed triangle mesh used for exporting results."""

    vertices: np.ndarray
    faces: np.ndarray
    metadata: dict[str, object] = field(default_factory=dict)
    analysis: MeshAnalysis | None = None

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=float).reshape(-1, 3).copy()
        self.faces = np.asarray(self.faces, dtype=int).reshape(-1, 3).copy()

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_faces(self) -> int:
        return int(self.faces.shape[0])

    @property
    def bounds(self) -> tuple[float, float, float, float, float, float]:
        if self.n_vertices == 0:
            return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        mins = self.vertices.min(axis=0)
        maxs = self.vertices.max(axis=0)
        return (float(mins[0]), float(maxs[0]), float(mins[1]), float(maxs[1]), float(mins[2]), float(maxs[2]))


def triangulate_faces(face_list: Iterable[Sequence[int]]) -> np.ndarray:
    triangles: list[list[int]] = []
    for face in face_list:
        if len(face) < 3:
            continue
        v0 = face[0]
        for i in range(1, len(face) - 1):
            triangles.append([v0, face[i], face[i + 1]])
    if not triangles:
        return np.zeros((0, 3), dtype=int)
    return np.asarray(triangles, dtype=int)


def voxels_to_mesh(voxels: Sequence[VoxelBox]) -> Mesh:
    """Mesh every voxel as a closed cube (8 vertices, 12 outward triangles)."""

    if not voxels:
        return Mesh(vertices=np.zeros((0, 3)), faces=np.zeros((0, 3), dtype=int))
    starts = np.array([voxel.from_ for voxel in voxels], dtype=float)
    ends = np.array([voxel.to for voxel in voxels], dtype=float)
    bits = np.array([[i & 1, (i >> 1) & 1, (i >> 2) & 1] for i in range(8)], dtype=bool)

    corners = np.where(bits[np.newaxis, :, :], ends[:, np.newaxis, :], starts[:, np.newaxis, :])
    cube_faces = triangulate_faces(_BOX_QUADS)
    offsets = (np.arange(len(voxels)) * 8)[:, np.newaxis, np.newaxis]
    faces = cube_faces[np.newaxis, :, :] + offsets
    mesh = Mesh(vertices=corners.reshape(-1, 3), faces=faces.reshape(-1, 3))
    mesh.metadata["voxels"] = len(voxels)
    return mesh


def solid_to_mesh(solid: Solid) -> Mesh:
    """Fan-triangulate every polygon of a solid."""

    vertices: list[np.ndarray] = []
    face_lists: list[list[int]] = []
    offset = 0
    for poly in solid.polygons:
        vertices.append(poly.vertices)
        face_lists.append(list(range(offset, offset + poly.n_vertices)))
        offset += poly.n_vertices
    if not vertices:
        return Mesh(vertices=np.zeros((0, 3)), faces=np.zeros((0, 3), dtype=int))
    return Mesh(vertices=np.vstack(vertices), faces=triangulate_faces(face_lists))


def analyze_mesh(mesh: Mesh, area_epsilon: float = 1e-12) -> MeshAnalysis:
    verts = mesh.vertices
    faces = mesh.faces
    invalid_vertices = int(np.count_nonzero(~np.isfinite(verts)))

    degenerate_faces = 0
    if faces.size > 0:
        v0 = verts[faces[:, 0]]
        v1 = verts[faces[:, 1]]
        v2 = verts[faces[:, 2]]
        cross = np.cross(v1 - v0, v2 - v0)
        areas = np.linalg.norm(cross, axis=1) * 0.5
        degenerate_faces = int(np.count_nonzero(areas <= area_epsilon))

    edge_counts: dict[tuple[int, int], int] = {}
    for tri in faces:
        edges = [(tri[0], tri[1]), (tri[1], tri[2]), (tri[2], tri[0])]
        for a, b in edges:
            key = (a, b) if a < b else (b, a)
            edge_counts[key] = edge_counts.get(key, 0) + 1

    boundary_edges = sum(1 for count in edge_counts.values() if count == 1)
    nonmanifold_edges = sum(1 for count in edge_counts.values() if count > 2)

    analysis = MeshAnalysis(
        n_vertices=mesh.n_vertices,
        n_faces=mesh.n_faces,
        degenerate_faces=degenerate_faces,
        boundary_edges=boundary_edges,
        nonmanifold_edges=nonmanifold_edges,
        invalid_vertices=invalid_vertices,
    )
    mesh.analysis = analysis
    return analysis


def mesh_to_pyvista(mesh: Mesh):
    import pyvista as pv

    if mesh.n_faces == 0:
        return pv.PolyData(mesh.vertices, deep=True)
    faces = np.hstack([np.array([3, *tri], dtype=np.int64) for tri in mesh.faces])
    poly = pv.PolyData(mesh.vertices, faces, deep=True)
    return poly
