"""STL output for voxel results and polygon solids.

Facet normals are taken from the geometry itself: voxel faces are axis
aligned and solid polygons carry their plane, so nothing is recomputed
from triangle winding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np

from boxcsg.boxes import VoxelBox
from boxcsg.mesh import BOX_QUAD_NORMALS, voxels_to_mesh
from boxcsg.modeling.solid import Solid

# 12 float32 values plus the unused attribute word: 50 bytes per facet.
_FACET_DTYPE = np.dtype(
    [
        ("normal", "<f4", (3,)),
        ("corners", "<f4", (3, 3)),
        ("attribute", "<u2"),
    ]
)


def voxel_facets(voxels: Sequence[VoxelBox]) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(normals, triangles)`` with shapes (F, 3) and (F, 3, 3)."""

    mesh = voxels_to_mesh(voxels)
    triangles = mesh.vertices[mesh.faces]
    # Two triangles per quad, six quads per voxel, in the mesh's face order.
    per_voxel = np.repeat(np.asarray(BOX_QUAD_NORMALS, dtype=float), 2, axis=0)
    normals = np.tile(per_voxel, (len(voxels), 1))
    return normals, triangles


def solid_facets(solid: Solid) -> tuple[np.ndarray, np.ndarray]:
    normals: list[np.ndarray] = []
    triangles: list[np.ndarray] = []
    for poly in solid.polygons:
        verts = poly.vertices
        for i in range(1, poly.n_vertices - 1):
            triangles.append(np.stack([verts[0], verts[i], verts[i + 1]]))
            normals.append(poly.plane.normal)
    if not triangles:
        return np.zeros((0, 3)), np.zeros((0, 3, 3))
    return np.asarray(normals, dtype=float), np.asarray(triangles, dtype=float)


def _write_facets(
    normals: np.ndarray,
    triangles: np.ndarray,
    path: Path,
    *,
    ascii: bool,
    name: str,
) -> None:
    path = Path(path)
    if ascii:
        lines = [f"solid {name}"]
        for normal, tri in zip(normals, triangles):
            lines.append("  facet normal {:.6e} {:.6e} {:.6e}".format(*normal))
            lines.append("    outer loop")
            for corner in tri:
                lines.append("      vertex {:.6e} {:.6e} {:.6e}".format(*corner))
            lines.append("    endloop")
            lines.append("  endfacet")
        lines.append(f"endsolid {name}")
        path.write_text("\n".join(lines) + "\n")
        return

    records = np.zeros(len(triangles), dtype=_FACET_DTYPE)
    records["normal"] = normals
    records["corners"] = triangles
    header = f"{name} STL".encode("ascii").ljust(80, b"\0")[:80]
    with path.open("wb") as handle:
        handle.write(header)
        handle.write(np.array([len(records)], dtype="<u4").tobytes())
        handle.write(records.tobytes())


def write_voxels_stl(voxels: Sequence[VoxelBox], path: Path, ascii: bool = False) -> int:
    """Write every voxel as a closed cube and return the facet count."""

    normals, triangles = voxel_facets(voxels)
    _write_facets(normals, triangles, path, ascii=ascii, name="boxcsg voxels")
    return len(triangles)


def write_solid_stl(solid: Solid, path: Path, ascii: bool = False) -> int:
    """Fan-triangulate each polygon of ``solid`` and write it; returns the facet count."""

    normals, triangles = solid_facets(solid)
    _write_facets(normals, triangles, path, ascii=ascii, name="boxcsg solid")
    return len(triangles)
