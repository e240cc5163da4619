from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from boxcsg.boxes import Box, VoxelBox
from boxcsg.io.stl import solid_facets, voxel_facets, write_solid_stl, write_voxels_stl
from boxcsg.mesh import analyze_mesh, mesh_to_pyvista, solid_to_mesh, voxels_to_mesh
from boxcsg.modeling import box_to_solid
from tests.helpers import is_watertight


def _voxels():
    return [
        VoxelBox(from_=(0.0, 0.0, 0.0), to=(1.0, 1.0, 1.0)),
        VoxelBox(from_=(1.0, 0.0, 0.0), to=(2.0, 1.0, 1.0)),
    ]


def test_voxel_mesh_is_closed():
    mesh = voxels_to_mesh(_voxels())
    assert mesh.n_vertices == 16
    assert mesh.n_faces == 24
    analysis = analyze_mesh(mesh)
    assert analysis.is_watertight
    assert analysis.issues() == []
    assert mesh.bounds == (0.0, 2.0, 0.0, 1.0, 0.0, 1.0)


def test_voxel_mesh_winds_outward():
    mesh = voxels_to_mesh(_voxels()[:1])
    center = np.array([0.5, 0.5, 0.5])
    tris = mesh.vertices[mesh.faces]
    normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    outward = np.einsum("ij,ij->i", normals, tris.mean(axis=1) - center)
    assert np.all(outward > 0)


def test_empty_voxel_mesh():
    mesh = voxels_to_mesh([])
    assert mesh.n_faces == 0


def test_solid_mesh_fan_triangulation():
    mesh = solid_to_mesh(box_to_solid(Box(from_=(0.0, 0.0, 0.0), to=(1.0, 2.0, 3.0))))
    assert mesh.n_faces == 12
    assert mesh.bounds == (0.0, 1.0, 0.0, 2.0, 0.0, 3.0)


def test_write_binary_stl(tmp_path: Path):
    path = tmp_path / "voxels.stl"
    assert write_voxels_stl(_voxels(), path) == 24
    data = path.read_bytes()
    assert len(data) == 84 + 50 * 24
    assert data.startswith(b"boxcsg voxels STL")
    assert int(np.frombuffer(data[80:84], dtype="<u4")[0]) == 24


def test_binary_stl_normals_point_outward(tmp_path: Path):
    path = tmp_path / "cell.stl"
    write_voxels_stl(_voxels()[:1], path)
    records = np.frombuffer(path.read_bytes()[84:], dtype=np.dtype([("data", "<f4", (12,)), ("attr", "<u2")]))
    normals = records["data"][:, :3]
    centroids = records["data"][:, 3:].reshape(-1, 3, 3).mean(axis=1)
    assert np.allclose(np.linalg.norm(normals, axis=1), 1.0)
    assert np.all(np.einsum("ij,ij->i", normals, centroids - 0.5) > 0)


def test_voxel_facet_normals_match_winding():
    normals, triangles = voxel_facets(_voxels())
    assert normals.shape == (24, 3)
    winding = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
    winding /= np.linalg.norm(winding, axis=1)[:, np.newaxis]
    assert np.allclose(winding, normals)


def test_write_ascii_stl(tmp_path: Path):
    path = tmp_path / "voxels.stl"
    write_voxels_stl(_voxels(), path, ascii=True)
    text = path.read_text()
    assert text.startswith("solid boxcsg voxels")
    assert text.rstrip().endswith("endsolid boxcsg voxels")
    assert text.count("facet normal") == 24


def test_empty_voxel_stl(tmp_path: Path):
    path = tmp_path / "empty.stl"
    assert write_voxels_stl([], path) == 0
    assert len(path.read_bytes()) == 84


def test_solid_stl_uses_polygon_planes(tmp_path: Path):
    box = Box(from_=(0.0, 0.0, 0.0), to=(1.0, 2.0, 3.0), origin=(0.5, 1.0, 1.5), rotation=(0.0, 30.0, 0.0))
    solid = box_to_solid(box)
    normals, triangles = solid_facets(solid)
    assert triangles.shape == (12, 3, 3)
    winding = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
    winding /= np.linalg.norm(winding, axis=1)[:, np.newaxis]
    assert np.allclose(winding, normals, atol=1e-9)

    path = tmp_path / "solid.stl"
    assert write_solid_stl(solid, path) == 12
    assert len(path.read_bytes()) == 84 + 50 * 12



def test_pyvista_conversion_volume():
    poly = mesh_to_pyvista(voxels_to_mesh(_voxels()[:1]))
    assert poly.n_cells == 12
    watertight, open_edges = is_watertight(poly)
    assert watertight and open_edges == 0
    assert poly.volume == pytest.approx(1.0)
