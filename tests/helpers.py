from __future__ import annotations

import itertools
from typing import Iterable

import pyvista as pv

from boxcsg.boxes import VoxelBox


def is_watertight(mesh: pv.DataSet) -> tuple[bool, int]:
    edges = mesh.extract_feature_edges(boundary_edges=True, feature_edges=False, non_manifold_edges=True, manifold_edges=False)
    open_edges = edges.n_cells
    return open_edges == 0, open_edges


def voxel_starts(voxels: Iterable[VoxelBox]) -> set[tuple[float, float, float]]:
    return {voxel.from_ for voxel in voxels}


def unit_cells(start: int, stop: int) -> set[tuple[float, float, float]]:
    """Lower corners of the unit cells filling [start, stop)^3."""
    coords = [float(v) for v in range(start, stop)]
    return set(itertools.product(coords, coords, coords))
