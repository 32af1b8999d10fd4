"""Shared pytest fixtures for converter tests."""

import numpy as np
import pytest
import trimesh

from stl2gltf.geometry.mesh import IndexedMesh
from stl2gltf.settings import Settings

TRIANGLE_VERTICES = [[0, 0, 0], [1, 0, 0], [0, 1, 0]]

TETRA_VERTICES = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]]
TETRA_FACES = [[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]]


@pytest.fixture
def settings():
    """Default settings instance."""
    return Settings()


@pytest.fixture
def triangle_mesh():
    """Single triangle in the XY plane facing +Z."""
    return IndexedMesh(
        vertices=TRIANGLE_VERTICES,
        faces=[[0, 1, 2]],
        face_normals=[[0, 0, 1]],
    )


@pytest.fixture
def tetra_trimesh():
    return trimesh.Trimesh(vertices=TETRA_VERTICES, faces=TETRA_FACES, process=False)


@pytest.fixture
def tetra_mesh(tetra_trimesh):
    """Closed tetrahedron with outward face normals."""
    return IndexedMesh.from_trimesh(tetra_trimesh)


@pytest.fixture
def triangle_stl_bytes():
    tmesh = trimesh.Trimesh(
        vertices=np.array(TRIANGLE_VERTICES, dtype=np.float64),
        faces=[[0, 1, 2]],
        process=False,
    )
    return tmesh.export(file_type="stl")


@pytest.fixture
def tetra_stl_bytes(tetra_trimesh):
    return tetra_trimesh.export(file_type="stl")


@pytest.fixture
def tetra_stl_file(tmp_path, tetra_stl_bytes):
    path = tmp_path / "tetra.stl"
    path.write_bytes(tetra_stl_bytes)
    return path


def binary_stl(triangles, normals) -> bytes:
    """Binary STL with the facet normals written exactly as given."""
    facets = np.zeros(
        len(triangles),
        dtype=[("normals", "<f4", (3,)), ("vertices", "<f4", (3, 3)), ("attributes", "<u2")],
    )
    facets["normals"] = normals
    facets["vertices"] = triangles
    header = b"stl2gltf test".ljust(80, b" ")
    return header + np.array([len(triangles)], dtype="<u4").tobytes() + facets.tobytes()


@pytest.fixture
def mismatched_normal_stl_bytes():
    """One CCW triangle facing +Z whose stored normal says +X."""
    return binary_stl([TRIANGLE_VERTICES], [[1, 0, 0]])
