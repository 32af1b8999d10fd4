"""Tests for per-vertex normals and bounding coordinates."""

import math

import numpy as np
import pytest

from stl2gltf.geometry.normals import bounding_coords, compute_normals, has_bounds


class TestComputeNormals:
    def test_single_triangle(self, triangle_mesh):
        normals = compute_normals(
            triangle_mesh.vertices, triangle_mesh.faces, triangle_mesh.face_normals
        )
        assert normals.shape == (3, 3)
        assert normals.dtype == np.float32
        np.testing.assert_allclose(normals, [[0, 0, 1]] * 3)

    def test_mean_of_face_normals(self, tetra_mesh):
        normals = compute_normals(
            tetra_mesh.vertices, tetra_mesh.faces, tetra_mesh.face_normals
        )
        for v in range(len(tetra_mesh.vertices)):
            touching = [
                f for f, face in enumerate(tetra_mesh.faces) if v in face
            ]
            expected = tetra_mesh.face_normals[touching].mean(axis=0)
            np.testing.assert_allclose(normals[v], expected, atol=1e-6)

    def test_unweighted_not_renormalized(self):
        # Two faces sharing vertex 0 with perpendicular normals
        vertices = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]]
        faces = [[0, 1, 2], [0, 3, 1]]
        face_normals = [[0, 0, 1], [0, 1, 0]]
        normals = compute_normals(vertices, faces, face_normals)
        np.testing.assert_allclose(normals[0], [0, 0.5, 0.5])
        np.testing.assert_allclose(normals[2], [0, 0, 1])
        np.testing.assert_allclose(normals[3], [0, 1, 0])

    def test_unreferenced_vertex_is_zero(self):
        vertices = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [5, 5, 5]]
        normals = compute_normals(vertices, [[0, 1, 2]], [[0, 0, 1]])
        assert not np.isnan(normals).any()
        np.testing.assert_allclose(normals[3], [0, 0, 0])

    def test_no_vertices(self):
        normals = compute_normals(np.zeros((0, 3)), np.zeros((0, 3)), np.zeros((0, 3)))
        assert normals.shape == (0, 3)


class TestBoundingCoords:
    def test_triangle(self):
        bounds_min, bounds_max = bounding_coords([[0, 0, 0], [1, 0, 0], [0, 1, 0]])
        assert bounds_min == [0, 0, 0]
        assert bounds_max == [1, 1, 0]

    def test_empty_is_no_bounds(self):
        bounds_min, bounds_max = bounding_coords(np.zeros((0, 3)))
        assert all(math.isinf(v) and v > 0 for v in bounds_min)
        assert all(math.isinf(v) and v < 0 for v in bounds_max)
        assert not has_bounds(bounds_min, bounds_max)

    def test_points_contained(self):
        rng = np.random.default_rng(7)
        points = rng.uniform(-10, 10, size=(50, 3))
        bounds_min, bounds_max = bounding_coords(points)
        assert has_bounds(bounds_min, bounds_max)
        for axis in range(3):
            assert bounds_min[axis] <= bounds_max[axis]
            assert np.all(points[:, axis] >= bounds_min[axis])
            assert np.all(points[:, axis] <= bounds_max[axis])

    def test_single_point(self):
        bounds_min, bounds_max = bounding_coords([[1.5, -2, 3]])
        assert bounds_min == bounds_max == [1.5, -2, 3]
        assert has_bounds(bounds_min, bounds_max)

    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_negative_coordinates(self, axis):
        points = np.zeros((2, 3))
        points[0, axis] = -4
        points[1, axis] = -1
        bounds_min, bounds_max = bounding_coords(points)
        assert bounds_min[axis] == -4
        assert bounds_max[axis] == -1

    def test_infinite_coordinate_is_no_bounds(self):
        bounds_min, bounds_max = bounding_coords([[0, 0, 0], [np.inf, 1, 1]])
        assert not has_bounds(bounds_min, bounds_max)

    def test_nan_coordinate_is_no_bounds(self):
        assert not has_bounds([0.0, np.nan, 0.0], [1.0, 1.0, 1.0])
