from __future__ import annotations

import numpy as np

from facewarp.vision.delaunay import DelaunayMeshBuilder

from conftest import build_sample


def test_triangles_stay_strictly_inside_image(face_sample) -> None:
    points = face_sample.augmented_points()
    triangles = DelaunayMeshBuilder().build(points, 200, 200)

    assert triangles
    for triangle in triangles:
        assert triangle.vertices.shape == (3, 2)
        assert np.all(triangle.vertices > 0.0)
        assert np.all(triangle.vertices[:, 0] < 200)
        assert np.all(triangle.vertices[:, 1] < 200)
        assert np.array_equal(triangle.vertices, points[list(triangle.indices)])


def test_every_point_is_meshed(face_sample) -> None:
    points = face_sample.augmented_points()
    triangles = DelaunayMeshBuilder().build(points, 200, 200)
    used = {index for triangle in triangles for index in triangle.indices}
    assert used == set(range(len(points)))


def test_border_and_outside_points_are_excluded() -> None:
    points = build_sample().augmented_points()
    points = np.vstack([points, [[0.0, 100.0], [200.0, 50.0]]])
    border_indices = {len(points) - 2, len(points) - 1}

    triangles = DelaunayMeshBuilder().build(points, 200, 200)

    assert triangles
    for triangle in triangles:
        assert not border_indices & set(triangle.indices)


def test_coincident_vertices_never_form_a_triangle() -> None:
    points = build_sample().augmented_points()
    duplicate_index = len(points)
    points = np.vstack([points, points[2:3]])

    triangles = DelaunayMeshBuilder().build(points, 200, 200)

    assert triangles
    for triangle in triangles:
        assert len(set(triangle.indices)) == 3
        assert duplicate_index not in triangle.indices
        assert triangle.area > 0.0


def test_mesh_is_deterministic(face_sample) -> None:
    points = face_sample.augmented_points()
    first = DelaunayMeshBuilder().build(points, 200, 200)
    second = DelaunayMeshBuilder().build(points, 200, 200)
    assert [t.indices for t in first] == [t.indices for t in second]


def test_too_few_points_give_no_mesh() -> None:
    assert DelaunayMeshBuilder().build(np.array([[10.0, 10.0], [20.0, 20.0]]), 100, 100) == []
