from __future__ import annotations

import cv2
import numpy as np
import pytest

from facewarp.errors import MalformedInputError
from facewarp.samples import AlignmentParameters
from facewarp.vision.delaunay import DelaunayMeshBuilder
from facewarp.vision.piecewise_warp import PiecewiseAffineWarper, draw_mesh
from facewarp.vision.procrustes import ProcrustesAligner

from conftest import build_sample


def _aligned(sample):
    aligner = ProcrustesAligner()
    aligner.train([build_sample()])
    params = aligner.project(sample)
    triangles = DelaunayMeshBuilder().build(sample.augmented_points(), 200, 200)
    return params, triangles


def _union_mask(warper, triangles, params, shape) -> np.ndarray:
    union = np.zeros(shape, dtype=np.uint8)
    for triangle in triangles:
        union = cv2.bitwise_or(union, warper.destination_mask(triangle, params, shape))
    return union


def test_pixels_outside_destination_triangles_stay_zero() -> None:
    sample = build_sample(channels=3)
    params, triangles = _aligned(sample)
    warper = PiecewiseAffineWarper()

    canvas = warper.warp(sample.image, triangles, params)

    assert canvas.shape == sample.image.shape
    assert canvas.dtype == sample.image.dtype
    union = _union_mask(warper, triangles, params, (200, 200))
    assert not canvas[union == 0].any()
    assert canvas.max() == 255


def test_destination_masks_tile_the_warped_rect() -> None:
    sample = build_sample()
    params, triangles = _aligned(sample)
    warper = PiecewiseAffineWarper()

    union = _union_mask(warper, triangles, params, (200, 200))
    corners = sample.augmented_points()[-4:]
    quad = warper.destination_points(corners, params)[[0, 1, 3, 2]]
    expected = np.zeros((200, 200), dtype=np.uint8)
    cv2.fillConvexPoly(expected, np.round(quad).astype(np.int32), 255)

    mismatch = np.count_nonzero(union != expected)
    assert mismatch < 0.02 * np.count_nonzero(expected)


def test_identity_rotation_keeps_canonical_positions() -> None:
    sample = build_sample()
    params, _ = _aligned(sample)
    assert np.allclose(params.rotation, np.eye(2), atol=1e-9)

    warper = PiecewiseAffineWarper()
    vertices = sample.augmented_points()[:3]
    expected = (vertices - params.centroid) / (params.norm / 150.0) + 50.0
    assert np.allclose(warper.destination_points(vertices, params), expected)


def test_empty_mesh_gives_black_canvas() -> None:
    sample = build_sample()
    params = AlignmentParameters(rotation=np.eye(2), centroid=np.array([100.0, 100.0]), norm=10.0)
    canvas = PiecewiseAffineWarper().warp(sample.image, [], params)
    assert canvas.shape == sample.image.shape
    assert not canvas.any()


def test_render_requires_alignment() -> None:
    sample = build_sample()
    triangles = DelaunayMeshBuilder().build(sample.augmented_points(), 200, 200)
    with pytest.raises(MalformedInputError):
        PiecewiseAffineWarper().render(sample, triangles)


def test_debug_overlay_without_warp() -> None:
    sample = build_sample(channels=3)
    triangles = DelaunayMeshBuilder().build(sample.augmented_points(), 200, 200)
    warper = PiecewiseAffineWarper(draw=True, warp_enabled=False)

    overlay = warper.render(sample, triangles)

    assert (overlay == 0).any()
    assert (sample.image == 255).all()
    assert np.array_equal(overlay, draw_mesh(sample.image, triangles))
