from __future__ import annotations

import logging
from typing import Sequence

import cv2
import numpy as np

from ..config import Settings
from ..errors import MalformedInputError
from ..samples import AlignmentParameters, FaceSample
from .delaunay import Triangle
from .shape_normalizer import CANONICAL_OFFSET, CANONICAL_RADIUS, to_canonical_frame

logger = logging.getLogger(__name__)

MASK_VALUE = 255


def draw_mesh(image: np.ndarray, triangles: Sequence[Triangle], color: tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
    overlay = image.copy()
    for triangle in triangles:
        corners = [tuple(int(round(v)) for v in vertex) for vertex in triangle.vertices]
        cv2.line(overlay, corners[0], corners[1], color, 1)
        cv2.line(overlay, corners[1], corners[2], color, 1)
        cv2.line(overlay, corners[2], corners[0], color, 1)
    return overlay


class PiecewiseAffineWarper:
    def __init__(
        self,
        radius: float = CANONICAL_RADIUS,
        offset: float = CANONICAL_OFFSET,
        draw: bool = False,
        warp_enabled: bool = True,
    ) -> None:
        self.radius = float(radius)
        self.offset = float(offset)
        self.draw = draw
        self.warp_enabled = warp_enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "PiecewiseAffineWarper":
        return cls(
            radius=settings.canonical_radius,
            offset=settings.canonical_offset,
            draw=settings.draw_triangles,
            warp_enabled=settings.warp_enabled,
        )

    def destination_points(self, vertices: np.ndarray, params: AlignmentParameters) -> np.ndarray:
        canonical = to_canonical_frame(vertices, params.centroid, params.norm, self.radius, self.offset)
        return canonical @ params.rotation

    def destination_mask(self, triangle: Triangle, params: AlignmentParameters, shape: tuple[int, int]) -> np.ndarray:
        mask = np.zeros(shape, dtype=np.uint8)
        dst = np.round(self.destination_points(triangle.vertices, params)).astype(np.int32)
        cv2.fillConvexPoly(mask, dst, MASK_VALUE, lineType=cv2.LINE_8)
        return mask

    def warp(self, image: np.ndarray, triangles: Sequence[Triangle], params: AlignmentParameters) -> np.ndarray:
        height, width = image.shape[:2]
        canvas = np.zeros_like(image)
        for triangle in triangles:
            src = triangle.vertices.astype(np.float32)
            dst = self.destination_points(triangle.vertices, params).astype(np.float32)
            matrix = cv2.getAffineTransform(src, dst)
            buffer = cv2.warpAffine(image, matrix, (width, height))
            mask = self.destination_mask(triangle, params, (height, width))
            isolated = cv2.bitwise_and(buffer, buffer, mask=mask)
            canvas = cv2.add(canvas, isolated)
        return canvas

    def render(self, sample: FaceSample, triangles: Sequence[Triangle]) -> np.ndarray:
        source = draw_mesh(sample.image, triangles) if self.draw else sample.image
        if not self.warp_enabled:
            return source.copy()
        if sample.alignment is None:
            raise MalformedInputError(f"Sample {sample.name or '<unnamed>'} has no alignment parameters")
        if not triangles:
            logger.warning("No valid triangles for sample %s; output is blank.", sample.name or "<unnamed>")
        return self.warp(source, triangles, sample.alignment)
