from __future__ import annotations

from dataclasses import dataclass
import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Triangle:
    indices: tuple[int, int, int]
    vertices: np.ndarray

    @property
    def area(self) -> float:
        return float(cv2.contourArea(self.vertices.astype(np.float32)))


def _inside(point: np.ndarray, width: int, height: int) -> bool:
    x, y = float(point[0]), float(point[1])
    return 0.0 < x < width and 0.0 < y < height


class DelaunayMeshBuilder:
    def __init__(self, log_triangles: bool = False) -> None:
        self.log_triangles = log_triangles

    def build(self, points: np.ndarray, width: int, height: int) -> list[Triangle]:
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValueError(f"Expected an N x 2 point set, got shape {pts.shape}")
        width = int(width)
        height = int(height)
        if width <= 0 or height <= 0 or pts.shape[0] < 3:
            return []

        subdiv = cv2.Subdiv2D((0, 0, width, height))
        # Subdiv2D works in float32; triangle corners come back bit-equal to these keys.
        lookup: dict[tuple[float, float], int] = {}
        pts32 = pts.astype(np.float32)
        for idx, (x, y) in enumerate(pts32):
            if not (0.0 <= x < width and 0.0 <= y < height):
                logger.warning(
                    "Point %d (%.2f, %.2f) outside %dx%d image; not meshed.", idx, x, y, width, height
                )
                continue
            key = (float(x), float(y))
            if key in lookup:
                continue
            lookup[key] = idx
            subdiv.insert((float(x), float(y)))

        if len(lookup) < 3:
            return []

        triangle_list = subdiv.getTriangleList()
        if triangle_list is None:
            return []

        triangles: list[Triangle] = []
        for row in triangle_list:
            corners = np.asarray(row, dtype=np.float32).reshape(3, 2)
            if not all(_inside(corner, width, height) for corner in corners):
                continue
            try:
                indices = tuple(lookup[(float(c[0]), float(c[1]))] for c in corners)
            except KeyError:
                # vertex created by the subdivision itself, not one of ours
                continue
            if len(set(indices)) != 3:
                continue
            triangle = Triangle(indices=indices, vertices=pts[list(indices)].copy())
            area = triangle.area
            if area <= 0.0:
                continue
            if self.log_triangles:
                logger.debug(
                    "Triangle %d %s area=%.2f",
                    len(triangles) + 1,
                    triangle.vertices.tolist(),
                    area,
                )
            triangles.append(triangle)
        return triangles
