from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..errors import MalformedInputError

CANONICAL_RADIUS = 150.0
CANONICAL_OFFSET = 50.0


@dataclass
class NormalizedShape:
    points: np.ndarray
    centroid: np.ndarray
    norm: float

    @property
    def point_count(self) -> int:
        return int(self.points.shape[0])


def centroid_and_norm(points: np.ndarray) -> tuple[np.ndarray, np.ndarray, float]:
    """Return (centered points, centroid, Euclidean norm of the centered point vector)."""
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 2 or pts.shape[0] == 0:
        raise MalformedInputError(f"Expected a non-empty N x 2 point set, got shape {pts.shape}")
    centroid = pts.mean(axis=0)
    centered = pts - centroid
    norm = float(np.linalg.norm(centered))
    if norm <= 0.0 or not np.isfinite(norm):
        raise MalformedInputError("Point set is degenerate (all points coincide)")
    return centered, centroid, norm


def normalize(points: np.ndarray) -> NormalizedShape:
    centered, centroid, norm = centroid_and_norm(points)
    return NormalizedShape(points=centered / norm, centroid=centroid, norm=norm)


def to_canonical_frame(
    points: np.ndarray,
    centroid: np.ndarray,
    norm: float,
    radius: float = CANONICAL_RADIUS,
    offset: float = CANONICAL_OFFSET,
) -> np.ndarray:
    # Not comparable with normalize(): training shapes are unit-scaled, projected
    # shapes live in this fixed-radius frame. Alignment parameters depend on it.
    pts = np.asarray(points, dtype=np.float64)
    return (pts - np.asarray(centroid, dtype=np.float64)) / (norm / radius) + offset
