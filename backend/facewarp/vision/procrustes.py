from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Iterable

import numpy as np

from ..config import Settings
from ..errors import MalformedInputError, ShapeMismatchError, UntrainedStateError
from ..samples import AlignmentParameters, FaceSample
from .shape_normalizer import (
    CANONICAL_OFFSET,
    CANONICAL_RADIUS,
    centroid_and_norm,
    normalize,
    to_canonical_frame,
)

logger = logging.getLogger(__name__)

MEAN_SHAPE_KEY = "mean_shape"


class ProcrustesAligner:
    """Learns a mean landmark shape and solves per-sample rotations onto it.

    ``train`` replaces the mean shape atomically; ``project`` reads a snapshot,
    so projections never observe a half-written matrix. Callers must still not
    retrain while a batch of projections is expected to use the old shape.
    """

    def __init__(
        self,
        radius: float = CANONICAL_RADIUS,
        offset: float = CANONICAL_OFFSET,
        mean_shape: np.ndarray | None = None,
    ) -> None:
        self.radius = float(radius)
        self.offset = float(offset)
        self._lock = Lock()
        self._mean_shape: np.ndarray | None = None
        if mean_shape is not None:
            self._mean_shape = self._validate_mean_shape(mean_shape)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProcrustesAligner":
        return cls(radius=settings.canonical_radius, offset=settings.canonical_offset)

    @property
    def trained(self) -> bool:
        with self._lock:
            return self._mean_shape is not None

    @property
    def mean_shape(self) -> np.ndarray:
        return self._snapshot().copy()

    @property
    def point_count(self) -> int:
        return int(self._snapshot().shape[0])

    def _snapshot(self) -> np.ndarray:
        with self._lock:
            mean_shape = self._mean_shape
        if mean_shape is None:
            raise UntrainedStateError("Procrustes aligner has no mean shape; call train() or load() first")
        return mean_shape

    def _validate_mean_shape(self, matrix: np.ndarray) -> np.ndarray:
        shape = np.asarray(matrix, dtype=np.float64)
        if shape.ndim != 2 or shape.shape[1] != 2 or shape.shape[0] == 0:
            raise MalformedInputError(f"Mean shape must be an N x 2 matrix, got shape {shape.shape}")
        return shape.copy()

    def train(self, samples: Iterable[FaceSample]) -> np.ndarray:
        total: np.ndarray | None = None
        used = 0
        skipped = 0
        for sample in samples:
            if not sample.has_landmarks:
                skipped += 1
                logger.warning("Skip training sample %s: no landmarks", sample.name or "<unnamed>")
                continue
            try:
                shape = normalize(sample.augmented_points())
            except MalformedInputError as exc:
                skipped += 1
                logger.warning("Skip training sample %s: %s", sample.name or "<unnamed>", exc)
                continue
            if total is None:
                total = np.zeros_like(shape.points)
            elif shape.point_count != total.shape[0]:
                raise ShapeMismatchError(
                    f"Training sample {sample.name or '<unnamed>'} has {shape.point_count} points, "
                    f"expected {total.shape[0]}"
                )
            total += shape.points
            used += 1

        if total is None or used == 0:
            raise MalformedInputError("No training sample had usable landmarks")

        mean_shape = total / float(used)
        with self._lock:
            self._mean_shape = mean_shape
        logger.info(
            "Mean shape trained: %d samples used, %d skipped, %d points",
            used,
            skipped,
            mean_shape.shape[0],
        )
        return mean_shape.copy()

    def project(self, sample: FaceSample, points: np.ndarray | None = None) -> AlignmentParameters:
        """Solve the rotation onto the mean shape and attach it to ``sample``.

        ``points`` may carry the already augmented landmark set so callers that
        mesh the same points do not augment (and warn about extra rects) twice.
        """
        mean_shape = self._snapshot()
        if not sample.has_landmarks:
            raise MalformedInputError(f"Sample {sample.name or '<unnamed>'} has no landmarks")

        if points is None:
            points = sample.augmented_points()
        if points.shape[0] != mean_shape.shape[0]:
            raise ShapeMismatchError(
                f"Sample {sample.name or '<unnamed>'} has {points.shape[0]} points, "
                f"mean shape has {mean_shape.shape[0]}"
            )

        _, centroid, norm = centroid_and_norm(points)
        canonical = to_canonical_frame(points, centroid, norm, self.radius, self.offset)

        # Orthogonal Procrustes. No det(U.Vt) < 0 correction: mirrored solutions are kept.
        u, _, vt = np.linalg.svd(canonical.T @ mean_shape, full_matrices=False)
        rotation = u @ vt

        params = AlignmentParameters(rotation=rotation, centroid=centroid, norm=norm)
        sample.alignment = params
        return params

    def save(self, path: Path) -> None:
        mean_shape = self._snapshot()
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(path, **{MEAN_SHAPE_KEY: mean_shape})
        logger.info("Mean shape saved: %d points -> %s", mean_shape.shape[0], path)

    def load(self, path: Path) -> bool:
        if not path.exists():
            logger.warning("Mean shape file not found: %s", path)
            return False
        with np.load(path, allow_pickle=False) as data:
            if MEAN_SHAPE_KEY not in data.files:
                raise MalformedInputError(f"{path} does not contain a '{MEAN_SHAPE_KEY}' matrix")
            mean_shape = self._validate_mean_shape(data[MEAN_SHAPE_KEY])
        with self._lock:
            self._mean_shape = mean_shape
        logger.info("Mean shape loaded: %d points <- %s", mean_shape.shape[0], path)
        return True
