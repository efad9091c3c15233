from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import numpy as np

from ..errors import MalformedInputError, ShapeMismatchError, UntrainedStateError
from ..samples import FaceSample

logger = logging.getLogger(__name__)

MEAN_IMAGE_KEY = "mean_image"


class MeanImageModel:
    """Pixel-wise average of face images, normally the warped outputs of the alignment pipeline."""

    def __init__(self) -> None:
        self._mean: np.ndarray | None = None

    @property
    def trained(self) -> bool:
        return self._mean is not None

    def train(self, samples: Iterable[FaceSample]) -> np.ndarray:
        total: np.ndarray | None = None
        count = 0
        for sample in samples:
            image = np.asarray(sample.image, dtype=np.float32)
            if total is None:
                total = np.zeros_like(image)
            elif image.shape != total.shape:
                raise ShapeMismatchError(
                    f"Image of sample {sample.name or '<unnamed>'} has shape {image.shape}, expected {total.shape}"
                )
            total += image
            count += 1
        if total is None:
            raise MalformedInputError("Cannot compute a mean image from zero samples")
        self._mean = total / float(count)
        logger.info("Mean image trained over %d samples, shape=%s", count, self._mean.shape)
        return self._mean.copy()

    def project(self, sample: FaceSample) -> np.ndarray:
        if self._mean is None:
            raise UntrainedStateError("Mean image model is not trained")
        return self._mean.copy()

    def save(self, path: Path) -> None:
        if self._mean is None:
            raise UntrainedStateError("Mean image model is not trained")
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(path, **{MEAN_IMAGE_KEY: self._mean})
        logger.info("Mean image saved -> %s", path)

    def load(self, path: Path) -> bool:
        if not path.exists():
            logger.warning("Mean image file not found: %s", path)
            return False
        with np.load(path, allow_pickle=False) as data:
            if MEAN_IMAGE_KEY not in data.files:
                raise MalformedInputError(f"{path} does not contain a '{MEAN_IMAGE_KEY}' array")
            self._mean = np.asarray(data[MEAN_IMAGE_KEY], dtype=np.float32)
        return True
