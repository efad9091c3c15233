from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

import cv2

from .errors import MalformedInputError
from .samples import FaceSample, make_sample
from .schemas import SampleManifest

logger = logging.getLogger(__name__)


@dataclass
class DatasetLoadStats:
    entries: int
    loaded: int
    unreadable: list[str]


def load_samples(manifest_path: Path) -> tuple[list[FaceSample], DatasetLoadStats]:
    manifest = SampleManifest.from_file(manifest_path)
    samples: list[FaceSample] = []
    unreadable: list[str] = []
    for entry in manifest.samples:
        image = cv2.imread(entry.image)
        if image is None:
            logger.warning("Unreadable sample image: %s", entry.image)
            unreadable.append(entry.image)
            continue
        try:
            samples.append(make_sample(image, entry.landmarks, entry.rects, name=entry.display_name))
        except MalformedInputError as exc:
            logger.warning("Skip manifest entry %s: %s", entry.display_name, exc)
            unreadable.append(entry.image)
    logger.info("Loaded %d/%d samples from %s", len(samples), len(manifest.samples), manifest_path)
    return samples, DatasetLoadStats(entries=len(manifest.samples), loaded=len(samples), unreadable=unreadable)
