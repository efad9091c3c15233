from __future__ import annotations

import numpy as np
import pytest

from facewarp.samples import FaceSample, Rect

BASE_LANDMARKS = np.array(
    [
        [70.0, 80.0],
        [130.0, 80.0],
        [100.0, 110.0],
        [75.0, 140.0],
        [125.0, 140.0],
        [100.0, 60.0],
    ]
)
BASE_RECT = Rect(40.0, 40.0, 120.0, 120.0)


def build_sample(
    landmarks: np.ndarray = BASE_LANDMARKS,
    rects: list[Rect] | None = None,
    name: str = "sample",
    size: int = 200,
    channels: int = 0,
    fill: int = 255,
) -> FaceSample:
    shape = (size, size, channels) if channels else (size, size)
    image = np.full(shape, fill, dtype=np.uint8)
    return FaceSample(
        image=image,
        landmarks=np.asarray(landmarks, dtype=np.float64),
        rects=[BASE_RECT] if rects is None else rects,
        name=name,
    )


@pytest.fixture
def face_sample() -> FaceSample:
    return build_sample()
