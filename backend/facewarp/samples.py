from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

import numpy as np

from .errors import MalformedInputError

logger = logging.getLogger(__name__)

RECT_CORNER_COUNT = 4


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def corners(self) -> np.ndarray:
        """Top-left, top-right, bottom-left, bottom-right."""
        right = self.x + self.width
        bottom = self.y + self.height
        return np.array(
            [
                [self.x, self.y],
                [right, self.y],
                [self.x, bottom],
                [right, bottom],
            ],
            dtype=np.float64,
        )


@dataclass
class AlignmentParameters:
    rotation: np.ndarray
    centroid: np.ndarray
    norm: float

    def as_scalars(self) -> dict[str, float]:
        return {
            "rotation_0_0": float(self.rotation[0, 0]),
            "rotation_0_1": float(self.rotation[0, 1]),
            "rotation_1_0": float(self.rotation[1, 0]),
            "rotation_1_1": float(self.rotation[1, 1]),
            "centroid_0": float(self.centroid[0]),
            "centroid_1": float(self.centroid[1]),
            "norm": float(self.norm),
        }

    @classmethod
    def from_scalars(cls, values: dict[str, float]) -> "AlignmentParameters":
        try:
            rotation = np.array(
                [
                    [values["rotation_0_0"], values["rotation_0_1"]],
                    [values["rotation_1_0"], values["rotation_1_1"]],
                ],
                dtype=np.float64,
            )
            centroid = np.array([values["centroid_0"], values["centroid_1"]], dtype=np.float64)
            norm = float(values["norm"])
        except KeyError as exc:
            raise MalformedInputError(f"Missing alignment field: {exc.args[0]}") from exc
        return cls(rotation=rotation, centroid=centroid, norm=norm)


@dataclass
class FaceSample:
    image: np.ndarray
    landmarks: np.ndarray
    rects: list[Rect] = field(default_factory=list)
    name: str = ""
    alignment: AlignmentParameters | None = None

    def __post_init__(self) -> None:
        points = np.asarray(self.landmarks, dtype=np.float64)
        if points.size == 0:
            points = np.empty((0, 2), dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 2:
            raise MalformedInputError(f"Landmarks must be an N x 2 array, got shape {points.shape}")
        self.landmarks = points

    @property
    def has_landmarks(self) -> bool:
        return self.landmarks.shape[0] > 0

    def primary_rect(self) -> Rect:
        if not self.rects:
            raise MalformedInputError(f"Sample {self.name or '<unnamed>'} has no bounding rect")
        if len(self.rects) > 1:
            logger.warning(
                "More than one rect on sample %s (%d); using the first.",
                self.name or "<unnamed>",
                len(self.rects),
                extra={"sample": self.name},
            )
        return self.rects[0]

    def augmented_points(self) -> np.ndarray:
        """Landmarks followed by the four corners of the first bounding rect."""
        rect = self.primary_rect()
        return np.vstack([self.landmarks, rect.corners()])


def make_sample(
    image: np.ndarray,
    landmarks: Sequence[Sequence[float]],
    rects: Sequence[Sequence[float]] = (),
    name: str = "",
) -> FaceSample:
    parsed_rects = [Rect(*[float(v) for v in rect]) for rect in rects]
    return FaceSample(image=image, landmarks=np.asarray(landmarks, dtype=np.float64), rects=parsed_rects, name=name)
