from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Iterable, Sequence

import cv2
import numpy as np

from .config import Settings
from .errors import MalformedInputError, ShapeMismatchError, UntrainedStateError
from .samples import AlignmentParameters, FaceSample
from .schemas import AlignmentReport
from .vision.delaunay import DelaunayMeshBuilder, Triangle
from .vision.piecewise_warp import PiecewiseAffineWarper
from .vision.procrustes import ProcrustesAligner

logger = logging.getLogger(__name__)

UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class AlignedSample:
    sample: FaceSample
    params: AlignmentParameters
    triangles: list[Triangle]
    output: np.ndarray


@dataclass
class AlignmentOutcome:
    name: str
    result: AlignedSample | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_report(self, output_path: str | None = None) -> AlignmentReport:
        if self.result is None:
            return AlignmentReport(name=self.name, error=self.error)
        return AlignmentReport(
            name=self.name,
            alignment=self.result.params.as_scalars(),
            triangles=len(self.result.triangles),
            output_path=output_path,
        )


class AlignmentPipeline:
    def __init__(
        self,
        aligner: ProcrustesAligner,
        mesh_builder: DelaunayMeshBuilder,
        warper: PiecewiseAffineWarper,
        max_workers: int = 1,
    ) -> None:
        self.aligner = aligner
        self.mesh_builder = mesh_builder
        self.warper = warper
        self.max_workers = max(int(max_workers), 1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AlignmentPipeline":
        return cls(
            ProcrustesAligner.from_settings(settings),
            DelaunayMeshBuilder(log_triangles=settings.log_triangles),
            PiecewiseAffineWarper.from_settings(settings),
            max_workers=settings.active_batch_workers,
        )

    def train(self, samples: Iterable[FaceSample]) -> np.ndarray:
        return self.aligner.train(samples)

    def align_sample(self, sample: FaceSample) -> AlignedSample:
        points = sample.augmented_points() if sample.has_landmarks else None
        params = self.aligner.project(sample, points)
        height, width = sample.image.shape[:2]
        triangles = self.mesh_builder.build(points, width, height)
        output = self.warper.render(sample, triangles)
        return AlignedSample(sample=sample, params=params, triangles=triangles, output=output)

    def _align_one(self, sample: FaceSample) -> AlignmentOutcome:
        name = sample.name or "<unnamed>"
        try:
            return AlignmentOutcome(name=name, result=self.align_sample(sample))
        except (MalformedInputError, ShapeMismatchError) as exc:
            logger.warning("Alignment failed for sample %s: %s", name, exc, extra={"sample": name})
            return AlignmentOutcome(name=name, error=str(exc))

    def align_batch(self, samples: Sequence[FaceSample]) -> list[AlignmentOutcome]:
        if not self.aligner.trained:
            raise UntrainedStateError("Cannot align a batch before the mean shape is trained or loaded")
        if self.max_workers == 1 or len(samples) <= 1:
            outcomes = [self._align_one(sample) for sample in samples]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(self._align_one, samples))
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info("Aligned batch: %d ok, %d failed", len(outcomes) - failed, failed)
        return outcomes


def output_file_name(name: str, taken: set[str]) -> str:
    stem = UNSAFE_NAME_CHARS.sub("_", name).strip("._") or "sample"
    candidate = f"{stem}.png"
    suffix = 1
    while candidate in taken:
        candidate = f"{stem}_{suffix}.png"
        suffix += 1
    taken.add(candidate)
    return candidate


def write_outputs(outcomes: Sequence[AlignmentOutcome], output_dir: Path) -> list[AlignmentReport]:
    """Write each aligned image as PNG; a failed write turns into a per-sample error."""
    output_dir.mkdir(parents=True, exist_ok=True)
    taken: set[str] = set()
    reports: list[AlignmentReport] = []
    for outcome in outcomes:
        if outcome.result is None:
            reports.append(outcome.to_report())
            continue
        target = output_dir / output_file_name(outcome.name, taken)
        if not cv2.imwrite(str(target), outcome.result.output):
            logger.warning("Failed to write aligned image: %s", target, extra={"sample": outcome.name})
            report = outcome.to_report()
            report.error = f"Failed to write aligned image: {target}"
            reports.append(report)
            continue
        reports.append(outcome.to_report(str(target)))
    return reports
