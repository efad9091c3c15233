from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SampleManifestEntry(BaseModel):
    image: str
    name: str = ""
    landmarks: list[list[float]] = Field(default_factory=list)
    rects: list[list[float]] = Field(default_factory=list)

    @field_validator("landmarks")
    @classmethod
    def _check_points(cls, value: list[list[float]]) -> list[list[float]]:
        for point in value:
            if len(point) != 2:
                raise ValueError("each landmark must be [x, y]")
        return value

    @field_validator("rects")
    @classmethod
    def _check_rects(cls, value: list[list[float]]) -> list[list[float]]:
        for rect in value:
            if len(rect) != 4:
                raise ValueError("each rect must be [x, y, width, height]")
        return value

    @property
    def display_name(self) -> str:
        return self.name or Path(self.image).stem


class SampleManifest(BaseModel):
    samples: list[SampleManifestEntry]

    @classmethod
    def from_file(cls, path: Path) -> "SampleManifest":
        payload = json.loads(path.read_text(encoding="utf-8"))
        manifest = cls.model_validate(payload)
        base_dir = path.resolve().parent
        for entry in manifest.samples:
            image_path = Path(entry.image)
            if not image_path.is_absolute():
                entry.image = str(base_dir / image_path)
        return manifest


class AlignmentReport(BaseModel):
    name: str
    alignment: Optional[dict[str, float]] = None
    triangles: int = 0
    output_path: Optional[str] = None
    error: Optional[str] = None
