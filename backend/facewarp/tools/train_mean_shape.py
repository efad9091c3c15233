from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from ..config import get_settings
from ..dataset import load_samples
from ..logging import setup_logging
from ..pipeline import AlignmentPipeline
from ..vision.mean_image import MeanImageModel


def main() -> None:
    setup_logging()
    settings = get_settings()
    print("[INFO] Active settings")
    print(f"[INFO] FACEWARP_DATASET_MANIFEST={settings.dataset_manifest}")
    print(f"[INFO] Resolved manifest={settings.dataset_manifest_resolved}")
    print(f"[INFO] CWD={Path.cwd()}")
    print(f"[INFO] Env file={settings.active_env_file}")
    samples, stats = load_samples(settings.dataset_manifest_resolved)
    print(f"[INFO] Samples loaded: {stats.loaded}/{stats.entries}")

    pipeline = AlignmentPipeline.from_settings(settings)
    mean_shape = pipeline.train(samples)
    pipeline.aligner.save(settings.mean_shape_path_resolved)
    print(f"[INFO] Mean shape: {mean_shape.shape[0]} points -> {settings.mean_shape_path_resolved}")

    aligned = [
        replace(outcome.result.sample, image=outcome.result.output)
        for outcome in pipeline.align_batch(samples)
        if outcome.result is not None
    ]
    shapes = {sample.image.shape for sample in aligned}
    if len(shapes) == 1:
        mean_image = MeanImageModel()
        mean_image.train(aligned)
        mean_image.save(settings.mean_image_path_resolved)
        print(f"[INFO] Mean aligned image over {len(aligned)} samples -> {settings.mean_image_path_resolved}")
    else:
        print(f"[INFO] Mean image skipped: {len(shapes)} distinct aligned image shapes")


if __name__ == "__main__":
    main()
