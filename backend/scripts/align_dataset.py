from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from facewarp.config import get_settings
from facewarp.dataset import load_samples
from facewarp.logging import setup_logging
from facewarp.pipeline import AlignmentPipeline, write_outputs


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Align every sample of a landmark manifest onto the mean shape.")
    parser.add_argument("--manifest", help="Path to a sample manifest JSON. Defaults to FACEWARP_DATASET_MANIFEST.")
    parser.add_argument("--mean-shape", help="Path to a trained mean shape .npz. Defaults to FACEWARP_MEAN_SHAPE_PATH.")
    parser.add_argument("--output", help="Directory for warped images. Defaults to FACEWARP_OUTPUT_DIR.")
    parser.add_argument("--draw", action="store_true", help="Overlay the triangle mesh on the source image.")
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit with non-zero status if any sample failed to align.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    setup_logging()
    settings = get_settings()
    manifest_path = Path(args.manifest) if args.manifest else settings.dataset_manifest_resolved
    mean_shape_path = Path(args.mean_shape) if args.mean_shape else settings.mean_shape_path_resolved
    output_dir = Path(args.output) if args.output else settings.output_dir_resolved

    if not manifest_path.exists():
        print(f"Manifest not found: {manifest_path}")
        return 2

    pipeline = AlignmentPipeline.from_settings(settings)
    if args.draw:
        pipeline.warper.draw = True
    if not pipeline.aligner.load(mean_shape_path):
        print(f"Mean shape not found: {mean_shape_path}. Run python -m facewarp.tools.train_mean_shape first.")
        return 2

    samples, _ = load_samples(manifest_path)
    reports = [report.model_dump() for report in write_outputs(pipeline.align_batch(samples), output_dir)]
    print(json.dumps(reports, indent=2))

    failed = [report for report in reports if report["error"]]
    if args.fail_on_error and failed:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
