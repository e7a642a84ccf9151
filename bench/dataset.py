"""Sanity check for a benchmark dataset directory"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from eval.ground_truth import load_labels

from .discovery import IMAGE_EXTENSIONS, is_image_file

logger = logging.getLogger(__name__)

LABELS_FILE = "labels.json"


@dataclass
class DatasetReport:
    images_dir: Path
    images: List[str] = field(default_factory=list)
    labelled: int = 0
    unlabelled: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def verify_dataset(images_dir: Path, labels_file: Optional[Path] = None) -> DatasetReport:
    """
    Check that a dataset can be benchmarked with accuracy scoring

    Only images directly inside ``images_dir`` are counted. Images without a
    label are reported but do not fail the check.

    Args:
        images_dir: Directory holding the images
        labels_file: Ground truth file, defaults to ``images_dir/labels.json``

    Returns:
        Report with the image list, label coverage and any errors
    """
    images_dir = Path(images_dir)
    labels_file = Path(labels_file) if labels_file is not None else images_dir / LABELS_FILE
    report = DatasetReport(images_dir=images_dir)

    if not images_dir.is_dir():
        report.errors.append(f"Images directory not found: {images_dir}")
        return report

    report.images = sorted(
        p.name for p in images_dir.iterdir()
        if p.is_file() and is_image_file(p, IMAGE_EXTENSIONS)
    )
    if not report.images:
        report.errors.append(f"No image files found in {images_dir}")

    if not labels_file.is_file():
        report.errors.append(f"Labels file not found: {labels_file}")
        return report

    try:
        labels = load_labels(labels_file)
    except (OSError, ValueError) as e:
        report.errors.append(f"Cannot read labels file {labels_file}: {e}")
        return report

    for name in report.images:
        if name in labels:
            report.labelled += 1
        else:
            report.unlabelled.append(name)

    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="benchmark-verify-dataset",
        description="Verify an images directory and its labels.json"
    )
    parser.add_argument(
        "images_dir",
        nargs="?",
        default="images",
        help="Images directory (default: images)"
    )
    parser.add_argument(
        "--labels",
        type=str,
        help="Ground truth file (default: <images_dir>/labels.json)"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    report = verify_dataset(Path(args.images_dir), Path(args.labels) if args.labels else None)
    for error in report.errors:
        logger.error(error)
    if not report.ok:
        return 1

    logger.info("Dataset verified: %d images found in %s", len(report.images), report.images_dir)
    logger.info("Images with ground truth: %d", report.labelled)
    for name in report.unlabelled:
        logger.warning("No ground truth for %s", name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
