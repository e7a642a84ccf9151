"""Command-line entry point of the OCR benchmark"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_config
from .driver import BenchmarkDriver
from .errors import ConfigError, EngineInitError, NoImagesFoundError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(verbose: bool = False):
    """Configure root logging to stderr once per process"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="benchmark",
        description="Benchmark PaddleOCR latency, throughput and character accuracy over images",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Image files or directories (searched recursively)"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="YAML configuration file"
    )
    parser.add_argument(
        "--device",
        type=str,
        help="Inference device, e.g. gpu, gpu:0, cpu"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        help="Directory for visualizations and <stem>_res.json files"
    )
    parser.add_argument(
        "--ground-truth",
        type=str,
        help="Ground truth labels.json"
    )
    parser.add_argument(
        "--no-ground-truth",
        action="store_true",
        help="Skip accuracy scoring"
    )
    parser.add_argument(
        "--scorer",
        choices=["subprocess", "inprocess", "none"],
        help="How accuracy is computed"
    )
    parser.add_argument(
        "--repetitions",
        type=int,
        help="Timed inference runs per image"
    )
    parser.add_argument(
        "--report",
        type=str,
        help="Write a JSON report to this path"
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Maximum directory recursion depth"
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )
    return parser


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate command-line flags into a nested config mapping"""
    overrides: Dict[str, Any] = {}

    if args.device is not None:
        overrides.setdefault("engine", {})["device"] = args.device
    if args.scorer is not None:
        overrides.setdefault("scorer", {})["kind"] = args.scorer
    if args.max_depth is not None:
        overrides.setdefault("discovery", {})["max_depth"] = args.max_depth

    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    if args.no_ground_truth:
        overrides["ground_truth"] = None
    elif args.ground_truth is not None:
        overrides["ground_truth"] = args.ground_truth
    if args.repetitions is not None:
        overrides["repetitions"] = args.repetitions
    if args.report is not None:
        overrides["report_path"] = args.report
    if args.no_progress:
        overrides["progress"] = False

    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the benchmark from the command line

    Returns:
        0 if every image succeeded, 1 otherwise
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.paths:
        parser.print_usage(sys.stderr)
        print("error: at least one image file or directory is required", file=sys.stderr)
        return 1

    setup_logging(args.verbose)

    try:
        config = load_config(
            Path(args.config) if args.config else None,
            build_overrides(args),
        )
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    logger.info("Output directory: %s", config.output_dir)
    if config.ground_truth is not None:
        logger.info("Ground truth: %s (scorer: %s)", config.ground_truth, config.scorer.kind)

    driver = BenchmarkDriver(config)
    try:
        summary = driver.run(args.paths)
    except NoImagesFoundError as e:
        logger.error("%s", e)
        return 1
    except EngineInitError as e:
        logger.error("%s", e)
        return 1

    if summary.failed > 0:
        logger.error("%d of %d images failed", summary.failed, summary.total_images)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
