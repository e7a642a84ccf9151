"""Batch benchmark driver

Runs ``INIT -> DISCOVER -> [RUN x N -> SAVE -> EXTRACT -> SCORE -> RECORD]* ->
FINALIZE -> REPORT`` strictly sequentially. A failure while processing one
image is logged and counted; only an empty image list or a failed engine
initialization stops the run.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from eval.scorer import (
    AccuracyScorer,
    AccuracyStatus,
    InProcessScorer,
    NullScorer,
    SubprocessScorer,
)
from infer.engine import InferenceEngine, PaddleOCREngine

from .aggregator import Aggregator
from .config import BenchmarkConfig, EngineSettings
from .discovery import discover_images
from .errors import EngineInitError, NoImagesFoundError
from .metrics import compute_chars_per_second, compute_fps, count_characters
from .report import Reporter, write_json_report
from .runner import run_timed
from .schemas import BatchSummary, PerImageRecord

logger = logging.getLogger(__name__)

EngineFactory = Callable[[EngineSettings], InferenceEngine]

PROGRESS_EVERY = 10


def create_engine(settings: EngineSettings) -> InferenceEngine:
    """Build the production PaddleOCR engine"""
    return PaddleOCREngine(**settings.model_dump())


def create_scorer(config: BenchmarkConfig) -> AccuracyScorer:
    """Pick the accuracy scorer for a configuration"""
    if config.ground_truth is None or config.scorer.kind == "none":
        logger.info("No ground truth configured, accuracy scoring skipped")
        return NullScorer()
    if config.scorer.kind == "inprocess":
        return InProcessScorer(config.ground_truth)
    return SubprocessScorer(
        ground_truth=config.ground_truth,
        output_dir=config.output_dir,
        command=config.scorer.command,
        timeout=config.scorer.timeout_s,
    )


class BenchmarkDriver:
    """Benchmarks an OCR engine over a set of images"""

    def __init__(
        self,
        config: BenchmarkConfig,
        engine_factory: Optional[EngineFactory] = None,
        scorer: Optional[AccuracyScorer] = None,
        reporter: Optional[Reporter] = None,
    ):
        """
        Args:
            config: Effective configuration
            engine_factory: Builds the engine from ``config.engine``
            scorer: Accuracy scorer, chosen from the configuration if omitted
            reporter: Destination of structured results (stdout by default)
        """
        self.config = config
        self.engine_factory = engine_factory or create_engine
        self.scorer = scorer
        self.reporter = reporter or Reporter()
        self.aggregator = Aggregator()
        self.engine: Optional[InferenceEngine] = None
        self.init_ms = 0.0

    def discover(self, paths: Iterable) -> List[Path]:
        paths = list(paths)
        logger.info("Collecting image paths from %d input arguments...", len(paths))
        images = discover_images(
            paths,
            extensions=self.config.discovery.extensions,
            max_depth=self.config.discovery.max_depth,
        )
        if not images:
            raise NoImagesFoundError(
                "No valid image files found. Check that the paths contain "
                f"{', '.join(self.config.discovery.extensions)} files"
            )

        logger.info("Found %d images to process", len(images))
        for i, image_path in enumerate(images[:5]):
            logger.info("  [%d] %s", i + 1, image_path)
        if len(images) > 5:
            logger.info("  ... and %d more images", len(images) - 5)
        return images

    def initialize_engine(self) -> InferenceEngine:
        """Construct the engine once and record how long it took"""
        logger.info("Initializing OCR engine (device: %s)...", self.config.engine.device)
        start = time.perf_counter()
        try:
            self.engine = self.engine_factory(self.config.engine)
        except Exception as e:
            raise EngineInitError(f"OCR engine initialization failed: {e}") from e
        self.init_ms = (time.perf_counter() - start) * 1000
        logger.info("OCR engine initialized in %d ms", int(self.init_ms))
        return self.engine

    def process_image(self, image_path: Path) -> PerImageRecord:
        """
        Time, save, measure and score one image

        Inference and serializer errors propagate; scoring never raises.
        """
        repetitions = self.config.repetitions
        logger.debug("Running %d iterations for average metrics...", repetitions)
        timed = run_timed(self.engine, image_path, repetitions)

        total_chars = count_characters(timed.pages)
        fps = compute_fps(timed.avg_inference_ms)
        chars_per_second = compute_chars_per_second(total_chars, timed.avg_inference_ms)

        logger.info(
            "  %s: %.2f ms avg, %.2f FPS, %.2f chars/s, %d chars",
            image_path.name, timed.avg_inference_ms, fps, chars_per_second, total_chars,
        )

        self.engine.save_outputs(timed.pages, self.config.output_dir)

        outcome = self.scorer.score(image_path.name, timed.pages)
        if outcome.status == AccuracyStatus.FAILED:
            logger.error("Accuracy unavailable for %s, recording 0.0", image_path.name)

        return PerImageRecord(
            filename=image_path.name,
            inference_ms=timed.avg_inference_ms,
            fps=fps,
            chars_per_second=chars_per_second,
            total_chars=total_chars,
            accuracy=outcome.accuracy,
            accuracy_status=outcome.status.value,
            run_times_ms=timed.run_times_ms,
        )

    def run(self, paths: Iterable) -> BatchSummary:
        """
        Run the whole benchmark

        Raises:
            NoImagesFoundError: discovery found nothing
            EngineInitError: the engine could not be constructed
        """
        images = self.discover(paths)
        self.initialize_engine()
        if self.scorer is None:
            self.scorer = create_scorer(self.config)

        logger.info("Starting batch processing of %d images...", len(images))
        total = len(images)
        batch_start = time.perf_counter()

        with logging_redirect_tqdm():
            progress = tqdm(
                images,
                desc="Benchmark",
                unit="img",
                file=sys.stderr,
                disable=not self.config.progress,
            )
            for i, image_path in enumerate(progress):
                logger.debug("[PROCESS %d/%d] Starting: %s", i + 1, total, image_path)
                try:
                    record = self.process_image(image_path)
                except Exception as e:
                    self.aggregator.record_failure(image_path, str(e))
                    logger.error("Failed to process %s: %s", image_path, e)
                    logger.error("Continuing with next image...")
                else:
                    self.aggregator.record(record)
                    self.reporter.emit_record(record)

                if (i + 1) % PROGRESS_EVERY == 0 or (i + 1) == total:
                    logger.info(
                        "[PROGRESS] %d/%d images processed (%.1f%%) - Success: %d, Failed: %d",
                        i + 1, total, 100.0 * (i + 1) / total,
                        self.aggregator.successful, self.aggregator.failed,
                    )

        total_processing_ms = (time.perf_counter() - batch_start) * 1000
        logger.info("Batch processing completed in %d ms", int(total_processing_ms))

        summary = self.aggregator.finalize(total, self.init_ms, total_processing_ms)
        if not summary.has_statistics:
            logger.error("No successful inferences completed - cannot calculate statistics!")
        self.reporter.emit_summary(summary)

        if self.config.report_path is not None:
            write_json_report(self.config.report_path, self.config, self.aggregator.records, summary)
            logger.info("Report saved to: %s", self.config.report_path)

        return summary
