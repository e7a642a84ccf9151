"""Repeated, timed inference for a single image"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List

from infer.engine import InferenceEngine
from infer.results import OCRPage

logger = logging.getLogger(__name__)


@dataclass
class TimedRun:
    """Latencies of every run plus the pages of the first one"""

    avg_inference_ms: float
    run_times_ms: List[float]
    pages: List[OCRPage]


def run_timed(engine: InferenceEngine, image_path: Path, repetitions: int = 3) -> TimedRun:
    """
    Run inference ``repetitions`` times on one image

    Only the engine's model call is timed; converting its output to pages
    happens outside the timed window. The first run's pages are kept and
    later runs are only compared against them. Any exception from the
    engine propagates.

    Args:
        engine: Initialized inference engine
        image_path: Image to process
        repetitions: Number of timed runs

    Returns:
        Mean latency, individual latencies and canonical pages
    """
    if repetitions < 1:
        raise ValueError(f"repetitions must be >= 1, got {repetitions}")

    run_times: List[float] = []
    pages: List[OCRPage] = []

    for run in range(repetitions):
        logger.debug("[RUN %d/%d] Starting inference on %s", run + 1, repetitions, image_path)
        start = time.perf_counter_ns()
        raw = engine.infer(image_path)
        elapsed_ms = (time.perf_counter_ns() - start) / 1e6
        run_times.append(elapsed_ms)

        if run == 0:
            pages = engine.to_pages(raw, image_path)
        elif logger.isEnabledFor(logging.DEBUG):
            texts = [page.texts for page in engine.to_pages(raw, image_path)]
            if texts != [page.texts for page in pages]:
                logger.debug(
                    "[RUN %d/%d] Output differs from run 1 on %s, keeping run 1",
                    run + 1, repetitions, image_path,
                )
        logger.debug("[RUN %d/%d] Completed in %.2f ms", run + 1, repetitions, elapsed_ms)

    avg_ms = sum(run_times) / len(run_times)
    return TimedRun(avg_inference_ms=avg_ms, run_times_ms=run_times, pages=pages)
