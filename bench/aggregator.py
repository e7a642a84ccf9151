"""Batch-level accumulation of per-image results"""

from pathlib import Path
from typing import List, Tuple

import numpy as np

from .schemas import BatchSummary, PerImageRecord


class Aggregator:
    """Collects records in processing order and computes the batch summary"""

    def __init__(self):
        self.records: List[PerImageRecord] = []
        self.failures: List[Tuple[Path, str]] = []

    @property
    def successful(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def record(self, record: PerImageRecord):
        self.records.append(record)

    def record_failure(self, image_path: Path, error: str):
        self.failures.append((Path(image_path), error))

    def finalize(
        self,
        total_images: int,
        init_ms: float = 0.0,
        total_processing_ms: float = 0.0,
    ) -> BatchSummary:
        """
        Compute statistics over every recorded image

        Average FPS is taken from the mean latency, not averaged over
        per-image FPS values; batch FPS divides the successful count by the
        summed latencies.

        Args:
            total_images: Number of images attempted
            init_ms: Engine initialization time
            total_processing_ms: Wall time of the batch loop

        Returns:
            Batch summary; latency fields are None when nothing succeeded
        """
        successful = self.successful
        success_rate = 100.0 * successful / total_images if total_images > 0 else 0.0

        summary = {
            "total_images": total_images,
            "successful": successful,
            "failed": self.failed,
            "success_rate": success_rate,
            "init_ms": init_ms,
            "total_processing_ms": total_processing_ms,
        }

        if not self.records:
            return BatchSummary(**summary)

        times = np.array([r.inference_ms for r in self.records], dtype=float)
        total_inference = float(np.sum(times))
        avg_inference = total_inference / len(times)

        summary.update({
            "total_inference_ms": total_inference,
            "avg_inference_ms": avg_inference,
            "min_inference_ms": float(np.min(times)),
            "max_inference_ms": float(np.max(times)),
            "p50_inference_ms": float(np.percentile(times, 50)),
            "p95_inference_ms": float(np.percentile(times, 95)),
            "avg_fps": 1000.0 / avg_inference if avg_inference > 0 else 0.0,
            "batch_fps": successful * 1000.0 / total_inference if total_inference > 0 else 0.0,
            "avg_chars_per_second": float(np.mean([r.chars_per_second for r in self.records])),
            "avg_accuracy": float(np.mean([r.accuracy for r in self.records])),
        })
        return BatchSummary(**summary)
