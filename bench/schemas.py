"""Benchmark records and summaries"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

AccuracyStatusName = Literal["scored", "failed", "skipped"]


class PerImageRecord(BaseModel):
    """Finalized metrics for one successfully processed image"""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="Image basename")
    inference_ms: float = Field(ge=0.0, description="Mean latency over all timed runs")
    fps: float = Field(ge=0.0, description="1000 / inference_ms")
    chars_per_second: float = Field(ge=0.0, description="total_chars * 1000 / inference_ms")
    total_chars: int = Field(ge=0, description="Characters recognized in the first run")
    accuracy: float = Field(ge=0.0, le=1.0, description="Character accuracy, 0.0 if not scored")
    accuracy_status: AccuracyStatusName = Field(
        default="scored", description="Whether accuracy was scored, failed or skipped"
    )
    run_times_ms: List[float] = Field(default_factory=list, description="Latency of every run")


class BatchSummary(BaseModel):
    """End-of-run statistics over every PerImageRecord"""

    model_config = ConfigDict(frozen=True)

    total_images: int = Field(ge=0)
    successful: int = Field(ge=0)
    failed: int = Field(ge=0)
    success_rate: float = Field(ge=0.0, le=100.0, description="Percent of images that succeeded")
    init_ms: float = Field(ge=0.0, description="Engine initialization time")
    total_processing_ms: float = Field(ge=0.0, description="Wall time of the whole batch loop")

    # None when no image succeeded
    total_inference_ms: Optional[float] = None
    avg_inference_ms: Optional[float] = None
    min_inference_ms: Optional[float] = None
    max_inference_ms: Optional[float] = None
    p50_inference_ms: Optional[float] = None
    p95_inference_ms: Optional[float] = None
    avg_fps: Optional[float] = Field(default=None, description="1000 / avg_inference_ms")
    batch_fps: Optional[float] = Field(
        default=None, description="successful * 1000 / total_inference_ms"
    )
    avg_chars_per_second: Optional[float] = None
    avg_accuracy: Optional[float] = None

    @property
    def has_statistics(self) -> bool:
        return self.avg_inference_ms is not None
