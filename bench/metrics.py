"""Per-image throughput metrics"""

from typing import Sequence

from infer.results import OCRPage


def count_characters(pages: Sequence[OCRPage]) -> int:
    """Total number of recognized characters over every region of every page"""
    return sum(len(region.text) for page in pages for region in page.regions)


def compute_fps(avg_inference_ms: float) -> float:
    """Images per second for a mean latency; 0.0 for a non-positive latency"""
    if avg_inference_ms <= 0:
        return 0.0
    return 1000.0 / avg_inference_ms


def compute_chars_per_second(total_chars: int, avg_inference_ms: float) -> float:
    """Recognized characters per second; 0.0 for a non-positive latency"""
    if avg_inference_ms <= 0:
        return 0.0
    return (total_chars * 1000.0) / avg_inference_ms
