"""Accuracy evaluation package for the OCR benchmark"""

from .cer import (
    calculate_cer,
    calculate_character_metrics,
    levenshtein_distance,
    normalize_text,
)
from .ground_truth import ground_truth_text, load_labels, load_ocr_result
from .scorer import (
    AccuracyOutcome,
    AccuracyScorer,
    AccuracyStatus,
    InProcessScorer,
    NullScorer,
    SubprocessScorer,
)

__all__ = [
    "calculate_cer",
    "calculate_character_metrics",
    "levenshtein_distance",
    "normalize_text",
    "ground_truth_text",
    "load_labels",
    "load_ocr_result",
    "AccuracyOutcome",
    "AccuracyScorer",
    "AccuracyStatus",
    "InProcessScorer",
    "NullScorer",
    "SubprocessScorer",
]
