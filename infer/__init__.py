"""Inference package for the OCR benchmark"""

from .engine import InferenceEngine, PaddleOCREngine, paddle_available
from .results import OCRPage, TextRegion, recognized_text

__all__ = [
    "InferenceEngine",
    "PaddleOCREngine",
    "paddle_available",
    "OCRPage",
    "TextRegion",
    "recognized_text",
]
