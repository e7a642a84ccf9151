"""Exception types for the OCR benchmark harness"""

from eval.errors import ScoringError  # noqa: F401  re-exported, raised inside scorers


class BenchmarkError(Exception):
    """Base class for benchmark failures"""


class ConfigError(BenchmarkError):
    """Configuration file is missing, malformed or has unknown keys"""


class NoImagesFoundError(BenchmarkError):
    """Discovery produced no images to benchmark"""


class EngineInitError(BenchmarkError):
    """The OCR engine could not be constructed"""
