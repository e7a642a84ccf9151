"""OCR benchmark harness: discovery, timed runs, metrics and reporting"""

from .errors import (
    BenchmarkError,
    ConfigError,
    EngineInitError,
    NoImagesFoundError,
    ScoringError,
)

__all__ = [
    "BenchmarkError",
    "ConfigError",
    "EngineInitError",
    "NoImagesFoundError",
    "ScoringError",
]
