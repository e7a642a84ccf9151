"""Per-image accuracy scorers used by the benchmark driver"""

import json
import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from infer.results import OCRPage, recognized_text

from .cer import calculate_character_metrics
from .errors import ScoringError
from .ground_truth import MARKER, ground_truth_text, load_labels

logger = logging.getLogger(__name__)


class AccuracyStatus(str, Enum):
    SCORED = "scored"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class AccuracyOutcome:
    """Result of scoring one image; accuracy is 0.0 unless scored"""

    status: AccuracyStatus
    accuracy: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def scored(cls, accuracy: float, details: Optional[Dict[str, Any]] = None) -> "AccuracyOutcome":
        return cls(AccuracyStatus.SCORED, accuracy, details or {})

    @classmethod
    def failed(cls, reason: str) -> "AccuracyOutcome":
        return cls(AccuracyStatus.FAILED, 0.0, {"error": reason})

    @classmethod
    def skipped(cls) -> "AccuracyOutcome":
        return cls(AccuracyStatus.SKIPPED, 0.0)


def parse_accuracy_payload(payload: Dict[str, Any]) -> float:
    """
    Extract ``character_accuracy`` from a scorer payload

    Raises:
        ScoringError: if the payload reports an error or the value is missing,
            non-numeric or outside [0, 1]
    """
    if "error" in payload:
        raise ScoringError(str(payload["error"]))
    if "character_accuracy" not in payload:
        raise ScoringError("payload has no character_accuracy field")

    value = payload["character_accuracy"]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScoringError(f"character_accuracy is not a number: {value!r}")
    if not 0.0 <= value <= 1.0:
        raise ScoringError(f"character_accuracy out of range: {value}")
    return float(value)


def extract_marker_payload(output: str) -> Dict[str, Any]:
    """
    Find the ``SINGLE_ACC:`` line in scorer output and parse its JSON

    Raises:
        ScoringError: if no line carries the marker or its payload is not JSON
    """
    prefix = MARKER.strip()
    for line in output.splitlines():
        if line.startswith(prefix):
            data = line[len(prefix):].strip()
            try:
                payload = json.loads(data)
            except json.JSONDecodeError as e:
                raise ScoringError(f"unparseable {prefix} payload: {data!r}") from e
            if not isinstance(payload, dict):
                raise ScoringError(f"{prefix} payload is not an object: {data!r}")
            return payload
    raise ScoringError(f"no '{prefix}' line in scorer output")


class AccuracyScorer(ABC):
    """Scores one image's recognized text against ground truth"""

    @abstractmethod
    def score(self, filename: str, pages: Sequence[OCRPage]) -> AccuracyOutcome:
        """
        Score one image; must not raise

        Args:
            filename: Image basename (the ground truth key)
            pages: Canonical inference result of that image
        """
        ...


class NullScorer(AccuracyScorer):
    """Used when no ground truth is configured"""

    def score(self, filename: str, pages: Sequence[OCRPage]) -> AccuracyOutcome:
        return AccuracyOutcome.skipped()


class SubprocessScorer(AccuracyScorer):
    """Runs the accuracy calculator as a separate process per image"""

    def __init__(
        self,
        ground_truth: Path,
        output_dir: Path,
        command: Optional[List[str]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            ground_truth: labels.json passed to the scorer process
            output_dir: Directory holding the engine's ``<stem>_res.json`` files
            command: Command prefix; defaults to this interpreter running
                ``eval.calculate_acc``
            timeout: Seconds to wait for the process, None waits forever
        """
        self.ground_truth = Path(ground_truth)
        self.output_dir = Path(output_dir)
        self.command = list(command) if command else [sys.executable, "-m", "eval.calculate_acc"]
        self.timeout = timeout

    def build_command(self, filename: str) -> List[str]:
        return self.command + [
            "--ground_truth", str(self.ground_truth),
            "--output_dir", str(self.output_dir),
            "--image_name", filename,
        ]

    def score(self, filename: str, pages: Sequence[OCRPage]) -> AccuracyOutcome:
        command = self.build_command(filename)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("Failed to execute accuracy calculation for %s: %s", filename, e)
            return AccuracyOutcome.failed(str(e))

        try:
            if completed.returncode != 0:
                raise ScoringError(f"scorer exited with status {completed.returncode}")
            payload = extract_marker_payload(completed.stdout)
            accuracy = parse_accuracy_payload(payload)
        except ScoringError as e:
            logger.error("Accuracy calculation failed for %s: %s", filename, e)
            logger.error("Scorer output:\n%s%s", completed.stdout, completed.stderr)
            return AccuracyOutcome.failed(str(e))

        return AccuracyOutcome.scored(accuracy, payload)


class InProcessScorer(AccuracyScorer):
    """Scores directly from the in-memory result against a loaded label store"""

    def __init__(self, ground_truth: Path):
        """
        Args:
            ground_truth: labels.json, loaded once; a missing or malformed
                file makes every image fail scoring
        """
        self.ground_truth = Path(ground_truth)
        self.labels: Optional[Dict[str, Any]] = None
        self.load_error: Optional[str] = None

        try:
            self.labels = load_labels(self.ground_truth)
        except (OSError, ValueError) as e:
            self.load_error = f"Cannot load ground truth {self.ground_truth}: {e}"
            logger.error(self.load_error)

    def score(self, filename: str, pages: Sequence[OCRPage]) -> AccuracyOutcome:
        if self.labels is None:
            return AccuracyOutcome.failed(self.load_error or "ground truth not loaded")

        try:
            reference = ground_truth_text(self.labels, filename)
            if reference is None:
                raise ScoringError(f"Ground truth not found for {filename} in {self.ground_truth}")
            metrics = calculate_character_metrics(reference, recognized_text(pages))
        except Exception as e:
            logger.error("Accuracy calculation failed for %s: %s", filename, e)
            return AccuracyOutcome.failed(str(e))

        return AccuracyOutcome.scored(metrics["character_accuracy"], metrics)
