"""Shared fixtures: deterministic OCR engine, in-memory scorer, synthetic images"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest
from PIL import Image, ImageDraw

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))
from eval.scorer import AccuracyOutcome, AccuracyScorer
from infer.engine import InferenceEngine
from infer.results import OCRPage, TextRegion


def create_image(path: Path, text: str = "", size=(160, 48)) -> Path:
    """Write a small white PNG/JPEG with optional black text"""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color=(255, 255, 255))
    if text:
        ImageDraw.Draw(img).text((8, 16), text, fill=(0, 0, 0))
    img.save(path)
    return path


class FakeEngine(InferenceEngine):
    """
    Returns canned text per image file name

    Images named in ``fail_on`` raise on every ``predict`` call.
    """

    def __init__(self, texts: Optional[Dict[str, List[str]]] = None, fail_on: Sequence[str] = ()):
        self.texts = texts or {}
        self.fail_on = set(fail_on)
        self.calls: List[Path] = []

    def predict(self, image_path: Path) -> List[OCRPage]:
        image_path = Path(image_path)
        self.calls.append(image_path)
        if image_path.name in self.fail_on:
            raise RuntimeError(f"inference failed on {image_path.name}")

        lines = self.texts.get(image_path.name, [])
        regions = [
            TextRegion(text=line, score=0.99, polygon=[[0, 0], [100, 0], [100, 20], [0, 20]])
            for line in lines
        ]
        return [OCRPage(input_path=str(image_path), regions=regions)]


class StaticScorer(AccuracyScorer):
    """Returns a preset outcome per file name, skipped for anything else"""

    def __init__(self, outcomes: Optional[Dict[str, AccuracyOutcome]] = None):
        self.outcomes = outcomes or {}
        self.calls: List[str] = []

    def score(self, filename: str, pages) -> AccuracyOutcome:
        self.calls.append(filename)
        return self.outcomes.get(filename, AccuracyOutcome.skipped())


@pytest.fixture
def make_image():
    """Factory creating real images so the default serializer can draw on them"""
    return create_image


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def static_scorer():
    return StaticScorer()
