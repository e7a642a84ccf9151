"""Structured OCR results as returned by an inference engine"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class TextRegion:
    """One recognized text line"""

    text: str
    score: float = 0.0
    polygon: List[List[float]] = field(default_factory=list)


@dataclass
class OCRPage:
    """
    Recognition output for one page of one image

    ``raw`` keeps the engine's own result object so its serializer can
    write artifacts; metric code reads ``regions`` only.
    """

    input_path: str
    regions: List[TextRegion] = field(default_factory=list)
    raw: Optional[Any] = field(default=None, repr=False, compare=False)

    @property
    def texts(self) -> List[str]:
        return [r.text for r in self.regions]

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, keyed the same way as PaddleOCR's JSON output"""
        return {
            "input_path": self.input_path,
            "rec_texts": self.texts,
            "rec_scores": [float(r.score) for r in self.regions],
            "rec_polys": [r.polygon for r in self.regions],
        }

    @classmethod
    def from_paddle(cls, result: Any, input_path: str) -> "OCRPage":
        """
        Build a page from a PaddleOCR ``predict`` result

        Args:
            result: Mapping with ``rec_texts`` and optionally ``rec_scores``
                and ``rec_polys``
            input_path: Image the result belongs to

        Returns:
            Page wrapping the result
        """
        texts = list(result["rec_texts"]) if "rec_texts" in result else []
        scores = _as_list(result.get("rec_scores"))
        polys = _as_list(result.get("rec_polys"))

        regions = []
        for i, text in enumerate(texts):
            score = float(scores[i]) if i < len(scores) else 0.0
            polygon = np.asarray(polys[i], dtype=float).tolist() if i < len(polys) else []
            regions.append(TextRegion(text=str(text), score=score, polygon=polygon))

        return cls(input_path=str(result.get("input_path") or input_path), regions=regions, raw=result)


def _as_list(values: Optional[Sequence]) -> list:
    if values is None:
        return []
    return list(values)


def recognized_text(pages: Sequence[OCRPage]) -> str:
    """All recognized text of an image, regions joined without separators"""
    return "".join(text for page in pages for text in page.texts)
