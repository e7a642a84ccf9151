"""OCR inference engines used by the benchmark driver"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

from PIL import Image, ImageDraw

from .results import OCRPage

logger = logging.getLogger(__name__)


def paddle_available() -> bool:
    """Check whether the PaddleOCR package can be imported"""
    try:
        import paddleocr  # noqa: F401
        return True
    except ImportError:
        return False


class InferenceEngine(ABC):
    """Engine interface: one image path in, ordered pages out"""

    @abstractmethod
    def predict(self, image_path: Path) -> List[OCRPage]:
        """Run detection and recognition on one image"""
        ...

    def infer(self, image_path: Path) -> Any:
        """
        Run the model only, leaving conversion to ``to_pages``

        The benchmark times this call alone. Engines whose native output
        needs conversion override both methods.
        """
        return self.predict(image_path)

    def to_pages(self, raw: Any, image_path: Path) -> List[OCRPage]:
        """Convert the output of one ``infer`` call into pages"""
        return list(raw)

    def save_outputs(self, pages: List[OCRPage], output_dir: Path):
        """
        Write a visualization image and ``<stem>_res.json`` for each page

        Args:
            pages: Result of one ``predict`` call
            output_dir: Destination directory (created if missing)
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        for page in pages:
            stem = Path(page.input_path).stem

            with open(output_dir / f"{stem}_res.json", "w", encoding="utf-8") as f:
                json.dump(page.to_dict(), f, ensure_ascii=False, indent=2)

            with Image.open(page.input_path) as source:
                canvas = source.convert("RGB")
            draw = ImageDraw.Draw(canvas)
            for region in page.regions:
                if len(region.polygon) >= 2:
                    points = [tuple(p) for p in region.polygon]
                    draw.polygon(points, outline=(0, 255, 0))
            canvas.save(output_dir / f"{stem}_ocr_res_img.png")


class PaddleOCREngine(InferenceEngine):
    """PaddleOCR 3.x pipeline (document preprocessing + detection + recognition)"""

    def __init__(
        self,
        device: str = "gpu",
        doc_orientation_classify_model_dir: Optional[str] = None,
        doc_unwarping_model_dir: Optional[str] = None,
        textline_orientation_model_dir: Optional[str] = None,
        text_detection_model_dir: Optional[str] = None,
        text_recognition_model_dir: Optional[str] = None,
        use_doc_orientation_classify: Optional[bool] = None,
        use_doc_unwarping: Optional[bool] = None,
        use_textline_orientation: Optional[bool] = None,
    ):
        """
        Initialize the PaddleOCR pipeline once

        Args:
            device: Inference device ("gpu", "gpu:0", "cpu", ...)
            doc_orientation_classify_model_dir: Document orientation model
            doc_unwarping_model_dir: Document rectification model
            textline_orientation_model_dir: Text line orientation model
            text_detection_model_dir: Text detection model
            text_recognition_model_dir: Text recognition model
            use_doc_orientation_classify: Stage toggle, None keeps the default
            use_doc_unwarping: Stage toggle, None keeps the default
            use_textline_orientation: Stage toggle, None keeps the default
        """
        if not paddle_available():
            raise RuntimeError("PaddleOCR backend requested but not available")

        import paddleocr

        options = {
            "device": device,
            "doc_orientation_classify_model_dir": doc_orientation_classify_model_dir,
            "doc_unwarping_model_dir": doc_unwarping_model_dir,
            "textline_orientation_model_dir": textline_orientation_model_dir,
            "text_detection_model_dir": text_detection_model_dir,
            "text_recognition_model_dir": text_recognition_model_dir,
            "use_doc_orientation_classify": use_doc_orientation_classify,
            "use_doc_unwarping": use_doc_unwarping,
            "use_textline_orientation": use_textline_orientation,
        }
        self.options = {key: value for key, value in options.items() if value is not None}

        logger.info("Initializing PaddleOCR with the following configuration:")
        for key, value in self.options.items():
            logger.info("  - %s: %s", key, value)

        self.ocr = paddleocr.PaddleOCR(**self.options)

    def infer(self, image_path: Path) -> list:
        return list(self.ocr.predict(str(image_path)))

    def to_pages(self, raw: list, image_path: Path) -> List[OCRPage]:
        return [OCRPage.from_paddle(output, str(image_path)) for output in raw]

    def predict(self, image_path: Path) -> List[OCRPage]:
        return self.to_pages(self.infer(image_path), image_path)

    def save_outputs(self, pages: List[OCRPage], output_dir: Path):
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        for page in pages:
            if page.raw is None:
                super().save_outputs([page], output_dir)
                continue
            page.raw.save_to_img(str(output_dir))
            page.raw.save_to_json(str(output_dir))
