"""Ground truth labels and serialized OCR results on disk

``labels.json`` maps an image file name to its annotated text regions or
directly to its transcript::

    {"receipt_01.png": [{"text": "TOTAL"}, {"text": "12.50"}], "note.png": "hello"}

The engine writes one ``<stem>_res.json`` per image into the output
directory; its ``rec_texts`` list holds the recognized lines. The scorer
process answers with one stdout line starting with ``MARKER``.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

MARKER = "SINGLE_ACC: "


def load_labels(ground_truth_file: Path) -> Dict[str, Any]:
    """
    Load the ground truth store

    Args:
        ground_truth_file: Path to labels.json

    Returns:
        Mapping of image file name to region annotations or transcript
    """
    with open(ground_truth_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{ground_truth_file}: expected an object keyed by image name")
    return data


def ground_truth_text(labels: Dict[str, Any], image_name: str) -> Optional[str]:
    """
    Concatenated ground truth for one image

    An entry is either the transcript itself or a list of region
    annotations; region items without a ``text`` key are ignored.

    Args:
        labels: Loaded ground truth store
        image_name: Image file name (basename with extension)

    Returns:
        Transcript, or region texts joined without separators; None if the
        image is not labelled

    Raises:
        ValueError: if the entry or one of its region texts has the wrong type
    """
    entry = labels.get(image_name)
    if entry is None:
        return None
    if isinstance(entry, str):
        return entry
    if not isinstance(entry, list):
        raise ValueError(
            f"label for {image_name} must be a string or a list of regions, "
            f"got {type(entry).__name__}"
        )

    texts = []
    for item in entry:
        if not isinstance(item, dict) or "text" not in item:
            continue
        if not isinstance(item["text"], str):
            raise ValueError(f"label for {image_name} has a non-string text: {item['text']!r}")
        texts.append(item["text"])
    return "".join(texts)


def result_json_path(output_dir: Path, image_name: str) -> Path:
    """Path of the serialized engine result for an image"""
    base_name = os.path.splitext(image_name)[0]
    return Path(output_dir) / f"{base_name}_res.json"


def load_ocr_result(output_dir: Path, image_name: str) -> Optional[Dict[str, Any]]:
    """
    Load the serialized engine result for an image

    Args:
        output_dir: Directory the engine saved its results to
        image_name: Image file name

    Returns:
        Parsed result, or None if it was never written
    """
    json_path = result_json_path(output_dir, image_name)
    if not json_path.exists():
        return None

    with open(json_path, "r", encoding="utf-8") as f:
        return json.load(f)
