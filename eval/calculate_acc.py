#!/usr/bin/env python3
"""Character accuracy for a single benchmarked image

Run as a separate process by the benchmark driver::

    python -m eval.calculate_acc --ground_truth images/labels.json \\
        --output_dir output --image_name receipt_01.png

A readable summary goes to stderr; stdout carries one machine-readable
line prefixed with ``SINGLE_ACC: ``.
"""

import argparse
import json
import sys
from typing import List, Optional

from .cer import calculate_character_metrics, normalize_text
from .ground_truth import MARKER, ground_truth_text, load_labels, load_ocr_result


def _fail(message: str) -> int:
    print(f"ERROR: {message}", file=sys.stderr)
    print(f"{MARKER}{json.dumps({'error': message}, ensure_ascii=False)}")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code"""
    parser = argparse.ArgumentParser(description="Calculate OCR accuracy for a single image")
    parser.add_argument("--ground_truth", required=True, help="Ground truth labels.json")
    parser.add_argument("--output_dir", required=True, help="Directory with <stem>_res.json files")
    parser.add_argument("--image_name", required=True, help="Image file name, e.g. image_0.png")
    parser.add_argument("--debug", action="store_true", help="Print raw and normalized texts")
    args = parser.parse_args(argv)

    try:
        labels = load_labels(args.ground_truth)
    except (OSError, ValueError) as e:
        return _fail(f"Cannot load ground truth {args.ground_truth}: {e}")

    try:
        reference = ground_truth_text(labels, args.image_name)
    except ValueError as e:
        return _fail(f"Malformed ground truth: {e}")
    if reference is None:
        return _fail(f"Ground truth not found for {args.image_name}")

    try:
        ocr_data = load_ocr_result(args.output_dir, args.image_name)
    except (OSError, ValueError) as e:
        return _fail(f"Cannot load OCR result for {args.image_name}: {e}")
    if ocr_data is None:
        return _fail(f"OCR result not found for {args.image_name} in {args.output_dir}")

    hypothesis = "".join(ocr_data.get("rec_texts", []))

    if args.debug:
        print("--- DEBUG ---", file=sys.stderr)
        print(f"RAW ground truth: {reference}", file=sys.stderr)
        print(f"RAW prediction:   {hypothesis}", file=sys.stderr)
        print(f"NORMALIZED ground truth: {normalize_text(reference)}", file=sys.stderr)
        print(f"NORMALIZED prediction:   {normalize_text(hypothesis)}", file=sys.stderr)

    metrics = calculate_character_metrics(reference, hypothesis)

    print("=" * 40, file=sys.stderr)
    print("CHARACTER ACCURACY EVALUATION", file=sys.stderr)
    print("=" * 40, file=sys.stderr)
    print(f"Image: {args.image_name}", file=sys.stderr)
    print(f"Character Accuracy: {metrics['character_accuracy'] * 100:.2f}%", file=sys.stderr)
    print(f"Character Error Rate: {metrics['character_error_rate'] * 100:.2f}%", file=sys.stderr)
    print(
        f"Ref Length: {metrics['reference_length']}, Hyp Length: {metrics['hypothesis_length']}",
        file=sys.stderr,
    )

    print(f"{MARKER}{json.dumps(metrics, ensure_ascii=False)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
