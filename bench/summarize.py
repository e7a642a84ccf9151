"""Turn a captured benchmark log into a Markdown table and accuracy summary"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .report import PER_IMAGE_PREFIX, TIMING_PREFIX

logger = logging.getLogger(__name__)

SUMMARY_FILE = "benchmark_summary.md"
ACCURACY_FILE = "accuracy_metrics.json"

TABLE_HEADER = [
    "# Benchmark Summary",
    "",
    "| Filename | Inference Time (ms) | FPS(image/s) | CPS (chars/s) | Accuracy (%) |",
    "|---|---|---|---|---|",
]


def parse_log(lines) -> Tuple[List[Dict[str, Any]], Dict[str, str]]:
    """
    Collect per-image results and timing values from benchmark output

    Args:
        lines: Iterable of log lines (stdout of a benchmark run, possibly
            interleaved with diagnostics)

    Returns:
        Per-image result objects in log order, and timing values keyed by
        name (e.g. ``AVG_FPS``) with their unit suffix kept
    """
    results: List[Dict[str, Any]] = []
    timing: Dict[str, str] = {}

    for line_no, line in enumerate(lines, 1):
        line = line.strip()

        # Result lines may follow a log prefix
        idx = line.find(PER_IMAGE_PREFIX)
        if idx >= 0:
            payload = line[idx + len(PER_IMAGE_PREFIX):]
            try:
                record = json.loads(payload)
            except json.JSONDecodeError:
                logger.warning("Line %d: malformed %s payload skipped", line_no, PER_IMAGE_PREFIX)
                continue
            if not isinstance(record, dict):
                logger.warning("Line %d: %s payload is not an object", line_no, PER_IMAGE_PREFIX)
                continue
            results.append(record)
            continue

        idx = line.find(TIMING_PREFIX)
        if idx >= 0:
            name, sep, value = line[idx + len(TIMING_PREFIX):].partition(":")
            if not sep or not name:
                logger.warning("Line %d: malformed %s line skipped", line_no, TIMING_PREFIX)
                continue
            timing[name] = value

    return results, timing


def _number(record: Dict[str, Any], key: str) -> float:
    value = record.get(key, 0.0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def render_markdown(results: List[Dict[str, Any]]) -> str:
    """Markdown results table with an average row"""
    if not results:
        return "\n".join([
            "# Benchmark Summary",
            "",
            "**ERROR: No per-image results found to generate a table.**",
            "",
        ])

    lines = list(TABLE_HEADER)
    total_fps = total_cps = total_acc = 0.0

    for record in results:
        fps = _number(record, "fps")
        cps = _number(record, "chars_per_second")
        accuracy = _number(record, "accuracy") * 100
        lines.append(
            f"| `{record.get('filename', 'N/A')}` | {_number(record, 'inference_ms'):.2f} | "
            f"{fps:.2f} | **{cps:.2f}** | **{accuracy:.2f}** |"
        )
        total_fps += fps
        total_cps += cps
        total_acc += accuracy

    count = len(results)
    lines.append(
        f"| **Average** | - | **{total_fps / count:.2f}** | "
        f"**{total_cps / count:.2f}** | **{total_acc / count:.2f}** |"
    )
    lines.append("")
    return "\n".join(lines)


def average_accuracy_percent(results: List[Dict[str, Any]]) -> float:
    if not results:
        return 0.0
    return sum(_number(r, "accuracy") for r in results) / len(results) * 100


def summarize_log(log_file: Path, results_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Write ``benchmark_summary.md`` and ``accuracy_metrics.json``

    Args:
        log_file: Captured benchmark output
        results_dir: Destination directory, defaults to the log's directory

    Returns:
        Number of images, average accuracy (percent) and timing values
    """
    log_file = Path(log_file)
    results_dir = Path(results_dir) if results_dir is not None else log_file.parent
    results_dir.mkdir(parents=True, exist_ok=True)

    with open(log_file, "r", encoding="utf-8", errors="replace") as f:
        results, timing = parse_log(f)

    markdown_file = results_dir / SUMMARY_FILE
    with open(markdown_file, "w", encoding="utf-8") as f:
        f.write(render_markdown(results))
    logger.info("Markdown results table written to %s", markdown_file)

    avg_accuracy = round(average_accuracy_percent(results), 2)
    accuracy_file = results_dir / ACCURACY_FILE
    with open(accuracy_file, "w", encoding="utf-8") as f:
        json.dump({"character_accuracy": avg_accuracy}, f)
    logger.info("Overall average character accuracy: %.2f%%", avg_accuracy)

    return {
        "images": len(results),
        "character_accuracy": avg_accuracy,
        "timing": timing,
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="benchmark-summarize",
        description="Summarize a captured benchmark log"
    )
    parser.add_argument(
        "log_file",
        type=str,
        help="Benchmark output log"
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        help="Directory for the summary files (default: next to the log)"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    log_file = Path(args.log_file)
    if not log_file.is_file():
        logger.error("Log file not found: %s", log_file)
        return 1

    summary = summarize_log(log_file, Path(args.results_dir) if args.results_dir else None)
    if summary["images"] == 0:
        logger.error("No %s lines found in %s", PER_IMAGE_PREFIX, log_file)
        return 1

    for name, value in summary["timing"].items():
        print(f"{name}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
