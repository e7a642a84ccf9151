"""Benchmark output: structured stdout lines, summary block and JSON report

Everything written here goes to stdout and is meant to be parsed. One
``PER_IMAGE_RESULT:`` line is flushed as soon as an image finishes so a
killed run still leaves usable results; the ``TIMING_INFO:`` lines close
the run.
"""

import json
import platform
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from .config import BenchmarkConfig
from .schemas import BatchSummary, PerImageRecord

PER_IMAGE_PREFIX = "PER_IMAGE_RESULT:"
TIMING_PREFIX = "TIMING_INFO:"


def format_per_image_line(record: PerImageRecord) -> str:
    """Single-line, compact JSON result for one image"""
    return (
        f"{PER_IMAGE_PREFIX}{{"
        f"\"filename\":{json.dumps(record.filename, ensure_ascii=False)},"
        f"\"inference_ms\":{record.inference_ms:.2f},"
        f"\"fps\":{record.fps:.2f},"
        f"\"chars_per_second\":{record.chars_per_second:.2f},"
        f"\"total_chars\":{record.total_chars},"
        f"\"accuracy\":{record.accuracy:.4f}"
        f"}}"
    )


def format_timing_lines(summary: BatchSummary) -> List[str]:
    """Machine-readable summary lines; empty if nothing succeeded"""
    if not summary.has_statistics:
        return []
    return [
        f"{TIMING_PREFIX}INIT:{int(summary.init_ms)}ms",
        f"{TIMING_PREFIX}TOTAL_INFERENCE:{summary.total_inference_ms:.2f}ms",
        f"{TIMING_PREFIX}AVG_INFERENCE:{summary.avg_inference_ms:.2f}ms",
        f"{TIMING_PREFIX}AVG_FPS:{summary.avg_fps:.2f}",
        f"{TIMING_PREFIX}BATCH_FPS:{summary.batch_fps:.2f}",
        f"{TIMING_PREFIX}SUCCESS_RATE:{summary.success_rate:.1f}%",
    ]


def format_summary_block(summary: BatchSummary) -> List[str]:
    """Human-readable results table"""
    lines = [
        "=" * 60,
        "BENCHMARK RESULTS SUMMARY",
        "=" * 60,
        f"Total images processed: {summary.total_images}",
        f"Successful: {summary.successful}",
        f"Failed: {summary.failed}",
        f"Success rate: {summary.success_rate:.1f}%",
        "-" * 60,
        f"Initialization time: {int(summary.init_ms)} ms",
        f"Total processing time: {int(summary.total_processing_ms)} ms",
    ]
    if summary.has_statistics:
        lines += [
            f"Pure inference time: {summary.total_inference_ms:.2f} ms",
            "-" * 60,
            f"Average inference time: {summary.avg_inference_ms:.2f} ms",
            f"Min inference time: {summary.min_inference_ms:.2f} ms",
            f"Max inference time: {summary.max_inference_ms:.2f} ms",
            f"P95 inference time: {summary.p95_inference_ms:.2f} ms",
            "-" * 60,
            f"Average FPS (per image): {summary.avg_fps:.2f}",
            f"Batch throughput FPS: {summary.batch_fps:.2f}",
            f"Average characters/second: {summary.avg_chars_per_second:.2f}",
            f"Average character accuracy: {summary.avg_accuracy * 100:.2f}%",
        ]
    lines.append("=" * 60)
    return lines


class Reporter:
    """Writes benchmark results to a text stream"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def _write(self, line: str):
        self.stream.write(line + "\n")
        self.stream.flush()

    def emit_record(self, record: PerImageRecord):
        self._write(format_per_image_line(record))

    def emit_summary(self, summary: BatchSummary):
        self._write("")
        for line in format_summary_block(summary):
            self._write(line)
        for line in format_timing_lines(summary):
            self._write(line)


def write_json_report(
    output_path: Path,
    config: BenchmarkConfig,
    records: Sequence[PerImageRecord],
    summary: BatchSummary,
):
    """
    Save the complete run as JSON

    Args:
        output_path: Report file, parent directories are created
        config: Effective configuration of the run
        records: Every per-image record in processing order
        summary: Batch summary
    """
    report = {
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "platform": {
            "system": platform.system(),
            "processor": platform.processor(),
            "python": platform.python_version(),
        },
        "config": config.model_dump(mode="json"),
        "results": [r.model_dump(mode="json") for r in records],
        "summary": summary.model_dump(mode="json"),
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report, f, ensure_ascii=False, indent=2)
