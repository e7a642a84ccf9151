#!/usr/bin/env python3
"""Integration tests for the benchmark driver and command line"""

import io
import json
import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path
ROOT = Path(__file__).parent.parent.parent
sys.path.append(str(ROOT))
from bench.cli import main
from bench.config import load_config
from bench.driver import BenchmarkDriver, create_scorer
from bench.errors import EngineInitError, NoImagesFoundError
from bench.report import PER_IMAGE_PREFIX, Reporter
from eval.scorer import AccuracyOutcome, InProcessScorer, NullScorer, SubprocessScorer

from conftest import FakeEngine, StaticScorer, create_image


def per_image_results(output):
    return [
        json.loads(line[len(PER_IMAGE_PREFIX):])
        for line in output.splitlines()
        if line.startswith(PER_IMAGE_PREFIX)
    ]


def timing_info(output):
    values = {}
    for line in output.splitlines():
        if line.startswith("TIMING_INFO:"):
            name, _, value = line[len("TIMING_INFO:"):].partition(":")
            values[name] = value
    return values


@pytest.fixture
def dataset(tmp_path):
    """Two labelled images: one read perfectly, one read completely wrong"""
    images = tmp_path / "images"
    create_image(images / "hello.png", "Hello World")
    create_image(images / "receipt.png", "world")
    labels = {
        "hello.png": [{"text": "Hello"}, {"text": "World"}],
        "receipt.png": [{"text": "world"}],
    }
    (images / "labels.json").write_text(json.dumps(labels), encoding="utf-8")
    engine = FakeEngine({"hello.png": ["hello", "world"], "receipt.png": ["xyz"]})
    return images, engine


def make_driver(tmp_path, engine, accuracy_scorer=None, **overrides):
    values = {"output_dir": str(tmp_path / "output"), "ground_truth": None, "progress": False}
    values.update(overrides)
    stream = io.StringIO()
    driver = BenchmarkDriver(
        load_config(overrides=values),
        engine_factory=lambda settings: engine,
        scorer=accuracy_scorer,
        reporter=Reporter(stream),
    )
    return driver, stream


class TestBenchmarkDriver:
    """Test the batch state machine with a deterministic engine"""

    def test_failure_isolation(self, tmp_path):
        """Image 3 of 5 fails: four records in order, one failure, run continues"""
        names = [f"img_{i}.png" for i in range(1, 6)]
        for name in names:
            create_image(tmp_path / "in" / name)
        engine = FakeEngine({name: ["abc"] for name in names}, fail_on=["img_3.png"])

        driver, stream = make_driver(tmp_path, engine, repetitions=2)
        summary = driver.run([tmp_path / "in"])

        results = per_image_results(stream.getvalue())
        assert [r["filename"] for r in results] == ["img_1.png", "img_2.png", "img_4.png", "img_5.png"]
        assert summary.successful == 4
        assert summary.failed == 1
        assert summary.success_rate == pytest.approx(80.0)
        assert driver.aggregator.failures[0][0].name == "img_3.png"
        assert timing_info(stream.getvalue())["SUCCESS_RATE"] == "80.0%"

    def test_repetitions_and_artifacts(self, tmp_path):
        """Every image is run N times and its artifacts are written once"""
        create_image(tmp_path / "in" / "a.png")
        engine = FakeEngine({"a.png": ["abc", "de"]})

        driver, stream = make_driver(tmp_path, engine, repetitions=4)
        driver.run([tmp_path / "in"])

        assert len(engine.calls) == 4
        record = driver.aggregator.records[0]
        assert len(record.run_times_ms) == 4
        assert record.total_chars == 5
        assert record.accuracy_status == "skipped"
        assert (tmp_path / "output" / "a_res.json").exists()
        assert (tmp_path / "output" / "a_ocr_res_img.png").exists()

    def test_scoring_failure_degrades(self, tmp_path):
        """A failed score still yields a record with accuracy 0.0"""
        for name in ["a.png", "b.png"]:
            create_image(tmp_path / "in" / name)
        engine = FakeEngine({"a.png": ["abc"], "b.png": ["def"]})
        scorer = StaticScorer({
            "a.png": AccuracyOutcome.failed("scorer crashed"),
            "b.png": AccuracyOutcome.scored(0.5),
        })

        driver, stream = make_driver(tmp_path, engine, accuracy_scorer=scorer)
        summary = driver.run([tmp_path / "in"])

        results = per_image_results(stream.getvalue())
        assert [r["accuracy"] for r in results] == [0.0, 0.5]
        assert driver.aggregator.records[0].accuracy_status == "failed"
        assert summary.successful == 2
        assert summary.avg_accuracy == pytest.approx(0.25)

    def test_malformed_label_degrades(self, tmp_path):
        """A wrongly typed label fails scoring, not the image"""
        create_image(tmp_path / "in" / "a.png")
        labels_file = tmp_path / "labels.json"
        labels_file.write_text(json.dumps({"a.png": [{"text": 12}]}), encoding="utf-8")
        engine = FakeEngine({"a.png": ["abc"]})

        driver, stream = make_driver(tmp_path, engine, accuracy_scorer=InProcessScorer(labels_file))
        summary = driver.run([tmp_path / "in"])

        assert summary.failed == 0
        assert summary.successful == 1
        assert len(driver.aggregator.records) == 1
        assert driver.aggregator.records[0].accuracy_status == "failed"
        assert [r["accuracy"] for r in per_image_results(stream.getvalue())] == [0.0]

    def test_serializer_failure_counts_as_failure(self, tmp_path):
        """Errors while saving artifacts fail the image"""
        create_image(tmp_path / "in" / "a.png")
        engine = FakeEngine({"a.png": ["abc"]})
        engine.save_outputs = MagicMock(side_effect=OSError("disk full"))

        driver, stream = make_driver(tmp_path, engine)
        summary = driver.run([tmp_path / "in"])

        assert summary.failed == 1
        assert per_image_results(stream.getvalue()) == []
        assert timing_info(stream.getvalue()) == {}

    def test_no_images(self, tmp_path):
        """Empty discovery is fatal and the engine is never built"""
        (tmp_path / "in").mkdir()
        factory = MagicMock()
        driver = BenchmarkDriver(
            load_config(overrides={"ground_truth": None, "progress": False}),
            engine_factory=factory,
        )

        with pytest.raises(NoImagesFoundError):
            driver.run([tmp_path / "in"])
        factory.assert_not_called()

    def test_engine_init_failure(self, tmp_path):
        create_image(tmp_path / "in" / "a.png")
        driver = BenchmarkDriver(
            load_config(overrides={"ground_truth": None, "progress": False}),
            engine_factory=MagicMock(side_effect=RuntimeError("model dir missing")),
        )

        with pytest.raises(EngineInitError, match="model dir missing"):
            driver.run([tmp_path / "in"])

    def test_json_report(self, tmp_path):
        create_image(tmp_path / "in" / "a.png")
        report_path = tmp_path / "report.json"

        driver, _ = make_driver(tmp_path, FakeEngine({"a.png": ["x"]}), report_path=str(report_path))
        driver.run([tmp_path / "in"])

        with open(report_path, encoding="utf-8") as f:
            report = json.load(f)
        assert report["summary"]["total_images"] == 1
        assert report["results"][0]["filename"] == "a.png"


class TestScorerSelection:
    """Test which scorer a configuration produces"""

    def test_selection(self, tmp_path):
        labels = str(tmp_path / "labels.json")
        assert isinstance(create_scorer(load_config(overrides={"ground_truth": None})), NullScorer)
        assert isinstance(
            create_scorer(load_config(overrides={"ground_truth": labels, "scorer": {"kind": "none"}})),
            NullScorer,
        )
        assert isinstance(
            create_scorer(load_config(overrides={"ground_truth": labels, "scorer": {"kind": "inprocess"}})),
            InProcessScorer,
        )
        scorer = create_scorer(load_config(overrides={
            "ground_truth": labels,
            "scorer": {"kind": "subprocess", "timeout_s": 30},
        }))
        assert isinstance(scorer, SubprocessScorer)
        assert scorer.timeout == 30


class TestEndToEnd:
    """Full runs over synthetic images with real accuracy scoring"""

    def test_inprocess_accuracy(self, tmp_path, dataset):
        """Perfect match scores 1.0, no overlap scores 0.0"""
        images, engine = dataset
        driver, stream = make_driver(
            tmp_path, engine,
            ground_truth=str(images / "labels.json"),
            scorer={"kind": "inprocess"},
        )
        driver.run([images])

        output = stream.getvalue()
        results = per_image_results(output)
        assert len(results) == 2
        assert {r["filename"]: r["accuracy"] for r in results} == {"hello.png": 1.0, "receipt.png": 0.0}
        assert timing_info(output)["SUCCESS_RATE"] == "100.0%"

    def test_subprocess_accuracy(self, tmp_path, dataset, monkeypatch):
        """The scorer process reads the saved result files"""
        images, engine = dataset
        monkeypatch.setenv("PYTHONPATH", os.pathsep.join(
            p for p in [str(ROOT), os.environ.get("PYTHONPATH", "")] if p
        ))
        driver, stream = make_driver(
            tmp_path, engine,
            ground_truth=str(images / "labels.json"),
            scorer={"kind": "subprocess", "timeout_s": 120},
        )
        driver.run([images])

        results = per_image_results(stream.getvalue())
        assert {r["filename"]: r["accuracy"] for r in results} == {"hello.png": 1.0, "receipt.png": 0.0}
        assert all(r.accuracy_status == "scored" for r in driver.aggregator.records)


class TestCommandLine:
    """Test the benchmark entry point and exit codes"""

    def test_no_arguments(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().err

    def test_success(self, tmp_path, dataset, capsys):
        images, engine = dataset
        with patch("bench.driver.create_engine", return_value=engine) as mock_create:
            code = main([
                str(images),
                "--device", "cpu",
                "--output-dir", str(tmp_path / "output"),
                "--ground-truth", str(images / "labels.json"),
                "--scorer", "inprocess",
                "--repetitions", "2",
                "--no-progress",
            ])

        assert code == 0
        settings = mock_create.call_args[0][0]
        assert settings.device == "cpu"
        out = capsys.readouterr().out
        assert len(per_image_results(out)) == 2
        assert "BENCHMARK RESULTS SUMMARY" in out
        assert len(engine.calls) == 4

    def test_failed_image_exit_code(self, tmp_path, dataset):
        images, _ = dataset
        engine = FakeEngine(fail_on=["receipt.png"])
        with patch("bench.driver.create_engine", return_value=engine):
            code = main([str(images), "--output-dir", str(tmp_path / "out"),
                         "--no-ground-truth", "--no-progress"])
        assert code == 1

    def test_no_images_exit_code(self, tmp_path):
        (tmp_path / "empty").mkdir()
        with patch("bench.driver.create_engine") as mock_create:
            code = main([str(tmp_path / "empty"), "--no-ground-truth", "--no-progress"])
        assert code == 1
        mock_create.assert_not_called()

    def test_engine_init_exit_code(self, tmp_path, dataset):
        images, _ = dataset
        with patch("bench.driver.create_engine", side_effect=RuntimeError("no GPU")):
            code = main([str(images), "--no-ground-truth", "--no-progress"])
        assert code == 1

    def test_config_error_exit_code(self, tmp_path, dataset):
        images, _ = dataset
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("unknown_option: 1\n", encoding="utf-8")
        assert main([str(images), "--config", str(config_file)]) == 1
