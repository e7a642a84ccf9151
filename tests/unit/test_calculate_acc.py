"""Unit tests for the single-image accuracy calculator"""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent.parent))
from eval.calculate_acc import main
from eval.ground_truth import MARKER, ground_truth_text, result_json_path


def marker_payload(stdout):
    lines = [line for line in stdout.splitlines() if line.startswith(MARKER)]
    assert len(lines) == 1
    return json.loads(lines[0][len(MARKER):])


class TestCalculateAcc:
    """Test the scorer process entry point"""

    @pytest.fixture
    def workspace(self, tmp_path):
        labels = {
            "receipt.png": [{"text": "TOTAL"}, {"text": "12.50"}],
            "empty.png": [],
            "note.png": "Total 12.5O",
            "broken.png": [{"text": 12}],
        }
        labels_file = tmp_path / "labels.json"
        labels_file.write_text(json.dumps(labels), encoding="utf-8")

        output_dir = tmp_path / "output"
        output_dir.mkdir()
        result = {"input_path": "receipt.png", "rec_texts": ["Total", "12.5O"]}
        (output_dir / "receipt_res.json").write_text(json.dumps(result), encoding="utf-8")
        note = {"input_path": "note.png", "rec_texts": ["Total", "12.5O"]}
        (output_dir / "note_res.json").write_text(json.dumps(note), encoding="utf-8")
        return labels_file, output_dir

    def test_scores_saved_result(self, workspace, capsys):
        labels_file, output_dir = workspace
        code = main([
            "--ground_truth", str(labels_file),
            "--output_dir", str(output_dir),
            "--image_name", "receipt.png",
        ])

        captured = capsys.readouterr()
        payload = marker_payload(captured.out)
        assert code == 0
        # "total1250" vs "total125o": one substitution out of nine
        assert payload["character_accuracy"] == pytest.approx(8 / 9)
        assert payload["substitutions"] == 1
        assert "CHARACTER ACCURACY EVALUATION" in captured.err

    def test_missing_ground_truth_entry(self, workspace, capsys):
        labels_file, output_dir = workspace
        code = main([
            "--ground_truth", str(labels_file),
            "--output_dir", str(output_dir),
            "--image_name", "other.png",
        ])

        payload = marker_payload(capsys.readouterr().out)
        assert code == 1
        assert "Ground truth not found" in payload["error"]

    def test_transcript_label(self, workspace, capsys):
        """A string label is used as the transcript, not walked per character"""
        labels_file, output_dir = workspace
        code = main([
            "--ground_truth", str(labels_file),
            "--output_dir", str(output_dir),
            "--image_name", "note.png",
        ])

        payload = marker_payload(capsys.readouterr().out)
        assert code == 0
        assert payload["character_accuracy"] == 1.0
        assert payload["reference_length"] == 9

    def test_malformed_label(self, workspace, capsys):
        labels_file, output_dir = workspace
        code = main([
            "--ground_truth", str(labels_file),
            "--output_dir", str(output_dir),
            "--image_name", "broken.png",
        ])

        payload = marker_payload(capsys.readouterr().out)
        assert code == 1
        assert "Malformed ground truth" in payload["error"]

    def test_missing_result_file(self, workspace, capsys):
        labels_file, output_dir = workspace
        code = main([
            "--ground_truth", str(labels_file),
            "--output_dir", str(output_dir),
            "--image_name", "empty.png",
        ])

        payload = marker_payload(capsys.readouterr().out)
        assert code == 1
        assert "OCR result not found" in payload["error"]

    def test_missing_labels_file(self, tmp_path, capsys):
        code = main([
            "--ground_truth", str(tmp_path / "nope.json"),
            "--output_dir", str(tmp_path),
            "--image_name", "a.png",
        ])
        assert code == 1
        assert "error" in marker_payload(capsys.readouterr().out)

    def test_debug_output(self, workspace, capsys):
        labels_file, output_dir = workspace
        main([
            "--ground_truth", str(labels_file),
            "--output_dir", str(output_dir),
            "--image_name", "receipt.png",
            "--debug",
        ])
        err = capsys.readouterr().err
        assert "NORMALIZED ground truth: total1250" in err


class TestGroundTruthHelpers:
    """Test label and result file helpers"""

    def test_ground_truth_text(self):
        labels = {"a.png": [{"text": "ab"}, {"points": []}, {"text": "cd"}]}
        assert ground_truth_text(labels, "a.png") == "abcd"
        assert ground_truth_text(labels, "b.png") is None

    def test_result_json_path(self, tmp_path):
        assert result_json_path(tmp_path, "scan.v2.jpg") == tmp_path / "scan.v2_res.json"

    def test_transcript_entry(self):
        assert ground_truth_text({"a.png": "hello world"}, "a.png") == "hello world"

    def test_wrongly_typed_entries(self):
        for entry in [{"text": "ab"}, 12, [{"text": 12}], [{"text": None}]]:
            with pytest.raises(ValueError, match="a.png"):
                ground_truth_text({"a.png": entry}, "a.png")
