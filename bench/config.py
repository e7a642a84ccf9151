"""Benchmark configuration

Defaults reproduce the stock PP-OCRv5 server setup: five model directories
under ``models/``, GPU inference, three timed runs per image, artifacts in
``./output`` and ground truth in ``images/labels.json``. A YAML file can
override any of them and command-line flags override the file.
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .discovery import IMAGE_EXTENSIONS
from .errors import ConfigError

ScorerKind = Literal["subprocess", "inprocess", "none"]


class EngineSettings(BaseModel):
    """Values handed to the OCR engine unchanged"""

    model_config = ConfigDict(extra="forbid")

    device: str = Field(default="gpu", description="Inference device, e.g. gpu, gpu:0, cpu")
    doc_orientation_classify_model_dir: Optional[str] = Field(
        default="models/PP-LCNet_x1_0_doc_ori_infer",
        description="Document orientation classifier",
    )
    doc_unwarping_model_dir: Optional[str] = Field(
        default="models/UVDoc_infer",
        description="Document rectification model",
    )
    textline_orientation_model_dir: Optional[str] = Field(
        default="models/PP-LCNet_x1_0_textline_ori_infer",
        description="Text line orientation classifier",
    )
    text_detection_model_dir: Optional[str] = Field(
        default="models/PP-OCRv5_server_det_infer",
        description="Text detection model",
    )
    text_recognition_model_dir: Optional[str] = Field(
        default="models/PP-OCRv5_server_rec_infer",
        description="Text recognition model",
    )
    use_doc_orientation_classify: Optional[bool] = None
    use_doc_unwarping: Optional[bool] = None
    use_textline_orientation: Optional[bool] = None


class ScorerSettings(BaseModel):
    """How accuracy is computed for each image"""

    model_config = ConfigDict(extra="forbid")

    kind: ScorerKind = Field(default="subprocess", description="subprocess, inprocess or none")
    command: Optional[List[str]] = Field(
        default=None,
        description="Command prefix for the scorer process (default: python -m eval.calculate_acc)",
    )
    timeout_s: Optional[float] = Field(default=None, gt=0, description="Scorer process timeout")


class DiscoverySettings(BaseModel):
    """Image discovery filters"""

    model_config = ConfigDict(extra="forbid")

    extensions: List[str] = Field(default_factory=lambda: list(IMAGE_EXTENSIONS))
    max_depth: Optional[int] = Field(default=None, ge=0, description="Directory recursion limit")

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        if not normalized:
            raise ValueError("at least one image extension is required")
        return normalized


class BenchmarkConfig(BaseModel):
    """Complete benchmark run configuration"""

    model_config = ConfigDict(extra="forbid")

    engine: EngineSettings = Field(default_factory=EngineSettings)
    scorer: ScorerSettings = Field(default_factory=ScorerSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    repetitions: int = Field(default=3, ge=1, description="Timed inference runs per image")
    output_dir: Path = Field(default=Path("output"), description="Engine artifact directory")
    ground_truth: Optional[Path] = Field(
        default=Path("images/labels.json"),
        description="Ground truth labels keyed by image file name",
    )
    report_path: Optional[Path] = Field(default=None, description="Optional JSON report")
    progress: bool = Field(default=True, description="Show a progress bar on stderr")


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Read a YAML configuration file

    Args:
        config_path: Path to the YAML file

    Returns:
        Raw configuration mapping (empty for an empty file)
    """
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return data


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BenchmarkConfig:
    """
    Build the effective configuration

    Args:
        config_path: Optional YAML file
        overrides: Nested mapping of values that win over the file

    Returns:
        Validated configuration
    """
    data: Dict[str, Any] = {}
    if config_path is not None:
        data = read_config_file(config_path)
    if overrides:
        data = _deep_merge(data, overrides)

    try:
        return BenchmarkConfig.model_validate(data)
    except ValidationError as e:
        source = str(config_path) if config_path else "command line"
        raise ConfigError(f"Invalid configuration ({source}):\n{e}") from e
