"""Configuration management for the registration-certificate OCR core.

Loads and validates YAML configuration with the tuned defaults for box
decoding, line grouping, text assembly, correction and field extraction.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class DetectionConfig(BaseModel):
    """Configuration for turning a probability map into text boxes."""

    default_threshold: float = 0.30
    id_card_threshold: float = 0.33
    business_registration_threshold: float = 0.35
    dilation_kernel: tuple[int, int] = (6, 1)
    min_component_area: float = 100.0
    min_box_side: float = 1.0
    unclip_width_ratio: float = 1.5
    unclip_height_ratio: float = 1.4
    limit_side: int = 1280
    stride: int = 32


class RecognitionConfig(BaseModel):
    """Configuration for per-region recognition."""

    dictionary_path: str = "models/korean_dict.txt"
    max_workers: int = 2
    input_height: int = 48


class AssemblyConfig(BaseModel):
    """Geometric thresholds for line grouping and text assembly.

    Gap ratios are multiples of the previous kept box height.
    """

    line_tolerance: float = 0.15
    keyword_gap_ratio: float = 0.2
    newline_gap_ratio: float = 0.4
    space_gap_ratio: float = 0.15
    min_span_confidence: float = 0.5


class CorrectionConfig(BaseModel):
    """Acceptance thresholds for the local text-correction passes."""

    enabled: bool = True
    change_ratio_cap: float = 0.3
    bigram_low_frequency: float = 0.1
    bigram_margin: float = 0.3
    trigram_min_frequency: float = 0.5
    trigram_min_similarity: float = 0.6
    keyword_max_distance: int = 2


class ExtractionConfig(BaseModel):
    """Edit-distance budgets for the two-pass field matcher."""

    strict_distance: int = 1
    permissive_distance: int = 2
    region_max_distance: int = 2
    key_chars_per_edit: int = Field(default=2, ge=1)


class ValidationConfig(BaseModel):
    """Configuration for the field validation rules engine."""

    rules_path: str = "configs/validation_rules.yaml"


class ServerConfig(BaseModel):
    """Bind address for the HTTP API server."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    assembly: AssemblyConfig = Field(default_factory=AssemblyConfig)
    correction: CorrectionConfig = Field(default_factory=CorrectionConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
