"""Configuration file support for vcf-extractor."""

import logging
import tomllib
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class AssayMode(str, Enum):
    """Assay type the VCF was produced from."""

    STANDARD = "standard"
    HIGH_SENSITIVITY = "high-sensitivity"

    @property
    def vaf_decimals(self) -> int:
        return 4 if self is AssayMode.HIGH_SENSITIVITY else 2


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
MAX_FUZZY_DIGITS = 3


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class ExtractorConfig:
    """Options consumed by the extraction pipeline."""

    drop_ref: bool = False
    drop_nocall: bool = False
    include_annotations: bool = False
    assay_mode: AssayMode = AssayMode.STANDARD
    only_annotated: bool = False
    only_hotspot: bool = False
    fuzzy_digits: int = 0
    coverage_cutoff: int = 450
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.assay_mode = AssayMode(self.assay_mode)
        if self.only_annotated and not self.include_annotations:
            logger.info(
                "Oncomine annotation filter requested without annotations; "
                "enabling annotation output"
            )
            self.include_annotations = True

    @property
    def high_sensitivity(self) -> bool:
        return self.assay_mode is AssayMode.HIGH_SENSITIVITY


def _check_bool(config_dict: dict[str, Any], key: str) -> None:
    if key in config_dict and not isinstance(config_dict[key], bool):
        raise ConfigValidationError(
            f"{key} must be a boolean, got {type(config_dict[key]).__name__}"
        )


def validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Raises:
        ConfigValidationError: If any configuration value is invalid.
    """
    for key in ("drop_ref", "drop_nocall", "include_annotations", "only_annotated", "only_hotspot"):
        _check_bool(config_dict, key)

    if "assay_mode" in config_dict:
        assay_mode = config_dict["assay_mode"]
        valid_modes = {mode.value for mode in AssayMode}
        if assay_mode not in valid_modes:
            raise ConfigValidationError(
                f"assay_mode must be one of {sorted(valid_modes)}, got '{assay_mode}'"
            )

    if "fuzzy_digits" in config_dict:
        fuzzy_digits = config_dict["fuzzy_digits"]
        if not isinstance(fuzzy_digits, int) or isinstance(fuzzy_digits, bool):
            raise ConfigValidationError(
                f"fuzzy_digits must be an integer, got {type(fuzzy_digits).__name__}"
            )
        if not 0 <= fuzzy_digits <= MAX_FUZZY_DIGITS:
            raise ConfigValidationError(
                f"Can not trim more than {MAX_FUZZY_DIGITS} digits from the query string, "
                f"got {fuzzy_digits}"
            )

    if "coverage_cutoff" in config_dict:
        cutoff = config_dict["coverage_cutoff"]
        if not isinstance(cutoff, int) or isinstance(cutoff, bool):
            raise ConfigValidationError(
                f"coverage_cutoff must be an integer, got {type(cutoff).__name__}"
            )
        if cutoff < 0:
            raise ConfigValidationError(f"coverage_cutoff must not be negative, got {cutoff}")

    if "log_level" in config_dict:
        log_level = config_dict["log_level"]
        if not isinstance(log_level, str):
            raise ConfigValidationError(
                f"log_level must be a string, got {type(log_level).__name__}"
            )
        if log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got '{log_level}'"
            )


def validate_options(config: ExtractorConfig, gene_filter: bool = False) -> None:
    """Check option combinations before any row is processed.

    Raises:
        ConfigValidationError: If the options conflict.
    """
    if gene_filter and not config.include_annotations:
        raise ConfigValidationError(
            "Can not use the gene filter without annotations enabled"
        )

    if config.only_annotated and config.high_sensitivity:
        raise ConfigValidationError(
            "Can not combine the high-sensitivity assay mode with the Oncomine "
            "annotation filter; Oncomine annotation is not available for that assay"
        )


def load_config(config_path: Path, overrides: dict[str, Any] | None = None) -> ExtractorConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML configuration file.
        overrides: Optional dict of values to override loaded config.

    Returns:
        ExtractorConfig instance with loaded values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigValidationError: If any configuration value is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        toml_data = tomllib.load(f)

    config_dict = toml_data.get("vcf_extractor", {})

    if overrides:
        config_dict.update(overrides)

    validate_config(config_dict)

    valid_fields = {f.name for f in fields(ExtractorConfig)}
    unknown = set(config_dict) - valid_fields
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(unknown)))

    filtered_config = {k: v for k, v in config_dict.items() if k in valid_fields}

    return ExtractorConfig(**filtered_config)
