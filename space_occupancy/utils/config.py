"""Configuration management for space occupancy analytics.

Loads YAML configuration files for the record source, analysis
parameters, output location and logging.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from space_occupancy.utils.records import ColumnMapping

logger = logging.getLogger(__name__)


@dataclass
class InputConfig:
    """Configuration for the check-in log CSV."""

    path: str = "data/checkins.csv"
    columns: ColumnMapping = field(default_factory=ColumnMapping)


@dataclass
class AnalysisConfig:
    """Configuration for the supplementary analyses."""

    time_analysis_months: int = 3
    user_stats_months: int = 6


@dataclass
class OutputConfig:
    """Configuration for report output."""

    directory: str = "docs"


@dataclass
class LoggingConfig:
    """Configuration for application logging."""

    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""

    input: InputConfig = field(default_factory=InputConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build(cls, section: str, raw: Optional[dict]):
    """Instantiate a config dataclass, rejecting unknown keys."""
    raw = raw or {}
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(
            f"Unknown keys in '{section}' section: {', '.join(sorted(unknown))}"
        )
    return cls(**raw)


def load_config(config_path: str) -> AppConfig:
    """Load application configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Populated AppConfig instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If a section contains unknown keys.
        yaml.YAMLError: If the file contains invalid YAML.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if raw is None:
        logger.warning("Empty config file, using defaults")
        return AppConfig()

    input_raw = dict(raw.get("input") or {})
    columns = _build(ColumnMapping, "input.columns", input_raw.pop("columns", None))
    if isinstance(columns.customer, str):
        columns.customer = [columns.customer]

    input_config = _build(InputConfig, "input", input_raw)
    input_config.columns = columns

    config = AppConfig(
        input=input_config,
        analysis=_build(AnalysisConfig, "analysis", raw.get("analysis")),
        output=_build(OutputConfig, "output", raw.get("output")),
        logging=_build(LoggingConfig, "logging", raw.get("logging")),
    )

    logger.info("Configuration loaded from %s", config_path)
    return config
