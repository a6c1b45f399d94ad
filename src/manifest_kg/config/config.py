"""Pipeline configuration loading."""

import json
import logging
from pathlib import Path
from typing import Any

from dacite import Config, DaciteError, from_dict
import yaml

from .schemas import PipelineConfig

logger = logging.getLogger(__name__)

_READERS = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def _read_config_data(config_path: Path) -> dict[str, Any]:
    reader = _READERS.get(config_path.suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    with open(config_path, encoding="utf-8") as f:
        return reader(f) or {}


def _resolve_paths(config: PipelineConfig, base: Path) -> PipelineConfig:
    # Manifest and data root in a config file are relative to the file itself
    config.manifest_path = base / config.manifest_path
    if config.data_root is not None:
        config.data_root = base / config.data_root
    return config


def load_config(config_path: str | Path) -> PipelineConfig:
    """
    Load a pipeline configuration from a YAML or JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        PipelineConfig: Parsed configuration with file-relative paths resolved

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the content does not match
            the configuration schema
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    data = _read_config_data(config_path)
    try:
        config = from_dict(
            data_class=PipelineConfig, data=data, config=Config(strict=True)
        )
    except DaciteError as e:
        raise ValueError(f"Failed to parse configuration: {e}") from e

    logger.debug(f"Loaded configuration from {config_path}")
    return _resolve_paths(config, config_path.parent)


def config_for_manifest(manifest_path: str | Path) -> PipelineConfig:
    """Default configuration for running a manifest directly."""
    return PipelineConfig(manifest_path=Path(manifest_path))
