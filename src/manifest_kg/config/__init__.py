"""Configuration management for the manifest-kg pipeline."""

from .config import config_for_manifest, load_config
from .schemas import LoggingConfig, OutputConfig, PipelineConfig, ProcessingConfig

__all__ = [
    "LoggingConfig",
    "OutputConfig",
    "PipelineConfig",
    "ProcessingConfig",
    "config_for_manifest",
    "load_config",
]
