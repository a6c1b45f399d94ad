"""Configuration schemas for the manifest-kg pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal


@dataclass
class ProcessingConfig:
    """Configuration for manifest execution."""

    strict: bool = False
    partial_success: bool = False
    workers: int = 1
    chunk_size: int = 1000

    # CSV reader parameters
    encoding: str = "utf-8-sig"
    delimiter: str = ","


@dataclass
class OutputConfig:
    """Configuration for RDF output.

    Paths accept the ``{DATE}`` and ``{MANIFEST}`` placeholders. Unset paths
    default to ``output/{MANIFEST}-<graph>.<ext>`` with the extension of
    ``format``.
    """

    format: Literal[
        "turtle", "ttl", "nt", "n3", "xml", "pretty-xml", "json-ld", "trig", "nquads"
    ] = "turtle"
    vocabulary_path: str | Path | None = None
    instances_path: str | Path | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: str | Path | None = None
    max_file_size: str = "10MB"
    backup_count: int = 5


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""

    manifest_path: str | Path
    data_root: str | Path | None = None
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
