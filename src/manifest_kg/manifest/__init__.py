"""Manifest model, loading and validation."""

from .loader import load_manifest, parse_manifest, validate_manifest
from .models import (
    ColumnOverride,
    ExtraItem,
    ImportSection,
    ImportStep,
    Manifest,
    OnEntity,
    PivotColumn,
    StepKind,
)
from .template import get_template

__all__ = [
    "ColumnOverride",
    "ExtraItem",
    "ImportSection",
    "ImportStep",
    "Manifest",
    "OnEntity",
    "PivotColumn",
    "StepKind",
    "get_template",
    "load_manifest",
    "parse_manifest",
    "validate_manifest",
]
