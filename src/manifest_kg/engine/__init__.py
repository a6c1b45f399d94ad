"""Manifest execution engine: vocabulary, instance and pivot builders."""

from .errors import (
    ConfigurationError,
    ConflictError,
    ManifestKGError,
    ResolutionError,
    RunCancelledError,
    SourceReadError,
)
from .executor import ManifestExecutor, Phase
from .state import BuildState, ClassTerm, Datatype, Entity, PropertyTerm, Relationship

__all__ = [
    "BuildState",
    "ClassTerm",
    "ConfigurationError",
    "ConflictError",
    "Datatype",
    "Entity",
    "ManifestExecutor",
    "ManifestKGError",
    "Phase",
    "PropertyTerm",
    "Relationship",
    "ResolutionError",
    "RunCancelledError",
    "SourceReadError",
]
