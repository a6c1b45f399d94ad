"""Utility functions and classes."""

from .logging import setup_logging
from .naming import content_hash, entity_iri, to_camel_case, to_pascal_case

__all__ = [
    "content_hash",
    "entity_iri",
    "setup_logging",
    "to_camel_case",
    "to_pascal_case",
]
