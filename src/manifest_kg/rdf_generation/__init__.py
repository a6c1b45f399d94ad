"""RDF generation module for converting a build state to RDF."""

from .base import GraphSink
from .generator import RDFGenerator

__all__ = [
    "GraphSink",
    "RDFGenerator",
]
