"""Row sources for reading the tables a manifest step points at."""

from .base import RowSource, RowTable, SourceRow
from .file import CSVFileSource
from .memory import MemoryRowSource

__all__ = [
    "CSVFileSource",
    "MemoryRowSource",
    "RowSource",
    "RowTable",
    "SourceRow",
]
