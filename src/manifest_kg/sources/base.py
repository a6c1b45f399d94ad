"""Base row source class for reading tabular step inputs."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cached_property
import logging
from pathlib import Path


@dataclass
class SourceRow:
    """One data row of a table, aligned with the table header.

    ``index`` is the zero-based position of the row among the data rows.
    Header names may repeat; ``fields`` keeps the first occurrence of each.
    """

    index: int
    header: list[str]
    values: list[str]

    @cached_property
    def fields(self) -> dict[str, str]:
        result: dict[str, str] = {}
        for column, value in zip(self.header, self.values):
            result.setdefault(column, value)
        return result

    def get(self, column: str, default: str = "") -> str:
        return self.fields.get(column, default)

    def occurrences(self, column: str) -> list[str]:
        """Values of every column with this name, in header order."""
        return [
            value for name, value in zip(self.header, self.values) if name == column
        ]


@dataclass
class RowTable:
    """Header plus data rows read from a single source."""

    path: str
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)
    skipped_rows: int = 0

    def __iter__(self):
        for index, values in enumerate(self.rows):
            yield SourceRow(index=index, header=self.header, values=values)

    def __len__(self) -> int:
        return len(self.rows)


class RowSource(ABC):
    """Abstract base class for row sources."""

    def __init__(self, name: str):
        """Initialize row source.

        Args:
            name: Name of the source, used for logging
        """
        self.name = name
        self.logger = logging.getLogger(f"source.{name}")

    @abstractmethod
    def read(self, path: str | Path) -> RowTable:
        """Read a table.

        Args:
            path: Location of the table, already resolved against the
                manifest root and the phase path

        Returns:
            RowTable with the header and every data row

        Raises:
            SourceReadError: If the table cannot be read or is malformed
        """
        pass
