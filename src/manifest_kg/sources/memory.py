"""In-memory row source."""

from pathlib import Path, PurePosixPath

from ..engine.errors import SourceReadError
from .base import RowSource, RowTable


class MemoryRowSource(RowSource):
    """Row source serving tables registered in memory, keyed by path."""

    def __init__(
        self,
        tables: dict[str, list[list[str]]] | None = None,
        name: str = "memory",
    ):
        """Initialize the source.

        Args:
            tables: Mapping of path to rows, the first row being the header
            name: Name of the source
        """
        super().__init__(name)
        self.tables: dict[str, list[list[str]]] = {}
        for path, rows in (tables or {}).items():
            self.add(path, rows)

    @staticmethod
    def _key(path: str | Path) -> str:
        return str(PurePosixPath(Path(path).as_posix()))

    def add(self, path: str | Path, rows: list[list[str]]) -> None:
        self.tables[self._key(path)] = [list(row) for row in rows]

    def read(self, path: str | Path) -> RowTable:
        key = self._key(path)
        rows = self.tables.get(key)
        if rows is None:
            raise SourceReadError(f"No table registered for path: {key}")
        if not rows:
            raise SourceReadError(f"Table has no header: {key}")

        header = [column.strip() for column in rows[0]]
        for index, row in enumerate(rows[1:]):
            if len(row) != len(header):
                raise SourceReadError(
                    f"Row has {len(row)} fields, header has {len(header)}",
                    row_index=index,
                )

        self.logger.debug(f"Serving {len(rows) - 1} rows for {key}")
        return RowTable(path=key, header=header, rows=[list(r) for r in rows[1:]])
