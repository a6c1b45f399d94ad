"""CSV row source reading local files with pandas."""

from pathlib import Path

import pandas as pd

from ..engine.errors import SourceReadError
from .base import RowSource, RowTable


class CSVFileSource(RowSource):
    """Row source for CSV files on the local filesystem.

    Every cell is read as text. The first line is the header; duplicate
    header names are preserved, which repeated pivot groups rely on.
    """

    def __init__(
        self,
        name: str = "csv",
        encoding: str = "utf-8-sig",
        delimiter: str = ",",
        partial_success: bool = False,
    ):
        super().__init__(name)
        self.encoding = encoding
        self.delimiter = delimiter
        self.partial_success = partial_success

    def read(self, path: str | Path) -> RowTable:
        """Read a CSV file.

        Args:
            path: Path of the CSV file

        Returns:
            RowTable with the header and every data row. With
            ``partial_success`` enabled, malformed rows are skipped and
            counted in ``skipped_rows`` instead of failing the read.
        """
        path = Path(path)

        if not path.exists():
            raise SourceReadError(f"File not found: {path}")

        self.logger.info(f"Reading CSV file: {path}")

        bad_lines: list[list[str]] = []

        def _skip_bad_line(line: list[str]) -> None:
            bad_lines.append(line)
            return None

        try:
            frame = pd.read_csv(
                path,
                header=None,
                dtype=str,
                sep=self.delimiter,
                encoding=self.encoding,
                keep_default_na=False,
                na_filter=False,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=_skip_bad_line if self.partial_success else "error",
            )
        except pd.errors.EmptyDataError as e:
            raise SourceReadError(f"CSV file is empty: {path}") from e
        except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
            raise SourceReadError(f"Failed to parse CSV file {path}: {e}") from e

        records = frame.values.tolist()
        if not records:
            raise SourceReadError(f"CSV file has no header: {path}")

        header = [str(column).strip() for column in records[0]]
        rows: list[list[str]] = []
        skipped = len(bad_lines)

        for index, record in enumerate(records[1:]):
            # pandas pads short rows with missing values
            if any(not isinstance(value, str) for value in record):
                if not self.partial_success:
                    raise SourceReadError(
                        f"Row has fewer fields than the header "
                        f"({sum(isinstance(v, str) for v in record)} of {len(header)})",
                        row_index=index,
                    )
                skipped += 1
                continue
            rows.append(list(record))

        if skipped:
            self.logger.warning(f"Skipped {skipped} malformed rows in {path}")

        self.logger.info(f"Read {len(rows)} rows from {path}")
        return RowTable(path=str(path), header=header, rows=rows, skipped_rows=skipped)
