"""Tests for the in-memory row source."""

from pathlib import Path

import pytest
from src.manifest_kg.engine.errors import SourceReadError
from src.manifest_kg.sources.memory import MemoryRowSource


def test_memory_source_serves_registered_tables() -> None:
    source = MemoryRowSource({"data/orders.csv": [[" Order ", "Qty"], ["1", "2"]]})

    table = source.read(Path("./data") / "orders.csv")

    assert table.header == ["Order", "Qty"]
    assert [row.fields for row in table] == [{"Order": "1", "Qty": "2"}]


def test_memory_source_copies_rows() -> None:
    rows = [["Order"], ["1"]]
    source = MemoryRowSource({"orders.csv": rows})

    rows.append(["2"])

    assert len(source.read("orders.csv")) == 1


def test_memory_source_unknown_path() -> None:
    with pytest.raises(SourceReadError, match="No table registered"):
        MemoryRowSource().read("orders.csv")


def test_memory_source_rejects_misaligned_rows() -> None:
    source = MemoryRowSource({"orders.csv": [["Order", "Qty"], ["1", "2"], ["3"]]})

    with pytest.raises(SourceReadError) as exc_info:
        source.read("orders.csv")

    assert exc_info.value.row_index == 1
