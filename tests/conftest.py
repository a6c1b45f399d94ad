"""Shared test fixtures for the Manifest KG Pipeline tests."""

import logging
from pathlib import Path
from typing import Any

import pytest
from src.manifest_kg.manifest import Manifest, parse_manifest
from src.manifest_kg.sources.memory import MemoryRowSource

MODEL_BASE = "http://example.org/terms/"
DATA_BASE = "http://example.org/data/"

VOCABULARY_HEADER = [
    "Class ID",
    "Class Name",
    "Class Description",
    "Property ID",
    "Property Name",
    "Property Description",
    "Type",
    "Class Range",
]


@pytest.fixture
def materials_tables() -> dict[str, list[list[str]]]:
    """Source tables of a small bill-of-materials model."""
    return {
        "model/vocabulary.csv": [
            VOCABULARY_HEADER,
            ["Material", "Material", "A physical material", "materialNumber", "Material Number", "Catalogue number", "@id", ""],
            ["Material", "Material", "", "density", "Density", "", "decimal", ""],
            ["Material", "Material", "", "supplier", "Supplier", "", "string", ""],
            ["BillOfMaterials", "Bill Of Materials", "", "bomId", "BOM ID", "", "@id", ""],
            ["BillOfMaterials", "Bill Of Materials", "", "hasItems", "has Items", "", "uri", "BillOfMaterialsItem"],
            ["BillOfMaterialsItem", "Bill Of Materials Item", "", "quantity", "quantity", "", "integer", ""],
            ["BillOfMaterialsItem", "Bill Of Materials Item", "", "hasMaterial", "has Material", "", "uri", "Material"],
        ],
        "model/MaterialClass.csv": [
            ["Category", "Class Name"],
            ["Memory", "DRAM"],
            ["Storage", "SSD"],
        ],
        "data/Material.csv": [
            ["Material Number", "has Material Class", "Density"],
            ["M1", "DRAM", "1.5"],
            ["M2", "SSD", "2.25"],
        ],
        "data/BillOfMaterials.csv": [
            ["BOM ID", "quantity", "has Material"],
            ["B1", "2", "M1"],
            ["B2", "5", "M2"],
        ],
    }


@pytest.fixture
def materials_manifest_data() -> dict[str, Any]:
    """Manifest document for the bill-of-materials tables."""
    return {
        "@type": "CSVImportManifest",
        "@id": "materials",
        "name": "Materials",
        "model": {
            "baseIRI": MODEL_BASE,
            "path": "model/",
            "sequence": [
                {
                    "path": "vocabulary.csv",
                    "@type": ["CSVImportStep", "BasicVocabularyStep"],
                },
                {
                    "path": "MaterialClass.csv",
                    "@type": ["CSVImportStep", "SubClassVocabularyStep"],
                    "subClassOf": [f"{MODEL_BASE}Material"],
                    "replaceClassIdWith": "$Class.Name",
                    "extraItems": [
                        {"column": "Category", "mapTo": "category", "onEntity": "CLASS"}
                    ],
                },
            ],
        },
        "instances": {
            "baseIRI": DATA_BASE,
            "path": "data/",
            "sequence": [
                {
                    "path": "Material.csv",
                    "@type": ["CSVImportStep", "SubClassInstanceStep"],
                    "instanceType": "Material",
                    "subClassProperty": "has Material Class",
                },
                {
                    "path": "BillOfMaterials.csv",
                    "@type": ["CSVImportStep", "BasicInstanceStep"],
                    "instanceType": "BillOfMaterials",
                    "pivotColumns": [
                        {
                            "instanceType": "BillOfMaterialsItem",
                            "newRelationshipProperty": "hasItems",
                            "columns": ["quantity", "has Material"],
                        }
                    ],
                },
            ],
        },
    }


@pytest.fixture
def materials_manifest(materials_manifest_data: dict[str, Any]) -> Manifest:
    return parse_manifest(materials_manifest_data)


@pytest.fixture
def materials_source(materials_tables: dict[str, list[list[str]]]) -> MemoryRowSource:
    return MemoryRowSource(materials_tables)


def _write_csv(path: Path, rows: list[list[str]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(",".join(row) for row in rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def write_csv():
    """Helper writing rows as a simple CSV file (no quoting needed for test data)."""
    return _write_csv


@pytest.fixture
def materials_dir(
    tmp_path: Path, materials_tables: dict[str, list[list[str]]]
) -> Path:
    """The bill-of-materials tables written as CSV files under a temp directory."""
    for relative_path, rows in materials_tables.items():
        _write_csv(tmp_path / relative_path, rows)
    return tmp_path


@pytest.fixture
def restore_root_logger():
    """Undo the handler and level changes made by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
