"""Tests for vocabulary steps of the model phase."""

from typing import Any

import pytest
from rdflib.namespace import XSD
from src.manifest_kg.engine.errors import (
    ConfigurationError,
    ConflictError,
    SourceReadError,
)
from src.manifest_kg.engine.executor import ManifestExecutor, Phase
from src.manifest_kg.engine.state import Datatype
from src.manifest_kg.manifest import Manifest, parse_manifest
from src.manifest_kg.sources.memory import MemoryRowSource

TERMS = "http://example.org/terms/"


def _model(
    steps: list[Any], tables: dict[str, list[list[str]]], strict: bool = False
) -> ManifestExecutor:
    manifest = parse_manifest({"model": {"baseIRI": TERMS, "sequence": steps}})
    executor = ManifestExecutor(manifest, MemoryRowSource(tables), strict=strict)
    executor.run_phase(Phase.MODEL)
    return executor


class TestBasicVocabularyStep:
    def test_declares_classes_and_typed_properties(
        self, materials_manifest: Manifest, materials_source: MemoryRowSource
    ) -> None:
        executor = ManifestExecutor(materials_manifest, materials_source)
        executor.run_phase(Phase.MODEL)
        state = executor.state

        material = state.classes[f"{TERMS}Material"]
        assert material.label == "Material"
        assert material.comment == "A physical material"
        assert state.classes[f"{TERMS}BillOfMaterials"].label == "Bill Of Materials"

        density = state.properties[f"{TERMS}density"]
        assert density.datatype is Datatype.DECIMAL
        assert density.domain == [f"{TERMS}Material"]
        assert density.range == [str(XSD.decimal)]

        has_items = state.properties[f"{TERMS}hasItems"]
        assert has_items.datatype is Datatype.IRI
        assert has_items.target_class == f"{TERMS}BillOfMaterialsItem"
        assert has_items.range == [f"{TERMS}BillOfMaterialsItem"]

        assert state.identifiers[f"{TERMS}Material"] == f"{TERMS}materialNumber"
        assert state.identifier_property(f"{TERMS}DRAM").label == "Material Number"

    def test_class_range_implies_reference_type(self) -> None:
        executor = _model(
            ["vocabulary.csv"],
            {
                "vocabulary.csv": [
                    ["Class ID", "Property ID", "Class Range"],
                    ["Order", "customer", "Customer"],
                ]
            },
        )

        customer = executor.state.properties[f"{TERMS}customer"]
        assert customer.datatype is Datatype.IRI
        assert customer.target_class == f"{TERMS}Customer"

    def test_unknown_type_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            _model(
                ["vocabulary.csv"],
                {
                    "vocabulary.csv": [
                        ["Class ID", "Property ID", "Type"],
                        ["Product", "name", "string"],
                        ["Product", "color", "colour"],
                    ]
                },
            )

        error = exc_info.value
        assert error.step_path == "vocabulary.csv"
        assert error.column == "Type"
        assert error.row_index == 1

    def test_conflicting_label_keeps_earlier_state(self) -> None:
        manifest = parse_manifest(
            {
                "model": {
                    "baseIRI": TERMS,
                    "sequence": ["first.csv", "second.csv"],
                }
            }
        )
        source = MemoryRowSource(
            {
                "first.csv": [["Class ID", "Class Name"], ["Product", "Product"]],
                "second.csv": [["Class ID", "Class Name"], ["Product", "Article"]],
            }
        )
        executor = ManifestExecutor(manifest, source)

        with pytest.raises(ConflictError) as exc_info:
            executor.run_phase(Phase.MODEL)

        assert exc_info.value.step_path == "second.csv"
        assert executor.state.classes[f"{TERMS}Product"].label == "Product"

    def test_redeclaration_across_steps_merges(self) -> None:
        executor = _model(
            ["first.csv", "second.csv"],
            {
                "first.csv": [["Class ID", "Class Name"], ["Product", "Product"]],
                "second.csv": [
                    ["Class ID", "Class Description"],
                    ["Product", "Something for sale"],
                ],
            },
        )

        assert list(executor.state.classes) == [f"{TERMS}Product"]
        product = executor.state.classes[f"{TERMS}Product"]
        assert product.label == "Product"
        assert product.comment == "Something for sale"

    def test_unmatched_columns_become_attributes(self) -> None:
        executor = _model(
            ["vocabulary.csv"],
            {
                "vocabulary.csv": [
                    ["Class ID", "Property ID", "Notes"],
                    ["Material", "", "raw stuff"],
                    ["Material", "density", "per cubic centimetre"],
                ]
            },
        )

        state = executor.state
        assert state.classes[f"{TERMS}Material"].attributes == {
            f"{TERMS}notes": "raw stuff"
        }
        assert state.properties[f"{TERMS}density"].attributes == {
            f"{TERMS}notes": "per cubic centimetre"
        }

    def test_ignored_column_is_not_an_attribute(self) -> None:
        executor = _model(
            [{"path": "vocabulary.csv", "@type": "BasicVocabularyStep", "ignore": ["Notes"]}],
            {
                "vocabulary.csv": [
                    ["Class ID", "Property ID", "Notes"],
                    ["Material", "density", "per cubic centimetre"],
                ]
            },
        )

        assert executor.state.properties[f"{TERMS}density"].attributes == {}
        assert executor.state.classes[f"{TERMS}Material"].attributes == {}

    def test_missing_override_column_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            _model(
                [
                    {
                        "path": "vocabulary.csv",
                        "@type": "BasicVocabularyStep",
                        "overrides": [{"column": "Name", "mapTo": "$Class.ID"}],
                    }
                ],
                {"vocabulary.csv": [["Class ID"], ["Material"]]},
            )

        assert exc_info.value.column == "Name"
        assert exc_info.value.step_path == "vocabulary.csv"

    def test_missing_ignore_column_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            _model(
                [{"path": "vocabulary.csv", "@type": "BasicVocabularyStep", "ignore": ["Notes"]}],
                {"vocabulary.csv": [["Class ID"], ["Material"]]},
            )

        assert exc_info.value.column == "Notes"


class TestEmptyIdentifiers:
    TABLES = {
        "vocabulary.csv": [
            ["Class ID", "Class Name"],
            ["Material", "Material"],
            ["", "Nameless"],
        ]
    }

    def test_row_without_class_id_is_skipped(self) -> None:
        executor = _model(["vocabulary.csv"], self.TABLES)

        assert list(executor.state.classes) == [f"{TERMS}Material"]
        assert len(executor.warnings) == 1
        assert "Empty class identifier" in executor.warnings[0]

    def test_row_without_class_id_fails_in_strict_mode(self) -> None:
        with pytest.raises(SourceReadError) as exc_info:
            _model(["vocabulary.csv"], self.TABLES, strict=True)

        assert exc_info.value.column == "Class ID"
        assert exc_info.value.row_index == 1


class TestSubClassVocabularyStep:
    def test_every_row_declares_a_subclass(self) -> None:
        executor = _model(
            [
                "vocabulary.csv",
                {
                    "path": "kinds.csv",
                    "@type": ["CSVImportStep", "SubClassVocabularyStep"],
                    "subClassOf": "Material",
                    "extraItems": [
                        {
                            "column": "Origin",
                            "mapTo": "origin",
                            "onEntity": "CLASS",
                            "value": "synthetic",
                        }
                    ],
                },
            ],
            {
                "vocabulary.csv": [["Class ID"], ["Material"]],
                "kinds.csv": [
                    ["Class ID", "Class Name"],
                    ["Polymer", "Polymer"],
                    ["Ceramic", "Ceramic"],
                ],
            },
        )

        state = executor.state
        for name in ("Polymer", "Ceramic"):
            term = state.classes[f"{TERMS}{name}"]
            assert term.sub_class_of == [f"{TERMS}Material"]
            assert term.attributes == {f"{TERMS}origin": "synthetic"}
        assert state.ancestors(f"{TERMS}Polymer") == [f"{TERMS}Material"]

    def test_replaced_identity_column_must_be_present(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            _model(
                [
                    {
                        "path": "kinds.csv",
                        "@type": "SubClassVocabularyStep",
                        "subClassOf": ["Material"],
                        "replaceClassIdWith": "$Class.Name",
                    }
                ],
                {"kinds.csv": [["Class ID"], ["Polymer"]]},
            )

        assert exc_info.value.step_path == "kinds.csv"


class TestPropertiesVocabularyStep:
    def test_declares_properties_on_existing_classes(self) -> None:
        executor = _model(
            [
                "classes.csv",
                {
                    "path": "properties.csv",
                    "@type": ["CSVImportStep", "PropertiesVocabularyStep"],
                    "replacePropertyIdWith": "$Property.Name",
                },
            ],
            {
                "classes.csv": [["Class ID"], ["Material"]],
                "properties.csv": [
                    ["Class ID", "Property Name", "Abbreviation", "Type"],
                    ["Material", "melting point", "MP", "decimal"],
                ],
            },
        )

        state = executor.state
        assert list(state.classes) == [f"{TERMS}Material"]
        melting_point = state.properties[f"{TERMS}meltingPoint"]
        assert melting_point.label == "melting point"
        assert melting_point.domain == [f"{TERMS}Material"]
        assert melting_point.datatype is Datatype.DECIMAL
        assert melting_point.attributes == {f"{TERMS}abbreviation": "MP"}

    def test_row_without_property_id_is_skipped(self) -> None:
        executor = _model(
            [{"path": "properties.csv", "@type": "PropertiesVocabularyStep"}],
            {
                "properties.csv": [
                    ["Class ID", "Property ID"],
                    ["Material", "density"],
                    ["Material", ""],
                ]
            },
        )

        assert list(executor.state.properties) == [f"{TERMS}density"]
        assert any("Empty property identifier" in w for w in executor.warnings)
