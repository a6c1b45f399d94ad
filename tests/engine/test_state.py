"""Tests for the build state and its terms."""

import pytest
from rdflib import Literal, URIRef
from rdflib.namespace import XSD
from src.manifest_kg.engine.errors import ConfigurationError, ConflictError
from src.manifest_kg.engine.state import (
    BuildState,
    ClassTerm,
    Datatype,
    Entity,
    PropertyTerm,
    Relationship,
)

TERMS = "http://example.org/terms/"
DATA = "http://example.org/data/"


class TestDatatype:
    """Test parsing of vocabulary Type cells."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("@id", Datatype.IDENTIFIER),
            ("Primary Key Identifier", Datatype.IDENTIFIER),
            ("URI", Datatype.IRI),
            ("Foreign Key Reference", Datatype.IRI),
            ("picklist", Datatype.PICKLIST),
            ("", Datatype.STRING),
            ("Text", Datatype.STRING),
            ("float", Datatype.DECIMAL),
            ("int", Datatype.INTEGER),
            ("Date/Time", Datatype.DATE),
            ("bool", Datatype.BOOLEAN),
        ],
    )
    def test_parse_aliases(self, raw: str, expected: Datatype) -> None:
        assert Datatype.parse(raw) is expected

    def test_parse_unknown(self) -> None:
        """Test that an unknown type is a configuration error."""
        with pytest.raises(ConfigurationError, match="Unknown property type"):
            Datatype.parse("colour")

    def test_xsd_types(self) -> None:
        assert Datatype.DATE.xsd_type == XSD.date
        assert Datatype.IRI.xsd_type is None
        assert Datatype.PICKLIST.is_reference
        assert not Datatype.STRING.is_reference


class TestTermMerge:
    """Test merging of re-declared terms."""

    def test_class_merge_fills_missing_fields(self) -> None:
        term = ClassTerm(iri=f"{TERMS}Product", label="Product")
        term.merge(
            ClassTerm(
                iri=f"{TERMS}Product",
                label="Product",
                comment="Something for sale",
                sub_class_of=[f"{TERMS}Thing"],
                attributes={f"{TERMS}code": "P"},
            )
        )

        assert term.comment == "Something for sale"
        assert term.sub_class_of == [f"{TERMS}Thing"]
        assert term.attributes == {f"{TERMS}code": "P"}

    def test_class_merge_rejects_different_label(self) -> None:
        term = ClassTerm(iri=f"{TERMS}Product", label="Product")

        with pytest.raises(ConflictError, match="different label"):
            term.merge(ClassTerm(iri=f"{TERMS}Product", label="Article"))

    def test_class_merge_rejects_different_attribute(self) -> None:
        term = ClassTerm(
            iri=f"{TERMS}DRAM", label="DRAM", attributes={f"{TERMS}category": "Memory"}
        )

        with pytest.raises(ConflictError):
            term.merge(
                ClassTerm(
                    iri=f"{TERMS}DRAM",
                    label="DRAM",
                    attributes={f"{TERMS}category": "Storage"},
                )
            )

    def test_property_merge_rejects_different_datatype(self) -> None:
        term = PropertyTerm(
            iri=f"{TERMS}size", label="size", datatype=Datatype.INTEGER
        )

        with pytest.raises(ConflictError, match="different type"):
            term.merge(
                PropertyTerm(iri=f"{TERMS}size", label="size", datatype=Datatype.DATE)
            )

    def test_property_merge_unions_domains(self) -> None:
        term = PropertyTerm(iri=f"{TERMS}name", label="Name", domain=[f"{TERMS}A"])
        term.merge(
            PropertyTerm(
                iri=f"{TERMS}name",
                label="Name",
                domain=[f"{TERMS}B", f"{TERMS}A"],
                datatype=Datatype.STRING,
            )
        )

        assert term.domain == [f"{TERMS}A", f"{TERMS}B"]
        assert term.datatype is Datatype.STRING

    def test_entity_merge_deduplicates_values(self) -> None:
        entity = Entity(iri=f"{DATA}p/1", types=[f"{TERMS}Product"])
        entity.add_value(f"{TERMS}size", Literal(8))
        entity.add_value(f"{TERMS}size", Literal(8))

        other = Entity(iri=f"{DATA}p/1", types=[f"{TERMS}Product"], label="One")
        other.add_value(f"{TERMS}size", Literal(10))
        entity.merge(other)

        assert entity.values[f"{TERMS}size"] == [Literal(8), Literal(10)]
        assert entity.types == [f"{TERMS}Product"]
        assert entity.label == "One"


@pytest.fixture
def state() -> BuildState:
    state = BuildState()
    state.add_class(ClassTerm(iri=f"{TERMS}Material", label="Material"))
    state.add_class(
        ClassTerm(iri=f"{TERMS}Memory", label="Memory", sub_class_of=[f"{TERMS}Material"])
    )
    state.add_class(
        ClassTerm(iri=f"{TERMS}DRAM", label="DRAM", sub_class_of=[f"{TERMS}Memory"])
    )
    state.add_property(
        PropertyTerm(
            iri=f"{TERMS}materialNumber",
            label="Material Number",
            datatype=Datatype.IDENTIFIER,
            domain=[f"{TERMS}Material"],
        )
    )
    state.add_property(
        PropertyTerm(iri=f"{TERMS}latency", label="Latency", domain=[f"{TERMS}DRAM"])
    )
    return state


class TestBuildState:
    """Test the build state."""

    def test_ancestors_are_transitive(self, state: BuildState) -> None:
        assert state.ancestors(f"{TERMS}DRAM") == [f"{TERMS}Memory", f"{TERMS}Material"]
        assert state.ancestors(f"{TERMS}Material") == []

    def test_ancestors_tolerate_cycles(self, state: BuildState) -> None:
        state.classes[f"{TERMS}Material"].sub_class_of.append(f"{TERMS}DRAM")

        assert state.ancestors(f"{TERMS}DRAM") == [f"{TERMS}Memory", f"{TERMS}Material"]

    def test_identifier_property_is_registered_and_inherited(
        self, state: BuildState
    ) -> None:
        assert state.identifiers == {f"{TERMS}Material": f"{TERMS}materialNumber"}
        identifier = state.identifier_property(f"{TERMS}DRAM")
        assert identifier is not None
        assert identifier.iri == f"{TERMS}materialNumber"

    def test_second_identifier_property_conflicts(self, state: BuildState) -> None:
        with pytest.raises(ConflictError, match="identifier property"):
            state.add_property(
                PropertyTerm(
                    iri=f"{TERMS}serial",
                    label="Serial",
                    datatype=Datatype.IDENTIFIER,
                    domain=[f"{TERMS}Material"],
                )
            )

    def test_relationships_are_iri_values(self) -> None:
        state = BuildState()
        entity = Entity(iri=f"{DATA}order/1")
        entity.add_value(f"{TERMS}customer", URIRef(f"{DATA}customer/7"))
        entity.add_value(f"{TERMS}note", Literal("rush"))
        state.add_entity(entity)

        assert state.relationships() == [
            Relationship(f"{DATA}order/1", f"{TERMS}customer", f"{DATA}customer/7")
        ]

    def test_copy_is_independent(self, state: BuildState) -> None:
        clone = state.copy()
        clone.classes[f"{TERMS}DRAM"].attributes["x"] = "y"
        clone.add_class(ClassTerm(iri=f"{TERMS}SSD", label="SSD"))

        assert state.classes[f"{TERMS}DRAM"].attributes == {}
        assert f"{TERMS}SSD" not in state.classes
        assert clone != state

    def test_merge_of_equal_state_is_a_no_op(self, state: BuildState) -> None:
        snapshot = state.copy()
        state.merge(snapshot.copy())

        assert state == snapshot
        assert len(state) == 5
