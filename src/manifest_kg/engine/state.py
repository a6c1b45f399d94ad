"""Build state shared by all steps of a manifest run."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
import threading
from typing import NamedTuple

from rdflib import Literal, URIRef
from rdflib.namespace import XSD

from .errors import ConfigurationError, ConflictError

Value = Literal | URIRef


class Datatype(str, Enum):
    """Value type of a property, as declared by the vocabulary ``Type`` column."""

    IDENTIFIER = "identifier"
    IRI = "iri"
    PICKLIST = "picklist"
    STRING = "string"
    DECIMAL = "decimal"
    INTEGER = "integer"
    DATE = "date"
    BOOLEAN = "boolean"

    @classmethod
    def parse(cls, raw: str | None) -> Datatype:
        """
        Parse a vocabulary ``Type`` cell.

        Args:
            raw: Cell value, matched case-insensitively

        Returns:
            Datatype: The matching datatype (STRING for empty cells)

        Raises:
            ConfigurationError: If the value names no known datatype
        """
        key = (raw or "").strip().lower()
        datatype = _DATATYPE_ALIASES.get(key)
        if datatype is None:
            raise ConfigurationError(f"Unknown property type '{raw}'")
        return datatype

    @property
    def xsd_type(self) -> URIRef | None:
        """XSD datatype used for literal values, None for IRI-valued types."""
        return _XSD_TYPES.get(self)

    @property
    def is_reference(self) -> bool:
        return self in (Datatype.IRI, Datatype.PICKLIST)


_DATATYPE_ALIASES: dict[str, Datatype] = {
    "@id": Datatype.IDENTIFIER,
    "primary key identifier": Datatype.IDENTIFIER,
    "uri": Datatype.IRI,
    "iri": Datatype.IRI,
    "foreign key reference": Datatype.IRI,
    "picklist": Datatype.PICKLIST,
    "": Datatype.STRING,
    "string": Datatype.STRING,
    "text": Datatype.STRING,
    "float": Datatype.DECIMAL,
    "decimal": Datatype.DECIMAL,
    "integer": Datatype.INTEGER,
    "int": Datatype.INTEGER,
    "date": Datatype.DATE,
    "date/time": Datatype.DATE,
    "boolean": Datatype.BOOLEAN,
    "bool": Datatype.BOOLEAN,
}

_XSD_TYPES: dict[Datatype, URIRef] = {
    Datatype.IDENTIFIER: XSD.string,
    Datatype.STRING: XSD.string,
    Datatype.DECIMAL: XSD.decimal,
    Datatype.INTEGER: XSD.integer,
    Datatype.DATE: XSD.date,
    Datatype.BOOLEAN: XSD.boolean,
}


def _merge_scalar(
    kind: str, iri: str, name: str, current: str | None, incoming: str | None
) -> str | None:
    """Merge two optional values; both set and different is a conflict."""
    if not incoming:
        return current
    if not current:
        return incoming
    if current != incoming:
        raise ConflictError(
            f"{kind} <{iri}> re-declared with a different {name}: "
            f"'{current}' vs '{incoming}'"
        )
    return current


def _merge_attributes(
    kind: str, iri: str, current: dict[str, str], incoming: dict[str, str]
) -> None:
    for key, value in incoming.items():
        current[key] = _merge_scalar(
            kind, iri, f"value for <{key}>", current.get(key), value
        ) or ""


def _union(current: list[str], incoming: list[str]) -> None:
    for item in incoming:
        if item not in current:
            current.append(item)


@dataclass
class ClassTerm:
    """A class of the vocabulary."""

    iri: str
    label: str
    source_id: str = ""
    comment: str | None = None
    sub_class_of: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    one_of: list[str] = field(default_factory=list)

    def merge(self, other: ClassTerm) -> None:
        """Merge a re-declaration of the same class into this one."""
        self.label = (
            _merge_scalar("Class", self.iri, "label", self.label, other.label) or ""
        )
        self.comment = _merge_scalar(
            "Class", self.iri, "description", self.comment, other.comment
        )
        if not self.source_id:
            self.source_id = other.source_id
        _union(self.sub_class_of, other.sub_class_of)
        _merge_attributes("Class", self.iri, self.attributes, other.attributes)
        _union(self.one_of, other.one_of)


@dataclass
class PropertyTerm:
    """A property of the vocabulary."""

    iri: str
    label: str
    source_id: str = ""
    comment: str | None = None
    datatype: Datatype | None = None
    domain: list[str] = field(default_factory=list)
    range: list[str] = field(default_factory=list)
    target_class: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def effective_datatype(self) -> Datatype:
        return self.datatype or Datatype.STRING

    def merge(self, other: PropertyTerm) -> None:
        """Merge a re-declaration of the same property into this one."""
        self.label = (
            _merge_scalar("Property", self.iri, "label", self.label, other.label) or ""
        )
        self.comment = _merge_scalar(
            "Property", self.iri, "description", self.comment, other.comment
        )
        if not self.source_id:
            self.source_id = other.source_id
        if other.datatype is not None:
            if self.datatype is not None and self.datatype is not other.datatype:
                raise ConflictError(
                    f"Property <{self.iri}> re-declared with a different type: "
                    f"'{self.datatype.value}' vs '{other.datatype.value}'"
                )
            self.datatype = other.datatype
        self.target_class = _merge_scalar(
            "Property", self.iri, "target class", self.target_class, other.target_class
        )
        _union(self.domain, other.domain)
        _union(self.range, other.range)
        _merge_attributes("Property", self.iri, self.attributes, other.attributes)


@dataclass
class Entity:
    """An instance of one or more classes."""

    iri: str
    types: list[str] = field(default_factory=list)
    values: dict[str, list[Value]] = field(default_factory=dict)
    label: str | None = None

    def add_value(self, property_iri: str, value: Value) -> None:
        existing = self.values.setdefault(property_iri, [])
        if value not in existing:
            existing.append(value)

    def merge(self, other: Entity) -> None:
        """Merge another record of the same entity: types and values are unioned."""
        _union(self.types, other.types)
        for property_iri, values in other.values.items():
            for value in values:
                self.add_value(property_iri, value)
        if not self.label:
            self.label = other.label


class Relationship(NamedTuple):
    """A directed, property-labelled edge between two entities."""

    subject: str
    predicate: str
    object: str


class BuildState:
    """Classes, properties and entities accumulated over a manifest run.

    Steps never mutate the committed state directly: the executor hands each
    step a working copy and replaces the committed state once the step has
    completed. Merges are serialized through a re-entrant lock.
    """

    def __init__(self) -> None:
        self.classes: dict[str, ClassTerm] = {}
        self.properties: dict[str, PropertyTerm] = {}
        self.entities: dict[str, Entity] = {}
        # class IRI -> IRI of the property holding its identity column
        self.identifiers: dict[str, str] = {}
        self._lock = threading.RLock()

    def add_class(self, term: ClassTerm) -> ClassTerm:
        with self._lock:
            existing = self.classes.get(term.iri)
            if existing is None:
                self.classes[term.iri] = term
                return term
            existing.merge(term)
            return existing

    def add_property(self, term: PropertyTerm) -> PropertyTerm:
        with self._lock:
            existing = self.properties.get(term.iri)
            if existing is None:
                self.properties[term.iri] = term
                existing = term
            else:
                existing.merge(term)

            if existing.datatype is Datatype.IDENTIFIER:
                for class_iri in existing.domain:
                    self.set_identifier(class_iri, existing.iri)
            return existing

    def add_entity(self, entity: Entity) -> Entity:
        with self._lock:
            existing = self.entities.get(entity.iri)
            if existing is None:
                self.entities[entity.iri] = entity
                return entity
            existing.merge(entity)
            return existing

    def set_identifier(self, class_iri: str, property_iri: str) -> None:
        current = self.identifiers.get(class_iri)
        if current is not None and current != property_iri:
            raise ConflictError(
                f"Class <{class_iri}> already has identifier property <{current}>, "
                f"cannot also use <{property_iri}>"
            )
        self.identifiers[class_iri] = property_iri

    def all_properties(self) -> list[PropertyTerm]:
        return list(self.properties.values())

    def ancestors(self, class_iri: str) -> list[str]:
        """Transitive superclasses of a class, nearest first."""
        result: list[str] = []
        term = self.classes.get(class_iri)
        pending = list(term.sub_class_of) if term else []
        while pending:
            parent = pending.pop(0)
            if parent in result or parent == class_iri:
                continue
            result.append(parent)
            if parent in self.classes:
                pending.extend(self.classes[parent].sub_class_of)
        return result

    def identifier_property(self, class_iri: str) -> PropertyTerm | None:
        """Identifier property of a class, inherited from superclasses if needed."""
        for candidate in [class_iri, *self.ancestors(class_iri)]:
            property_iri = self.identifiers.get(candidate)
            if property_iri is not None:
                return self.properties.get(property_iri)
        return None

    def relationships(self) -> list[Relationship]:
        """Entity-to-entity edges, i.e. entity values that are IRIs."""
        return [
            Relationship(entity.iri, property_iri, str(value))
            for entity in self.entities.values()
            for property_iri, values in entity.values.items()
            for value in values
            if isinstance(value, URIRef)
        ]

    def merge(self, other: BuildState) -> None:
        """Merge another state (usually a step delta) into this one."""
        with self._lock:
            for term in other.classes.values():
                self.add_class(term)
            for prop in other.properties.values():
                self.add_property(prop)
            for class_iri, property_iri in other.identifiers.items():
                self.set_identifier(class_iri, property_iri)
            for entity in other.entities.values():
                self.add_entity(entity)

    def copy(self) -> BuildState:
        """Deep copy used as the working state of a step."""
        with self._lock:
            clone = BuildState()
            clone.classes = copy.deepcopy(self.classes)
            clone.properties = copy.deepcopy(self.properties)
            clone.entities = copy.deepcopy(self.entities)
            clone.identifiers = dict(self.identifiers)
            return clone

    def replace_with(self, other: BuildState) -> None:
        """Adopt the contents of another state (commit of a working copy)."""
        with self._lock:
            self.classes = other.classes
            self.properties = other.properties
            self.entities = other.entities
            self.identifiers = other.identifiers

    def __len__(self) -> int:
        return len(self.classes) + len(self.properties) + len(self.entities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BuildState):
            return NotImplemented
        return (
            self.classes == other.classes
            and self.properties == other.properties
            and self.entities == other.entities
            and self.identifiers == other.identifiers
        )

    __hash__ = None  # type: ignore[assignment]
