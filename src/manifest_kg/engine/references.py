"""Symbolic references and the identifier resolver.

Manifests refer to the parts of a declared term with ``$Entity.Field``
symbols such as ``$Class.ID`` or ``$Property.Name``. A symbol is parsed once
into a :class:`SymbolicReference` and resolved per row, against the current
row's values or against the vocabulary already present in the build state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..utils.naming import class_iri, local_name_of, property_iri, to_camel_case
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .state import BuildState, ClassTerm, PropertyTerm


class EntityKind(str, Enum):
    """Kind of term a symbolic reference points at."""

    CLASS = "Class"
    PROPERTY = "Property"


class FieldName(str, Enum):
    """Field of a term a symbolic reference points at."""

    ID = "ID"
    NAME = "Name"
    DESCRIPTION = "Description"
    TYPE = "Type"
    TARGET_CLASS = "TargetClass"
    VALUE = "Value"


_ALLOWED_FIELDS: dict[EntityKind, frozenset[FieldName]] = {
    EntityKind.CLASS: frozenset(
        {FieldName.ID, FieldName.NAME, FieldName.DESCRIPTION}
    ),
    EntityKind.PROPERTY: frozenset(FieldName),
}


@dataclass(frozen=True)
class SymbolicReference:
    """A parsed ``$Entity.Field`` symbol."""

    kind: EntityKind
    field: FieldName

    def __str__(self) -> str:
        return f"${self.kind.value}.{self.field.value}"


CLASS_ID = SymbolicReference(EntityKind.CLASS, FieldName.ID)
CLASS_NAME = SymbolicReference(EntityKind.CLASS, FieldName.NAME)
CLASS_DESCRIPTION = SymbolicReference(EntityKind.CLASS, FieldName.DESCRIPTION)
PROPERTY_ID = SymbolicReference(EntityKind.PROPERTY, FieldName.ID)
PROPERTY_NAME = SymbolicReference(EntityKind.PROPERTY, FieldName.NAME)
PROPERTY_DESCRIPTION = SymbolicReference(EntityKind.PROPERTY, FieldName.DESCRIPTION)
PROPERTY_TYPE = SymbolicReference(EntityKind.PROPERTY, FieldName.TYPE)
PROPERTY_TARGET_CLASS = SymbolicReference(EntityKind.PROPERTY, FieldName.TARGET_CLASS)
PROPERTY_VALUE = SymbolicReference(EntityKind.PROPERTY, FieldName.VALUE)


def parse_reference(symbol: str) -> SymbolicReference:
    """
    Parse a ``$Entity.Field`` symbol.

    Args:
        symbol: Symbol text, e.g. "$Class.Name"

    Returns:
        SymbolicReference: The parsed reference

    Raises:
        ConfigurationError: If the symbol is malformed or names an unknown
            entity kind or field
    """
    text = symbol.strip()
    if not text.startswith("$") or "." not in text:
        raise ConfigurationError(
            f"Invalid symbolic reference '{symbol}': expected '$Entity.Field'"
        )

    kind_name, field_name = text[1:].split(".", 1)
    try:
        kind = EntityKind(kind_name)
        field = FieldName(field_name)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid symbolic reference '{symbol}': {e}"
        ) from e

    if field not in _ALLOWED_FIELDS[kind]:
        raise ConfigurationError(
            f"Invalid symbolic reference '{symbol}': {kind.value} has no field "
            f"'{field.value}'"
        )

    return SymbolicReference(kind, field)


class IdentifierResolver:
    """Resolve symbolic references and term names for one step.

    Row-bound references are looked up through ``bindings`` (reference to
    column name). Class and property names are looked up in a build state by
    IRI, local name, source identifier or label.
    """

    def __init__(
        self,
        base_iri: str,
        bindings: dict[SymbolicReference, str] | None = None,
    ):
        self.base_iri = base_iri
        self.bindings = dict(bindings or {})

    def column_for(self, reference: SymbolicReference) -> str | None:
        """Return the column bound to a reference, if any."""
        return self.bindings.get(reference)

    def resolve(
        self,
        reference: SymbolicReference,
        row: dict[str, str],
        state: "BuildState | None" = None,
        context_class: str | None = None,
    ) -> str | None:
        """
        Resolve a reference to a concrete value.

        Args:
            reference: Reference to resolve
            row: Current row, column name to raw value
            state: Build state used when the reference is not bound to a column
            context_class: Class identifier the step instantiates, used for
                class references that are not bound to a column

        Returns:
            str | None: The resolved value, or None if nothing provides it
        """
        column = self.bindings.get(reference)
        if column is not None:
            value = row.get(column, "").strip()
            return value or None

        if state is None or context_class is None:
            return None
        if reference.kind is not EntityKind.CLASS:
            return None

        term = self.find_class(context_class, state)
        if term is None:
            return None
        if reference.field is FieldName.ID:
            return term.iri
        if reference.field is FieldName.NAME:
            return term.label
        return term.comment

    def find_class(self, token: str, state: "BuildState") -> "ClassTerm | None":
        """Find a declared class by IRI, local name, source identifier or label."""
        token = token.strip()
        if not token:
            return None

        for candidate in (token, class_iri(self.base_iri, token)):
            term = state.classes.get(candidate)
            if term is not None:
                return term

        for term in state.classes.values():
            if token in (term.source_id, term.label, local_name_of(term.iri)):
                return term
        return None

    def find_property(
        self,
        token: str,
        state: "BuildState",
        domain: list[str] | None = None,
    ) -> "PropertyTerm | None":
        """
        Find a declared property by IRI, label, source identifier or local name.

        Args:
            token: Property name as it appears in the source
            state: Build state to search
            domain: Class IRIs the property must be declared on; when given,
                properties of other classes never match

        Returns:
            PropertyTerm | None: The matching property, if any
        """
        token = token.strip()
        if not token:
            return None

        candidates = [
            term
            for term in state.all_properties()
            if token in (term.iri, term.label, term.source_id)
            or term.iri == property_iri(self.base_iri, token)
            or local_name_of(term.iri) == to_camel_case(token)
        ]
        if domain is not None:
            candidates = [
                term
                for term in candidates
                if any(class_iri_ in term.domain for class_iri_ in domain)
            ]
        return candidates[0] if candidates else None
