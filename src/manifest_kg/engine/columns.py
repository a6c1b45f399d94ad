"""Column mapping: resolve a step's header against its mapping rules."""

from dataclasses import dataclass, field
from enum import Enum
import logging

from ..manifest.models import (
    IDENTITY_OVERRIDE,
    ExtraItem,
    ImportStep,
    OnEntity,
    StepKind,
)
from ..utils.naming import expand_iri, property_iri
from .errors import ConfigurationError, ResolutionError
from .references import (
    CLASS_DESCRIPTION,
    CLASS_ID,
    CLASS_NAME,
    PROPERTY_DESCRIPTION,
    PROPERTY_ID,
    PROPERTY_NAME,
    PROPERTY_TARGET_CLASS,
    PROPERTY_TYPE,
    PROPERTY_VALUE,
    IdentifierResolver,
    SymbolicReference,
    parse_reference,
)
from .state import BuildState, ClassTerm, PropertyTerm

logger = logging.getLogger(__name__)

_CLASS_COLUMNS: dict[SymbolicReference, str] = {
    CLASS_ID: "Class ID",
    CLASS_NAME: "Class Name",
    CLASS_DESCRIPTION: "Class Description",
}

_PROPERTY_COLUMNS: dict[SymbolicReference, str] = {
    PROPERTY_ID: "Property ID",
    PROPERTY_NAME: "Property Name",
    PROPERTY_DESCRIPTION: "Property Description",
    PROPERTY_TYPE: "Type",
    PROPERTY_TARGET_CLASS: "Class Range",
}

DEFAULT_COLUMNS: dict[StepKind, dict[SymbolicReference, str]] = {
    StepKind.BASIC_VOCABULARY: {**_CLASS_COLUMNS, **_PROPERTY_COLUMNS},
    StepKind.SUBCLASS_VOCABULARY: dict(_CLASS_COLUMNS),
    StepKind.PROPERTIES_VOCABULARY: {CLASS_ID: "Class ID", **_PROPERTY_COLUMNS},
    StepKind.PROPERTIES_INSTANCE: {
        PROPERTY_ID: "Property ID",
        PROPERTY_VALUE: "Property Value",
    },
}


class TargetKind(str, Enum):
    """What a header column feeds."""

    SLOT = "slot"
    ATTRIBUTE = "attribute"
    IDENTITY = "identity"
    SUBCLASS = "subclass"
    PROPERTY = "property"
    PROPERTY_ID = "property_id"
    PROPERTY_VALUE = "property_value"
    PIVOT = "pivot"
    LABEL = "label"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ColumnTarget:
    """Resolved target of a single header column."""

    kind: TargetKind
    slots: tuple[SymbolicReference, ...] = ()
    iri: str | None = None
    on_entity: OnEntity | None = None
    pivot_group: int | None = None


@dataclass
class ResolvedExtraItem:
    """An extra item whose ``mapTo`` has been expanded to an IRI."""

    item: ExtraItem
    iri: str


@dataclass
class PivotGroup:
    """A pivot group with its class and properties resolved."""

    index: int
    class_term: ClassTerm
    relationship: PropertyTerm
    columns: dict[str, PropertyTerm]


@dataclass
class ColumnMapping:
    """Mapping from each header column to its target, plus step-level bindings."""

    header: list[str]
    targets: list[ColumnTarget]
    bindings: dict[SymbolicReference, str] = field(default_factory=dict)
    extra_items: list[ResolvedExtraItem] = field(default_factory=list)
    class_identity: SymbolicReference = CLASS_ID
    property_identity: SymbolicReference = PROPERTY_ID
    identity_column: str | None = None
    pivot_groups: list[PivotGroup] = field(default_factory=list)

    def columns(self, kind: TargetKind) -> list[tuple[str, ColumnTarget]]:
        """Header columns (first occurrence only) whose target is of the given kind."""
        seen: set[str] = set()
        result: list[tuple[str, ColumnTarget]] = []
        for column, target in zip(self.header, self.targets):
            if target.kind is kind and column not in seen:
                seen.add(column)
                result.append((column, target))
        return result

    def target_of(self, column: str) -> ColumnTarget | None:
        for name, target in zip(self.header, self.targets):
            if name == column:
                return target
        return None


def _require_columns(columns: list[str], header: list[str], rule: str) -> None:
    present = set(header)
    for column in columns:
        if column not in present:
            raise ConfigurationError(
                f"Column '{column}' named by {rule} is not in the header",
                column=column,
            )


def map_vocabulary_columns(
    step: ImportStep, kind: StepKind, header: list[str], base_iri: str
) -> ColumnMapping:
    """
    Map the header of a vocabulary step.

    Args:
        step: The vocabulary step
        kind: The step's vocabulary kind
        header: Header row of the step's source
        base_iri: Base IRI of the model phase

    Returns:
        ColumnMapping: Targets per column and the slot bindings

    Raises:
        ConfigurationError: If a rule names a column absent from the header,
            or no column provides the identity of the declared terms
    """
    _require_columns(step.ignore, header, "ignore")
    _require_columns([o.column for o in step.overrides], header, "overrides")
    _require_columns(
        [item.column for item in step.extra_items if item.value is None],
        header,
        "extraItems",
    )

    ignored = set(step.ignore)
    present = set(header)

    bindings = dict(DEFAULT_COLUMNS[kind])
    for override in step.overrides:
        bindings[parse_reference(override.map_to)] = override.column
    bindings = {
        reference: column
        for reference, column in bindings.items()
        if column in present and column not in ignored
    }

    class_identity = (
        parse_reference(step.replace_class_id_with)
        if step.replace_class_id_with
        else CLASS_ID
    )
    property_identity = (
        parse_reference(step.replace_property_id_with)
        if step.replace_property_id_with
        else PROPERTY_ID
    )

    declares_class = kind in (StepKind.BASIC_VOCABULARY, StepKind.SUBCLASS_VOCABULARY)
    if declares_class and class_identity not in bindings:
        raise ConfigurationError(
            f"No column provides {class_identity} for {kind.value} "
            f"(expected '{DEFAULT_COLUMNS[kind].get(class_identity, class_identity)}')"
        )
    if kind is StepKind.PROPERTIES_VOCABULARY and property_identity not in bindings:
        raise ConfigurationError(
            f"No column provides {property_identity} for {kind.value}"
        )

    extra_items = [
        ResolvedExtraItem(item=item, iri=expand_iri(base_iri, item.map_to))
        for item in step.extra_items
    ]
    extra_columns = {resolved.item.column: resolved for resolved in extra_items}

    slots_by_column: dict[str, list[SymbolicReference]] = {}
    for reference, column in bindings.items():
        slots_by_column.setdefault(column, []).append(reference)

    default_entity = (
        OnEntity.CLASS if kind is StepKind.SUBCLASS_VOCABULARY else OnEntity.PROPERTY
    )

    targets: list[ColumnTarget] = []
    for column in header:
        if column in ignored:
            targets.append(ColumnTarget(TargetKind.IGNORED))
        elif column in slots_by_column:
            targets.append(
                ColumnTarget(TargetKind.SLOT, slots=tuple(slots_by_column[column]))
            )
        elif column in extra_columns:
            resolved = extra_columns[column]
            targets.append(
                ColumnTarget(
                    TargetKind.ATTRIBUTE,
                    iri=resolved.iri,
                    on_entity=resolved.item.on_entity,
                )
            )
        else:
            targets.append(
                ColumnTarget(
                    TargetKind.ATTRIBUTE,
                    iri=property_iri(base_iri, column),
                    on_entity=default_entity,
                )
            )

    return ColumnMapping(
        header=header,
        targets=targets,
        bindings=bindings,
        extra_items=extra_items,
        class_identity=class_identity,
        property_identity=property_identity,
    )


def _identity_column(
    step: ImportStep, header: list[str], state: BuildState, class_term: ClassTerm
) -> str | None:
    for override in step.overrides:
        if override.map_to == IDENTITY_OVERRIDE:
            return override.column

    identifier = state.identifier_property(class_term.iri)
    if identifier is None:
        return None
    for candidate in (identifier.label, identifier.source_id):
        if candidate and candidate in header:
            return candidate

    logger.warning(
        f"Identifier column '{identifier.label}' of class <{class_term.iri}> is not "
        f"in the header of '{step.path}', entity keys will be derived from row content"
    )
    return None


def map_instance_columns(
    step: ImportStep,
    kind: StepKind,
    header: list[str],
    state: BuildState,
    resolver: IdentifierResolver,
    class_term: ClassTerm,
) -> ColumnMapping:
    """
    Map the header of an instance step.

    Every column must be accounted for: ignored, the identity column, the
    subclass column, a pivot column, or a property declared by the model
    phase.

    Args:
        step: The instance step
        kind: The step's instance kind
        header: Header row of the step's source
        state: Build state holding the vocabulary
        resolver: Resolver for class and property names
        class_term: Class the step instantiates

    Returns:
        ColumnMapping: Targets per column, identity column and pivot groups

    Raises:
        ConfigurationError: If a rule names a column absent from the header
        ResolutionError: If a column or pivot group refers to an undeclared
            class or property
    """
    _require_columns(step.ignore, header, "ignore")
    _require_columns([o.column for o in step.overrides], header, "overrides")
    if step.sub_class_property:
        _require_columns([step.sub_class_property], header, "subClassProperty")
    if step.map_to_label:
        _require_columns([step.map_to_label], header, "mapToLabel")

    ignored = set(step.ignore)
    lineage = [class_term.iri, *state.ancestors(class_term.iri)]
    identity_column = _identity_column(step, header, state, class_term)

    bindings: dict[SymbolicReference, str] = {}
    if kind is StepKind.PROPERTIES_INSTANCE:
        bindings = dict(DEFAULT_COLUMNS[kind])
        for override in step.overrides:
            if override.map_to != IDENTITY_OVERRIDE:
                bindings[parse_reference(override.map_to)] = override.column
        _require_columns(list(bindings.values()), header, "PropertiesInstanceStep")
        if identity_column is None:
            raise ConfigurationError(
                f"PropertiesInstanceStep needs a join column for "
                f"'{step.instance_type}': declare an identifier property or an "
                f"'{IDENTITY_OVERRIDE}' override"
            )

    pivot_groups: list[PivotGroup] = []
    pivot_columns: dict[str, int] = {}
    for index, group in enumerate(step.pivot_columns or []):
        _require_columns(group.columns, header, "pivotColumns")
        pivot_class = resolver.find_class(group.instance_type, state)
        if pivot_class is None:
            raise ResolutionError(
                f"Pivot class '{group.instance_type}' was never declared"
            )
        relationship = resolver.find_property(
            group.new_relationship_property, state, domain=lineage
        )
        if relationship is None:
            raise ResolutionError(
                f"Pivot relationship property '{group.new_relationship_property}' "
                f"was never declared"
            )

        pivot_lineage = [pivot_class.iri, *state.ancestors(pivot_class.iri)]
        columns: dict[str, PropertyTerm] = {}
        for column in group.columns:
            term = resolver.find_property(column, state, domain=pivot_lineage)
            if term is None:
                raise ResolutionError(
                    f"Pivot column does not match any property of "
                    f"'{group.instance_type}'",
                    column=column,
                )
            columns[column] = term
            pivot_columns[column] = index
        pivot_groups.append(
            PivotGroup(
                index=index,
                class_term=pivot_class,
                relationship=relationship,
                columns=columns,
            )
        )

    reserved = {
        column: target_kind
        for column, target_kind in (
            (identity_column, TargetKind.IDENTITY),
            (step.sub_class_property, TargetKind.SUBCLASS),
            (bindings.get(PROPERTY_ID), TargetKind.PROPERTY_ID),
            (bindings.get(PROPERTY_VALUE), TargetKind.PROPERTY_VALUE),
        )
        if column
    }

    targets: list[ColumnTarget] = []
    for column in header:
        if column in ignored:
            targets.append(ColumnTarget(TargetKind.IGNORED))
        elif column in reserved:
            targets.append(ColumnTarget(reserved[column]))
        elif column in pivot_columns:
            group_index = pivot_columns[column]
            term = pivot_groups[group_index].columns[column]
            targets.append(
                ColumnTarget(TargetKind.PIVOT, iri=term.iri, pivot_group=group_index)
            )
        else:
            term = resolver.find_property(column, state, domain=lineage)
            if term is not None:
                targets.append(ColumnTarget(TargetKind.PROPERTY, iri=term.iri))
            elif column == step.map_to_label:
                targets.append(ColumnTarget(TargetKind.LABEL))
            else:
                raise ResolutionError(
                    f"Column does not match any property declared for "
                    f"'{step.instance_type}'",
                    column=column,
                )

    return ColumnMapping(
        header=header,
        targets=targets,
        bindings=bindings,
        identity_column=identity_column,
        pivot_groups=pivot_groups,
    )
