"""Instance builder: turn data rows into typed entities."""

from rdflib import Literal, URIRef

from ..utils.naming import (
    content_hash,
    entity_iri,
    expand_iri,
    is_absolute_iri,
    local_name_of,
)
from .base import RowOutcome, StepContext, StepHandler
from .columns import TargetKind
from .errors import ResolutionError, SourceReadError
from .references import PROPERTY_ID, PROPERTY_VALUE
from .state import ClassTerm, Datatype, Entity, PropertyTerm, Value
from .values import ValueConversionError, split_values, to_literal


def instance_iri(context: StepContext, instance_type: str, key: str) -> str:
    """IRI of an entity of the given type in the instances namespace."""
    return entity_iri(
        context.section.base_iri,
        instance_type,
        key,
        namespace_iris=context.section.namespace_iris,
    )


def convert_cell(
    context: StepContext,
    term: PropertyTerm,
    raw: str,
    column: str,
    row_index: int,
) -> list[Value]:
    """
    Convert a non-empty cell to the values of a property.

    Reference-typed properties yield IRIs: absolute IRIs are kept, values of
    properties with a target class become entity IRIs in that class's
    namespace, and values naming a declared class become the class IRI.
    Literal-typed properties yield typed literals; text that does not fit
    the datatype is an error in strict mode and a plain literal otherwise.

    Args:
        context: Step context
        term: Property the cell belongs to
        raw: Stripped, non-empty cell text
        column: Column of the cell
        row_index: Index of the row

    Returns:
        list[Value]: One value, or several when ``delimitValuesOn`` applies
    """
    datatype = term.effective_datatype
    values: list[Value] = []

    for part in split_values(raw, datatype, context.step.delimit_values_on):
        if datatype.is_reference:
            values.append(_reference_value(context, term, part, column, row_index))
            continue
        if datatype is Datatype.IDENTIFIER:
            values.append(Literal(part))
            continue
        try:
            values.append(to_literal(part, datatype))
        except ValueConversionError as e:
            context.fail_or_warn(
                SourceReadError(
                    f"{e} for property <{term.iri}>, kept as text",
                    column=column,
                    row_index=row_index,
                )
            )
            values.append(Literal(part))
    return values


def _reference_value(
    context: StepContext,
    term: PropertyTerm,
    value: str,
    column: str,
    row_index: int,
) -> URIRef:
    if is_absolute_iri(value):
        return URIRef(value)

    if term.target_class:
        iri = instance_iri(context, local_name_of(term.target_class), value)
        target = context.state.classes.get(term.target_class)
        if (
            term.datatype is Datatype.PICKLIST
            and target is not None
            and target.one_of
            and iri not in target.one_of
        ):
            context.fail_or_warn(
                ResolutionError(
                    f"'{value}' is not a member of picklist <{target.iri}>",
                    column=column,
                    row_index=row_index,
                )
            )
        return URIRef(iri)

    declared = context.resolver.find_class(value, context.state)
    if declared is not None:
        return URIRef(declared.iri)
    return URIRef(expand_iri(context.section.base_iri, value))


def assign_values(context: StepContext, outcome: RowOutcome, entity: Entity) -> None:
    """Add the row's property columns to an entity; empty cells are skipped."""
    row = outcome.row
    for column, target in context.mapping.columns(TargetKind.PROPERTY):
        raw = row.get(column).strip()
        if not raw or target.iri is None:
            continue
        term = context.state.properties[target.iri]
        for value in convert_cell(context, term, raw, column, row.index):
            entity.add_value(term.iri, value)

    if context.step.map_to_label:
        label = row.get(context.step.map_to_label).strip()
        if label:
            entity.label = label


def _row_key(context: StepContext, outcome: RowOutcome) -> str | None:
    column = context.mapping.identity_column
    if column is None:
        return content_hash(*outcome.row.values)
    return outcome.row.get(column).strip() or None


class EntityHandler(StepHandler):
    """Create one entity of the step's instance type per row."""

    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        class_term = context.class_term
        if class_term is None:
            raise ResolutionError(
                f"Instance type '{context.step.instance_type}' was never declared"
            )

        key = _row_key(context, outcome)
        if key is None:
            context.fail_or_warn(
                SourceReadError(
                    "Empty identifier, row skipped",
                    column=context.mapping.identity_column,
                    row_index=outcome.row.index,
                )
            )
            outcome.skipped = True
            return

        entity = Entity(
            iri=instance_iri(context, context.step.instance_type, key),
            types=[class_term.iri],
        )
        assign_values(context, outcome, entity)
        outcome.entity = entity


class SubClassTypingHandler(StepHandler):
    """Type each entity with the concrete subclass named by a row column."""

    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        if outcome.skipped or outcome.entity is None:
            return

        column = context.step.sub_class_property or ""
        token = outcome.row.get(column).strip()
        if not token:
            context.warn(
                "No subclass given, entity keeps the parent type",
                column=column,
                row_index=outcome.row.index,
            )
            return

        subclass = context.resolver.find_class(token, context.state)
        if subclass is None:
            raise ResolutionError(
                f"Subclass '{token}' was never declared",
                column=column,
                row_index=outcome.row.index,
            )

        parent = context.class_term
        if parent is not None and parent.iri not in [
            subclass.iri,
            *context.state.ancestors(subclass.iri),
        ]:
            context.warn(
                f"<{subclass.iri}> is not a subclass of <{parent.iri}>",
                column=column,
                row_index=outcome.row.index,
            )
        outcome.entity.types = [subclass.iri]


class PicklistHandler(StepHandler):
    """Record each entity as an allowed member of the step's class."""

    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        if outcome.skipped or outcome.entity is None or context.class_term is None:
            return
        outcome.classes.append(
            ClassTerm(
                iri=context.class_term.iri,
                label=context.class_term.label,
                one_of=[outcome.entity.iri],
            )
        )


class PropertyAssignmentHandler(StepHandler):
    """Attach one property value per row to an entity created by an earlier step."""

    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        row = outcome.row
        join_column = context.mapping.identity_column or ""
        property_column = context.mapping.bindings[PROPERTY_ID]
        value_column = context.mapping.bindings[PROPERTY_VALUE]

        key = row.get(join_column).strip()
        if not key:
            context.fail_or_warn(
                SourceReadError(
                    "Empty join key, row skipped",
                    column=join_column,
                    row_index=row.index,
                )
            )
            outcome.skipped = True
            return

        iri = instance_iri(context, context.step.instance_type, key)
        if iri not in context.state.entities:
            raise ResolutionError(
                f"Entity <{iri}> does not exist",
                column=join_column,
                row_index=row.index,
            )

        entity = Entity(iri=iri)
        token = row.get(property_column).strip()
        raw = row.get(value_column).strip()
        if token and raw:
            lineage = [
                ancestor
                for class_iri in context.state.entities[iri].types
                for ancestor in [class_iri, *context.state.ancestors(class_iri)]
            ]
            term = context.resolver.find_property(token, context.state, domain=lineage)
            if term is None:
                raise ResolutionError(
                    f"Property '{token}' was never declared",
                    column=property_column,
                    row_index=row.index,
                )
            for value in convert_cell(context, term, raw, value_column, row.index):
                entity.add_value(term.iri, value)

        assign_values(context, outcome, entity)
        outcome.entity = entity
