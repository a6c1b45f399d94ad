"""Vocabulary builder: declare classes and properties from model steps."""

from ..manifest.models import OnEntity, StepKind
from ..utils.naming import class_iri, property_iri
from .base import RowOutcome, StepContext, StepHandler
from .columns import TargetKind
from .errors import ConfigurationError, SourceReadError
from .references import (
    CLASS_DESCRIPTION,
    CLASS_ID,
    CLASS_NAME,
    PROPERTY_DESCRIPTION,
    PROPERTY_ID,
    PROPERTY_NAME,
    PROPERTY_TARGET_CLASS,
    PROPERTY_TYPE,
)
from .state import ClassTerm, Datatype, PropertyTerm


def _attributes(
    context: StepContext, outcome: RowOutcome, on_entity: OnEntity
) -> dict[str, str]:
    """Attribute values of a row for the given entity kind."""
    attributes: dict[str, str] = {}
    for column, target in context.mapping.columns(TargetKind.ATTRIBUTE):
        if target.on_entity is not on_entity or target.iri is None:
            continue
        value = outcome.row.get(column).strip()
        if value:
            attributes[target.iri] = value

    for resolved in context.mapping.extra_items:
        if resolved.item.on_entity is not on_entity or resolved.item.value is None:
            continue
        attributes[resolved.iri] = resolved.item.value
    return attributes


def _declared_property_id(context: StepContext, outcome: RowOutcome) -> str | None:
    return context.resolver.resolve(
        context.mapping.property_identity, outcome.row.fields
    )


class ClassDeclarationHandler(StepHandler):
    """Declare the class described by a row."""

    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        row = outcome.row.fields
        resolver = context.resolver
        identity = resolver.resolve(context.mapping.class_identity, row)

        if identity is None:
            column = resolver.column_for(context.mapping.class_identity)
            context.fail_or_warn(
                SourceReadError(
                    f"Empty class identifier ({context.mapping.class_identity}), "
                    f"row skipped",
                    column=column,
                    row_index=outcome.row.index,
                )
            )
            outcome.skipped = True
            return

        source_id = resolver.resolve(CLASS_ID, row) or identity
        attributes = _attributes(context, outcome, OnEntity.CLASS)

        if context.kind is StepKind.BASIC_VOCABULARY and not _declared_property_id(
            context, outcome
        ):
            # No property on this row: property attributes describe the class
            attributes.update(_attributes(context, outcome, OnEntity.PROPERTY))

        outcome.classes.append(
            ClassTerm(
                iri=class_iri(context.section.base_iri, identity),
                label=resolver.resolve(CLASS_NAME, row) or identity,
                source_id=source_id,
                comment=resolver.resolve(CLASS_DESCRIPTION, row),
                sub_class_of=[
                    class_iri(context.section.base_iri, parent)
                    for parent in context.step.sub_class_of or []
                ],
                attributes=attributes,
            )
        )


class PropertyDeclarationHandler(StepHandler):
    """Declare the property described by a row, with its domain and range."""

    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        if outcome.skipped:
            return

        row = outcome.row.fields
        resolver = context.resolver
        base_iri = context.section.base_iri

        identity = _declared_property_id(context, outcome)
        if identity is None:
            if context.kind is StepKind.PROPERTIES_VOCABULARY:
                column = resolver.column_for(context.mapping.property_identity)
                context.fail_or_warn(
                    SourceReadError(
                        f"Empty property identifier "
                        f"({context.mapping.property_identity}), row skipped",
                        column=column,
                        row_index=outcome.row.index,
                    )
                )
            return

        if outcome.classes:
            domain = [outcome.classes[0].iri]
        else:
            class_id = resolver.resolve(CLASS_ID, row)
            domain = [class_iri(base_iri, class_id)] if class_id else []

        raw_type = resolver.resolve(PROPERTY_TYPE, row)
        try:
            datatype = Datatype.parse(raw_type) if raw_type else None
        except ConfigurationError as e:
            e.column = resolver.column_for(PROPERTY_TYPE)
            e.row_index = outcome.row.index
            raise

        target = resolver.resolve(PROPERTY_TARGET_CLASS, row)
        target_class = class_iri(base_iri, target) if target else None
        if target_class and datatype in (None, Datatype.STRING):
            datatype = Datatype.IRI

        if target_class:
            range_ = [target_class]
        elif datatype is not None and datatype.xsd_type is not None:
            range_ = [str(datatype.xsd_type)]
        else:
            range_ = []

        outcome.properties.append(
            PropertyTerm(
                iri=property_iri(base_iri, identity),
                label=resolver.resolve(PROPERTY_NAME, row) or identity,
                source_id=resolver.resolve(PROPERTY_ID, row) or identity,
                comment=resolver.resolve(PROPERTY_DESCRIPTION, row),
                datatype=datatype,
                domain=domain,
                range=range_,
                target_class=target_class,
                attributes=_attributes(context, outcome, OnEntity.PROPERTY),
            )
        )
