"""Pivot expansion: move column groups of a row onto child entities."""

from rdflib import URIRef

from ..utils.naming import content_hash, local_name_of
from .base import RowOutcome, StepContext, StepHandler
from .columns import PivotGroup
from .instances import convert_cell, instance_iri
from .state import Entity


class PivotExpander(StepHandler):
    """Create a child entity per pivot group and link it to the row's entity.

    Each row yields its own children: there is no deduplication across rows.
    A header that repeats the group's columns yields one child per repeated
    occurrence; occurrences after the first are skipped when all their cells
    are empty.
    """

    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        if outcome.skipped or outcome.entity is None:
            return

        for group in context.mapping.pivot_groups:
            for occurrence, cells in enumerate(self._occurrences(group, outcome)):
                if occurrence > 0 and not any(cells.values()):
                    continue
                child = self._build_child(
                    context, outcome.entity, outcome.row.index, group, occurrence, cells
                )
                outcome.entity.add_value(group.relationship.iri, URIRef(child.iri))
                outcome.children.append(child)

    def _occurrences(
        self, group: PivotGroup, outcome: RowOutcome
    ) -> list[dict[str, str]]:
        by_column = {
            column: outcome.row.occurrences(column) for column in group.columns
        }
        count = max(len(values) for values in by_column.values())
        return [
            {
                column: values[i].strip() if i < len(values) else ""
                for column, values in by_column.items()
            }
            for i in range(count)
        ]

    def _build_child(
        self,
        context: StepContext,
        parent: Entity,
        row_index: int,
        group: PivotGroup,
        occurrence: int,
        cells: dict[str, str],
    ) -> Entity:
        # Derived from the row's position, never from a shared counter
        key = content_hash(
            context.step.path,
            parent.iri,
            str(group.index),
            str(occurrence),
            str(row_index),
        )
        child = Entity(
            iri=instance_iri(context, local_name_of(group.class_term.iri), key),
            types=[group.class_term.iri],
        )

        for column, raw in cells.items():
            if not raw:
                continue
            term = group.columns[column]
            for value in convert_cell(context, term, raw, column, row_index):
                child.add_value(term.iri, value)
        return child
