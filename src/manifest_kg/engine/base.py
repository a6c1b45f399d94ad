"""Base step handler class and the context handlers operate in."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import threading

from ..manifest.models import ImportSection, ImportStep, StepKind
from ..sources.base import SourceRow
from .columns import ColumnMapping
from .errors import ManifestKGError
from .references import IdentifierResolver
from .state import BuildState, ClassTerm, Entity, PropertyTerm


@dataclass
class StepContext:
    """Everything a handler needs to process the rows of one step.

    ``state`` is the state committed by the previous steps. Handlers only
    read it; everything a row produces goes into its :class:`RowOutcome`.
    """

    step: ImportStep
    kind: StepKind
    section: ImportSection
    state: BuildState
    resolver: IdentifierResolver
    mapping: ColumnMapping
    class_term: ClassTerm | None = None
    strict: bool = False
    warnings: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def warn(
        self, message: str, column: str | None = None, row_index: int | None = None
    ) -> None:
        """Record a recoverable issue."""
        location = []
        if column is not None:
            location.append(f"column '{column}'")
        if row_index is not None:
            location.append(f"row {row_index}")
        prefix = f"[{self.step.path}{', ' if location else ''}{', '.join(location)}] "
        with self._lock:
            self.warnings.append(prefix + message)

    def fail_or_warn(self, error: ManifestKGError) -> None:
        """Raise the error in strict mode, record it as a warning otherwise."""
        if self.strict:
            raise error
        self.warn(error.message, column=error.column, row_index=error.row_index)


@dataclass
class RowOutcome:
    """Terms and entities produced by one source row."""

    row: SourceRow
    classes: list[ClassTerm] = field(default_factory=list)
    properties: list[PropertyTerm] = field(default_factory=list)
    entity: Entity | None = None
    children: list[Entity] = field(default_factory=list)
    skipped: bool = False

    def apply(self, delta: BuildState) -> None:
        """Merge everything this row produced into a step delta."""
        for term in self.classes:
            delta.add_class(term)
        for prop in self.properties:
            delta.add_property(prop)
        if self.entity is not None:
            delta.add_entity(self.entity)
        for child in self.children:
            delta.add_entity(child)


class StepHandler(ABC):
    """Abstract base class for step capabilities.

    A step's behavior is the combination of the handlers registered for its
    tags. Handlers run in order on every row and communicate through the
    row's outcome.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def process_row(self, context: StepContext, outcome: RowOutcome) -> None:
        """Process one row.

        Args:
            context: Step context
            outcome: Outcome of the row, shared with the other handlers
        """
        pass
