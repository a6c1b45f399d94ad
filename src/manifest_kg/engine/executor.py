"""Manifest executor: run the model phase, then the instances phase."""

from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
import logging
from pathlib import Path
import threading
import time
from typing import TypedDict

from ..manifest.models import (
    INSTANCE_KINDS,
    VOCABULARY_KINDS,
    ImportSection,
    ImportStep,
    Manifest,
    StepKind,
)
from ..sources.base import RowSource, RowTable, SourceRow
from .base import RowOutcome, StepContext, StepHandler
from .columns import map_instance_columns, map_vocabulary_columns
from .errors import (
    ConfigurationError,
    ManifestKGError,
    ResolutionError,
    RunCancelledError,
)
from .instances import (
    EntityHandler,
    PicklistHandler,
    PropertyAssignmentHandler,
    SubClassTypingHandler,
)
from .pivot import PivotExpander
from .references import IdentifierResolver
from .state import BuildState
from .vocabulary import ClassDeclarationHandler, PropertyDeclarationHandler

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Execution phases, in the order they run."""

    MODEL = "model"
    INSTANCES = "instances"


class StepResult(TypedDict):
    path: str
    phase: str
    types: list[str]
    rows: int
    skipped_rows: int
    classes: int
    properties: int
    entities: int
    warnings: list[str]
    duration: float


class ExecutionResults(TypedDict):
    steps: list[StepResult]
    classes: int
    properties: int
    entities: int
    relationships: int
    warnings: list[str]
    duration: float


class ManifestExecutor:
    """Execute the steps of a manifest against a shared build state."""

    # Capabilities per step tag; a step runs the union over its tags
    HANDLERS: dict[StepKind, tuple[type[StepHandler], ...]] = {
        StepKind.CSV_IMPORT: (),
        StepKind.BASIC_VOCABULARY: (
            ClassDeclarationHandler,
            PropertyDeclarationHandler,
        ),
        StepKind.SUBCLASS_VOCABULARY: (ClassDeclarationHandler,),
        StepKind.PROPERTIES_VOCABULARY: (PropertyDeclarationHandler,),
        StepKind.BASIC_INSTANCE: (EntityHandler,),
        StepKind.PICKLIST: (EntityHandler, PicklistHandler),
        StepKind.SUBCLASS_INSTANCE: (EntityHandler, SubClassTypingHandler),
        StepKind.PROPERTIES_INSTANCE: (PropertyAssignmentHandler,),
    }

    def __init__(
        self,
        manifest: Manifest,
        source: RowSource,
        root: str | Path = ".",
        state: BuildState | None = None,
        strict: bool = False,
        workers: int = 1,
        chunk_size: int = 1000,
        cancel_event: threading.Event | None = None,
    ):
        """
        Initialize the executor.

        Args:
            manifest: Validated manifest to execute
            source: Row source used to read every step's table
            root: Directory step paths are resolved against (with the phase path)
            state: Build state to extend, a fresh one by default
            strict: Turn recoverable row issues into errors
            workers: Number of threads processing the rows of a step
            chunk_size: Rows per parallel work unit
            cancel_event: Event that cancels the run when set
        """
        self.manifest = manifest
        self.source = source
        self.root = Path(root)
        self.state = state if state is not None else BuildState()
        self.strict = strict
        self.workers = max(1, workers)
        self.chunk_size = max(1, chunk_size)
        self.cancel_event = cancel_event or threading.Event()
        self.warnings: list[str] = []
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def cancel(self) -> None:
        """Request cancellation; the current step is abandoned at the next row."""
        self.cancel_event.set()

    def run(self) -> ExecutionResults:
        """
        Run both phases.

        Returns:
            ExecutionResults: Per-step results and totals

        Raises:
            ManifestKGError: On the first failing step; steps completed before
                it stay committed in ``self.state``
        """
        start_time = time.time()
        steps: list[StepResult] = []

        for phase in Phase:
            steps.extend(self.run_phase(phase))

        results: ExecutionResults = {
            "steps": steps,
            "classes": len(self.state.classes),
            "properties": len(self.state.properties),
            "entities": len(self.state.entities),
            "relationships": len(self.state.relationships()),
            "warnings": list(self.warnings),
            "duration": time.time() - start_time,
        }
        self.logger.info(
            f"Manifest executed: {results['classes']} classes, "
            f"{results['properties']} properties, {results['entities']} entities"
        )
        return results

    def run_phase(self, phase: Phase) -> list[StepResult]:
        """Run the steps of one phase in declared order."""
        section = self._section(phase)
        self.logger.info(f"Running {phase.value} phase ({len(section.sequence)} steps)")
        return [self.run_step(step, phase) for step in section.sequence]

    def run_step(self, step: ImportStep, phase: Phase) -> StepResult:
        """
        Run a single step atomically.

        The step works on a copy of the committed state; the copy replaces
        the committed state only if the whole step succeeds.

        Args:
            step: Step to run
            phase: Phase the step belongs to

        Returns:
            StepResult: Statistics of the step

        Raises:
            ManifestKGError: If the step fails, with the step path attached
        """
        start_time = time.time()
        section = self._section(phase)
        path = self.root / section.path / step.path
        self.logger.info(f"Step {step.path}: {[kind.value for kind in step.types]}")

        try:
            self._check_cancelled()
            table = self.source.read(path)
            context = self._build_context(step, phase, section, table.header)
            handlers = self._handlers_for(step)

            delta = self._process_rows(context, handlers, table)
            working = self.state.copy()
            working.merge(delta)
        except ManifestKGError as e:
            e.with_step(step.path)
            self.logger.error(f"Step {step.path} failed: {e}")
            raise

        self.state.replace_with(working)

        warnings = list(context.warnings)
        if table.skipped_rows:
            warnings.append(
                f"[{step.path}] {table.skipped_rows} malformed rows were skipped"
            )
        for warning in warnings:
            self.logger.warning(warning)
        self.warnings.extend(warnings)

        return {
            "path": step.path,
            "phase": phase.value,
            "types": [kind.value for kind in step.types],
            "rows": len(table),
            "skipped_rows": table.skipped_rows,
            "classes": len(delta.classes),
            "properties": len(delta.properties),
            "entities": len(delta.entities),
            "warnings": warnings,
            "duration": time.time() - start_time,
        }

    def _section(self, phase: Phase) -> ImportSection:
        if phase is Phase.MODEL:
            return self.manifest.model
        return self.manifest.instances

    def _primary_kind(self, step: ImportStep, phase: Phase) -> StepKind:
        allowed = VOCABULARY_KINDS if phase is Phase.MODEL else INSTANCE_KINDS
        kinds = [kind for kind in step.types if kind in allowed]
        if len(kinds) != 1:
            raise ConfigurationError(
                f"Step must have exactly one {phase.value} step type, "
                f"got {[kind.value for kind in step.types]}"
            )
        return kinds[0]

    def _handlers_for(self, step: ImportStep) -> list[StepHandler]:
        handlers: list[StepHandler] = []
        for kind in step.types:
            for handler_class in self.HANDLERS.get(kind, ()):
                handlers.append(handler_class())
        if step.pivot_columns:
            handlers.append(PivotExpander())
        return handlers

    def _build_context(
        self,
        step: ImportStep,
        phase: Phase,
        section: ImportSection,
        header: list[str],
    ) -> StepContext:
        kind = self._primary_kind(step, phase)
        resolver = IdentifierResolver(self.manifest.model.base_iri)

        if phase is Phase.MODEL:
            mapping = map_vocabulary_columns(
                step, kind, header, self.manifest.model.base_iri
            )
            class_term = None
        else:
            if not step.instance_type:
                raise ConfigurationError("Instance step has no instanceType")
            class_term = resolver.find_class(step.instance_type, self.state)
            if class_term is None:
                raise ResolutionError(
                    f"Instance type '{step.instance_type}' was never declared"
                )
            mapping = map_instance_columns(
                step, kind, header, self.state, resolver, class_term
            )

        resolver.bindings = dict(mapping.bindings)
        return StepContext(
            step=step,
            kind=kind,
            section=section,
            state=self.state,
            resolver=resolver,
            mapping=mapping,
            class_term=class_term,
            strict=self.strict,
        )

    def _process_rows(
        self, context: StepContext, handlers: list[StepHandler], table: RowTable
    ) -> BuildState:
        rows = list(table)
        if self.workers == 1 or len(rows) <= self.chunk_size:
            return self._process_chunk(context, handlers, rows)

        chunks = [
            rows[i : i + self.chunk_size] for i in range(0, len(rows), self.chunk_size)
        ]
        self.logger.debug(
            f"Processing {len(rows)} rows in {len(chunks)} chunks "
            f"with {self.workers} workers"
        )

        delta = BuildState()
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures: list[Future[BuildState]] = [
                pool.submit(self._process_chunk, context, handlers, chunk)
                for chunk in chunks
            ]
            try:
                # Merged in source order by this thread only
                for future in futures:
                    delta.merge(future.result())
            except BaseException:
                for future in futures:
                    future.cancel()
                raise
        return delta

    def _process_chunk(
        self, context: StepContext, handlers: list[StepHandler], rows: list[SourceRow]
    ) -> BuildState:
        delta = BuildState()
        for row in rows:
            self._check_cancelled()
            outcome = RowOutcome(row=row)
            try:
                for handler in handlers:
                    handler.process_row(context, outcome)
                outcome.apply(delta)
            except ManifestKGError as e:
                if e.row_index is None:
                    e.row_index = row.index
                raise
        return delta

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise RunCancelledError("Run cancelled")
