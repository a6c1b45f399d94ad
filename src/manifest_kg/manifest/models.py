"""Manifest data model.

Manifests are JSON-LD-flavoured documents with camelCase keys. They are
parsed into the dataclasses below with dacite after the keys have been
normalized to field names.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

from ..utils.naming import to_pascal_case

MANIFEST_TYPE = "CSVImportManifest"

# Override target designating the identity column of an instance step
IDENTITY_OVERRIDE = "@id"


class StepKind(str, Enum):
    """Capability tags a step can carry in its ``@type`` list."""

    CSV_IMPORT = "CSVImportStep"
    BASIC_VOCABULARY = "BasicVocabularyStep"
    SUBCLASS_VOCABULARY = "SubClassVocabularyStep"
    PROPERTIES_VOCABULARY = "PropertiesVocabularyStep"
    BASIC_INSTANCE = "BasicInstanceStep"
    PICKLIST = "PicklistStep"
    SUBCLASS_INSTANCE = "SubClassInstanceStep"
    PROPERTIES_INSTANCE = "PropertiesInstanceStep"


VOCABULARY_KINDS = frozenset(
    {
        StepKind.BASIC_VOCABULARY,
        StepKind.SUBCLASS_VOCABULARY,
        StepKind.PROPERTIES_VOCABULARY,
    }
)

INSTANCE_KINDS = frozenset(
    {
        StepKind.BASIC_INSTANCE,
        StepKind.PICKLIST,
        StepKind.SUBCLASS_INSTANCE,
        StepKind.PROPERTIES_INSTANCE,
    }
)


class OnEntity(str, Enum):
    """Which declared term an extra item is attached to."""

    CLASS = "CLASS"
    PROPERTY = "PROPERTY"


@dataclass
class ColumnOverride:
    """Bind a column to a symbolic slot such as ``$Class.ID``."""

    column: str
    map_to: str


@dataclass
class ExtraItem:
    """Attach a column (or a static value) to a class or property under an IRI."""

    column: str
    map_to: str
    on_entity: OnEntity = OnEntity.CLASS
    value: str | None = None


@dataclass
class PivotColumn:
    """A group of columns moved onto a child entity of another type."""

    instance_type: str
    new_relationship_property: str
    columns: list[str] = field(default_factory=list)


@dataclass
class ImportStep:
    """One step of a phase sequence."""

    path: str
    types: list[StepKind] = field(default_factory=list)
    overrides: list[ColumnOverride] = field(default_factory=list)
    extra_items: list[ExtraItem] = field(default_factory=list)
    ignore: list[str] = field(default_factory=list)
    sub_class_of: list[str] | None = None
    replace_class_id_with: str | None = None
    replace_property_id_with: str | None = None
    sub_class_property: str | None = None
    instance_type: str = ""
    pivot_columns: list[PivotColumn] | None = None
    delimit_values_on: str | None = None
    map_to_label: str | None = None

    def default_instance_type(self) -> str:
        """Instance type derived from the file stem ("data/bill-items.csv" -> "BillItems")."""
        return to_pascal_case(PurePosixPath(self.path).stem)


@dataclass
class ImportSection:
    """One phase of a manifest: ``model`` or ``instances``."""

    base_iri: str = ""
    path: str = ""
    namespace_iris: bool = True
    sequence: list[ImportStep] = field(default_factory=list)


@dataclass
class Manifest:
    """A CSV import manifest."""

    model: ImportSection = field(default_factory=ImportSection)
    instances: ImportSection = field(default_factory=ImportSection)
    id: str | None = None
    type: str | None = None
    context: Any = None
    name: str | None = None
    description: str | None = None
    ledger: str | None = None
