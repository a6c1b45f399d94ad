"""Manifest loading and validation."""

from enum import Enum
import json
import logging
from pathlib import Path
from typing import Any

from dacite import Config, DaciteError, from_dict
import yaml

from ..engine.errors import ConfigurationError
from ..engine.references import (
    CLASS_ID,
    PROPERTY_ID,
    PROPERTY_VALUE,
    EntityKind,
    parse_reference,
)
from .models import (
    IDENTITY_OVERRIDE,
    INSTANCE_KINDS,
    MANIFEST_TYPE,
    VOCABULARY_KINDS,
    ImportSection,
    ImportStep,
    Manifest,
    StepKind,
)

logger = logging.getLogger(__name__)

_MANIFEST_KEYS = {
    "@id": "id",
    "@type": "type",
    "@context": "context",
}

_SECTION_KEYS = {
    "baseIRI": "base_iri",
    "namespaceIris": "namespace_iris",
}

_STEP_KEYS = {
    "@type": "types",
    "extraItems": "extra_items",
    "subClassOf": "sub_class_of",
    "replaceClassIdWith": "replace_class_id_with",
    "replacePropertyIdWith": "replace_property_id_with",
    "subClassProperty": "sub_class_property",
    "instanceType": "instance_type",
    "pivotColumns": "pivot_columns",
    "delimitValuesOn": "delimit_values_on",
    "mapToLabel": "map_to_label",
}

_ITEM_KEYS = {
    "mapTo": "map_to",
    "onEntity": "on_entity",
    "instanceType": "instance_type",
    "newRelationshipProperty": "new_relationship_property",
}


def strip_json_comments(text: str) -> str:
    """
    Remove ``//`` and ``/* */`` comments from JSON text.

    Comment markers inside string literals are left untouched. Newlines of
    removed comments are kept so parser error positions stay meaningful.

    Args:
        text: JSON text with comments

    Returns:
        str: Plain JSON text
    """
    result: list[str] = []
    i = 0
    length = len(text)
    in_string = False

    while i < length:
        char = text[i]
        if in_string:
            result.append(char)
            if char == "\\" and i + 1 < length:
                result.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            result.append(char)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise ConfigurationError("Unterminated block comment in manifest")
            result.append("\n" * text.count("\n", i, end))
            i = end + 2
        else:
            result.append(char)
            i += 1

    return "".join(result)


def _rename(data: dict[str, Any], names: dict[str, str]) -> dict[str, Any]:
    return {names.get(key, key): value for key, value in data.items()}


def _as_list(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    return value


def _normalize_step(entry: Any, default_kind: StepKind) -> dict[str, Any]:
    if isinstance(entry, str):
        return {"path": entry, "types": [default_kind.value]}
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Invalid sequence entry: {entry!r}")

    step = _rename(entry, _STEP_KEYS)
    if "types" in step:
        step["types"] = _as_list(step["types"])
    if "sub_class_of" in step:
        step["sub_class_of"] = _as_list(step["sub_class_of"])
    for key in ("overrides", "extra_items", "pivot_columns"):
        if isinstance(step.get(key), list):
            step[key] = [
                _rename(item, _ITEM_KEYS) if isinstance(item, dict) else item
                for item in step[key]
            ]
    return step


def _normalize_section(data: Any, default_kind: StepKind) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid manifest section: {data!r}")
    section = _rename(data, _SECTION_KEYS)
    section["sequence"] = [
        _normalize_step(entry, default_kind) for entry in section.get("sequence", [])
    ]
    return section


def parse_manifest(data: dict[str, Any], strict: bool = False) -> Manifest:
    """
    Build and validate a manifest from its parsed document.

    Args:
        data: Manifest document as decoded from JSON or YAML
        strict: Treat recoverable issues (duplicate steps) as errors

    Returns:
        Manifest: The validated manifest

    Raises:
        ConfigurationError: If the document is malformed or invalid
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Manifest must be a JSON object")

    document = _rename(data, _MANIFEST_KEYS)
    if "model" in document:
        document["model"] = _normalize_section(
            document["model"], StepKind.BASIC_VOCABULARY
        )
    if "instances" in document:
        document["instances"] = _normalize_section(
            document["instances"], StepKind.BASIC_INSTANCE
        )

    try:
        manifest = from_dict(
            data_class=Manifest,
            data=document,
            config=Config(strict=True, cast=[Enum]),
        )
    except (DaciteError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Failed to parse manifest: {e}") from e

    validate_manifest(manifest, strict=strict)
    return manifest


def load_manifest(manifest_path: str | Path, strict: bool = False) -> Manifest:
    """
    Load a manifest from a JSON (comments allowed) or YAML file.

    Args:
        manifest_path: Path of the manifest file
        strict: Treat recoverable issues (duplicate steps) as errors

    Returns:
        Manifest: The validated manifest
    """
    manifest_path = Path(manifest_path)

    if not manifest_path.exists():
        raise ConfigurationError(f"Manifest file not found: {manifest_path}")

    with open(manifest_path, encoding="utf-8") as f:
        text = f.read()

    try:
        if manifest_path.suffix.lower() in [".yaml", ".yml"]:
            data = yaml.safe_load(text)
        else:
            data = json.loads(strip_json_comments(text))
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read manifest {manifest_path}: {e}") from e

    logger.info(f"Loaded manifest {manifest_path}")
    return parse_manifest(data, strict=strict)


def validate_manifest(manifest: Manifest, strict: bool = False) -> list[str]:
    """
    Validate a manifest in place.

    Duplicate step paths within a phase are removed (or rejected in strict
    mode) and bare instance steps get their default instance type.

    Args:
        manifest: Manifest to validate
        strict: Treat recoverable issues as errors

    Returns:
        list[str]: Warnings for the issues that were recovered from

    Raises:
        ConfigurationError: On the first invalid definition found
    """
    warnings: list[str] = []

    if manifest.type is not None and manifest.type != MANIFEST_TYPE:
        raise ConfigurationError(
            f"Invalid manifest type '{manifest.type}', expected '{MANIFEST_TYPE}'"
        )

    for phase, section in (("model", manifest.model), ("instances", manifest.instances)):
        warnings.extend(_deduplicate_steps(phase, section, strict))
        for step in section.sequence:
            try:
                if phase == "model":
                    _validate_vocabulary_step(step)
                else:
                    warnings.extend(_validate_instance_step(step))
            except ConfigurationError as e:
                raise e.with_step(step.path)

    for warning in warnings:
        logger.warning(warning)
    return warnings


def _deduplicate_steps(phase: str, section: ImportSection, strict: bool) -> list[str]:
    warnings: list[str] = []
    seen: set[str] = set()
    unique: list[ImportStep] = []

    for step in section.sequence:
        if not step.path:
            raise ConfigurationError(f"A {phase} step has an empty path")
        if step.path in seen:
            message = f"Duplicate {phase} step for path '{step.path}'"
            if strict:
                raise ConfigurationError(message, step_path=step.path)
            warnings.append(f"{message}, ignoring the repeated step")
            continue
        seen.add(step.path)
        unique.append(step)

    section.sequence = unique
    return warnings


def _single_kind(step: ImportStep, allowed: frozenset[StepKind], phase: str) -> StepKind:
    kinds = [kind for kind in step.types if kind in allowed]
    misplaced = [
        kind
        for kind in step.types
        if kind not in allowed and kind is not StepKind.CSV_IMPORT
    ]
    if misplaced:
        raise ConfigurationError(
            f"Step types {[k.value for k in misplaced]} are not valid in the {phase} phase"
        )
    if len(kinds) != 1:
        names = sorted(kind.value for kind in allowed)
        raise ConfigurationError(
            f"A {phase} step must have exactly one of {names}, "
            f"got {[k.value for k in kinds]}"
        )
    return kinds[0]


def _check_column_overlap(step: ImportStep) -> None:
    overridden = {override.column for override in step.overrides}
    for item in step.extra_items:
        if item.column in overridden:
            raise ConfigurationError(
                f"Column '{item.column}' is named by both overrides and extraItems",
                column=item.column,
            )


def _validate_vocabulary_step(step: ImportStep) -> None:
    kind = _single_kind(step, VOCABULARY_KINDS, "model")

    if kind is StepKind.SUBCLASS_VOCABULARY and not step.sub_class_of:
        raise ConfigurationError("SubClassVocabularyStep requires 'subClassOf'")

    for override in step.overrides:
        reference = parse_reference(override.map_to)
        if kind is StepKind.SUBCLASS_VOCABULARY and reference.kind is not EntityKind.CLASS:
            raise ConfigurationError(
                f"SubClassVocabularyStep only accepts $Class overrides, got "
                f"'{override.map_to}'",
                column=override.column,
            )

    if step.replace_class_id_with:
        reference = parse_reference(step.replace_class_id_with)
        if reference.kind is not EntityKind.CLASS or reference == CLASS_ID:
            raise ConfigurationError(
                f"'replaceClassIdWith' must name a $Class field other than "
                f"$Class.ID, got '{step.replace_class_id_with}'"
            )

    if step.replace_property_id_with:
        reference = parse_reference(step.replace_property_id_with)
        if reference.kind is not EntityKind.PROPERTY or reference == PROPERTY_ID:
            raise ConfigurationError(
                f"'replacePropertyIdWith' must name a $Property field other than "
                f"$Property.ID, got '{step.replace_property_id_with}'"
            )

    for item in step.extra_items:
        if not item.column or not item.map_to:
            raise ConfigurationError("extraItems entries need 'column' and 'mapTo'")

    _check_column_overlap(step)


def _validate_instance_step(step: ImportStep) -> list[str]:
    warnings: list[str] = []
    kind = _single_kind(step, INSTANCE_KINDS, "instances")

    if not step.instance_type:
        step.instance_type = step.default_instance_type()
        warnings.append(
            f"Step '{step.path}' has no instanceType, using '{step.instance_type}'"
        )

    if kind is StepKind.SUBCLASS_INSTANCE and not step.sub_class_property:
        raise ConfigurationError("SubClassInstanceStep requires 'subClassProperty'")

    if step.delimit_values_on and step.pivot_columns:
        raise ConfigurationError(
            "'delimitValuesOn' cannot be combined with 'pivotColumns'"
        )

    for group in step.pivot_columns or []:
        if not group.instance_type or not group.new_relationship_property:
            raise ConfigurationError(
                "pivotColumns entries need 'instanceType' and 'newRelationshipProperty'"
            )
        if not group.columns:
            raise ConfigurationError(
                f"Pivot group for '{group.instance_type}' lists no columns"
            )

    for override in step.overrides:
        if override.map_to == IDENTITY_OVERRIDE:
            continue
        reference = parse_reference(override.map_to)
        if kind is not StepKind.PROPERTIES_INSTANCE or reference not in (
            PROPERTY_ID,
            PROPERTY_VALUE,
        ):
            raise ConfigurationError(
                f"Override '{override.map_to}' is not supported by "
                f"{kind.value}",
                column=override.column,
            )

    if step.extra_items:
        raise ConfigurationError(
            "extraItems are only supported by vocabulary steps"
        )

    return warnings
