"""Naming and IRI utilities."""

import hashlib
import re
from urllib.parse import quote, urljoin

_ABSOLUTE_IRI_PATTERN = re.compile(
    r"^(?:[A-Za-z][A-Za-z0-9+.-]*://|(?:urn|mailto|tag):)\S+$", re.IGNORECASE
)
_WORD_SPLIT_PATTERN = re.compile(r"[^0-9A-Za-z]+")
_KEBAB_BOUNDARY_PATTERN = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def is_absolute_iri(value: str) -> bool:
    """
    Return True if the value already is an absolute IRI.

    Only hierarchical IRIs ("scheme://...") and the urn, mailto and tag
    schemes count; a bare "word:rest" such as "Part:001" is an identifier.
    """
    return bool(value) and _ABSOLUTE_IRI_PATTERN.match(value.strip()) is not None


def to_pascal_case(value: str) -> str:
    """
    Convert a free-text identifier to PascalCase.

    Word boundaries are any non-alphanumeric characters. The first letter of
    each word is upper-cased and the rest is kept as is, so acronyms survive.

    Args:
        value: Identifier such as "Bill of Materials" or "DRAM"

    Returns:
        str: PascalCase identifier such as "BillOfMaterials" or "DRAM"
    """
    words = [word for word in _WORD_SPLIT_PATTERN.split(value) if word]
    return "".join(word[0].upper() + word[1:] for word in words)


def to_camel_case(value: str) -> str:
    """Convert a free-text identifier to camelCase ("has Material" -> "hasMaterial")."""
    pascal = to_pascal_case(value)
    if not pascal:
        return pascal
    return pascal[0].lower() + pascal[1:]


def to_kebab_case(value: str) -> str:
    """Convert an identifier to kebab-case ("BillOfMaterials" -> "bill-of-materials")."""
    pascal = to_pascal_case(value)
    return _KEBAB_BOUNDARY_PATTERN.sub("-", pascal).lower()


def expand_iri(base_iri: str, value: str) -> str:
    """
    Expand a relative identifier against a base IRI.

    Args:
        base_iri: Base IRI, usually ending in "/" or "#"
        value: Absolute IRI or identifier relative to the base

    Returns:
        str: Absolute IRI, or the value unchanged if it already is one
    """
    value = value.strip()
    if is_absolute_iri(value) or not base_iri:
        return value
    if base_iri.endswith(("#", "/")):
        return f"{base_iri}{value}"
    return urljoin(base_iri, value)


def class_iri(base_iri: str, identifier: str) -> str:
    """Build the IRI of a class from its source identifier."""
    identifier = identifier.strip()
    if is_absolute_iri(identifier):
        return identifier
    return expand_iri(base_iri, to_pascal_case(identifier))


def property_iri(base_iri: str, identifier: str) -> str:
    """Build the IRI of a property from its source identifier."""
    identifier = identifier.strip()
    if is_absolute_iri(identifier):
        return identifier
    return expand_iri(base_iri, to_camel_case(identifier))


def entity_iri(
    base_iri: str, instance_type: str, key: str, namespace_iris: bool = True
) -> str:
    """
    Build the IRI of an entity.

    Args:
        base_iri: Base IRI of the instances phase
        instance_type: Class identifier the entity is an instance of
        key: Identity key of the entity (identity column value or row hash),
            always percent-encoded under the base so it cannot leave it
        namespace_iris: Prefix the key with the kebab-cased instance type

    Returns:
        str: Entity IRI
    """
    local_name = quote(key.strip(), safe="-._~")
    if namespace_iris:
        local_name = f"{to_kebab_case(local_name_of(instance_type))}/{local_name}"
    return expand_iri(base_iri, local_name)


def local_name_of(iri: str) -> str:
    """Return the fragment or last path segment of an IRI."""
    for separator in ("#", "/"):
        if separator in iri:
            tail = iri.rsplit(separator, 1)[1]
            if tail:
                return tail
    return iri


def content_hash(*parts: str) -> str:
    """Stable SHA-224 digest over the given parts."""
    identifier = "\x1f".join(parts)
    return hashlib.sha224(identifier.encode()).hexdigest()
