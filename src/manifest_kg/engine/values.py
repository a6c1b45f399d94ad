"""Conversion of raw cell text into typed RDF values."""

from datetime import datetime
from decimal import Decimal, InvalidOperation
import re

from rdflib import Literal
from rdflib.namespace import XSD

from .state import Datatype

# Tried in order; partial dates default to the first day of the period
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%Y",
    "%Y-%m",
    "%Y/%m",
    "%b %Y",
    "%B %Y",
    "%m-%Y",
)

_NUMBER_NOISE = re.compile(r"[$%,\s]")

_TRUE_VALUES = frozenset({"true", "1", "yes", "y"})
_FALSE_VALUES = frozenset({"false", "0", "no", "n"})


class ValueConversionError(ValueError):
    """Raised when a cell cannot be converted to its property's datatype."""


def parse_date(raw: str) -> str:
    """
    Normalize a date in any supported format to ISO ``YYYY-MM-DD``.

    Args:
        raw: Date text, e.g. "June 17, 2024" or "2024-06"

    Returns:
        str: ISO date

    Raises:
        ValueConversionError: If no supported format matches
    """
    text = raw.strip()
    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format).strftime("%Y-%m-%d")
        except ValueError:
            continue
    raise ValueConversionError(f"Unrecognized date '{raw}'")


def parse_integer(raw: str) -> int:
    text = _NUMBER_NOISE.sub("", raw)
    try:
        return int(text)
    except ValueError:
        try:
            number = Decimal(text)
        except InvalidOperation as e:
            raise ValueConversionError(f"Invalid integer '{raw}'") from e
        if number != number.to_integral_value():
            raise ValueConversionError(f"Invalid integer '{raw}'")
        return int(number)


def parse_decimal(raw: str) -> Decimal:
    text = _NUMBER_NOISE.sub("", raw)
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise ValueConversionError(f"Invalid decimal '{raw}'") from e


def parse_boolean(raw: str) -> bool:
    text = raw.strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueConversionError(f"Invalid boolean '{raw}'")


def to_literal(raw: str, datatype: Datatype) -> Literal:
    """
    Convert a cell to a typed literal.

    Args:
        raw: Cell text (already stripped and non-empty)
        datatype: Datatype of the property the cell belongs to

    Returns:
        Literal: Typed literal

    Raises:
        ValueConversionError: If the text is not valid for the datatype
    """
    if datatype is Datatype.DATE:
        return Literal(parse_date(raw), datatype=XSD.date)
    if datatype is Datatype.INTEGER:
        return Literal(parse_integer(raw), datatype=XSD.integer)
    if datatype is Datatype.DECIMAL:
        return Literal(parse_decimal(raw), datatype=XSD.decimal)
    if datatype is Datatype.BOOLEAN:
        return Literal(parse_boolean(raw), datatype=XSD.boolean)
    return Literal(raw)


def split_values(raw: str, datatype: Datatype, delimiter: str | None) -> list[str]:
    """Split a multi-valued cell; string-typed cells are never split."""
    if not delimiter or datatype is Datatype.STRING:
        return [raw]
    return [part.strip() for part in raw.split(delimiter) if part.strip()]

