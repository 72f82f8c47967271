"""Value objects and typed attribute values.

Attribute values arrive as a loosely typed mapping of characteristic id to
value. Each value is checked against the declared type of its technical
characteristic and converted to a canonical text before the generation
engine compares or stores it.
"""

import json
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Protocol

from catalog_codegen.domain.exceptions import InvalidValueError
from catalog_codegen.domain.normalizer import normalize_for_comparison

MAX_VALUE_LENGTH = 30
MAX_ENUM_OPTION_LENGTH = 30

RawValue = str | int | float | bool | list[str] | None

_TRUE_WORDS = {"true", "1", "oui", "yes"}
_FALSE_WORDS = {"false", "0", "non", "no"}


class VariantLevel(str, Enum):
    """Level of a variant inside its family."""

    FIRST = "FIRST"
    SECOND = "SECOND"


class CharacteristicType(str, Enum):
    """Declared type of a technical characteristic."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class TypedCharacteristic(Protocol):
    """Characteristic attributes needed to validate a value."""

    id: str
    name: str
    type: str
    enum_options: list[str] | None
    enum_multiple: bool | None


def is_blank(value: object) -> bool:
    """Check whether a raw value means "no value".

    ``None``, whitespace-only strings and lists holding only blanks are
    blank. ``0`` and ``False`` are values.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return all(is_blank(item) for item in value)
    return False


def canonical_text(characteristic: TypedCharacteristic, value: RawValue) -> str | None:
    """Validate a raw value and convert it to its canonical text.

    Args:
        characteristic: Characteristic the value is given for.
        value: Raw value from the request.

    Returns:
        Canonical text, or None when the value is blank.

    Raises:
        InvalidValueError: If the value does not fit the declared type.
    """
    if is_blank(value):
        return None

    kind = characteristic.type
    if kind == CharacteristicType.NUMBER:
        return _number_text(characteristic, value)
    if kind == CharacteristicType.BOOLEAN:
        return _boolean_text(characteristic, value)
    if kind == CharacteristicType.ENUM:
        return _enum_text(characteristic, value)
    return _string_text(characteristic, value)


def _string_text(characteristic: TypedCharacteristic, value: RawValue) -> str:
    if isinstance(value, list):
        raise InvalidValueError(characteristic.name, value, "a single text value is expected")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _number_text(characteristic: TypedCharacteristic, value: RawValue) -> str:
    if isinstance(value, (bool, list)):
        raise InvalidValueError(characteristic.name, value, "a number is expected")
    try:
        if isinstance(value, str):
            number = Decimal(value.strip().replace(",", "."))
        else:
            number = Decimal(str(value))
    except InvalidOperation:
        raise InvalidValueError(characteristic.name, value, "a number is expected") from None
    if not number.is_finite():
        raise InvalidValueError(characteristic.name, value, "a finite number is expected")
    return format(number.normalize(), "f")


def _boolean_text(characteristic: TypedCharacteristic, value: RawValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, str)):
        word = str(value).strip().lower()
        if word in _TRUE_WORDS:
            return "true"
        if word in _FALSE_WORDS:
            return "false"
    raise InvalidValueError(characteristic.name, value, "a boolean is expected")


def _enum_text(characteristic: TypedCharacteristic, value: RawValue) -> str | None:
    options = list(characteristic.enum_options or [])
    by_key = {normalize_for_comparison(option): option for option in options}

    items = _enum_items(characteristic, value)
    chosen: set[str] = set()
    for item in items:
        option = by_key.get(normalize_for_comparison(item.strip()))
        if option is None:
            raise InvalidValueError(
                characteristic.name,
                item,
                f"allowed options are {', '.join(options)}",
            )
        chosen.add(option)

    if not chosen:
        return None
    if characteristic.enum_multiple:
        return json.dumps([option for option in options if option in chosen], ensure_ascii=False)
    if len(chosen) > 1:
        raise InvalidValueError(characteristic.name, value, "a single option is expected")
    return chosen.pop()


def _enum_items(characteristic: TypedCharacteristic, value: RawValue) -> Sequence[str]:
    if isinstance(value, str):
        text = value.strip()
        # Multi-select values may arrive JSON encoded
        if characteristic.enum_multiple and text.startswith("["):
            try:
                decoded = json.loads(text)
            except ValueError:
                raise InvalidValueError(characteristic.name, value, "malformed option list") from None
            return _enum_items(characteristic, decoded)
        return [text]
    if isinstance(value, list):
        if not all(isinstance(item, str) for item in value):
            raise InvalidValueError(characteristic.name, value, "options must be text")
        return [item for item in value if item.strip()]
    raise InvalidValueError(characteristic.name, value, "an option is expected")
