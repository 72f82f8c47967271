"""Duplicate detection for generated entries.

Two entries of the same product and variant selection are equivalent when
every applicable characteristic holds the same value on both sides,
compared case and accent insensitively, a missing value matching only a
missing value.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

from catalog_codegen.domain.normalizer import normalize_for_comparison

if TYPE_CHECKING:
    from catalog_codegen.catalog.models import GeneratedEntry, TechnicalCharacteristic

ValueMap = dict[str, str | None]


def comparison_key(text: str | None) -> str | None:
    """Normalize one value for duplicate comparison.

    Args:
        text: Value text, possibly None.

    Returns:
        Normalized text, or None for a missing or blank value.
    """
    if text is None or not text.strip():
        return None
    return normalize_for_comparison(text.strip())


def candidate_value_map(
    applicable: Sequence["TechnicalCharacteristic"],
    texts: Mapping[str, str | None],
) -> ValueMap:
    """Build the comparison map of a candidate over applicable characteristics.

    Args:
        applicable: Applicable characteristics.
        texts: Canonical value texts keyed by characteristic id.

    Returns:
        Map of characteristic id to comparison key.
    """
    return {characteristic.id: comparison_key(texts.get(characteristic.id)) for characteristic in applicable}


def stored_value_map(
    applicable: Sequence["TechnicalCharacteristic"],
    entry: "GeneratedEntry",
) -> ValueMap:
    """Build the comparison map of a stored entry over applicable characteristics.

    Stored values of characteristics that are not applicable are ignored.

    Args:
        applicable: Applicable characteristics.
        entry: Stored entry with its attribute values loaded.

    Returns:
        Map of characteristic id to comparison key.
    """
    values: ValueMap = {characteristic.id: None for characteristic in applicable}
    for attribute in entry.attribute_values:
        if attribute.technical_characteristic_id in values:
            values[attribute.technical_characteristic_id] = comparison_key(attribute.value)
    return values


def is_duplicate(
    applicable: Sequence["TechnicalCharacteristic"],
    candidate: ValueMap,
    candidate_has_values: bool,
    entry: "GeneratedEntry",
) -> bool:
    """Check whether a stored entry is equivalent to a candidate.

    With no applicable characteristic, entries are equivalent only when
    neither of them carries any value at all.

    Args:
        applicable: Applicable characteristics.
        candidate: Comparison map of the candidate.
        candidate_has_values: Whether the candidate supplied any non-blank value.
        entry: Stored entry sharing the candidate's product and variants.

    Returns:
        True if the entry duplicates the candidate.
    """
    if not applicable:
        return not entry.attribute_values and not candidate_has_values
    return stored_value_map(applicable, entry) == candidate


def find_duplicate(
    applicable: Sequence["TechnicalCharacteristic"],
    candidate: ValueMap,
    candidate_has_values: bool,
    entries: Iterable["GeneratedEntry"],
) -> "GeneratedEntry | None":
    """Find the first stored entry equivalent to a candidate.

    Args:
        applicable: Applicable characteristics.
        candidate: Comparison map of the candidate.
        candidate_has_values: Whether the candidate supplied any non-blank value.
        entries: Stored entries sharing the candidate's product and variants.

    Returns:
        The duplicate entry, or None.
    """
    for entry in entries:
        if is_duplicate(applicable, candidate, candidate_has_values, entry):
            return entry
    return None
