"""Applicability of technical characteristics to a variant selection.

A characteristic with no variant association inside a family is
family-wide: it applies only while no variant is selected. A
characteristic tied to variants applies as soon as one of those variants
is part of the selection.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from catalog_codegen.catalog.models import TechnicalCharacteristic

C = TypeVar("C", bound="TechnicalCharacteristic")


def family_variant_ids(characteristic: "TechnicalCharacteristic", family_id: str) -> set[str]:
    """Get the ids of the variants of ``family_id`` a characteristic is tied to.

    Associations whose variant is missing or has no family are ignored.

    Args:
        characteristic: Characteristic with its variant associations loaded.
        family_id: Family to restrict the associations to.

    Returns:
        Associated variant ids belonging to the family.
    """
    return {
        link.variant_id
        for link in characteristic.variants
        if link.variant is not None
        and link.variant.family_id
        and link.variant.family_id == family_id
    }


def is_applicable(
    characteristic: "TechnicalCharacteristic",
    family_id: str,
    selected_variant_ids: set[str],
) -> bool:
    """Check whether one characteristic applies to a selection.

    Args:
        characteristic: Characteristic with its associations loaded.
        family_id: Family of the product.
        selected_variant_ids: Selected variant ids, without nulls.

    Returns:
        True if the characteristic applies.
    """
    if not any(link.family_id == family_id for link in characteristic.families):
        return False

    scoped = family_variant_ids(characteristic, family_id)
    if not scoped:
        return not selected_variant_ids
    return bool(selected_variant_ids & scoped)


def resolve_applicable(
    characteristics: Iterable[C],
    family_id: str,
    variant_ids: Iterable[str | None],
) -> list[C]:
    """Compute the characteristics applicable to a family and a selection.

    Args:
        characteristics: Candidate characteristics of the family.
        family_id: Family of the product.
        variant_ids: Selected variant ids; None entries are ignored and the
            order is irrelevant.

    Returns:
        Applicable characteristics, each at most once.
    """
    selected = {variant_id for variant_id in variant_ids if variant_id}
    seen: set[str] = set()
    applicable: list[C] = []
    for characteristic in characteristics:
        if characteristic.id in seen:
            continue
        if is_applicable(characteristic, family_id, selected):
            seen.add(characteristic.id)
            applicable.append(characteristic)
    return applicable
