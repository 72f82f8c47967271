"""Tests for characteristic applicability."""

from catalog_codegen.catalog.models import (
    TechnicalCharacteristic,
    TechnicalCharacteristicFamily,
    TechnicalCharacteristicVariant,
    Variant,
)
from catalog_codegen.domain.applicability import family_variant_ids, is_applicable, resolve_applicable

FAMILY = "family-valve"
OTHER_FAMILY = "family-pump"


def make_characteristic(
    characteristic_id: str,
    family_ids: list[str],
    variants: list[tuple[str, str | None]] | None = None,
) -> TechnicalCharacteristic:
    """Build a transient characteristic with its associations."""
    links = []
    for variant_id, variant_family in variants or []:
        link = TechnicalCharacteristicVariant(variant_id=variant_id)
        if variant_family is not None:
            link.variant = Variant(id=variant_id, family_id=variant_family, code=variant_id)
        links.append(link)
    return TechnicalCharacteristic(
        id=characteristic_id,
        name=characteristic_id.upper(),
        type="string",
        families=[TechnicalCharacteristicFamily(family_id=family_id) for family_id in family_ids],
        variants=links,
    )


class TestFamilyWide:
    """Characteristics without variant associations in the family."""

    def test_applies_without_selection(self) -> None:
        """Family-wide characteristics apply when nothing is selected."""
        characteristic = make_characteristic("diameter", [FAMILY])
        assert is_applicable(characteristic, FAMILY, set())

    def test_does_not_apply_with_selection(self) -> None:
        """Family-wide characteristics disappear once a variant is selected."""
        characteristic = make_characteristic("diameter", [FAMILY])
        assert not is_applicable(characteristic, FAMILY, {"v-m"})

    def test_requires_family_link(self) -> None:
        """A characteristic of another family never applies."""
        characteristic = make_characteristic("flow", [OTHER_FAMILY])
        assert not is_applicable(characteristic, FAMILY, set())

    def test_variants_of_other_families_ignored(self) -> None:
        """Variant links outside the family leave it family-wide."""
        characteristic = make_characteristic(
            "pressure",
            [FAMILY, OTHER_FAMILY],
            variants=[("v-pump", OTHER_FAMILY)],
        )
        assert family_variant_ids(characteristic, FAMILY) == set()
        assert is_applicable(characteristic, FAMILY, set())


class TestVariantScoped:
    """Characteristics tied to variants of the family."""

    def test_applies_when_variant_selected(self) -> None:
        """A linked variant in the selection makes it apply."""
        characteristic = make_characteristic("voltage", [FAMILY], variants=[("v-m", FAMILY)])
        assert is_applicable(characteristic, FAMILY, {"v-m"})

    def test_does_not_apply_for_other_variant(self) -> None:
        """Selecting another variant excludes it."""
        characteristic = make_characteristic("voltage", [FAMILY], variants=[("v-m", FAMILY)])
        assert not is_applicable(characteristic, FAMILY, {"v-h"})

    def test_does_not_apply_without_selection(self) -> None:
        """Variant-scoped characteristics need a selection."""
        characteristic = make_characteristic("voltage", [FAMILY], variants=[("v-m", FAMILY)])
        assert not is_applicable(characteristic, FAMILY, set())

    def test_union_membership_across_levels(self) -> None:
        """A match on either level is enough."""
        characteristic = make_characteristic("voltage", [FAMILY], variants=[("v-m", FAMILY)])
        assert is_applicable(characteristic, FAMILY, {"v-m", "v-e"})

    def test_malformed_variant_link_ignored(self) -> None:
        """Links without a loaded variant are skipped."""
        characteristic = make_characteristic("seal", [FAMILY], variants=[("v-missing", None)])
        assert family_variant_ids(characteristic, FAMILY) == set()
        assert is_applicable(characteristic, FAMILY, set())


class TestResolveApplicable:
    """Tests for the resolver over a candidate list."""

    def test_ignores_null_selection_entries(self) -> None:
        """None variant ids count as no selection."""
        diameter = make_characteristic("diameter", [FAMILY])
        assert resolve_applicable([diameter], FAMILY, [None, None]) == [diameter]

    def test_scenario_variant_only_on_first_level(self) -> None:
        """A characteristic tied to X applies with X and not with Y."""
        tied = make_characteristic("voltage", [FAMILY], variants=[("x", FAMILY)])
        assert resolve_applicable([tied], FAMILY, ["x", None]) == [tied]
        assert resolve_applicable([tied], FAMILY, ["y", None]) == []

    def test_no_duplicates(self) -> None:
        """A characteristic listed twice is returned once."""
        colour = make_characteristic("colour", [FAMILY], variants=[("v-m", FAMILY), ("v-e", FAMILY)])
        result = resolve_applicable([colour, colour], FAMILY, ["v-m", "v-e"])
        assert result == [colour]

    def test_mixed_selection(self) -> None:
        """Only matching characteristics are returned."""
        colour = make_characteristic("colour", [FAMILY], variants=[("v-m", FAMILY), ("v-h", FAMILY)])
        voltage = make_characteristic("voltage", [FAMILY], variants=[("v-m", FAMILY)])
        diameter = make_characteristic("diameter", [FAMILY])
        result = resolve_applicable([colour, voltage, diameter], FAMILY, ["v-h"])
        assert [characteristic.id for characteristic in result] == ["colour"]
