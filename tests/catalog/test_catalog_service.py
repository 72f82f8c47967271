"""Tests for catalog management."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_codegen.catalog.pagination import PageParams
from catalog_codegen.catalog.service import CatalogService
from catalog_codegen.domain.exceptions import AlreadyExistsError, CatalogValidationError, NotFoundError
from catalog_codegen.domain.value_objects import CharacteristicType, VariantLevel
from tests.conftest import ValveCatalog


@pytest.fixture
def catalog(session: AsyncSession) -> CatalogService:
    """Catalog service bound to the test session."""
    return CatalogService(session)


class TestFamilies:
    """Tests for families."""

    @pytest.mark.asyncio
    async def test_name_stored_normalized(self, catalog: CatalogService) -> None:
        """Family names are stored upper-cased without accents."""
        family = await catalog.create_family("  Vérin ")

        assert family.name == "VERIN"
        assert [f.id for f in await catalog.list_families()] == [family.id]

    @pytest.mark.asyncio
    async def test_equivalent_name_rejected(self, catalog: CatalogService) -> None:
        """Names differing only by case or accents clash."""
        await catalog.create_family("Vérin")

        with pytest.raises(AlreadyExistsError) as exc_info:
            await catalog.create_family("verin")
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_get_unknown_family(self, catalog: CatalogService) -> None:
        """Unknown families are not found."""
        with pytest.raises(NotFoundError):
            await catalog.get_family("missing-family")

    @pytest.mark.asyncio
    async def test_created_family_committed(self, session: AsyncSession, catalog: CatalogService) -> None:
        """A created family survives a rollback of the session."""
        family_id = (await catalog.create_family("Vérin")).id

        await session.rollback()

        assert [f.id for f in await catalog.list_families()] == [family_id]

    @pytest.mark.asyncio
    async def test_concurrent_equivalent_name(
        self, catalog: CatalogService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A name stored by a concurrent request is rejected by the unique constraint."""
        family_id = (await catalog.create_family("Vérin")).id

        async def stale_families() -> list:
            return []

        monkeypatch.setattr(catalog.repository, "list_families", stale_families)

        with pytest.raises(AlreadyExistsError) as exc_info:
            await catalog.create_family("VERIN")
        assert exc_info.value.status_code == 409

        monkeypatch.undo()
        assert [f.id for f in await catalog.list_families()] == [family_id]

    @pytest.mark.asyncio
    async def test_search_families(self, catalog: CatalogService) -> None:
        """Families are searched ignoring case and accents, then paginated."""
        for name in ("Vanne", "Vérin", "Pompe", "Clapet"):
            await catalog.create_family(name)

        found = await catalog.search_families(PageParams(search="  VER "))
        first_page = await catalog.search_families(PageParams(limit=3))
        last_page = await catalog.search_families(PageParams(offset=3, limit=3))

        assert [family.name for family in found.items] == ["VERIN"]
        assert found.total == 1
        assert first_page.total == 4
        assert len(first_page.items) == 3
        assert first_page.has_more is True
        assert len(last_page.items) == 1
        assert last_page.has_more is False


class TestVariants:
    """Tests for variants."""

    @pytest.mark.asyncio
    async def test_code_unique_per_level(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """A code is unique within its family and level only."""
        with pytest.raises(AlreadyExistsError):
            await catalog.create_variant(valves.family_id, "Motorisée bis", "m", VariantLevel.FIRST)

        second_level = await catalog.create_variant(valves.family_id, "Motorisée", "m", VariantLevel.SECOND)
        assert second_level.code == "M"
        assert second_level.variant_level == VariantLevel.SECOND.value

    @pytest.mark.asyncio
    async def test_same_code_in_other_family(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Other families may reuse a code."""
        pumps = await catalog.create_family("Pompe")

        variant = await catalog.create_variant(pumps.id, "Manuelle", "H")

        assert variant.family_id == pumps.id

    @pytest.mark.asyncio
    async def test_empty_code_rejected(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Variants need a code."""
        with pytest.raises(CatalogValidationError):
            await catalog.create_variant(valves.family_id, "Sans code", "  ")

    @pytest.mark.asyncio
    async def test_unknown_family(self, catalog: CatalogService) -> None:
        """Variants need an existing family."""
        with pytest.raises(NotFoundError):
            await catalog.create_variant("missing-family", "Manuelle", "H")

    @pytest.mark.asyncio
    async def test_exclusions_are_bidirectional(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Excluding a variant excludes it both ways."""
        flanged = await catalog.create_variant(
            valves.family_id,
            "À brides",
            "B",
            VariantLevel.SECOND,
            excluded_variant_ids=[valves.manual_id],
        )

        assert await catalog.excluded_variant_ids(flanged.id) == [valves.manual_id]
        assert await catalog.excluded_variant_ids(valves.manual_id) == [flanged.id]
        assert await catalog.excluded_variant_ids(valves.motorised_id) == []

    @pytest.mark.asyncio
    async def test_exclusion_of_unknown_variant(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Excluded variants must exist."""
        with pytest.raises(NotFoundError):
            await catalog.create_variant(
                valves.family_id, "À brides", "B", VariantLevel.SECOND, excluded_variant_ids=["missing"]
            )

    @pytest.mark.asyncio
    async def test_exclusion_across_families(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Excluded variants must belong to the same family."""
        pumps = await catalog.create_family("Pompe")

        with pytest.raises(CatalogValidationError):
            await catalog.create_variant(pumps.id, "Immergée", "I", excluded_variant_ids=[valves.manual_id])

    @pytest.mark.asyncio
    async def test_list_by_family(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Variants can be listed per family."""
        pumps = await catalog.create_family("Pompe")
        await catalog.create_variant(pumps.id, "Immergée", "I")

        valve_codes = {variant.code for variant in await catalog.list_variants(valves.family_id)}

        assert valve_codes == {"H", "M", "E"}
        assert len(await catalog.list_variants()) == 4

    @pytest.mark.asyncio
    async def test_search_variants(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Variants are searched by name, code and family name."""
        pumps = await catalog.create_family("Pompe")
        await catalog.create_variant(pumps.id, "Immergée", "I")

        by_name = await catalog.search_variants(PageParams(search="motorisee"))
        by_family = await catalog.search_variants(PageParams(search="pompe"))
        in_family = await catalog.search_variants(PageParams(search="e"), family_id=valves.family_id)

        assert [variant.code for variant in by_name.items] == ["M"]
        assert [variant.code for variant in by_family.items] == ["I"]
        assert {variant.code for variant in in_family.items} == {"H", "M", "E"}


class TestProducts:
    """Tests for product types and products."""

    @pytest.mark.asyncio
    async def test_product_type_clashes(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Product type names and codes are unique."""
        with pytest.raises(AlreadyExistsError):
            await catalog.create_product_type("corps", "X")
        with pytest.raises(AlreadyExistsError):
            await catalog.create_product_type("Tête", "c")

    @pytest.mark.asyncio
    async def test_product_hydrated(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """A created product carries its family and type."""
        product = await catalog.create_product("Clapet", "cl", valves.family_id, valves.product_type_id)

        assert product.code == "CL"
        assert product.family.name == "VANNE"
        assert product.product_type.code == "C"

    @pytest.mark.asyncio
    async def test_product_clashes(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Product names and codes are unique."""
        with pytest.raises(AlreadyExistsError):
            await catalog.create_product("VANNE A OPERCULE", "XX", valves.family_id, valves.product_type_id)
        with pytest.raises(AlreadyExistsError):
            await catalog.create_product("Clapet", "vo", valves.family_id, valves.product_type_id)

    @pytest.mark.asyncio
    async def test_search_products(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Products are searched by their own, family and type fields."""
        other_type = await catalog.create_product_type("Tête", "T")
        pumps = await catalog.create_family("Pompe")
        await catalog.create_product("Pompe doseuse", "PD", pumps.id, other_type.id)

        by_name = await catalog.search_products(PageParams(search="papillon"))
        by_family = await catalog.search_products(PageParams(search="vanne"))
        by_type = await catalog.search_products(PageParams(search="tete"))
        types = await catalog.search_product_types(PageParams(search="c"))

        assert [product.code for product in by_name.items] == ["VP"]
        assert {product.code for product in by_family.items} == {"VO", "VP"}
        assert [product.code for product in by_type.items] == ["PD"]
        assert [product_type.code for product_type in types.items] == ["C"]

    @pytest.mark.asyncio
    async def test_product_references(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Products need an existing family and product type."""
        with pytest.raises(NotFoundError):
            await catalog.create_product("Clapet", "CL", "missing-family", valves.product_type_id)
        with pytest.raises(NotFoundError):
            await catalog.create_product("Clapet", "CL", valves.family_id, "missing-type")


class TestCharacteristics:
    """Tests for technical characteristics."""

    @pytest.mark.asyncio
    async def test_enum_options_normalized(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Enum options are stripped, normalized and deduplicated."""
        characteristic = await catalog.create_characteristic(
            "Matière",
            CharacteristicType.ENUM,
            enum_options=["Fonte", " fonte ", "Inox", ""],
            family_ids=[valves.family_id],
        )

        assert characteristic.name == "MATIERE"
        assert characteristic.enum_options == ["FONTE", "INOX"]
        assert characteristic.enum_multiple is False
        assert [link.family_id for link in characteristic.families] == [valves.family_id]

    @pytest.mark.asyncio
    async def test_enum_requires_options(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Enum characteristics need at least one option."""
        with pytest.raises(CatalogValidationError):
            await catalog.create_characteristic(
                "Matière", CharacteristicType.ENUM, enum_options=[" "], family_ids=[valves.family_id]
            )

    @pytest.mark.asyncio
    async def test_enum_option_length(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Enum options are limited to 30 characters."""
        with pytest.raises(CatalogValidationError) as exc_info:
            await catalog.create_characteristic(
                "Matière", CharacteristicType.ENUM, enum_options=["x" * 31], family_ids=[valves.family_id]
            )
        assert exc_info.value.details["options"] == ["x" * 31]

    @pytest.mark.asyncio
    async def test_non_enum_has_no_multiple_flag(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """The multiple flag only applies to enums."""
        characteristic = await catalog.create_characteristic(
            "Poids", CharacteristicType.NUMBER, enum_multiple=True, family_ids=[valves.family_id]
        )

        assert characteristic.enum_multiple is None
        assert characteristic.enum_options is None

    @pytest.mark.asyncio
    async def test_association_required(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """A characteristic must belong to a family or a variant."""
        with pytest.raises(CatalogValidationError):
            await catalog.create_characteristic("Poids", CharacteristicType.NUMBER)

    @pytest.mark.asyncio
    async def test_name_clash(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Characteristic names are unique."""
        with pytest.raises(AlreadyExistsError):
            await catalog.create_characteristic("couleur", CharacteristicType.STRING, family_ids=[valves.family_id])

    @pytest.mark.asyncio
    async def test_unknown_references(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Associated families and variants must exist."""
        with pytest.raises(NotFoundError):
            await catalog.create_characteristic("Poids", CharacteristicType.NUMBER, family_ids=["missing"])
        with pytest.raises(NotFoundError):
            await catalog.create_characteristic(
                "Poids", CharacteristicType.NUMBER, family_ids=[valves.family_id], variant_ids=["missing"]
            )

    @pytest.mark.asyncio
    async def test_variant_associations_loaded(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Created characteristics carry their variant links."""
        characteristic = await catalog.create_characteristic(
            "Course",
            CharacteristicType.NUMBER,
            family_ids=[valves.family_id],
            variant_ids=[valves.motorised_id, valves.motorised_id],
        )

        assert [link.variant.code for link in characteristic.variants] == ["M"]
        assert len(await catalog.list_characteristics()) == 5

    @pytest.mark.asyncio
    async def test_search_characteristics(self, catalog: CatalogService, valves: ValveCatalog) -> None:
        """Characteristics are searched by name or type."""
        by_name = await catalog.search_characteristics(PageParams(search="numero"))
        by_type = await catalog.search_characteristics(PageParams(search="enum"))
        everything = await catalog.search_characteristics(PageParams(search="   "))

        assert [characteristic.name for characteristic in by_name.items] == ["NUMERO DE SERIE"]
        assert [characteristic.name for characteristic in by_type.items] == ["TENSION MOTEUR"]
        assert everything.total == 4
