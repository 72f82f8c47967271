"""Catalog repositories for database operations.

Provides the queries and writes the generation engine and the catalog
service issue against the relational store.
"""

from collections.abc import Sequence

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from catalog_codegen.catalog.models import (
    AttributeValue,
    Family,
    GeneratedEntry,
    Product,
    ProductType,
    TechnicalCharacteristic,
    TechnicalCharacteristicFamily,
    TechnicalCharacteristicVariant,
    Variant,
    VariantExclusion,
)


class CatalogRepository:
    """Repository for families, variants, characteristics and products.

    Example usage:
        async with async_session_factory() as session:
            repo = CatalogRepository(session)
            characteristics = await repo.list_characteristics_for_family(family_id)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def add(self, instance: object) -> None:
        """Add a new catalog object and flush it.

        Args:
            instance: Mapped object to persist.
        """
        self.session.add(instance)
        await self.session.flush()

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    async def get_family(self, family_id: str) -> Family | None:
        """Get family by ID."""
        return await self.session.get(Family, family_id)

    async def list_families(self) -> Sequence[Family]:
        """List families ordered by name."""
        result = await self.session.execute(select(Family).order_by(Family.name))
        return result.scalars().all()

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    async def get_variant(self, variant_id: str) -> Variant | None:
        """Get variant by ID."""
        return await self.session.get(Variant, variant_id)

    async def get_variants(self, variant_ids: Sequence[str]) -> Sequence[Variant]:
        """Get the variants matching a list of IDs.

        Args:
            variant_ids: Variant IDs.

        Returns:
            Variants found, in no particular order.
        """
        if not variant_ids:
            return []
        result = await self.session.execute(select(Variant).where(Variant.id.in_(variant_ids)))
        return result.scalars().all()

    async def list_variants(self, family_id: str | None = None) -> Sequence[Variant]:
        """List variants, optionally restricted to a family.

        Args:
            family_id: Optional family filter.

        Returns:
            Variants ordered by level and code.
        """
        query = select(Variant)
        if family_id is not None:
            query = query.where(Variant.family_id == family_id)
        query = query.order_by(Variant.variant_level, Variant.code)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def add_exclusions(self, variant_id: str, excluded_ids: Sequence[str]) -> None:
        """Store bidirectional exclusions between a variant and others.

        Args:
            variant_id: Variant the exclusions are declared on.
            excluded_ids: Variants that cannot be selected with it.
        """
        for excluded_id in excluded_ids:
            self.session.add(VariantExclusion(variant_id_1=variant_id, variant_id_2=excluded_id))
            self.session.add(VariantExclusion(variant_id_1=excluded_id, variant_id_2=variant_id))
        await self.session.flush()

    async def list_excluded_variant_ids(self, variant_id: str) -> list[str]:
        """Get the IDs of the variants excluded by a variant."""
        result = await self.session.execute(
            select(VariantExclusion.variant_id_2).where(VariantExclusion.variant_id_1 == variant_id)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Technical characteristics
    # ------------------------------------------------------------------

    def _characteristic_query(self) -> Select:
        return (
            select(TechnicalCharacteristic)
            .options(
                selectinload(TechnicalCharacteristic.families),
                selectinload(TechnicalCharacteristic.variants).selectinload(TechnicalCharacteristicVariant.variant),
            )
            .execution_options(populate_existing=True)
        )

    async def list_characteristics(self) -> Sequence[TechnicalCharacteristic]:
        """List all characteristics with their associations, ordered by name."""
        result = await self.session.execute(
            self._characteristic_query().order_by(TechnicalCharacteristic.name)
        )
        return result.scalars().all()

    async def list_characteristics_for_family(self, family_id: str) -> Sequence[TechnicalCharacteristic]:
        """List the characteristics associated with a family.

        Family and variant associations are loaded, each variant with its
        family id, as the applicability rules need them.

        Args:
            family_id: Family ID.

        Returns:
            Characteristics ordered by name.
        """
        query = (
            self._characteristic_query()
            .where(
                TechnicalCharacteristic.families.any(TechnicalCharacteristicFamily.family_id == family_id)
            )
            .order_by(TechnicalCharacteristic.name)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def get_characteristic(self, characteristic_id: str) -> TechnicalCharacteristic | None:
        """Get characteristic by ID with its associations."""
        result = await self.session.execute(
            self._characteristic_query().where(TechnicalCharacteristic.id == characteristic_id)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Product types and products
    # ------------------------------------------------------------------

    async def get_product_type(self, product_type_id: str) -> ProductType | None:
        """Get product type by ID."""
        return await self.session.get(ProductType, product_type_id)

    async def list_product_types(self) -> Sequence[ProductType]:
        """List product types ordered by name."""
        result = await self.session.execute(select(ProductType).order_by(ProductType.name))
        return result.scalars().all()

    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID with its family and product type.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.
        """
        result = await self.session.execute(
            select(Product)
            .where(Product.id == product_id)
            .options(selectinload(Product.family), selectinload(Product.product_type))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_products(self) -> Sequence[Product]:
        """List products with family and type, ordered by name."""
        result = await self.session.execute(
            select(Product)
            .options(selectinload(Product.family), selectinload(Product.product_type))
            .execution_options(populate_existing=True)
            .order_by(Product.name)
        )
        return result.scalars().all()


class GeneratedEntryRepository:
    """Repository for generated entries and their attribute values."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    @staticmethod
    def _hydrated(query: Select) -> Select:
        return query.options(
            selectinload(GeneratedEntry.product).selectinload(Product.family),
            selectinload(GeneratedEntry.product).selectinload(Product.product_type),
            selectinload(GeneratedEntry.variant1),
            selectinload(GeneratedEntry.variant2),
            selectinload(GeneratedEntry.attribute_values).selectinload(
                AttributeValue.technical_characteristic
            ),
        )

    async def get_by_id(self, entry_id: str) -> GeneratedEntry | None:
        """Get a fully hydrated entry by ID.

        Loaded objects are refreshed from the database so that attribute
        values replaced earlier in the transaction are reflected.

        Args:
            entry_id: Entry ID.

        Returns:
            Entry if found, None otherwise.
        """
        query = self._hydrated(select(GeneratedEntry).where(GeneratedEntry.id == entry_id))
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_with_selection(self, entry_id: str) -> GeneratedEntry | None:
        """Get an entry with its product and variants, without its values.

        Args:
            entry_id: Entry ID.

        Returns:
            Entry if found, None otherwise.
        """
        result = await self.session.execute(
            select(GeneratedEntry)
            .where(GeneratedEntry.id == entry_id)
            .options(
                selectinload(GeneratedEntry.product).selectinload(Product.product_type),
                selectinload(GeneratedEntry.variant1),
                selectinload(GeneratedEntry.variant2),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_code(self, generated_code: str) -> GeneratedEntry | None:
        """Get the entry holding a generated code."""
        result = await self.session.execute(
            select(GeneratedEntry).where(GeneratedEntry.generated_code == generated_code)
        )
        return result.scalar_one_or_none()

    async def find_all(self, product_id: str | None = None) -> Sequence[GeneratedEntry]:
        """List hydrated entries, newest first.

        Args:
            product_id: Optional product filter.

        Returns:
            Matching entries.
        """
        query = select(GeneratedEntry)
        if product_id is not None:
            query = query.where(GeneratedEntry.product_id == product_id)
        query = self._hydrated(query.order_by(GeneratedEntry.created_at.desc()))
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalars().all()

    async def find_by_combination(
        self,
        product_id: str,
        variant1_id: str | None,
        variant2_id: str | None,
        exclude_entry_id: str | None = None,
    ) -> Sequence[GeneratedEntry]:
        """List entries with exactly the same product and variants.

        A null variant only matches a null variant.

        Args:
            product_id: Product ID.
            variant1_id: FIRST level variant ID or None.
            variant2_id: SECOND level variant ID or None.
            exclude_entry_id: Entry to leave out (the one being updated).

        Returns:
            Entries with their attribute values loaded.
        """
        conditions = [
            GeneratedEntry.product_id == product_id,
            GeneratedEntry.variant1_id.is_(None) if variant1_id is None else GeneratedEntry.variant1_id == variant1_id,
            GeneratedEntry.variant2_id.is_(None) if variant2_id is None else GeneratedEntry.variant2_id == variant2_id,
        ]
        if exclude_entry_id is not None:
            conditions.append(GeneratedEntry.id != exclude_entry_id)

        query = (
            select(GeneratedEntry)
            .where(*conditions)
            .options(selectinload(GeneratedEntry.attribute_values))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def list_codes_with_prefix(self, prefix: str) -> list[str]:
        """List the generated codes starting with a prefix."""
        result = await self.session.execute(
            select(GeneratedEntry.generated_code).where(
                GeneratedEntry.generated_code.startswith(prefix, autoescape=True)
            )
        )
        return list(result.scalars().all())

    async def list_values_for_characteristic(
        self,
        characteristic_id: str,
        exclude_entry_id: str | None = None,
    ) -> Sequence[AttributeValue]:
        """List every stored value of a characteristic across the catalog.

        Args:
            characteristic_id: Characteristic ID.
            exclude_entry_id: Entry whose values are left out.

        Returns:
            Attribute values with their owning entry loaded.
        """
        query = (
            select(AttributeValue)
            .where(AttributeValue.technical_characteristic_id == characteristic_id)
            .options(selectinload(AttributeValue.generated_entry))
            .execution_options(populate_existing=True)
        )
        if exclude_entry_id is not None:
            query = query.where(AttributeValue.generated_entry_id != exclude_entry_id)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def save(self, entry: GeneratedEntry) -> GeneratedEntry:
        """Save an entry and flush it.

        Args:
            entry: Entry to save.

        Returns:
            Saved entry.
        """
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def add_value(self, entry_id: str, characteristic_id: str, value: str) -> AttributeValue:
        """Store one attribute value of an entry.

        Args:
            entry_id: Owning entry ID.
            characteristic_id: Characteristic ID.
            value: Value in storage form.

        Returns:
            Created attribute value.
        """
        attribute = AttributeValue(
            generated_entry_id=entry_id,
            technical_characteristic_id=characteristic_id,
            value=value,
        )
        self.session.add(attribute)
        await self.session.flush()
        return attribute

    async def delete_values_for_entry(self, entry_id: str) -> None:
        """Delete every attribute value of an entry."""
        await self.session.execute(
            delete(AttributeValue)
            .where(AttributeValue.generated_entry_id == entry_id)
            .execution_options(synchronize_session="fetch")
        )

    async def delete(self, entry_id: str) -> None:
        """Delete an entry.

        Its attribute values must have been deleted first.
        """
        await self.session.execute(
            delete(GeneratedEntry)
            .where(GeneratedEntry.id == entry_id)
            .execution_options(synchronize_session="fetch")
        )
