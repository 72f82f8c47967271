"""Catalog service for catalog management operations.

Creates and lists the families, variants, product types, products and
technical characteristics the code generator works from. Names and codes
are unique regardless of case and accents.
"""

from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_codegen.catalog.models import (
    Family,
    Product,
    ProductType,
    TechnicalCharacteristic,
    TechnicalCharacteristicFamily,
    TechnicalCharacteristicVariant,
    Variant,
)
from catalog_codegen.catalog.pagination import Page, PageParams, paginate
from catalog_codegen.catalog.repository import CatalogRepository
from catalog_codegen.domain.exceptions import AlreadyExistsError, CatalogValidationError, NotFoundError
from catalog_codegen.domain.normalizer import normalize_for_storage, same_text
from catalog_codegen.domain.value_objects import MAX_ENUM_OPTION_LENGTH, CharacteristicType, VariantLevel

logger = structlog.get_logger()


def _clash(candidates: Iterable[str], value: str) -> bool:
    return any(same_text(candidate, value) for candidate in candidates)


class CatalogService:
    """Service for catalog operations.

    Example usage:
        async with async_session_factory() as session:
            service = CatalogService(session)
            family = await service.create_family("Vanne")

    Every create commits before returning.
    """

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
            request_id: Request ID for correlation.
        """
        self.session = session
        self.request_id = request_id
        self.repository = CatalogRepository(session)

    @asynccontextmanager
    async def _writing(self, entity_type: str, field: str, value: str) -> AsyncIterator[None]:
        """Commit the writes issued in the block.

        Raises:
            AlreadyExistsError: If a concurrent request stored an equivalent
                row first and a unique constraint rejected this one.
        """
        try:
            yield
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Catalog write rejected by the store",
                entity_type=entity_type,
                field=field,
                value=value,
                error=str(e.orig),
                request_id=self.request_id,
            )
            raise AlreadyExistsError(entity_type, field, value) from e

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    async def create_family(self, name: str) -> Family:
        """Create a family.

        Args:
            name: Family name.

        Returns:
            Created family.

        Raises:
            AlreadyExistsError: If a family with an equivalent name exists.
        """
        name = name.strip()
        families = await self.repository.list_families()
        if _clash((family.name for family in families), name):
            raise AlreadyExistsError("Family", "name", name)

        family = Family(name=normalize_for_storage(name))
        async with self._writing("Family", "name", name):
            await self.repository.add(family)
        logger.info("Family created", family_id=family.id, name=family.name, request_id=self.request_id)
        return family

    async def list_families(self) -> Sequence[Family]:
        """List families."""
        return await self.repository.list_families()

    async def search_families(self, params: PageParams) -> Page[Family]:
        """Get a page of families matching a search on their name."""
        return paginate(await self.list_families(), params, lambda family: (family.name,))

    async def get_family(self, family_id: str) -> Family:
        """Get a family.

        Raises:
            NotFoundError: If the family does not exist.
        """
        family = await self.repository.get_family(family_id)
        if family is None:
            raise NotFoundError("Family", family_id)
        return family

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    async def create_variant(
        self,
        family_id: str,
        name: str,
        code: str,
        variant_level: VariantLevel = VariantLevel.FIRST,
        excluded_variant_ids: Sequence[str] = (),
    ) -> Variant:
        """Create a variant in a family.

        Args:
            family_id: Owning family ID.
            name: Variant name.
            code: Short code used in generated codes, unique per family and level.
            variant_level: FIRST or SECOND.
            excluded_variant_ids: Variants of the same family that cannot be
                selected together with this one.

        Returns:
            Created variant.

        Raises:
            NotFoundError: If the family or an excluded variant does not exist.
            AlreadyExistsError: If the code is taken in the family at this level.
            CatalogValidationError: If an excluded variant belongs to another family.
        """
        await self.get_family(family_id)
        code = code.strip()
        if not code:
            raise CatalogValidationError("Variant code cannot be empty", details={"field": "code"})

        siblings = await self.repository.list_variants(family_id)
        same_level = [variant.code for variant in siblings if variant.variant_level == variant_level]
        if _clash(same_level, code):
            raise AlreadyExistsError("Variant", "code", code)

        excluded = await self.repository.get_variants(list(excluded_variant_ids))
        found = {variant.id for variant in excluded}
        for excluded_id in excluded_variant_ids:
            if excluded_id not in found:
                raise NotFoundError("Variant", excluded_id)
        for variant in excluded:
            if variant.family_id != family_id:
                raise CatalogValidationError(
                    f"Excluded variant {variant.id} belongs to another family",
                    details={"variant_id": variant.id},
                )

        variant = Variant(
            family_id=family_id,
            name=name.strip(),
            code=normalize_for_storage(code),
            variant_level=VariantLevel(variant_level).value,
        )
        async with self._writing("Variant", "code", code):
            await self.repository.add(variant)
            if found:
                await self.repository.add_exclusions(variant.id, sorted(found))

        logger.info(
            "Variant created",
            variant_id=variant.id,
            family_id=family_id,
            code=variant.code,
            level=variant.variant_level,
            request_id=self.request_id,
        )
        return variant

    async def list_variants(self, family_id: str | None = None) -> Sequence[Variant]:
        """List variants, optionally of one family."""
        return await self.repository.list_variants(family_id)

    async def search_variants(self, params: PageParams, family_id: str | None = None) -> Page[Variant]:
        """Get a page of variants matching a search.

        The search matches the variant name and code and the family name.
        """
        variants = await self.list_variants(family_id)
        families = {family.id: family.name for family in await self.list_families()}
        return paginate(
            variants,
            params,
            lambda variant: (variant.name, variant.code, families.get(variant.family_id)),
        )

    async def excluded_variant_ids(self, variant_id: str) -> list[str]:
        """Get the IDs of the variants excluded by a variant."""
        return await self.repository.list_excluded_variant_ids(variant_id)

    # ------------------------------------------------------------------
    # Product types and products
    # ------------------------------------------------------------------

    async def create_product_type(self, name: str, code: str) -> ProductType:
        """Create a product type.

        Raises:
            AlreadyExistsError: If the name or code is already used.
        """
        name, code = name.strip(), code.strip()
        existing = await self.repository.list_product_types()
        if _clash((product_type.name for product_type in existing), name):
            raise AlreadyExistsError("ProductType", "name", name)
        if _clash((product_type.code for product_type in existing), code):
            raise AlreadyExistsError("ProductType", "code", code)

        product_type = ProductType(name=name, code=normalize_for_storage(code))
        async with self._writing("ProductType", "code", code):
            await self.repository.add(product_type)
        logger.info(
            "Product type created",
            product_type_id=product_type.id,
            code=product_type.code,
            request_id=self.request_id,
        )
        return product_type

    async def list_product_types(self) -> Sequence[ProductType]:
        """List product types."""
        return await self.repository.list_product_types()

    async def search_product_types(self, params: PageParams) -> Page[ProductType]:
        """Get a page of product types matching a search on their name or code."""
        return paginate(
            await self.list_product_types(),
            params,
            lambda product_type: (product_type.name, product_type.code),
        )

    async def create_product(self, name: str, code: str, family_id: str, product_type_id: str) -> Product:
        """Create a product.

        Args:
            name: Product name, unique.
            code: Product code, unique.
            family_id: Family of the product.
            product_type_id: Type of the product.

        Returns:
            Created product with its family and type loaded.

        Raises:
            NotFoundError: If the family or product type does not exist.
            AlreadyExistsError: If the name or code is already used.
        """
        await self.get_family(family_id)
        if await self.repository.get_product_type(product_type_id) is None:
            raise NotFoundError("ProductType", product_type_id)

        name, code = name.strip(), code.strip()
        existing = await self.repository.list_products()
        if _clash((product.name for product in existing), name):
            raise AlreadyExistsError("Product", "name", name)
        if _clash((product.code for product in existing), code):
            raise AlreadyExistsError("Product", "code", code)

        product = Product(
            name=name,
            code=normalize_for_storage(code),
            family_id=family_id,
            product_type_id=product_type_id,
        )
        async with self._writing("Product", "code", code):
            await self.repository.add(product)
        logger.info("Product created", product_id=product.id, code=product.code, request_id=self.request_id)

        created = await self.repository.get_product(product.id)
        if created is None:
            raise NotFoundError("Product", product.id)
        return created

    async def list_products(self) -> Sequence[Product]:
        """List products."""
        return await self.repository.list_products()

    async def search_products(self, params: PageParams) -> Page[Product]:
        """Get a page of products matching a search.

        The search matches the product name and code, its family name and
        its product type name and code.
        """
        return paginate(
            await self.list_products(),
            params,
            lambda product: (
                product.name,
                product.code,
                product.family.name,
                product.product_type.name,
                product.product_type.code,
            ),
        )

    # ------------------------------------------------------------------
    # Technical characteristics
    # ------------------------------------------------------------------

    async def create_characteristic(
        self,
        name: str,
        type: CharacteristicType,
        enum_options: Sequence[str] | None = None,
        enum_multiple: bool = False,
        unique_in_itself: bool = False,
        family_ids: Sequence[str] = (),
        variant_ids: Sequence[str] = (),
    ) -> TechnicalCharacteristic:
        """Create a technical characteristic.

        Args:
            name: Name, unique across the catalog.
            type: Declared value type.
            enum_options: Allowed options, required for enum characteristics.
            enum_multiple: Whether several options may be selected.
            unique_in_itself: Whether values must be unique across the catalog.
            family_ids: Families the characteristic belongs to.
            variant_ids: Variants the characteristic is restricted to.

        Returns:
            Created characteristic with its associations loaded.

        Raises:
            CatalogValidationError: If options or associations are invalid.
            AlreadyExistsError: If the name is already used.
            NotFoundError: If a family or variant does not exist.
        """
        kind = CharacteristicType(type)
        name = name.strip()

        options: list[str] | None = None
        if kind == CharacteristicType.ENUM:
            options = [option.strip() for option in enum_options or [] if option.strip()]
            if not options:
                raise CatalogValidationError(
                    "At least one non-empty option is required for enum characteristics",
                    details={"field": "enum_options"},
                )
            too_long = [option for option in options if len(option) > MAX_ENUM_OPTION_LENGTH]
            if too_long:
                raise CatalogValidationError(
                    f"Enum options are limited to {MAX_ENUM_OPTION_LENGTH} characters",
                    details={"field": "enum_options", "options": too_long},
                )
            options = list(dict.fromkeys(normalize_for_storage(option) for option in options))

        if not family_ids and not variant_ids:
            raise CatalogValidationError(
                "At least one family or variant must be provided",
                details={"field": "family_ids"},
            )

        existing = await self.repository.list_characteristics()
        if _clash((characteristic.name for characteristic in existing), name):
            raise AlreadyExistsError("TechnicalCharacteristic", "name", name)

        for family_id in family_ids:
            await self.get_family(family_id)
        variants = await self.repository.get_variants(list(variant_ids))
        found = {variant.id for variant in variants}
        for variant_id in variant_ids:
            if variant_id not in found:
                raise NotFoundError("Variant", variant_id)

        characteristic = TechnicalCharacteristic(
            name=normalize_for_storage(name),
            type=kind.value,
            enum_options=options,
            enum_multiple=enum_multiple if kind == CharacteristicType.ENUM else None,
            unique_in_itself=unique_in_itself,
            families=[TechnicalCharacteristicFamily(family_id=family_id) for family_id in dict.fromkeys(family_ids)],
            variants=[
                TechnicalCharacteristicVariant(variant_id=variant_id) for variant_id in dict.fromkeys(variant_ids)
            ],
        )
        async with self._writing("TechnicalCharacteristic", "name", name):
            await self.repository.add(characteristic)
        logger.info(
            "Technical characteristic created",
            characteristic_id=characteristic.id,
            name=characteristic.name,
            type=characteristic.type,
            request_id=self.request_id,
        )

        created = await self.repository.get_characteristic(characteristic.id)
        if created is None:
            raise NotFoundError("TechnicalCharacteristic", characteristic.id)
        return created

    async def list_characteristics(self) -> Sequence[TechnicalCharacteristic]:
        """List technical characteristics with their associations."""
        return await self.repository.list_characteristics()

    async def search_characteristics(self, params: PageParams) -> Page[TechnicalCharacteristic]:
        """Get a page of characteristics matching a search on their name or type."""
        return paginate(
            await self.list_characteristics(),
            params,
            lambda characteristic: (characteristic.name, characteristic.type),
        )


def get_catalog_service(session: AsyncSession, request_id: str | None = None) -> CatalogService:
    """Get catalog service instance.

    Args:
        session: Async SQLAlchemy session.
        request_id: Request ID for correlation.

    Returns:
        CatalogService instance.
    """
    return CatalogService(session, request_id=request_id)
