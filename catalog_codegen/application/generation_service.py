"""Generated code application service.

Orchestrates the generation of catalog codes:
- Validating the product and its variant selection
- Resolving the applicable technical characteristics
- Rejecting duplicates and non-unique values
- Allocating a collision-free code and persisting the entry
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_codegen.application.code_allocator import CodeAllocator
from catalog_codegen.application.uniqueness import UniquenessEnforcer
from catalog_codegen.catalog.models import GeneratedEntry, Product, TechnicalCharacteristic, Variant
from catalog_codegen.catalog.pagination import Page, PageParams, paginate
from catalog_codegen.catalog.repository import CatalogRepository, GeneratedEntryRepository
from catalog_codegen.domain.applicability import resolve_applicable
from catalog_codegen.domain.duplicates import candidate_value_map, find_duplicate
from catalog_codegen.domain.exceptions import (
    CodeAllocationConflictError,
    DuplicateCombinationError,
    EmptyRequiredValueError,
    InvalidCombinationError,
    NotFoundError,
    ValueTooLongError,
)
from catalog_codegen.domain.normalizer import normalize_for_storage
from catalog_codegen.domain.value_objects import (
    MAX_VALUE_LENGTH,
    RawValue,
    VariantLevel,
    canonical_text,
)
from catalog_codegen.infrastructure.database import is_write_conflict

logger = structlog.get_logger()


@dataclass
class Candidate:
    """Values of a requested entry, resolved against its applicable characteristics.

    Attributes:
        applicable: Characteristics applicable to the product and variants.
        texts: Canonical text per applicable characteristic id, None when unset.
        has_values: Whether any applicable characteristic received a value.
    """

    applicable: list[TechnicalCharacteristic]
    texts: dict[str, str | None]
    has_values: bool

    def stored_values(self) -> dict[str, str]:
        """Values to persist, in storage form, keyed by characteristic id."""
        return {
            characteristic_id: normalize_for_storage(text)
            for characteristic_id, text in self.texts.items()
            if text is not None
        }


class GenerationService:
    """Application service for generated entries.

    Every command commits its own transaction before returning, so a
    write the store rejects is reported to the caller instead of being
    lost after the response.
    """

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        """Initialize service.

        Args:
            session: Async SQLAlchemy session.
            request_id: Request ID for correlation.
        """
        self.session = session
        self.request_id = request_id
        self.catalog = CatalogRepository(session)
        self.entries = GeneratedEntryRepository(session)
        self.uniqueness = UniquenessEnforcer(self.entries, request_id=request_id)
        self.allocator = CodeAllocator(self.entries, request_id=request_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def applicable_characteristics(
        self,
        family_id: str,
        variant_ids: Iterable[str | None] = (),
    ) -> list[TechnicalCharacteristic]:
        """Get the characteristics applicable to a family and variant selection.

        Args:
            family_id: Family ID.
            variant_ids: Selected variant IDs; None entries are ignored.

        Returns:
            Applicable characteristics.
        """
        characteristics = await self.catalog.list_characteristics_for_family(family_id)
        return resolve_applicable(characteristics, family_id, variant_ids)

    async def get(self, entry_id: str) -> GeneratedEntry:
        """Get a hydrated entry.

        Raises:
            NotFoundError: If the entry does not exist.
        """
        entry = await self.entries.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError("GeneratedEntry", entry_id)
        return entry

    async def list_entries(self, product_id: str | None = None) -> Sequence[GeneratedEntry]:
        """List hydrated entries, newest first, optionally for one product."""
        return await self.entries.find_all(product_id=product_id)

    async def search_entries(self, params: PageParams, product_id: str | None = None) -> Page[GeneratedEntry]:
        """Get a page of entries matching a search.

        The search matches the generated code and the product name and code.
        """
        return paginate(
            await self.list_entries(product_id=product_id),
            params,
            lambda entry: (entry.generated_code, entry.product.name, entry.product.code),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create(
        self,
        product_id: str,
        actor: str,
        variant1_id: str | None = None,
        variant2_id: str | None = None,
        values: Mapping[str, RawValue] | None = None,
    ) -> GeneratedEntry:
        """Generate a new code for a product, variants and values.

        Args:
            product_id: Product ID.
            actor: Identity recorded as creator and last updater.
            variant1_id: FIRST level variant ID, if any.
            variant2_id: SECOND level variant ID, if any.
            values: Raw values keyed by characteristic ID. A missing key means
                "not set"; a key given with a blank value is rejected.

        Returns:
            The hydrated entry.

        Raises:
            NotFoundError: If the product or a variant does not exist.
            InvalidCombinationError: If a variant does not fit the product.
            DuplicateCombinationError: If an equivalent entry exists.
            EmptyRequiredValueError: If a value is explicitly blank.
            NonUniqueValueError: If a unique value is already used.
            ValueTooLongError: If a value exceeds the maximum length.
            InvalidValueError: If a value does not fit its characteristic.
        """
        values = values or {}

        product = await self.catalog.get_product(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        variant1 = await self._load_variant(variant1_id, product, VariantLevel.FIRST)
        variant2 = await self._load_variant(variant2_id, product, VariantLevel.SECOND)

        candidate = await self._prepare(product, variant1_id, variant2_id, values)
        await self._reject_duplicate(product.id, variant1_id, variant2_id, candidate)

        for characteristic in candidate.applicable:
            if characteristic.id in values and candidate.texts[characteristic.id] is None:
                raise EmptyRequiredValueError(characteristic.name, characteristic.id)

        await self.uniqueness.enforce(candidate.applicable, candidate.texts)
        self._check_lengths(candidate)

        generated_code = await self.allocator.allocate(product, variant1, variant2)
        entry = GeneratedEntry(
            product_id=product.id,
            variant1_id=variant1_id,
            variant2_id=variant2_id,
            generated_code=generated_code,
            created_by=actor,
            updated_by=actor,
        )
        try:
            await self.entries.save(entry)
            for characteristic_id, value in candidate.stored_values().items():
                await self.entries.add_value(entry.id, characteristic_id, value)
            await self.session.commit()
        except DBAPIError as e:
            await self.session.rollback()
            if not is_write_conflict(e):
                raise
            raise self._conflict(e, generated_code) from e

        logger.info(
            "Generated entry created",
            entry_id=entry.id,
            generated_code=generated_code,
            product_id=product.id,
            value_count=len(candidate.stored_values()),
            actor=actor,
            request_id=self.request_id,
        )
        return await self.get(entry.id)

    async def update(
        self,
        entry_id: str,
        actor: str,
        values: Mapping[str, RawValue] | None = None,
    ) -> GeneratedEntry:
        """Replace the values of an entry.

        The product and variants of an entry never change. When ``values``
        is None only the update metadata is touched; otherwise the stored
        values are replaced by the non-blank ones given.

        Args:
            entry_id: Entry ID.
            actor: Identity recorded as last updater.
            values: New raw values keyed by characteristic ID.

        Returns:
            The hydrated entry.

        Raises:
            NotFoundError: If the entry does not exist.
            DuplicateCombinationError: If another entry becomes equivalent.
            NonUniqueValueError: If a unique value is used by another entry.
            ValueTooLongError: If a value exceeds the maximum length.
            InvalidValueError: If a value does not fit its characteristic.
        """
        entry = await self.entries.get_with_selection(entry_id)
        if entry is None:
            raise NotFoundError("GeneratedEntry", entry_id)

        if values is not None:
            candidate = await self._prepare(entry.product, entry.variant1_id, entry.variant2_id, values)
            await self._reject_duplicate(
                entry.product_id,
                entry.variant1_id,
                entry.variant2_id,
                candidate,
                exclude_entry_id=entry.id,
            )
            await self.uniqueness.enforce(candidate.applicable, candidate.texts, exclude_entry_id=entry.id)
            self._check_lengths(candidate)

        generated_code = entry.generated_code
        try:
            if values is not None:
                await self.entries.delete_values_for_entry(entry.id)
                for characteristic_id, value in candidate.stored_values().items():
                    await self.entries.add_value(entry.id, characteristic_id, value)

            entry.updated_by = actor
            entry.updated_at = datetime.now(timezone.utc)
            await self.session.commit()
        except DBAPIError as e:
            await self.session.rollback()
            if not is_write_conflict(e):
                raise
            raise self._conflict(e, generated_code) from e

        logger.info(
            "Generated entry updated",
            entry_id=entry.id,
            generated_code=generated_code,
            values_replaced=values is not None,
            actor=actor,
            request_id=self.request_id,
        )
        return await self.get(entry.id)

    async def remove(self, entry_id: str, actor: str | None = None) -> None:
        """Delete an entry and its values.

        Raises:
            NotFoundError: If the entry does not exist.
        """
        entry = await self.entries.get_with_selection(entry_id)
        if entry is None:
            raise NotFoundError("GeneratedEntry", entry_id)

        generated_code = entry.generated_code
        try:
            await self.entries.delete_values_for_entry(entry_id)
            await self.entries.delete(entry_id)
            await self.session.commit()
        except DBAPIError as e:
            await self.session.rollback()
            if not is_write_conflict(e):
                raise
            raise self._conflict(e, generated_code) from e

        logger.info(
            "Generated entry removed",
            entry_id=entry_id,
            generated_code=generated_code,
            actor=actor,
            request_id=self.request_id,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _load_variant(
        self,
        variant_id: str | None,
        product: Product,
        level: VariantLevel,
    ) -> Variant | None:
        if variant_id is None:
            return None

        variant = await self.catalog.get_variant(variant_id)
        if variant is None:
            raise NotFoundError("Variant", variant_id)
        if variant.family_id != product.family_id:
            raise InvalidCombinationError(variant_id, "it does not belong to the product's family")
        if variant.variant_level != level:
            raise InvalidCombinationError(
                variant_id,
                f"level {level.value} expected, got {variant.variant_level}",
            )
        if not variant.code:
            raise InvalidCombinationError(variant_id, "it has no code")
        return variant

    async def _prepare(
        self,
        product: Product,
        variant1_id: str | None,
        variant2_id: str | None,
        values: Mapping[str, RawValue],
    ) -> Candidate:
        applicable = await self.applicable_characteristics(product.family_id, (variant1_id, variant2_id))
        texts = {
            characteristic.id: canonical_text(characteristic, values.get(characteristic.id))
            for characteristic in applicable
        }
        return Candidate(
            applicable=applicable,
            texts=texts,
            has_values=any(text is not None for text in texts.values()),
        )

    async def _reject_duplicate(
        self,
        product_id: str,
        variant1_id: str | None,
        variant2_id: str | None,
        candidate: Candidate,
        exclude_entry_id: str | None = None,
    ) -> None:
        existing = await self.entries.find_by_combination(
            product_id,
            variant1_id,
            variant2_id,
            exclude_entry_id=exclude_entry_id,
        )
        duplicate = find_duplicate(
            candidate.applicable,
            candidate_value_map(candidate.applicable, candidate.texts),
            candidate.has_values,
            existing,
        )
        if duplicate is not None:
            logger.info(
                "Duplicate combination rejected",
                product_id=product_id,
                generated_code=duplicate.generated_code,
                request_id=self.request_id,
            )
            raise DuplicateCombinationError(duplicate.generated_code)

    def _conflict(self, error: DBAPIError, generated_code: str) -> CodeAllocationConflictError:
        logger.warning(
            "Write on generated entry rejected by the store",
            generated_code=generated_code,
            error=str(error.orig),
            request_id=self.request_id,
        )
        return CodeAllocationConflictError(generated_code)

    @staticmethod
    def _check_lengths(candidate: Candidate) -> None:
        names = {characteristic.id: characteristic.name for characteristic in candidate.applicable}
        for characteristic_id, value in candidate.stored_values().items():
            if len(value) > MAX_VALUE_LENGTH:
                raise ValueTooLongError(names[characteristic_id], len(value), MAX_VALUE_LENGTH)


# ============================================================================
# Service Factory
# ============================================================================


def get_generation_service(session: AsyncSession, request_id: str | None = None) -> GenerationService:
    """Get generation service instance.

    Args:
        session: Async SQLAlchemy session.
        request_id: Request ID for correlation.

    Returns:
        GenerationService instance.
    """
    return GenerationService(session, request_id=request_id)
