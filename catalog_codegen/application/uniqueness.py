"""Catalog-wide uniqueness of unique-in-itself characteristic values."""

from collections.abc import Mapping, Sequence

import structlog

from catalog_codegen.catalog.models import TechnicalCharacteristic
from catalog_codegen.catalog.repository import GeneratedEntryRepository
from catalog_codegen.domain.duplicates import comparison_key
from catalog_codegen.domain.exceptions import NonUniqueValueError

logger = structlog.get_logger()


class UniquenessEnforcer:
    """Reject values already held by another entry for a unique characteristic.

    The check ignores products and variants: a unique-in-itself value
    (a serial number, for instance) may appear only once in the whole
    catalog.
    """

    def __init__(self, entries: GeneratedEntryRepository, request_id: str | None = None) -> None:
        """Initialize enforcer.

        Args:
            entries: Generated entry repository.
            request_id: Request ID for correlation.
        """
        self.entries = entries
        self.request_id = request_id

    async def enforce(
        self,
        applicable: Sequence[TechnicalCharacteristic],
        texts: Mapping[str, str | None],
        exclude_entry_id: str | None = None,
    ) -> None:
        """Check every unique-in-itself value of a candidate.

        Args:
            applicable: Applicable characteristics.
            texts: Canonical value texts keyed by characteristic id.
            exclude_entry_id: Entry being updated, whose own values are
                not conflicts.

        Raises:
            NonUniqueValueError: If another entry holds an equal value.
        """
        for characteristic in applicable:
            if not characteristic.unique_in_itself:
                continue
            key = comparison_key(texts.get(characteristic.id))
            if key is None:
                continue

            stored = await self.entries.list_values_for_characteristic(
                characteristic.id,
                exclude_entry_id=exclude_entry_id,
            )
            for attribute in stored:
                if comparison_key(attribute.value) == key:
                    logger.info(
                        "Unique value already used",
                        characteristic_id=characteristic.id,
                        generated_code=attribute.generated_entry.generated_code,
                        request_id=self.request_id,
                    )
                    raise NonUniqueValueError(
                        characteristic.name,
                        texts[characteristic.id] or "",
                        attribute.generated_entry.generated_code,
                    )
