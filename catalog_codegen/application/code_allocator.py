"""Allocation of collision-free generated codes."""

import structlog

from catalog_codegen.catalog.models import Product, Variant
from catalog_codegen.catalog.repository import GeneratedEntryRepository
from catalog_codegen.domain.codes import build_prefix, first_free_increment, format_code, used_increments

logger = structlog.get_logger()


class CodeAllocator:
    """Mint the next free code for a product and variant selection.

    The lowest increment not used under the prefix is chosen. Every
    candidate is checked against the store before being returned; the
    unique constraint on ``generated_code`` arbitrates concurrent inserts.
    """

    def __init__(self, entries: GeneratedEntryRepository, request_id: str | None = None) -> None:
        """Initialize allocator.

        Args:
            entries: Generated entry repository.
            request_id: Request ID for correlation.
        """
        self.entries = entries
        self.request_id = request_id

    async def allocate(
        self,
        product: Product,
        variant1: Variant | None = None,
        variant2: Variant | None = None,
    ) -> str:
        """Compute a new generated code.

        Args:
            product: Product with its product type loaded.
            variant1: FIRST level variant, if any.
            variant2: SECOND level variant, if any.

        Returns:
            Generated code free at the time of the call.

        Raises:
            CodeSpaceExhaustedError: If the prefix has no free increment left.
        """
        prefix = build_prefix(
            product.product_type.code,
            product.code,
            variant1.code if variant1 else None,
            variant2.code if variant2 else None,
        )
        used = used_increments(prefix, await self.entries.list_codes_with_prefix(prefix))

        increment = first_free_increment(prefix, used)
        code = format_code(prefix, increment)
        while await self.entries.find_by_code(code) is not None:
            logger.warning(
                "Generated code already taken, retrying",
                generated_code=code,
                request_id=self.request_id,
            )
            used.add(increment)
            increment = first_free_increment(prefix, used, start=increment + 1)
            code = format_code(prefix, increment)
        return code
