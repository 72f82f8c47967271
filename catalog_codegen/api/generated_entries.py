"""Generated entry API endpoints.

Provides endpoints for generating, updating, listing and removing
generated codes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_codegen.api.catalog import get_page_params
from catalog_codegen.api.schemas import (
    AttributeValueSchema,
    ErrorResponse,
    FamilyResponse,
    GeneratedEntriesListResponse,
    GeneratedEntryCreateRequest,
    GeneratedEntryResponse,
    GeneratedEntryUpdateRequest,
    ProductResponse,
    ProductTypeResponse,
    VariantResponse,
)
from catalog_codegen.application.generation_service import GenerationService, get_generation_service
from catalog_codegen.catalog.models import GeneratedEntry, Variant
from catalog_codegen.catalog.pagination import PageParams
from catalog_codegen.domain.exceptions import MissingActorError
from catalog_codegen.infrastructure.config import settings
from catalog_codegen.infrastructure.database import get_session

router = APIRouter(prefix="/generated-entries", tags=["Generated entries"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> GenerationService:
    """Get generation service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_generation_service(session, request_id=request_id)


def get_actor(request: Request) -> str:
    """Get the identity of the caller from the actor header.

    Raises:
        MissingActorError: If the header is absent or blank.
    """
    actor = (request.headers.get(settings.actor_header) or "").strip()
    if not actor:
        raise MissingActorError(settings.actor_header)
    return actor


# ============================================================================
# Converters
# ============================================================================


def variant_to_response(variant: Variant | None) -> VariantResponse | None:
    """Convert Variant model to response schema."""
    if variant is None:
        return None
    return VariantResponse(
        id=variant.id,
        family_id=variant.family_id,
        name=variant.name,
        code=variant.code,
        variant_level=variant.variant_level,
    )


def entry_to_response(entry: GeneratedEntry) -> GeneratedEntryResponse:
    """Convert a hydrated GeneratedEntry model to response schema."""
    product = entry.product
    attribute_values = sorted(
        entry.attribute_values,
        key=lambda attribute: attribute.technical_characteristic.name,
    )
    return GeneratedEntryResponse(
        id=entry.id,
        generated_code=entry.generated_code,
        product=ProductResponse(
            id=product.id,
            name=product.name,
            code=product.code,
            family=FamilyResponse(
                id=product.family.id,
                name=product.family.name,
                created_at=product.family.created_at,
            ),
            product_type=ProductTypeResponse(
                id=product.product_type.id,
                name=product.product_type.name,
                code=product.product_type.code,
            ),
        ),
        variant1=variant_to_response(entry.variant1),
        variant2=variant_to_response(entry.variant2),
        attribute_values=[
            AttributeValueSchema(
                technical_characteristic_id=attribute.technical_characteristic_id,
                name=attribute.technical_characteristic.name,
                type=attribute.technical_characteristic.type,
                unique_in_itself=attribute.technical_characteristic.unique_in_itself,
                value=attribute.value,
            )
            for attribute in attribute_values
        ],
        created_by=entry.created_by,
        updated_by=entry.updated_by,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=GeneratedEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Generate a code",
    description="Generate a unique code for a product, its variants and attribute values.",
)
async def create_generated_entry(
    body: GeneratedEntryCreateRequest,
    service: Annotated[GenerationService, Depends(get_service)],
    actor: Annotated[str, Depends(get_actor)],
) -> GeneratedEntryResponse:
    """Generate a new code.

    Args:
        body: Product, variant selection and attribute values.
        service: Generation service.
        actor: Caller identity.

    Returns:
        Created entry.
    """
    entry = await service.create(
        product_id=body.product_id,
        actor=actor,
        variant1_id=body.variant1_id,
        variant2_id=body.variant2_id,
        values=body.values,
    )
    return entry_to_response(entry)


@router.get(
    "",
    response_model=GeneratedEntriesListResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List generated codes",
)
async def list_generated_entries(
    service: Annotated[GenerationService, Depends(get_service)],
    params: Annotated[PageParams, Depends(get_page_params)],
    product_id: Annotated[str | None, Query(description="Filter by product")] = None,
) -> GeneratedEntriesListResponse:
    """List generated entries, newest first.

    Args:
        service: Generation service.
        params: Offset, limit and a search on the code or product.
        product_id: Only list the entries of this product.

    Returns:
        Paginated list of entries.
    """
    page = await service.search_entries(params, product_id=product_id)
    return GeneratedEntriesListResponse(
        items=[entry_to_response(entry) for entry in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


@router.get(
    "/{entry_id}",
    response_model=GeneratedEntryResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Get a generated code",
)
async def get_generated_entry(
    entry_id: str,
    service: Annotated[GenerationService, Depends(get_service)],
) -> GeneratedEntryResponse:
    """Get a generated entry by ID."""
    return entry_to_response(await service.get(entry_id))


@router.patch(
    "/{entry_id}",
    response_model=GeneratedEntryResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Update a generated code",
    description="Replace the attribute values of an entry. Product and variants cannot change.",
)
async def update_generated_entry(
    entry_id: str,
    body: GeneratedEntryUpdateRequest,
    service: Annotated[GenerationService, Depends(get_service)],
    actor: Annotated[str, Depends(get_actor)],
) -> GeneratedEntryResponse:
    """Update the attribute values of an entry.

    Args:
        entry_id: Entry identifier.
        body: New values.
        service: Generation service.
        actor: Caller identity.

    Returns:
        Updated entry.
    """
    entry = await service.update(entry_id, actor=actor, values=body.values)
    return entry_to_response(entry)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Delete a generated code",
)
async def delete_generated_entry(
    entry_id: str,
    service: Annotated[GenerationService, Depends(get_service)],
    actor: Annotated[str, Depends(get_actor)],
) -> Response:
    """Delete a generated entry and its values."""
    await service.remove(entry_id, actor=actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
