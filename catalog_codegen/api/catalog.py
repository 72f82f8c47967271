"""Catalog API endpoints.

Provides endpoints for creating and listing families, variants, product
types, products and technical characteristics, and for previewing which
characteristics apply to a variant selection.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_codegen.api.schemas import (
    ApplicableCharacteristicsResponse,
    CharacteristicCreateRequest,
    CharacteristicListResponse,
    CharacteristicResponse,
    ErrorResponse,
    FamiliesListResponse,
    FamilyCreateRequest,
    FamilyResponse,
    ProductCreateRequest,
    ProductResponse,
    ProductsListResponse,
    ProductTypeCreateRequest,
    ProductTypeResponse,
    ProductTypesListResponse,
    VariantCreateRequest,
    VariantResponse,
    VariantsListResponse,
)
from catalog_codegen.application.generation_service import get_generation_service
from catalog_codegen.catalog.models import Family, Product, ProductType, TechnicalCharacteristic, Variant
from catalog_codegen.catalog.pagination import DEFAULT_LIMIT, MAX_LIMIT, PageParams
from catalog_codegen.catalog.service import CatalogService, get_catalog_service
from catalog_codegen.infrastructure.database import get_session

router = APIRouter(tags=["Catalog"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CatalogService:
    """Get catalog service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_catalog_service(session, request_id=request_id)


def get_page_params(
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT, description="Items per page")] = DEFAULT_LIMIT,
    search: Annotated[str | None, Query(description="Case and accent insensitive text filter")] = None,
) -> PageParams:
    """Get pagination and search parameters from the query string."""
    return PageParams(offset=offset, limit=limit, search=search)


# ============================================================================
# Converters
# ============================================================================


def family_to_response(family: Family) -> FamilyResponse:
    """Convert Family model to response schema."""
    return FamilyResponse(id=family.id, name=family.name, created_at=family.created_at)


async def variant_to_response(variant: Variant, service: CatalogService) -> VariantResponse:
    """Convert Variant model to response schema, with its exclusions."""
    return VariantResponse(
        id=variant.id,
        family_id=variant.family_id,
        name=variant.name,
        code=variant.code,
        variant_level=variant.variant_level,
        excluded_variant_ids=await service.excluded_variant_ids(variant.id),
    )


def product_type_to_response(product_type: ProductType) -> ProductTypeResponse:
    """Convert ProductType model to response schema."""
    return ProductTypeResponse(id=product_type.id, name=product_type.name, code=product_type.code)


def product_to_response(product: Product) -> ProductResponse:
    """Convert Product model to response schema."""
    return ProductResponse(
        id=product.id,
        name=product.name,
        code=product.code,
        family=family_to_response(product.family),
        product_type=product_type_to_response(product.product_type),
    )


def characteristic_to_response(characteristic: TechnicalCharacteristic) -> CharacteristicResponse:
    """Convert TechnicalCharacteristic model to response schema."""
    return CharacteristicResponse(**characteristic.to_dict())


# ============================================================================
# Families
# ============================================================================


@router.post(
    "/families",
    response_model=FamilyResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create a family",
)
async def create_family(
    body: FamilyCreateRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> FamilyResponse:
    """Create a family."""
    return family_to_response(await service.create_family(body.name))


@router.get("/families", response_model=FamiliesListResponse, summary="List families")
async def list_families(
    service: Annotated[CatalogService, Depends(get_service)],
    params: Annotated[PageParams, Depends(get_page_params)],
) -> FamiliesListResponse:
    """List families, filtered on their name."""
    page = await service.search_families(params)
    return FamiliesListResponse(
        items=[family_to_response(family) for family in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


# ============================================================================
# Variants
# ============================================================================


@router.post(
    "/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create a variant",
)
async def create_variant(
    body: VariantCreateRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> VariantResponse:
    """Create a variant in a family."""
    variant = await service.create_variant(
        family_id=body.family_id,
        name=body.name,
        code=body.code,
        variant_level=body.variant_level,
        excluded_variant_ids=body.excluded_variant_ids,
    )
    return await variant_to_response(variant, service)


@router.get("/variants", response_model=VariantsListResponse, summary="List variants")
async def list_variants(
    service: Annotated[CatalogService, Depends(get_service)],
    params: Annotated[PageParams, Depends(get_page_params)],
    family_id: Annotated[str | None, Query(description="Filter by family")] = None,
) -> VariantsListResponse:
    """List variants, optionally of one family.

    The search matches the variant name and code and the family name.
    """
    page = await service.search_variants(params, family_id=family_id)
    return VariantsListResponse(
        items=[await variant_to_response(variant, service) for variant in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


# ============================================================================
# Product types and products
# ============================================================================


@router.post(
    "/product-types",
    response_model=ProductTypeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create a product type",
)
async def create_product_type(
    body: ProductTypeCreateRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductTypeResponse:
    """Create a product type."""
    return product_type_to_response(await service.create_product_type(body.name, body.code))


@router.get("/product-types", response_model=ProductTypesListResponse, summary="List product types")
async def list_product_types(
    service: Annotated[CatalogService, Depends(get_service)],
    params: Annotated[PageParams, Depends(get_page_params)],
) -> ProductTypesListResponse:
    """List product types, filtered on their name or code."""
    page = await service.search_product_types(params)
    return ProductTypesListResponse(
        items=[product_type_to_response(product_type) for product_type in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create a product",
)
async def create_product(
    body: ProductCreateRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductResponse:
    """Create a product."""
    product = await service.create_product(
        name=body.name,
        code=body.code,
        family_id=body.family_id,
        product_type_id=body.product_type_id,
    )
    return product_to_response(product)


@router.get("/products", response_model=ProductsListResponse, summary="List products")
async def list_products(
    service: Annotated[CatalogService, Depends(get_service)],
    params: Annotated[PageParams, Depends(get_page_params)],
) -> ProductsListResponse:
    """List products.

    The search matches the product name and code, its family name and its
    product type name and code.
    """
    page = await service.search_products(params)
    return ProductsListResponse(
        items=[product_to_response(product) for product in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


# ============================================================================
# Technical characteristics
# ============================================================================


@router.post(
    "/technical-characteristics",
    response_model=CharacteristicResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create a technical characteristic",
)
async def create_characteristic(
    body: CharacteristicCreateRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> CharacteristicResponse:
    """Create a technical characteristic."""
    characteristic = await service.create_characteristic(
        name=body.name,
        type=body.type,
        enum_options=body.enum_options,
        enum_multiple=body.enum_multiple,
        unique_in_itself=body.unique_in_itself,
        family_ids=body.family_ids,
        variant_ids=body.variant_ids,
    )
    return characteristic_to_response(characteristic)


@router.get(
    "/technical-characteristics",
    response_model=CharacteristicListResponse,
    summary="List technical characteristics",
)
async def list_characteristics(
    service: Annotated[CatalogService, Depends(get_service)],
    params: Annotated[PageParams, Depends(get_page_params)],
) -> CharacteristicListResponse:
    """List technical characteristics, filtered on their name or type."""
    page = await service.search_characteristics(params)
    return CharacteristicListResponse(
        items=[characteristic_to_response(characteristic) for characteristic in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


@router.get(
    "/technical-characteristics/applicable",
    response_model=ApplicableCharacteristicsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Preview applicable characteristics",
    description="List the characteristics that apply to a family and a variant selection.",
)
async def list_applicable_characteristics(
    service: Annotated[CatalogService, Depends(get_service)],
    family_id: Annotated[str, Query(description="Family identifier")],
    variant_ids: Annotated[str | None, Query(description="Comma-separated variant identifiers")] = None,
) -> ApplicableCharacteristicsResponse:
    """List the characteristics applicable to a family and variant selection.

    Args:
        service: Catalog service.
        family_id: Family identifier.
        variant_ids: Comma-separated selected variant identifiers.

    Returns:
        Applicable characteristics.
    """
    await service.get_family(family_id)
    selected = [variant_id.strip() for variant_id in (variant_ids or "").split(",") if variant_id.strip()]

    generation = get_generation_service(service.session, request_id=service.request_id)
    characteristics = await generation.applicable_characteristics(family_id, selected)
    return ApplicableCharacteristicsResponse(
        items=[characteristic_to_response(characteristic) for characteristic in characteristics],
        total=len(characteristics),
    )
