"""API schemas for the catalog code generator.

Pydantic models for request/response validation and serialization.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from catalog_codegen.domain.value_objects import CharacteristicType, VariantLevel

AttributeInput = str | int | float | bool | list[str] | None


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class PaginatedResponse(BaseModel):
    """Base paginated response."""

    total: int = Field(..., description="Number of items matching the search")
    offset: int = Field(..., description="Offset of the first returned item")
    limit: int = Field(..., description="Maximum number of items returned")
    has_more: bool = Field(..., description="Whether more items follow this page")


# ============================================================================
# Catalog Schemas
# ============================================================================


class FamilyCreateRequest(BaseModel):
    """Request to create a family."""

    name: str = Field(..., min_length=1, max_length=200, description="Family name")


class FamilyResponse(BaseModel):
    """Family representation."""

    id: str = Field(..., description="Unique family identifier")
    name: str = Field(..., description="Family name in canonical form")
    created_at: datetime = Field(..., description="When the family was created")


class FamiliesListResponse(PaginatedResponse):
    """Paginated list of families."""

    items: list[FamilyResponse] = Field(..., description="Families")


class VariantCreateRequest(BaseModel):
    """Request to create a variant."""

    family_id: str = Field(..., description="Owning family identifier")
    name: str = Field(..., min_length=1, max_length=200, description="Variant name")
    code: str = Field(
        ..., min_length=1, max_length=20, description="Code fragment used in generated codes"
    )
    variant_level: VariantLevel = Field(default=VariantLevel.FIRST, description="Variant level")
    excluded_variant_ids: list[str] = Field(
        default_factory=list,
        description="Variants of the same family that cannot be selected with this one",
    )


class VariantResponse(BaseModel):
    """Variant representation."""

    id: str = Field(..., description="Unique variant identifier")
    family_id: str = Field(..., description="Owning family identifier")
    name: str = Field(..., description="Variant name")
    code: str = Field(..., description="Code fragment used in generated codes")
    variant_level: VariantLevel = Field(..., description="Variant level")
    excluded_variant_ids: list[str] = Field(
        default_factory=list, description="Variants that cannot be selected with this one"
    )


class VariantsListResponse(PaginatedResponse):
    """Paginated list of variants."""

    items: list[VariantResponse] = Field(..., description="Variants")


class ProductTypeCreateRequest(BaseModel):
    """Request to create a product type."""

    name: str = Field(..., min_length=1, max_length=200, description="Product type name")
    code: str = Field(..., min_length=1, max_length=20, description="Product type code")


class ProductTypeResponse(BaseModel):
    """Product type representation."""

    id: str = Field(..., description="Unique product type identifier")
    name: str = Field(..., description="Product type name")
    code: str = Field(..., description="Product type code")


class ProductTypesListResponse(PaginatedResponse):
    """Paginated list of product types."""

    items: list[ProductTypeResponse] = Field(..., description="Product types")


class ProductCreateRequest(BaseModel):
    """Request to create a product."""

    name: str = Field(..., min_length=1, max_length=200, description="Product name")
    code: str = Field(..., min_length=1, max_length=20, description="Product code")
    family_id: str = Field(..., description="Family identifier")
    product_type_id: str = Field(..., description="Product type identifier")


class ProductResponse(BaseModel):
    """Product representation with its family and type."""

    id: str = Field(..., description="Unique product identifier")
    name: str = Field(..., description="Product name")
    code: str = Field(..., description="Product code")
    family: FamilyResponse = Field(..., description="Product family")
    product_type: ProductTypeResponse = Field(..., description="Product type")


class ProductsListResponse(PaginatedResponse):
    """Paginated list of products."""

    items: list[ProductResponse] = Field(..., description="Products")


class CharacteristicCreateRequest(BaseModel):
    """Request to create a technical characteristic."""

    name: str = Field(..., min_length=1, max_length=200, description="Characteristic name")
    type: CharacteristicType = Field(..., description="Declared value type")
    enum_options: list[str] | None = Field(
        default=None, description="Allowed options (enum characteristics only)"
    )
    enum_multiple: bool = Field(
        default=False, description="Whether several options may be selected"
    )
    unique_in_itself: bool = Field(
        default=False, description="Whether values must be unique across the catalog"
    )
    family_ids: list[str] = Field(default_factory=list, description="Associated families")
    variant_ids: list[str] = Field(default_factory=list, description="Associated variants")


class CharacteristicResponse(BaseModel):
    """Technical characteristic representation."""

    id: str = Field(..., description="Unique characteristic identifier")
    name: str = Field(..., description="Characteristic name")
    type: CharacteristicType = Field(..., description="Declared value type")
    enum_options: list[str] | None = Field(default=None, description="Allowed options")
    enum_multiple: bool | None = Field(default=None, description="Multiple selection flag")
    unique_in_itself: bool = Field(..., description="Catalog-wide uniqueness flag")
    family_ids: list[str] = Field(default_factory=list, description="Associated families")
    variant_ids: list[str] = Field(default_factory=list, description="Associated variants")


class CharacteristicListResponse(PaginatedResponse):
    """Paginated list of technical characteristics."""

    items: list[CharacteristicResponse] = Field(..., description="Characteristics")


class ApplicableCharacteristicsResponse(BaseModel):
    """Characteristics applicable to a variant selection."""

    items: list[CharacteristicResponse] = Field(..., description="Applicable characteristics")
    total: int = Field(..., description="Number of applicable characteristics")


# ============================================================================
# Generated Entry Schemas
# ============================================================================


class GeneratedEntryCreateRequest(BaseModel):
    """Request to generate a new code."""

    product_id: str = Field(..., description="Product identifier")
    variant1_id: str | None = Field(default=None, description="FIRST level variant identifier")
    variant2_id: str | None = Field(default=None, description="SECOND level variant identifier")
    values: dict[str, AttributeInput] | None = Field(
        default=None,
        description="Attribute values keyed by technical characteristic identifier",
    )


class GeneratedEntryUpdateRequest(BaseModel):
    """Request to replace the attribute values of an entry."""

    values: dict[str, AttributeInput] | None = Field(
        default=None,
        description="New attribute values; omit to only record the update",
    )


class AttributeValueSchema(BaseModel):
    """Stored value of one technical characteristic."""

    technical_characteristic_id: str = Field(..., description="Characteristic identifier")
    name: str = Field(..., description="Characteristic name")
    type: CharacteristicType = Field(..., description="Characteristic type")
    unique_in_itself: bool = Field(..., description="Catalog-wide uniqueness flag")
    value: str = Field(..., description="Value in storage form")


class GeneratedEntryResponse(BaseModel):
    """Generated entry with its product, variants and values."""

    id: str = Field(..., description="Unique entry identifier")
    generated_code: str = Field(..., description="Generated code")
    product: ProductResponse = Field(..., description="Product")
    variant1: VariantResponse | None = Field(default=None, description="FIRST level variant")
    variant2: VariantResponse | None = Field(default=None, description="SECOND level variant")
    attribute_values: list[AttributeValueSchema] = Field(
        default_factory=list, description="Stored attribute values"
    )
    created_by: str = Field(..., description="Actor that created the entry")
    updated_by: str = Field(..., description="Actor that last updated the entry")
    created_at: datetime = Field(..., description="When the entry was created")
    updated_at: datetime = Field(..., description="When the entry was last updated")


class GeneratedEntriesListResponse(PaginatedResponse):
    """Paginated list of generated entries."""

    items: list[GeneratedEntryResponse] = Field(..., description="Generated entries")
