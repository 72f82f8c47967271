"""Product catalog.

Provides the persisted catalog (families, variants, technical
characteristics, products, generated entries), its repositories and the
catalog management service.
"""

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
from catalog_codegen.catalog.repository import CatalogRepository, GeneratedEntryRepository
from catalog_codegen.catalog.service import CatalogService, get_catalog_service

__all__ = [
    # Models
    "AttributeValue",
    "Family",
    "GeneratedEntry",
    "Product",
    "ProductType",
    "TechnicalCharacteristic",
    "TechnicalCharacteristicFamily",
    "TechnicalCharacteristicVariant",
    "Variant",
    "VariantExclusion",
    # Repositories
    "CatalogRepository",
    "GeneratedEntryRepository",
    # Service
    "CatalogService",
    "get_catalog_service",
]
