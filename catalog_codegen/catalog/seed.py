"""Demo catalog seeding.

Upserts a small valve catalog: running the seed twice leaves the catalog
unchanged. Existing rows are matched case- and accent-insensitively.
"""

from dataclasses import dataclass, field

import structlog

from catalog_codegen.catalog.models import Family, Product, ProductType, TechnicalCharacteristic, Variant
from catalog_codegen.catalog.service import CatalogService
from catalog_codegen.domain.normalizer import same_text
from catalog_codegen.domain.value_objects import CharacteristicType, VariantLevel

logger = structlog.get_logger()


@dataclass
class VariantSeed:
    name: str
    code: str
    level: VariantLevel


@dataclass
class CharacteristicSeed:
    name: str
    type: CharacteristicType
    enum_options: list[str] | None = None
    enum_multiple: bool = False
    unique_in_itself: bool = False
    variant_codes: list[str] = field(default_factory=list)


DEMO_FAMILY = "Vanne"
DEMO_PRODUCT_TYPE = ("Corps", "C")
DEMO_PRODUCT = ("Vanne à opercule", "VO")

DEMO_VARIANTS = [
    VariantSeed("Manuelle", "H", VariantLevel.FIRST),
    VariantSeed("Motorisée", "M", VariantLevel.FIRST),
    VariantSeed("Entre-Bride", "E", VariantLevel.SECOND),
]

DEMO_CHARACTERISTICS = [
    CharacteristicSeed("Couleur", CharacteristicType.STRING),
    CharacteristicSeed("Numéro de série", CharacteristicType.STRING, unique_in_itself=True),
    CharacteristicSeed("Diamètre nominal", CharacteristicType.NUMBER),
    CharacteristicSeed(
        "Matière",
        CharacteristicType.ENUM,
        enum_options=["Fonte", "Inox", "Laiton"],
    ),
    CharacteristicSeed(
        "Tension moteur",
        CharacteristicType.ENUM,
        enum_options=["24V", "230V", "400V"],
        enum_multiple=True,
        variant_codes=["M"],
    ),
    CharacteristicSeed("Volant", CharacteristicType.BOOLEAN, variant_codes=["H"]),
]


async def _family(service: CatalogService, counts: dict[str, int]) -> Family:
    for family in await service.list_families():
        if same_text(family.name, DEMO_FAMILY):
            return family
    counts["families"] += 1
    return await service.create_family(DEMO_FAMILY)


async def _variants(service: CatalogService, family: Family, counts: dict[str, int]) -> dict[str, Variant]:
    existing = await service.list_variants(family.id)
    variants: dict[str, Variant] = {}
    for seed in DEMO_VARIANTS:
        match = next(
            (
                variant
                for variant in existing
                if variant.variant_level == seed.level and same_text(variant.code, seed.code)
            ),
            None,
        )
        if match is None:
            match = await service.create_variant(family.id, seed.name, seed.code, seed.level)
            counts["variants"] += 1
        variants[seed.code] = match
    return variants


async def _product(service: CatalogService, family: Family, counts: dict[str, int]) -> Product:
    type_name, type_code = DEMO_PRODUCT_TYPE
    product_type: ProductType | None = next(
        (item for item in await service.list_product_types() if same_text(item.code, type_code)),
        None,
    )
    if product_type is None:
        product_type = await service.create_product_type(type_name, type_code)
        counts["product_types"] += 1

    name, code = DEMO_PRODUCT
    for product in await service.list_products():
        if same_text(product.code, code):
            return product
    counts["products"] += 1
    return await service.create_product(name, code, family.id, product_type.id)


async def _characteristics(
    service: CatalogService,
    family: Family,
    variants: dict[str, Variant],
    counts: dict[str, int],
) -> list[TechnicalCharacteristic]:
    existing = await service.list_characteristics()
    characteristics = []
    for seed in DEMO_CHARACTERISTICS:
        match = next((item for item in existing if same_text(item.name, seed.name)), None)
        if match is None:
            match = await service.create_characteristic(
                name=seed.name,
                type=seed.type,
                enum_options=seed.enum_options,
                enum_multiple=seed.enum_multiple,
                unique_in_itself=seed.unique_in_itself,
                family_ids=[family.id],
                variant_ids=[variants[code].id for code in seed.variant_codes],
            )
            counts["characteristics"] += 1
        characteristics.append(match)
    return characteristics


async def seed_demo_catalog(service: CatalogService) -> dict[str, int]:
    """Upsert the demo valve catalog.

    Args:
        service: Catalog service bound to the target session.

    Returns:
        Number of rows created per entity kind.
    """
    counts = {
        "families": 0,
        "variants": 0,
        "product_types": 0,
        "products": 0,
        "characteristics": 0,
    }
    family = await _family(service, counts)
    variants = await _variants(service, family, counts)
    await _product(service, family, counts)
    await _characteristics(service, family, variants, counts)

    logger.info("Demo catalog seeded", request_id=service.request_id, **counts)
    return counts
