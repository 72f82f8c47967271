"""Shared fixtures.

Database-backed tests run against a fresh in-memory SQLite database per
test, through the same async SQLAlchemy models as production.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from catalog_codegen.catalog.service import CatalogService
from catalog_codegen.domain.value_objects import CharacteristicType, VariantLevel
from catalog_codegen.infrastructure.config import settings
from catalog_codegen.infrastructure.database import build_engine, create_tables, get_session
from catalog_codegen.main import app

ACTOR = "jane.doe@example.com"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create an in-memory database with every table."""
    engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the test database."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Open a session on the test database."""
    async with session_factory() as session:
        yield session


# ============================================================================
# API Fixtures
# ============================================================================


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Get authentication and actor headers."""
    return {
        "Authorization": f"Bearer {settings.catalog_api_key}",
        settings.actor_header: ACTOR,
    }


@pytest_asyncio.fixture
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
    auth_headers: dict[str, str],
) -> AsyncIterator[AsyncClient]:
    """Create an authenticated client whose requests use the test database."""

    async def test_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = test_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=auth_headers) as client:
        yield client
    app.dependency_overrides.clear()


# ============================================================================
# Catalog Fixtures
# ============================================================================


@dataclass
class ValveCatalog:
    """Identifiers of the valve family used across scenarios.

    Codes: product type ``C``, products ``VO`` and ``VP``, FIRST level
    variants ``H`` (manual) and ``M`` (motorised), SECOND level variant
    ``E`` (wafer).
    """

    family_id: str
    manual_id: str
    motorised_id: str
    wafer_id: str
    product_type_id: str
    gate_valve_id: str
    butterfly_valve_id: str
    colour_id: str
    serial_number_id: str
    voltage_id: str
    nominal_diameter_id: str


async def build_valve_catalog(session: AsyncSession) -> ValveCatalog:
    """Create the valve catalog through the catalog service.

    ``colour`` and ``serial_number`` apply whenever a variant is selected,
    ``voltage`` only with the motorised variant and ``nominal_diameter``
    only when no variant is selected.
    """
    service = CatalogService(session)
    family = await service.create_family("Vanne")
    manual = await service.create_variant(family.id, "Manuelle", "H", VariantLevel.FIRST)
    motorised = await service.create_variant(family.id, "Motorisée", "M", VariantLevel.FIRST)
    wafer = await service.create_variant(family.id, "Entre-Bride", "E", VariantLevel.SECOND)
    product_type = await service.create_product_type("Corps", "C")
    gate_valve = await service.create_product("Vanne à opercule", "VO", family.id, product_type.id)
    butterfly_valve = await service.create_product("Vanne papillon", "VP", family.id, product_type.id)

    all_variants = [manual.id, motorised.id, wafer.id]
    colour = await service.create_characteristic(
        "Couleur",
        CharacteristicType.STRING,
        family_ids=[family.id],
        variant_ids=all_variants,
    )
    serial_number = await service.create_characteristic(
        "Numéro de série",
        CharacteristicType.STRING,
        unique_in_itself=True,
        family_ids=[family.id],
        variant_ids=all_variants,
    )
    voltage = await service.create_characteristic(
        "Tension moteur",
        CharacteristicType.ENUM,
        enum_options=["24V", "230V", "400V"],
        enum_multiple=True,
        family_ids=[family.id],
        variant_ids=[motorised.id],
    )
    nominal_diameter = await service.create_characteristic(
        "Diamètre nominal",
        CharacteristicType.NUMBER,
        family_ids=[family.id],
    )
    await session.commit()

    return ValveCatalog(
        family_id=family.id,
        manual_id=manual.id,
        motorised_id=motorised.id,
        wafer_id=wafer.id,
        product_type_id=product_type.id,
        gate_valve_id=gate_valve.id,
        butterfly_valve_id=butterfly_valve.id,
        colour_id=colour.id,
        serial_number_id=serial_number.id,
        voltage_id=voltage.id,
        nominal_diameter_id=nominal_diameter.id,
    )


@pytest_asyncio.fixture
async def valves(session: AsyncSession) -> ValveCatalog:
    """Valve catalog stored in the test database."""
    return await build_valve_catalog(session)
