#!/usr/bin/env python3
"""Seed demo catalog script.

Upserts the demo valve catalog (family, variants, product type, product
and technical characteristics) into the configured database. Safe to run
repeatedly.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --database-url postgresql+asyncpg://...
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_codegen.catalog.seed import seed_demo_catalog
from catalog_codegen.catalog.service import CatalogService
from catalog_codegen.infrastructure.config import settings
from catalog_codegen.infrastructure.database import build_engine, create_tables
from catalog_codegen.infrastructure.logging import configure_logging


async def seed(database_url: str) -> dict[str, int]:
    """Create missing tables and seed the demo catalog.

    Args:
        database_url: Target database URL.

    Returns:
        Number of rows created per entity kind.
    """
    engine = build_engine(database_url)
    try:
        await create_tables(engine)
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_factory() as session:
            return await seed_demo_catalog(CatalogService(session))
    finally:
        await engine.dispose()


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the demo product catalog")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="Database URL (default: DATABASE_URL setting)",
    )
    args = parser.parse_args()

    configure_logging()

    print("=" * 60)
    print("Catalog Seeder")
    print("=" * 60)

    counts = await seed(args.database_url)
    for kind, created in counts.items():
        print(f"  ✓ {kind}: {created} created")

    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
