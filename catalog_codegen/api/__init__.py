"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from catalog_codegen.api.catalog import router as catalog_router
from catalog_codegen.api.generated_entries import router as generated_entries_router
from catalog_codegen.api.health import router as health_router

__all__ = [
    "catalog_router",
    "generated_entries_router",
    "health_router",
]
