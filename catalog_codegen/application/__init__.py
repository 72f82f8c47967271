"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from catalog_codegen.application.code_allocator import CodeAllocator
from catalog_codegen.application.generation_service import (
    GenerationService,
    get_generation_service,
)
from catalog_codegen.application.uniqueness import UniquenessEnforcer

__all__ = [
    "CodeAllocator",
    "GenerationService",
    "get_generation_service",
    "UniquenessEnforcer",
]
