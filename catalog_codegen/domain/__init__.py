"""Domain layer module.

Contains the pure rules of code generation: normalization, typed
attribute values, applicability, duplicate detection and code layout.
"""

from catalog_codegen.domain.applicability import resolve_applicable
from catalog_codegen.domain.codes import build_prefix, first_free_increment, format_code, used_increments
from catalog_codegen.domain.duplicates import candidate_value_map, comparison_key, find_duplicate
from catalog_codegen.domain.exceptions import (
    AlreadyExistsError,
    CatalogValidationError,
    CodeAllocationConflictError,
    CodeSpaceExhaustedError,
    DomainError,
    DuplicateCombinationError,
    EmptyRequiredValueError,
    InvalidCombinationError,
    InvalidValueError,
    MissingActorError,
    NonUniqueValueError,
    NotFoundError,
    ValueTooLongError,
)
from catalog_codegen.domain.normalizer import normalize_for_comparison, normalize_for_storage, same_text
from catalog_codegen.domain.value_objects import (
    MAX_ENUM_OPTION_LENGTH,
    MAX_VALUE_LENGTH,
    CharacteristicType,
    RawValue,
    VariantLevel,
    canonical_text,
    is_blank,
)

__all__ = [
    # Normalization
    "normalize_for_comparison",
    "normalize_for_storage",
    "same_text",
    # Values
    "MAX_ENUM_OPTION_LENGTH",
    "MAX_VALUE_LENGTH",
    "CharacteristicType",
    "RawValue",
    "VariantLevel",
    "canonical_text",
    "is_blank",
    # Rules
    "resolve_applicable",
    "candidate_value_map",
    "comparison_key",
    "find_duplicate",
    "build_prefix",
    "first_free_increment",
    "format_code",
    "used_increments",
    # Exceptions
    "AlreadyExistsError",
    "CatalogValidationError",
    "CodeAllocationConflictError",
    "CodeSpaceExhaustedError",
    "DomainError",
    "DuplicateCombinationError",
    "EmptyRequiredValueError",
    "InvalidCombinationError",
    "InvalidValueError",
    "MissingActorError",
    "NonUniqueValueError",
    "NotFoundError",
    "ValueTooLongError",
]
