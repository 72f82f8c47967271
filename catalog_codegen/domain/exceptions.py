"""Domain exceptions.

All domain-level errors that represent business rule violations.
Each error carries a machine-readable error code and the HTTP status
it is rendered with at the API boundary.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code: str = "DOMAIN_ERROR"
    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of entity (e.g., "Product", "Variant").
            entity_id: ID that could not be resolved.
        """
        super().__init__(
            f"{entity_type} with ID {entity_id} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class AlreadyExistsError(DomainError):
    """Raised when a catalog entity clashes with an existing one."""

    error_code = "ALREADY_EXISTS"
    status_code = 409

    def __init__(self, entity_type: str, field: str, value: str) -> None:
        """Initialize already exists error.

        Args:
            entity_type: Type of entity being created.
            field: Field that must be unique.
            value: Offending value.
        """
        super().__init__(
            f"{entity_type} with {field} '{value}' already exists",
            details={"entity_type": entity_type, "field": field, "value": value},
        )


# ============================================================================
# Generation Errors
# ============================================================================


class InvalidCombinationError(DomainError):
    """Raised when a variant cannot be combined with the requested product."""

    error_code = "INVALID_COMBINATION"

    def __init__(self, variant_id: str, reason: str) -> None:
        """Initialize invalid combination error.

        Args:
            variant_id: ID of the rejected variant.
            reason: Explanation of why the variant is rejected.
        """
        super().__init__(
            f"Variant {variant_id} cannot be used: {reason}",
            details={"variant_id": variant_id, "reason": reason},
        )


class DuplicateCombinationError(DomainError):
    """Raised when an equivalent generated entry already exists."""

    error_code = "DUPLICATE_COMBINATION"

    def __init__(self, generated_code: str) -> None:
        """Initialize duplicate combination error.

        Args:
            generated_code: Code of the existing equivalent entry.
        """
        super().__init__(
            "An identical generated code already exists for this product with the same "
            f"variants and the same technical characteristic values: {generated_code}",
            details={"generated_code": generated_code},
        )


class NonUniqueValueError(DomainError):
    """Raised when a unique-in-itself value is already used by another entry."""

    error_code = "NON_UNIQUE_VALUE"

    def __init__(self, characteristic_name: str, value: str, generated_code: str) -> None:
        """Initialize non unique value error.

        Args:
            characteristic_name: Name of the unique characteristic.
            value: Rejected value.
            generated_code: Code of the entry already holding the value.
        """
        super().__init__(
            f"Value '{value}' for technical characteristic {characteristic_name} "
            f"is already used by {generated_code}",
            details={
                "characteristic_name": characteristic_name,
                "value": value,
                "generated_code": generated_code,
            },
        )


class ValueTooLongError(DomainError):
    """Raised when a stored value would exceed the maximum length."""

    error_code = "VALUE_TOO_LONG"

    def __init__(self, characteristic_name: str, length: int, max_length: int) -> None:
        """Initialize value too long error.

        Args:
            characteristic_name: Name of the characteristic.
            length: Normalized length of the rejected value.
            max_length: Maximum allowed length.
        """
        super().__init__(
            f"Value for technical characteristic {characteristic_name} is {length} "
            f"characters long (maximum {max_length})",
            details={
                "characteristic_name": characteristic_name,
                "length": length,
                "max_length": max_length,
            },
        )


class EmptyRequiredValueError(DomainError):
    """Raised when a value key is explicitly supplied as empty."""

    error_code = "EMPTY_REQUIRED_VALUE"

    def __init__(self, characteristic_name: str, characteristic_id: str) -> None:
        """Initialize empty required value error.

        Args:
            characteristic_name: Name of the characteristic.
            characteristic_id: ID of the characteristic.
        """
        super().__init__(
            f"Value for technical characteristic {characteristic_name} "
            f"({characteristic_id}) cannot be empty",
            details={
                "characteristic_name": characteristic_name,
                "characteristic_id": characteristic_id,
            },
        )


class InvalidValueError(DomainError):
    """Raised when a value does not match its characteristic's type."""

    error_code = "INVALID_VALUE"

    def __init__(self, characteristic_name: str, value: object, reason: str) -> None:
        """Initialize invalid value error.

        Args:
            characteristic_name: Name of the characteristic.
            value: Rejected raw value.
            reason: Explanation of why the value is invalid.
        """
        super().__init__(
            f"Invalid value {value!r} for technical characteristic {characteristic_name}: {reason}",
            details={"characteristic_name": characteristic_name, "value": str(value), "reason": reason},
        )


class CatalogValidationError(DomainError):
    """Raised when catalog data submitted for creation is inconsistent."""

    error_code = "VALIDATION_ERROR"


# ============================================================================
# Code Allocation Errors
# ============================================================================


class CodeSpaceExhaustedError(DomainError):
    """Raised when every increment of a prefix is already used."""

    error_code = "CODE_SPACE_EXHAUSTED"
    status_code = 409

    def __init__(self, prefix: str) -> None:
        """Initialize code space exhausted error.

        Args:
            prefix: Prefix with no free increment left.
        """
        super().__init__(
            f"No free increment left for prefix {prefix}",
            details={"prefix": prefix},
        )


class CodeAllocationConflictError(DomainError):
    """Raised when the store rejects a write on a generated entry.

    Happens when a concurrent request persisted the same code first, or
    when the transaction lost a serialization race at commit time. The
    request can be retried.
    """

    error_code = "CODE_ALLOCATION_CONFLICT"
    status_code = 409

    def __init__(self, generated_code: str) -> None:
        """Initialize code allocation conflict error.

        Args:
            generated_code: Code of the entry whose write was rejected.
        """
        super().__init__(
            f"Generated code {generated_code} was written concurrently, retry the request",
            details={"generated_code": generated_code},
        )


# ============================================================================
# Identity Errors
# ============================================================================


class MissingActorError(DomainError):
    """Raised when a mutating request does not identify its actor."""

    error_code = "MISSING_ACTOR"
    status_code = 401

    def __init__(self, header: str) -> None:
        """Initialize missing actor error.

        Args:
            header: Name of the header expected to carry the actor.
        """
        super().__init__(
            f"Actor identity not found in request (expected header {header})",
            details={"header": header},
        )
