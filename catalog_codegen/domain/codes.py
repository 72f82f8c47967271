"""Generated code layout.

A generated code is ``F`` followed by the product type code, the product
code, the FIRST and SECOND variant codes (``0`` when no variant is
selected at a level) and a six digit increment::

    F C VO M E 000001  ->  FCVOME000001
"""

import re
from collections.abc import Iterable

from catalog_codegen.domain.exceptions import CodeSpaceExhaustedError

CODE_MARKER = "F"
NO_VARIANT_CODE = "0"
INCREMENT_DIGITS = 6
MAX_INCREMENT = 10**INCREMENT_DIGITS - 1

_INCREMENT_RE = re.compile(rf"[0-9]{{{INCREMENT_DIGITS}}}")


def build_prefix(
    product_type_code: str,
    product_code: str,
    variant1_code: str | None = None,
    variant2_code: str | None = None,
) -> str:
    """Build the deterministic prefix of a product and variant selection.

    Args:
        product_type_code: Code of the product's type.
        product_code: Code of the product.
        variant1_code: Code of the FIRST level variant, if any.
        variant2_code: Code of the SECOND level variant, if any.

    Returns:
        Code prefix.
    """
    return (
        f"{CODE_MARKER}{product_type_code}{product_code}"
        f"{variant1_code or NO_VARIANT_CODE}{variant2_code or NO_VARIANT_CODE}"
    )


def format_code(prefix: str, increment: int) -> str:
    """Append a zero-padded increment to a prefix."""
    return f"{prefix}{increment:0{INCREMENT_DIGITS}d}"


def used_increments(prefix: str, codes: Iterable[str]) -> set[int]:
    """Collect the increments already used under a prefix.

    Codes whose remainder after the prefix is not exactly six digits are
    ignored: they are malformed or belong to a longer prefix.

    Args:
        prefix: Code prefix.
        codes: Existing generated codes.

    Returns:
        Used increments.
    """
    used: set[int] = set()
    for code in codes:
        if not code.startswith(prefix):
            continue
        suffix = code[len(prefix):]
        if _INCREMENT_RE.fullmatch(suffix):
            used.add(int(suffix))
    return used


def first_free_increment(prefix: str, used: set[int], start: int = 1) -> int:
    """Find the smallest increment not in ``used``, starting at ``start``.

    Args:
        prefix: Code prefix, for error reporting.
        used: Increments already taken.
        start: First increment to consider.

    Returns:
        Free increment.

    Raises:
        CodeSpaceExhaustedError: If no increment up to 999999 is free.
    """
    increment = max(start, 1)
    while increment in used:
        increment += 1
    if increment > MAX_INCREMENT:
        raise CodeSpaceExhaustedError(prefix)
    return increment
