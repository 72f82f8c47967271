"""Case and accent insensitive string normalization.

Two strings are considered equal by the catalog when their
``normalize_for_comparison`` forms are equal. Names and values are
persisted in their ``normalize_for_storage`` form.
"""

import unicodedata


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_for_comparison(value: str) -> str:
    """Lower-case a string and strip its combining diacritical marks.

    Example:
        normalize_for_comparison("Vérin") == "verin"

    Args:
        value: String to normalize.

    Returns:
        Normalized string.
    """
    folded = _fold(value)
    # Upper-casing may reintroduce foldable text ("ß" -> "SS", "ı" -> "I"),
    # so fold until the storage form compares equal to the input.
    refolded = _fold(folded.upper())
    while refolded != folded:
        folded = refolded
        refolded = _fold(folded.upper())
    return folded


def normalize_for_storage(value: str) -> str:
    """Canonical upper-case, accent-free form used for persisted values.

    Args:
        value: String to normalize.

    Returns:
        Normalized string.
    """
    return normalize_for_comparison(value).upper()


def same_text(left: str, right: str) -> bool:
    """Compare two strings ignoring case and accents."""
    return normalize_for_comparison(left) == normalize_for_comparison(right)
