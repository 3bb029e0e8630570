"""Shared text normalization utilities.

This module provides the string helpers used across the units, filters and
output modules: case-insensitive label comparison, column naming and file
naming.
"""

import re
import unicodedata
from typing import Any


def normalize_label(s: Any) -> str:
    """Normalize a free-text label for case-insensitive comparison.

    Transformations:
      1. None/NaN -> empty string
      2. Unicode normalization (NFKC)
      3. Strip surrounding whitespace
      4. Collapse internal whitespace to single spaces
      5. Casefold

    Args:
        s: Raw label (base material, foam type, variable name, ...)

    Returns:
        Normalized string for equality tests

    Examples:
        >>> normalize_label("  Closed   Cell ")
        'closed cell'

        >>> normalize_label("ALUMINIUM")
        'aluminium'

        >>> normalize_label(None)
        ''
    """
    if s is None:
        return ""
    if isinstance(s, float) and s != s:
        return ""

    s = unicodedata.normalize("NFKC", str(s))
    s = re.sub(r"\s+", " ", s).strip()
    return s.casefold()


def column_name(variable: str, sep: str = "_") -> str:
    """Turn a property keyword into a column name.

    Every space is replaced with ``sep``; nothing else changes.

    Examples:
        >>> column_name("Young modulus")
        'Young_modulus'

        >>> column_name("pores per unit length", sep="-")
        'pores-per-unit-length'
    """
    return variable.replace(" ", sep)


def strip_whitespace(s: str) -> str:
    """Remove all whitespace from a string.

    Examples:
        >>> strip_whitespace("porosity_Young modulus.xlsx")
        'porosity_Youngmodulus.xlsx'
    """
    return re.sub(r"\s+", "", s)


__all__ = [
    "normalize_label",
    "column_name",
    "strip_whitespace",
]
