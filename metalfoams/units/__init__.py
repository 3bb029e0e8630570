"""Units module for unit canonicalization and conversion.

This module turns inconsistent recorded unit labels into canonical unit keys
and converts values between canonical units within a unit family.

Public API:
    canonicalize_unit(variable, raw_label) -> str
        Map a recorded label (e.g. "%", "g/cm<sup>3</sup>") to a canonical key

    convert_value(value, from_unit, to_unit) -> float
        Convert between canonical units; raises UnitConversionError if undefined

    normalize_value(raw, target_unit) -> dict
        Canonicalize + convert one recorded value, warning instead of raising

    display_unit(unit) -> str
        Display string for a canonical key ("g_cm3" -> "g/cm^3")

Key Principles:
1. Always preserve raw input
2. Convert only when the conversion is declared
3. Warn when conversion impossible
4. A missing conversion is never a zero factor

Examples:
    >>> from metalfoams.units import normalize_value
    >>>
    >>> result = normalize_value(
    ...     {"variable": "porosity", "value": 0.35, "unit": ""}, "percent")
    >>> result["norm"]
    {'value': 35.0, 'unit': 'percent'}
    >>>
    >>> result = normalize_value(
    ...     {"variable": "bulk density", "value": 0.4, "unit": "g/cm<sup>3</sup>"}, "kg_m3")
    >>> result["norm"]
    {'value': 400.0, 'unit': 'kg_m3'}
"""

from .unitapi import (
    conversion_table,
    canonicalize_unit,
    convert_value,
    display_unit,
    list_variables,
    allowed_units,
    validate_variable_unit,
    normalize_value,
)
from .unitnorm import UnitCanonicalizer, get_canonicalizer, load_unit_config
from .unittable import UnitConversionTable

__all__ = [
    "conversion_table",
    "canonicalize_unit",
    "convert_value",
    "display_unit",
    "list_variables",
    "allowed_units",
    "validate_variable_unit",
    "normalize_value",
    "UnitCanonicalizer",
    "get_canonicalizer",
    "load_unit_config",
    "UnitConversionTable",
]
