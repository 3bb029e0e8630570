"""Public API for unit canonicalization and conversion.

This module provides the entry points for turning recorded property values
into values in a requested target unit.

Key Design Principles:
1. Always preserve raw input for audit trail
2. Convert only when the canonical unit has a declared conversion
3. Warn explicitly when conversion is impossible
4. Never treat a missing conversion as a zero factor
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

import pandas as pd

from metalfoams.errors import ConfigurationError, UnitConversionError
from metalfoams.units.unitnorm import get_canonicalizer, load_unit_config
from metalfoams.units.unittable import UnitConversionTable
from metalfoams.utils.resolver import suggest_match


@lru_cache(maxsize=1)
def conversion_table() -> UnitConversionTable:
    """Conversion table built once from unitconfig.yaml.

    Examples:
        >>> conversion_table().lookup("decimal", "percent")
        100.0
    """
    return UnitConversionTable.from_config(load_unit_config())


def canonicalize_unit(variable: str, raw_label: Any) -> str:
    """Map a raw recorded unit label to its canonical key.

    Args:
        variable: Property keyword the value was recorded under (any case)
        raw_label: Unit label as stored in the database (may be empty/None)

    Returns:
        Canonical unit key, or "" if the label could not be resolved

    Examples:
        >>> canonicalize_unit("porosity", "%")
        'percent'
        >>> canonicalize_unit("thermal conductivity", "W/mK")
        'W_mK'
        >>> canonicalize_unit("Forchheimer factor", "1/ft")
        'one_ft'
        >>> canonicalize_unit("Young modulus", "")
        ''
    """
    return get_canonicalizer().canonicalize(variable, raw_label)


def convert_value(value: float, from_unit: str, to_unit: str) -> float:
    """Convert ``value`` between two canonical units.

    Raises:
        UnitConversionError: If no conversion is declared for the pair

    Examples:
        >>> convert_value(0.35, "decimal", "percent")
        35.0
        >>> convert_value(2, "GPa", "MPa")
        2000.0
    """
    return conversion_table().convert(value, from_unit, to_unit)


def display_unit(unit: str) -> str:
    """Human-readable display string for a canonical unit key.

    Unmapped keys are returned unchanged.

    Examples:
        >>> display_unit("g_cm3")
        'g/cm^3'
        >>> display_unit("MPa")
        'MPa'
    """
    display = load_unit_config().get("display") or {}
    return display.get(unit, unit)


def list_variables() -> pd.DataFrame:
    """List the property keywords and the target units each one accepts.

    Returns:
        DataFrame with columns variable, family, units (comma separated)

    Examples:
        >>> list_variables().head(2)
                    variable  family           units
        0  average pore size  length   um, mm, cm, m
        1       bulk density density    g_cm3, kg_m3
    """
    table = conversion_table()
    rows = []
    for variable, units in (load_unit_config().get("variables") or {}).items():
        units = list(units or [])
        family = table.family_of(units[0]) if units else None
        rows.append({
            "variable": variable,
            "family": family,
            "units": ", ".join(units),
        })
    return pd.DataFrame(rows, columns=["variable", "family", "units"])


def allowed_units(variable: str) -> List[str]:
    """Target units accepted for a property keyword.

    Keywords are matched exactly (case-sensitive), as the database stores them.

    Raises:
        ConfigurationError: If the keyword is unknown. The message suggests
            the closest known keyword when there is a plausible one.
    """
    variables = load_unit_config().get("variables") or {}
    if variable in variables:
        return list(variables[variable] or [])

    message = f"Unknown variable {variable!r}."
    suggestion = suggest_match(variable, variables)
    if suggestion is not None:
        message += f" Did you mean {suggestion!r}?"
    raise ConfigurationError(message)


def validate_variable_unit(variable: str, unit: str) -> None:
    """Check that ``unit`` is a valid target unit for ``variable``.

    Raises:
        ConfigurationError: If either the variable or the unit is unknown

    Examples:
        >>> validate_variable_unit("porosity", "percent")
        >>> validate_variable_unit("porosity", "MPa")
        Traceback (most recent call last):
        ...
        ConfigurationError: Unit 'MPa' is not available for 'porosity'. Choose from: percent, decimal
    """
    units = allowed_units(variable)
    if unit not in units:
        raise ConfigurationError(
            f"Unit {unit!r} is not available for {variable!r}. "
            f"Choose from: {', '.join(units)}"
        )


def normalize_value(raw: Dict[str, Any], target_unit: str) -> Dict[str, Any]:
    """Canonicalize and convert one recorded value to ``target_unit``.

    Args:
        raw: Dictionary with:
            - variable (str): Property keyword (required)
            - value (float): Recorded value (required)
            - unit (Optional[str]): Recorded unit label
        target_unit: Canonical key to convert to

    Returns:
        Dictionary with three sections:
        {
            "raw": {...},              # Original input preserved exactly
            "norm": {                  # Canonicalized/converted values
                "value": float,
                "unit": str
            },
            "warning": Optional[str]   # Set when conversion was impossible
        }

    Examples:
        >>> result = normalize_value(
        ...     {"variable": "porosity", "value": 0.35, "unit": ""}, "percent")
        >>> result["norm"]
        {'value': 35.0, 'unit': 'percent'}
        >>> result["warning"] is None
        True

        >>> result = normalize_value(
        ...     {"variable": "Young modulus", "value": 500, "unit": ""}, "MPa")
        >>> result["warning"]
        "No unit recorded for 'Young modulus'. Cannot convert to 'MPa'."
    """
    variable = raw.get("variable")
    value = raw.get("value")

    if variable is None or value is None:
        return {
            "raw": raw,
            "norm": {"value": value, "unit": raw.get("unit")},
            "warning": "Missing required fields: variable and value",
        }

    canonical = canonicalize_unit(variable, raw.get("unit"))
    if not canonical:
        return {
            "raw": raw,
            "norm": {"value": value, "unit": canonical},
            "warning": f"No unit recorded for {variable!r}. Cannot convert to {target_unit!r}.",
        }

    try:
        converted = convert_value(float(value), canonical, target_unit)
    except UnitConversionError as e:
        return {
            "raw": raw,
            "norm": {"value": value, "unit": canonical},
            "warning": f"{e}. Preserving recorded value.",
        }

    return {
        "raw": raw,
        "norm": {"value": converted, "unit": target_unit},
        "warning": None,
    }


__all__ = [
    "conversion_table",
    "canonicalize_unit",
    "convert_value",
    "display_unit",
    "list_variables",
    "allowed_units",
    "validate_variable_unit",
    "normalize_value",
]
