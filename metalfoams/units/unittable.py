"""Sparse unit conversion table.

Conversion factors are stored per (from_unit, to_unit) pair inside a unit
family. A missing pair means "no defined conversion" and lookups for it raise
UnitConversionError; there is no implicit zero, no implicit identity and no
automatic inversion.

Examples:
    >>> table = UnitConversionTable.from_config(load_unit_config())
    >>> table.lookup("MPa", "Pa")
    1000.0
    >>> table.lookup("MPa", "percent")
    Traceback (most recent call last):
    ...
    UnitConversionError: No conversion defined from 'MPa' to 'percent'
"""

from __future__ import annotations

import math
from typing import Dict, Iterator, Mapping, Optional, Tuple

from metalfoams.errors import ConfigurationError, UnitConversionError


class UnitConversionTable:
    """Immutable mapping of (from_unit, to_unit) -> scalar factor.

    ``value_in_to = value_in_from * lookup(from_unit, to_unit)``
    """

    def __init__(self, factors: Mapping[Tuple[str, str], float], families: Mapping[str, str]):
        self._factors: Dict[Tuple[str, str], float] = dict(factors)
        self._families: Dict[str, str] = dict(families)

    @classmethod
    def from_config(cls, config: Mapping) -> "UnitConversionTable":
        """Build the table from the ``families`` section of the unit config.

        Raises:
            ConfigurationError: If a unit belongs to two families, a factor
                targets a unit outside its family, or a factor is zero,
                negative or not a finite number.
        """
        families_cfg = config.get("families") or {}
        families: Dict[str, str] = {}
        factors: Dict[Tuple[str, str], float] = {}

        for family, rows in families_cfg.items():
            for from_unit in rows:
                if from_unit in families:
                    raise ConfigurationError(
                        f"Unit {from_unit!r} declared in both {families[from_unit]!r} and {family!r}"
                    )
                families[from_unit] = family

        for family, rows in families_cfg.items():
            for from_unit, targets in rows.items():
                for to_unit, factor in (targets or {}).items():
                    if families.get(to_unit) != family:
                        raise ConfigurationError(
                            f"Conversion {from_unit!r} -> {to_unit!r} crosses out of family {family!r}"
                        )
                    try:
                        factor = float(factor)
                    except (TypeError, ValueError) as e:
                        raise ConfigurationError(
                            f"Conversion factor {from_unit!r} -> {to_unit!r} is not a number: {factor!r}"
                        ) from e
                    if not math.isfinite(factor) or factor <= 0:
                        raise ConfigurationError(
                            f"Conversion factor {from_unit!r} -> {to_unit!r} must be positive, got {factor}"
                        )
                    factors[(from_unit, to_unit)] = factor

        return cls(factors, families)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def lookup(self, from_unit: str, to_unit: str) -> float:
        """Return the factor converting ``from_unit`` values to ``to_unit``.

        Raises:
            UnitConversionError: If the pair is not declared. Pairs from
                different families are never declared.
        """
        try:
            return self._factors[(from_unit, to_unit)]
        except (KeyError, TypeError):
            raise UnitConversionError(from_unit, to_unit) from None

    def has(self, from_unit: str, to_unit: str) -> bool:
        return (from_unit, to_unit) in self._factors

    def convert(self, value: float, from_unit: str, to_unit: str) -> float:
        """Convert a single value. Raises UnitConversionError like lookup()."""
        return value * self.lookup(from_unit, to_unit)

    def family_of(self, unit: str) -> Optional[str]:
        """Family name of a canonical unit, or None if unknown."""
        return self._families.get(unit)

    def units_in_family(self, family: str) -> list[str]:
        return [u for u, f in self._families.items() if f == family]

    @property
    def units(self) -> frozenset:
        """Every canonical unit key known to the table."""
        return frozenset(self._families)

    @property
    def families(self) -> list[str]:
        return list(dict.fromkeys(self._families.values()))

    def pairs(self) -> Iterator[Tuple[str, str]]:
        return iter(self._factors)

    def __contains__(self, unit: object) -> bool:
        return unit in self._families

    def __len__(self) -> int:
        return len(self._factors)

    def __repr__(self) -> str:
        return f"UnitConversionTable({len(self._families)} units, {len(self._factors)} pairs)"


__all__ = [
    "UnitConversionTable",
]
