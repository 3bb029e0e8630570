"""Unit label canonicalization.

Raw unit labels in the database are inconsistent: fractions are recorded as
"%" or left empty, densities carry HTML exponents ("g/cm<sup>3</sup>"), and
slash notation ("W/mK", "1/ft") does not match the conversion table keys.
This module maps those labels to canonical unit keys with a declarative,
per-variable rule table loaded from unitconfig.yaml.

Key Principles:
1. Rules are data, not code: add a variable or pattern in the YAML file
2. Labels that are already canonical pass through unchanged
3. Variables without rules pass their (trimmed) labels through
4. An empty result means "unresolved"; the owning record gets dropped
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from metalfoams.errors import ConfigurationError
from metalfoams.utils.build_utils import load_yaml_file
from metalfoams.utils.normalize import normalize_label


DEFAULT_CONFIG_PATH = Path(__file__).parent / "unitconfig.yaml"


# ============================================================================
# Load Configuration
# ============================================================================

@lru_cache(maxsize=4)
def load_unit_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load unit configuration from YAML file.

    Args:
        path: Optional override. Defaults to unitconfig.yaml next to this module.

    Returns:
        Dictionary with families, display, variables and canonicalization sections

    Raises:
        ConfigurationError: If the file is missing or has no families section
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    try:
        config = load_yaml_file(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Cannot load unit configuration: {e}") from e

    if not config.get("families"):
        raise ConfigurationError(f"Unit configuration {config_path} has no 'families' section")
    return config


# ============================================================================
# Rule Table
# ============================================================================

@dataclass(frozen=True)
class CanonicalizationRule:
    """One raw-label pattern and the canonical key it maps to."""

    pattern: re.Pattern
    unit: str

    def matches(self, label: str) -> bool:
        return self.pattern.search(label) is not None


@dataclass(frozen=True)
class RuleSet:
    """Ordered rules shared by one or more variables."""

    name: str
    rules: tuple = ()
    default: Optional[str] = None

    def apply(self, label: str) -> Optional[str]:
        for rule in self.rules:
            if rule.matches(label):
                return rule.unit
        return self.default


@dataclass
class UnitCanonicalizer:
    """Maps raw unit labels to canonical keys, per variable.

    Variables are looked up case-insensitively. Evaluation order for a label:
      1. Already one of the variable's canonical keys -> unchanged
      2. First matching rule of the variable's rule set
      3. The rule set's default, if any
      4. The trimmed label itself

    Examples:
        >>> canon = get_canonicalizer()
        >>> canon.canonicalize("porosity", "%")
        'percent'
        >>> canon.canonicalize("porosity", "")
        'decimal'
        >>> canon.canonicalize("bulk density", "g/cm<sup>3</sup>")
        'g_cm3'
        >>> canon.canonicalize("Young modulus", "MPa")
        'MPa'
    """

    rule_sets: Dict[str, RuleSet] = field(default_factory=dict)
    canonical_units: frozenset = frozenset()
    variable_units: Dict[str, frozenset] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Mapping) -> "UnitCanonicalizer":
        """Compile the ``canonicalization`` section of the unit config.

        Raises:
            ConfigurationError: On a bad regex, a rule targeting an unknown
                unit, or a variable claimed by two rule sets.
        """
        canonical_units = frozenset(
            unit
            for rows in (config.get("families") or {}).values()
            for unit in rows
        )
        variable_units = {
            normalize_label(name): frozenset(units or [])
            for name, units in (config.get("variables") or {}).items()
        }

        rule_sets: Dict[str, RuleSet] = {}
        for set_name, spec in (config.get("canonicalization") or {}).items():
            rules = []
            for entry in spec.get("rules") or []:
                unit = entry.get("unit")
                if unit not in canonical_units:
                    raise ConfigurationError(
                        f"Rule set {set_name!r} maps to unknown unit {unit!r}"
                    )
                try:
                    pattern = re.compile(entry["pattern"], re.IGNORECASE)
                except (KeyError, re.error) as e:
                    raise ConfigurationError(
                        f"Rule set {set_name!r} has an invalid pattern: {entry!r}"
                    ) from e
                rules.append(CanonicalizationRule(pattern=pattern, unit=unit))

            default = spec.get("default")
            if default is not None and default not in canonical_units:
                raise ConfigurationError(
                    f"Rule set {set_name!r} defaults to unknown unit {default!r}"
                )

            rule_set = RuleSet(name=set_name, rules=tuple(rules), default=default)
            for variable in spec.get("applies_to") or []:
                key = normalize_label(variable)
                if key in rule_sets:
                    raise ConfigurationError(
                        f"Variable {variable!r} is claimed by rule sets "
                        f"{rule_sets[key].name!r} and {set_name!r}"
                    )
                rule_sets[key] = rule_set

        return cls(
            rule_sets=rule_sets,
            canonical_units=canonical_units,
            variable_units=variable_units,
        )

    def rules_for(self, variable: str) -> Optional[RuleSet]:
        return self.rule_sets.get(normalize_label(variable))

    def _match_known_unit(self, variable: str, label: str) -> Optional[str]:
        # Case-insensitive within the variable's own units, exact otherwise
        own_units = self.variable_units.get(normalize_label(variable))
        if own_units:
            folded = label.casefold()
            for unit in own_units:
                if unit.casefold() == folded:
                    return unit
            return None
        return label if label in self.canonical_units else None

    def canonicalize(self, variable: str, raw_label: Any) -> str:
        """Return the canonical key for ``raw_label`` recorded under ``variable``.

        Missing labels (None/NaN) are treated as empty. An empty return value
        means the label could not be resolved.
        """
        if raw_label is None or (isinstance(raw_label, float) and raw_label != raw_label):
            label = ""
        else:
            label = str(raw_label).strip()

        known = self._match_known_unit(variable, label) if label else None
        if known is not None:
            return known

        rule_set = self.rules_for(variable)
        if rule_set is None:
            return label

        resolved = rule_set.apply(label)
        return label if resolved is None else resolved

    def canonicalize_many(self, variable: str, labels: Iterable[Any]) -> List[str]:
        return [self.canonicalize(variable, label) for label in labels]

    def canonicalize_series(self, variable: str, labels: pd.Series) -> pd.Series:
        """Vectorized form of canonicalize(); keeps the input index."""
        # Few distinct labels per column, so map through a small cache
        cache: Dict[Any, str] = {}

        def _one(label: Any) -> str:
            key = None if (isinstance(label, float) and label != label) else label
            if key not in cache:
                cache[key] = self.canonicalize(variable, key)
            return cache[key]

        return labels.map(_one).astype(object)


@lru_cache(maxsize=4)
def get_canonicalizer(path: Optional[Union[str, Path]] = None) -> UnitCanonicalizer:
    """Canonicalizer built from the (cached) unit configuration."""
    return UnitCanonicalizer.from_config(load_unit_config(path))


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "load_unit_config",
    "CanonicalizationRule",
    "RuleSet",
    "UnitCanonicalizer",
    "get_canonicalizer",
]
