"""Tests for unit label canonicalization."""

import pandas as pd
import pytest

from metalfoams.errors import ConfigurationError
from metalfoams.units import canonicalize_unit, get_canonicalizer, load_unit_config
from metalfoams.units.unitnorm import UnitCanonicalizer


FRACTION_VARIABLES = [
    "densification strain",
    "porosity",
    "elastic Poisson ratio",
    "plastic Poisson ratio",
    "shear failure strain",
    "tensile failure strain",
]


class TestFractionRules:
    """Test the percent/decimal rule shared by fraction variables."""

    @pytest.mark.parametrize("variable", FRACTION_VARIABLES)
    def test_percent_sign(self, variable):
        """Any label containing % is percent."""
        assert canonicalize_unit(variable, "%") == "percent"
        assert canonicalize_unit(variable, "vol %") == "percent"

    @pytest.mark.parametrize("variable", FRACTION_VARIABLES)
    def test_empty_label_is_decimal(self, variable):
        """An empty or missing label is decimal."""
        assert canonicalize_unit(variable, "") == "decimal"
        assert canonicalize_unit(variable, None) == "decimal"
        assert canonicalize_unit(variable, float("nan")) == "decimal"

    def test_other_text_is_decimal(self):
        """Anything without % falls back to decimal."""
        assert canonicalize_unit("porosity", "-") == "decimal"
        assert canonicalize_unit("porosity", "fraction") == "decimal"

    def test_canonical_keys_pass_through(self):
        """Canonical keys are kept, in any case."""
        assert canonicalize_unit("porosity", "percent") == "percent"
        assert canonicalize_unit("porosity", "Percent") == "percent"
        assert canonicalize_unit("porosity", "decimal") == "decimal"

    def test_variable_lookup_is_case_insensitive(self):
        """Rule sets are keyed by case-insensitive variable name."""
        assert canonicalize_unit("Porosity", "%") == "percent"
        assert canonicalize_unit("ELASTIC POISSON RATIO", "") == "decimal"


class TestPatternRules:
    """Test the per-variable regex rules."""

    @pytest.mark.parametrize("variable,label,expected", [
        ("bulk density", "g/cm<sup>3</sup>", "g_cm3"),
        ("bulk density", "g/cm3", "g_cm3"),
        ("bulk density", "g/cm^3", "g_cm3"),
        ("bulk density", "kg/m<sup>3</sup>", "kg_m3"),
        ("bulk density", "kg/m3", "kg_m3"),
        ("permeability", "m<sup>2</sup>", "m2"),
        ("permeability", "m^2", "m2"),
        ("thermal conductivity", "W/mK", "W_mK"),
        ("thermal conductivity", "W/m K", "W_mK"),
        ("thermal conductivity", "W/(m K)", "W_mK"),
        ("thermal conductivity", "W/m.K", "W_mK"),
        ("Forchheimer factor", "1/m", "one_m"),
        ("Forchheimer factor", "1/ft", "one_ft"),
        ("pores per unit length", "pores/cm", "pores_cm"),
        ("pores per unit length", "pores/inch", "pores_inch"),
        ("pores per unit length", "pores/in", "pores_inch"),
        ("pores per unit length", "PPI", "pores_inch"),
    ])
    def test_label_variants(self, variable, label, expected):
        """Recorded label variants map to one canonical key."""
        assert canonicalize_unit(variable, label) == expected

    def test_surrounding_whitespace(self):
        """Labels are trimmed before matching."""
        assert canonicalize_unit("bulk density", "  g/cm<sup>3</sup> ") == "g_cm3"

    def test_unmatched_label_passes_through(self):
        """A label no rule matches is returned trimmed."""
        assert canonicalize_unit("bulk density", " lb/ft3 ") == "lb/ft3"


class TestVariablesWithoutRules:
    """Test variables whose labels are already canonical keys."""

    def test_passthrough(self):
        """Labels pass through after trimming."""
        assert canonicalize_unit("Young modulus", "MPa") == "MPa"
        assert canonicalize_unit("yield stress", " GPa ") == "GPa"
        assert canonicalize_unit("average pore size", "mm") == "mm"

    def test_unknown_label_kept(self):
        """Unknown labels are kept so that the record can be dropped later."""
        assert canonicalize_unit("Young modulus", "kPa") == "kPa"

    def test_empty_label_unresolved(self):
        """Empty labels stay empty."""
        assert canonicalize_unit("Young modulus", "") == ""
        assert canonicalize_unit("Young modulus", None) == ""


class TestIdempotence:
    """Re-canonicalizing a canonical label is a no-op."""

    def test_every_allowed_unit(self):
        """Every catalog unit canonicalizes to itself for its variable."""
        for variable, units in load_unit_config()["variables"].items():
            for unit in units:
                assert canonicalize_unit(variable, unit) == unit

    @pytest.mark.parametrize("variable,label", [
        ("porosity", "%"),
        ("porosity", ""),
        ("bulk density", "kg/m<sup>3</sup>"),
        ("Forchheimer factor", "1/ft"),
        ("pores per unit length", "ppi"),
        ("thermal conductivity", "W/(m K)"),
    ])
    def test_twice_equals_once(self, variable, label):
        """canonicalize(canonicalize(x)) == canonicalize(x)."""
        once = canonicalize_unit(variable, label)
        assert canonicalize_unit(variable, once) == once


class TestCanonicalizer:
    """Test the rule table object."""

    def test_series_keeps_index(self):
        """Vectorized canonicalization keeps the input index."""
        labels = pd.Series(["%", "", None, "percent"], index=[10, 11, 12, 13])
        result = get_canonicalizer().canonicalize_series("porosity", labels)
        assert list(result.index) == [10, 11, 12, 13]
        assert list(result) == ["percent", "decimal", "decimal", "percent"]

    def test_canonicalize_many(self):
        """canonicalize_many maps a list of labels."""
        result = get_canonicalizer().canonicalize_many("Forchheimer factor", ["1/m", "1/ft"])
        assert result == ["one_m", "one_ft"]

    def test_rules_for(self):
        """Fraction variables share one rule set."""
        canon = get_canonicalizer()
        assert canon.rules_for("porosity") is canon.rules_for("densification strain")
        assert canon.rules_for("Young modulus") is None

    def test_rule_to_unknown_unit_rejected(self):
        """Rules must target a table unit."""
        config = {
            "families": {"fraction": {"percent": {"percent": 1}}},
            "canonicalization": {
                "bad": {"applies_to": ["porosity"], "rules": [{"pattern": "%", "unit": "pct"}]},
            },
        }
        with pytest.raises(ConfigurationError, match="unknown unit"):
            UnitCanonicalizer.from_config(config)

    def test_invalid_pattern_rejected(self):
        """Patterns must compile."""
        config = {
            "families": {"fraction": {"percent": {"percent": 1}}},
            "canonicalization": {
                "bad": {"applies_to": ["porosity"], "rules": [{"pattern": "(", "unit": "percent"}]},
            },
        }
        with pytest.raises(ConfigurationError, match="invalid pattern"):
            UnitCanonicalizer.from_config(config)

    def test_variable_in_two_rule_sets_rejected(self):
        """A variable belongs to one rule set."""
        config = {
            "families": {"fraction": {"percent": {"percent": 1}}},
            "canonicalization": {
                "a": {"applies_to": ["porosity"], "default": "percent"},
                "b": {"applies_to": ["Porosity"], "default": "percent"},
            },
        }
        with pytest.raises(ConfigurationError, match="claimed"):
            UnitCanonicalizer.from_config(config)
