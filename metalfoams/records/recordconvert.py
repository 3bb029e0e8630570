"""Unit canonicalization and conversion over record frames.

Converting a value column is a three step affair:

  1. canonicalize the recorded unit labels of the column (per variable)
  2. drop rows whose canonical unit is empty or unknown to the table
  3. multiply each value by lookup(canonical_unit, target_unit) and set the
     unit column to the target unit

A lookup that fails in step 3 (a known unit from the wrong family, say)
excludes that row; it never fails the run.
"""

import logging
from typing import Optional, Sequence

import pandas as pd

from metalfoams.errors import UnitConversionError
from metalfoams.units.unitapi import conversion_table
from metalfoams.units.unitnorm import UnitCanonicalizer, get_canonicalizer
from metalfoams.units.unittable import UnitConversionTable

logger = logging.getLogger(__name__)


def canonicalize_column(
    units: pd.Series,
    variable: str,
    canonicalizer: Optional[UnitCanonicalizer] = None,
) -> pd.Series:
    """Canonical unit keys for a column of recorded labels."""
    if canonicalizer is None:
        canonicalizer = get_canonicalizer()
    return canonicalizer.canonicalize_series(variable, units)


def drop_unresolved(
    df: pd.DataFrame,
    unit_columns: Sequence[str],
    table: UnitConversionTable,
) -> pd.DataFrame:
    """Drop rows where any of ``unit_columns`` is empty or not a table unit.

    Both primary units are checked together, so a record survives only when
    every one of its values can take part in a conversion.
    """
    keep = pd.Series(True, index=df.index)
    for col in unit_columns:
        keep &= df[col].isin(list(table.units))

    dropped = int((~keep).sum())
    if dropped:
        bad = sorted({
            str(u) for col in unit_columns for u in df.loc[~keep, col] if u not in table.units
        })
        logger.warning(
            f"Dropped {dropped} records with unresolved units: {', '.join(repr(u) for u in bad)}"
        )
    return df[keep].copy()


def convert_column(
    df: pd.DataFrame,
    value_column: str,
    unit_column: str,
    target_unit: str,
    table: Optional[UnitConversionTable] = None,
) -> pd.DataFrame:
    """Convert one value column to ``target_unit``.

    ``unit_column`` must already hold canonical keys. Rows whose conversion
    is undefined are excluded and logged.

    Returns:
        A new frame; the input is left untouched
    """
    if table is None:
        table = conversion_table()
    df = df.copy()

    def _factor(unit):
        try:
            return table.lookup(unit, target_unit)
        except UnitConversionError:
            return float("nan")

    factors = df[unit_column].map(_factor).astype(float)
    failed = factors.isna()
    if failed.any():
        units = sorted({str(u) for u in df.loc[failed, unit_column]})
        logger.warning(
            f"Excluded {int(failed.sum())} records: no conversion from "
            f"{', '.join(repr(u) for u in units)} to {target_unit!r}"
        )
        df = df[~failed].copy()
        factors = factors[~failed]

    df[value_column] = df[value_column].astype(float) * factors
    df[unit_column] = target_unit
    return df


def convert_records(
    df: pd.DataFrame,
    variable1: str,
    unit1: str,
    variable2: str,
    unit2: str,
    table: Optional[UnitConversionTable] = None,
    canonicalizer: Optional[UnitCanonicalizer] = None,
) -> pd.DataFrame:
    """Canonicalize and convert both value columns of joined records.

    Args:
        df: Joined records (columns variable1, unit_variable1, variable2,
            unit_variable2 plus metadata)
        variable1, variable2: Property keywords the values were recorded under
        unit1, unit2: Target canonical units
        table: Conversion table (default: built from unitconfig.yaml)
        canonicalizer: Label canonicalizer (default: built from unitconfig.yaml)

    Returns:
        Records whose values are in unit1/unit2, with a fresh RangeIndex
    """
    if table is None:
        table = conversion_table()
    df = df.copy()
    df["unit_variable1"] = canonicalize_column(df["unit_variable1"], variable1, canonicalizer)
    df["unit_variable2"] = canonicalize_column(df["unit_variable2"], variable2, canonicalizer)

    df = drop_unresolved(df, ["unit_variable1", "unit_variable2"], table)
    df = convert_column(df, "variable1", "unit_variable1", unit1, table)
    df = convert_column(df, "variable2", "unit_variable2", unit2, table)

    logger.info(f"Converted {len(df)} records to {unit1!r} / {unit2!r}")
    return df.reset_index(drop=True)


def convert_values(
    rows: pd.DataFrame,
    variable: str,
    target_unit: str,
    table: Optional[UnitConversionTable] = None,
    canonicalizer: Optional[UnitCanonicalizer] = None,
) -> pd.DataFrame:
    """Canonicalize and convert a single [mf_id, value, unit] row set."""
    if table is None:
        table = conversion_table()
    rows = rows.copy()
    rows["unit"] = canonicalize_column(rows["unit"], variable, canonicalizer)
    rows = drop_unresolved(rows, ["unit"], table)
    rows = convert_column(rows, "value", "unit", target_unit, table)
    return rows.reset_index(drop=True)


__all__ = [
    "canonicalize_column",
    "drop_unresolved",
    "convert_column",
    "convert_records",
    "convert_values",
]
