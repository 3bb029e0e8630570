"""
Record Filters
--------------

Three independent row filters over converted records, applied by the
pipeline in this order:

  1. filter_metals: keep allowed base materials ("all" keeps everything)
  2. filter_cell_type: keep open-cell or closed-cell foams, or everything
  3. apply_numeric_filter: convert a third property, join it on, and keep
     rows whose value lies within a range

Text comparisons are case-insensitive. Every filter returns a new frame and
an empty result is a valid outcome.

Examples:
  >>> filter_metals(records, ["aluminium"])          # Aluminium rows only
  >>> filter_metals(records, ["all"])                # unchanged
  >>> filter_cell_type(records, CellType.CLOSED)     # "Closed cell" rows only
  >>> apply_numeric_filter(records, yield_rows,
  ...                      NumericRange("yield stress", "MPa", 0, 5))
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

import pandas as pd

from metalfoams.errors import ConfigurationError
from metalfoams.records.recordconvert import convert_values
from metalfoams.records.recordjoin import (
    FILTER_UNIT_COLUMN,
    FILTER_VALUE_COLUMN,
    ID_COLUMN,
    join_on_id,
)
from metalfoams.units.unitnorm import UnitCanonicalizer
from metalfoams.units.unittable import UnitConversionTable
from metalfoams.utils.normalize import normalize_label

logger = logging.getLogger(__name__)


ALL_METALS = "all"


# ---- Metal filter ----

def is_all_metals(metals: Union[str, Iterable[str], None]) -> bool:
    """True if the allow-list contains the ``all`` sentinel (any case)."""
    if metals is None:
        return False
    if isinstance(metals, str):
        metals = [metals]
    return any(normalize_label(m) == ALL_METALS for m in metals)


def filter_metals(df: pd.DataFrame, metals: Union[str, Iterable[str]]) -> pd.DataFrame:
    """Keep records whose base material is in ``metals``.

    Args:
        df: Records with a base_material column
        metals: Allowed base materials, or a list containing "all". A bare
            string is treated as a one-element list.

    Returns:
        Filtered records. An empty allow-list (without "all") keeps nothing.
    """
    if isinstance(metals, str):
        metals = [metals]
    metals = list(metals)

    if is_all_metals(metals):
        return df.copy()

    allowed = {normalize_label(m) for m in metals}
    mask = df["base_material"].map(normalize_label).isin(list(allowed))
    out = df[mask].copy()
    logger.info(f"Metal filter {metals} kept {len(out)}/{len(df)} records")
    return out


# ---- Cell type filter ----

class CellType(Enum):
    """Cell-type selector. Values match the integer codes of the original
    run scripts (0 any, 1 open, 2 closed)."""

    ANY = 0
    OPEN = 1
    CLOSED = 2

    @property
    def foam_type(self) -> Optional[str]:
        """foam_type entry this selector keeps, or None for ANY."""
        return {
            CellType.OPEN: "Open cell",
            CellType.CLOSED: "Closed cell",
        }.get(self)

    @classmethod
    def parse(cls, value: Union["CellType", int, str, None]) -> "CellType":
        """Accept a CellType, 0/1/2, or any/open/closed (optionally "open cell").

        Raises:
            ConfigurationError: For anything else
        """
        if value is None:
            return cls.ANY
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ConfigurationError(f"Invalid cell type: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid cell type code {value}. Use 0 (any), 1 (open) or 2 (closed)"
                ) from None

        text = normalize_label(value)
        if text.endswith(" cell"):
            text = text[: -len(" cell")]
        if text.isdigit():
            return cls.parse(int(text))
        for member in cls:
            if member.name.lower() == text:
                return member
        raise ConfigurationError(
            f"Invalid cell type {value!r}. Use 'any', 'open' or 'closed'"
        )


def filter_cell_type(df: pd.DataFrame, cell_type: Union[CellType, int, str, None]) -> pd.DataFrame:
    """Keep records whose foam_type matches the selector (case-insensitive).

    CellType.ANY disables the filter.
    """
    cell_type = CellType.parse(cell_type)
    if cell_type is CellType.ANY:
        return df.copy()

    wanted = normalize_label(cell_type.foam_type)
    out = df[df["foam_type"].map(normalize_label) == wanted].copy()
    logger.info(f"Cell type filter {cell_type.foam_type!r} kept {len(out)}/{len(df)} records")
    return out


# ---- Numeric range filter ----

@dataclass(frozen=True)
class NumericRange:
    """Range criterion on a third property.

    Bounds are exclusive unless ``inclusive`` is set: with the default, a
    value equal to ``lower`` or ``upper`` is dropped.
    """

    variable: str
    unit: str
    lower: float
    upper: float
    inclusive: bool = False

    def mask(self, values: pd.Series) -> pd.Series:
        if self.inclusive:
            return (values >= self.lower) & (values <= self.upper)
        return (values > self.lower) & (values < self.upper)


def filter_range(df: pd.DataFrame, column: str, criteria: NumericRange) -> pd.DataFrame:
    """Keep rows whose ``column`` value satisfies ``criteria``."""
    return df[criteria.mask(df[column])].copy()


def apply_numeric_filter(
    df: pd.DataFrame,
    filter_rows: pd.DataFrame,
    criteria: NumericRange,
    table: Optional[UnitConversionTable] = None,
    canonicalizer: Optional[UnitCanonicalizer] = None,
) -> pd.DataFrame:
    """Narrow records by the converted value of a third property.

    The [mf_id, value, unit] rows of ``criteria.variable`` go through the same
    canonicalization and conversion as the primary values, independently of
    them. The survivors are inner-joined onto ``df`` as filter_variable /
    unit_filter columns, and rows outside the range are dropped.

    Returns:
        Records with two extra columns, filter_variable and unit_filter
    """
    converted = convert_values(filter_rows, criteria.variable, criteria.unit, table, canonicalizer)
    converted = converted.rename(columns={"value": FILTER_VALUE_COLUMN, "unit": FILTER_UNIT_COLUMN})

    joined = join_on_id([df, converted.loc[:, [ID_COLUMN, FILTER_VALUE_COLUMN, FILTER_UNIT_COLUMN]]])
    out = filter_range(joined, FILTER_VALUE_COLUMN, criteria).reset_index(drop=True)

    bounds = "[]" if criteria.inclusive else "()"
    logger.info(
        f"Range filter {criteria.variable!r} {bounds[0]}{criteria.lower}, {criteria.upper}{bounds[1]} "
        f"{criteria.unit} kept {len(out)}/{len(df)} records"
    )
    return out


__all__ = [
    "ALL_METALS",
    "is_all_metals",
    "filter_metals",
    "CellType",
    "filter_cell_type",
    "NumericRange",
    "filter_range",
    "apply_numeric_filter",
]
