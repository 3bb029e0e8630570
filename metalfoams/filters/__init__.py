"""Record filters: base metal, cell type and numeric range."""

from metalfoams.filters.foamfilter import (
    ALL_METALS,
    is_all_metals,
    filter_metals,
    CellType,
    filter_cell_type,
    NumericRange,
    filter_range,
    apply_numeric_filter,
)

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
