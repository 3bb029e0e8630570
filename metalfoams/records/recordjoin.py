"""Inner joins of row sets on the record identifier.

Every row set shares the ``mf_id`` column. Joins are strict inner equality
joins, so the result only holds identifiers present in every input.

With unique identifiers per row set the output has exactly one row per
identifier in the intersection, and the order in which row sets are joined
does not change the result. Duplicate identifiers inside one row set are not
detected: they multiply into cross-product rows, as any equality join does.
"""

import logging
from functools import reduce
from typing import Iterable, List

import pandas as pd

from metalfoams.records.recordsource import RowSets

logger = logging.getLogger(__name__)


ID_COLUMN = "mf_id"

# Semantic column names of a joined record, in output order
VALUE_COLUMNS = ["variable1", "unit_variable1", "variable2", "unit_variable2"]
METADATA_COLUMNS = ["base_material", "foam_type", "method", "description", "label", "link"]
RECORD_COLUMNS = [ID_COLUMN] + VALUE_COLUMNS + METADATA_COLUMNS

FILTER_VALUE_COLUMN = "filter_variable"
FILTER_UNIT_COLUMN = "unit_filter"


def join_on_id(frames: Iterable[pd.DataFrame], on: str = ID_COLUMN) -> pd.DataFrame:
    """Inner-join frames on a shared identifier column.

    Args:
        frames: Frames that all carry ``on``; other column names must not clash
        on: Identifier column name

    Returns:
        Joined frame with a fresh RangeIndex

    Raises:
        ValueError: If no frames are given or a frame lacks the identifier

    Examples:
        >>> a = pd.DataFrame({"mf_id": [1, 2, 3], "x": [10, 20, 30]})
        >>> b = pd.DataFrame({"mf_id": [2, 3, 4], "y": ["p", "q", "r"]})
        >>> join_on_id([a, b])
           mf_id   x  y
        0      2  20  p
        1      3  30  q
    """
    frames = list(frames)
    if not frames:
        raise ValueError("join_on_id needs at least one frame")
    for df in frames:
        if on not in df.columns:
            raise ValueError(f"Frame is missing identifier column {on!r}: {list(df.columns)}")

    joined = reduce(
        lambda left, right: pd.merge(left, right, on=on, how="inner"),
        frames,
    )
    return joined.reset_index(drop=True)


def value_frame(rows: pd.DataFrame, value_column: str, unit_column: str) -> pd.DataFrame:
    """Rename a [mf_id, value, unit] row set to semantic column names."""
    return rows.loc[:, [ID_COLUMN, "value", "unit"]].rename(
        columns={"value": value_column, "unit": unit_column}
    )


def join_records(row_sets: RowSets) -> pd.DataFrame:
    """Build denormalized records from the row sets of one run.

    Joins both value sets with base material, foam type, method, description
    and reference rows. The optional filter values are not joined here; the
    numeric-range filter joins them after converting them.

    Returns:
        Frame with columns RECORD_COLUMNS
    """
    frames: List[pd.DataFrame] = [
        value_frame(row_sets.values1, "variable1", "unit_variable1"),
        value_frame(row_sets.values2, "variable2", "unit_variable2"),
        row_sets.base_materials.loc[:, [ID_COLUMN, "base_material"]],
        row_sets.foam_types.loc[:, [ID_COLUMN, "entry"]].rename(columns={"entry": "foam_type"}),
        row_sets.methods.loc[:, [ID_COLUMN, "entry"]].rename(columns={"entry": "method"}),
        row_sets.descriptions.loc[:, [ID_COLUMN, "entry"]].rename(columns={"entry": "description"}),
        row_sets.references.loc[:, [ID_COLUMN, "label", "link"]],
    ]

    records = join_on_id(frames).loc[:, RECORD_COLUMNS]
    logger.info(f"Joined {len(records)} records")
    return records


__all__ = [
    "ID_COLUMN",
    "VALUE_COLUMNS",
    "METADATA_COLUMNS",
    "RECORD_COLUMNS",
    "FILTER_VALUE_COLUMN",
    "FILTER_UNIT_COLUMN",
    "join_on_id",
    "value_frame",
    "join_records",
]
