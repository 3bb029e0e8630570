"""Record fetching, joining and unit conversion."""

from metalfoams.records.recordsource import (
    DataSource,
    SQLiteDataSource,
    FrameDataSource,
    SnapshotDataSource,
    RowSets,
    fetch_row_sets,
    download_database,
)
from metalfoams.records.recordjoin import (
    RECORD_COLUMNS,
    join_on_id,
    join_records,
)
from metalfoams.records.recordconvert import (
    canonicalize_column,
    convert_column,
    convert_records,
    convert_values,
)

__all__ = [
    "DataSource",
    "SQLiteDataSource",
    "FrameDataSource",
    "SnapshotDataSource",
    "RowSets",
    "fetch_row_sets",
    "download_database",
    "RECORD_COLUMNS",
    "join_on_id",
    "join_records",
    "canonicalize_column",
    "convert_column",
    "convert_records",
    "convert_values",
]
