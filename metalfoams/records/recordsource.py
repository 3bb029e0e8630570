"""Data sources for metal foam records.

A data source answers four kinds of query against the metal foam database:

  property_values(keyword) -> [mf_id, value, unit]      MetF_StandardTable
  general_entries(keyword) -> [mf_id, entry]            MetF_General
  base_materials()         -> [mf_id, base_material]    MetF_Index
  references()             -> [mf_id, label, link]      MetF_References

Queries run inside ``session()``, which acquires the underlying resource once
and always releases it on exit. Implementations:

  SQLiteDataSource    the metalfoams_sqlite3.db file, opened read-only
  FrameDataSource     in-memory DataFrames keyed by table name
  SnapshotDataSource  parquet/CSV exports of the four tables in a directory
"""

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Sequence, Union

import pandas as pd

from metalfoams.errors import DataSourceError
from metalfoams.utils.dataloader import (
    find_data_file,
    load_parquet_or_csv,
    format_not_found_error,
)

logger = logging.getLogger(__name__)


STANDARD_TABLE = "MetF_StandardTable"
GENERAL_TABLE = "MetF_General"
INDEX_TABLE = "MetF_Index"
REFERENCES_TABLE = "MetF_References"

# Expected row shapes per table
TABLE_COLUMNS = {
    STANDARD_TABLE: ["mf_id", "keyword", "mean_value", "unit"],
    GENERAL_TABLE: ["mf_id", "keyword", "entry"],
    INDEX_TABLE: ["mf_id", "base_material"],
    REFERENCES_TABLE: ["mf_id", "label", "link"],
}

FOAM_TYPE_KEYWORD = "foam type"
METHOD_KEYWORD = "method"
DESCRIPTION_KEYWORD = "description"


def _shape_value_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce a [mf_id, value, unit] frame: float values, no missing values,
    missing unit labels as empty strings."""
    df = df.loc[:, ["mf_id", "value", "unit"]].copy()
    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    df = df[df["value"].notna()].copy()
    df["value"] = df["value"].astype(float)
    df["unit"] = df["unit"].where(df["unit"].notna(), "").astype(str)
    return df.reset_index(drop=True)


def _shape_text_rows(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    df = df.loc[:, list(columns)].copy()
    for col in columns[1:]:
        df[col] = df[col].where(df[col].notna(), "").astype(str)
    return df.reset_index(drop=True)


class DataSource:
    """Base class for metal foam data sources.

    Subclasses implement the four query methods; ``session()`` defaults to a
    no-op scope for sources that hold no external resource.
    """

    @contextmanager
    def session(self) -> Iterator["DataSource"]:
        yield self

    def property_values(self, keyword: str) -> pd.DataFrame:
        raise NotImplementedError

    def general_entries(self, keyword: str) -> pd.DataFrame:
        raise NotImplementedError

    def base_materials(self) -> pd.DataFrame:
        raise NotImplementedError

    def references(self) -> pd.DataFrame:
        raise NotImplementedError


# ============================================================================
# SQLite
# ============================================================================

class SQLiteDataSource(DataSource):
    """Read-only access to the metalfoams_sqlite3 database file.

    Examples:
        >>> source = SQLiteDataSource("metalfoams_sqlite3.db")
        >>> with source.session():
        ...     porosity = source.property_values("porosity")
    """

    PROPERTY_SQL = (
        f"SELECT mf_id, mean_value AS value, unit FROM {STANDARD_TABLE} "
        "WHERE keyword = ? AND mean_value IS NOT NULL AND mean_value != 'NaN'"
    )
    GENERAL_SQL = f"SELECT mf_id, entry FROM {GENERAL_TABLE} WHERE keyword = ?"
    INDEX_SQL = f"SELECT mf_id, base_material FROM {INDEX_TABLE}"
    REFERENCES_SQL = f"SELECT mf_id, label, link FROM {REFERENCES_TABLE}"

    def __init__(self, path: Union[str, Path], timeout: float = 30.0):
        self.path = Path(path)
        self.timeout = timeout
        self._conn: Optional[sqlite3.Connection] = None

    def __repr__(self) -> str:
        return f"SQLiteDataSource({str(self.path)!r})"

    @contextmanager
    def session(self) -> Iterator["SQLiteDataSource"]:
        """Open one read-only connection; it is closed however the block exits."""
        if self._conn is not None:
            raise DataSourceError(f"A session is already open on {self.path}")
        if not self.path.exists():
            raise DataSourceError(f"Database file not found: {self.path}")

        uri = f"{self.path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True, timeout=self.timeout)
        except sqlite3.Error as e:
            raise DataSourceError(f"Cannot open database {self.path}: {e}") from e

        logger.debug(f"Opened {self.path}")
        self._conn = conn
        try:
            yield self
        finally:
            self._conn = None
            conn.close()
            logger.debug(f"Closed {self.path}")

    def _query(self, sql: str, params: Sequence = ()) -> pd.DataFrame:
        if self._conn is None:
            raise DataSourceError("No open session; use 'with source.session():'")
        try:
            cur = self._conn.execute(sql, tuple(params))
            cols = [d[0] for d in cur.description]
            rows = cur.fetchall()
        except sqlite3.Error as e:
            raise DataSourceError(f"Query failed on {self.path}: {e}") from e
        return pd.DataFrame.from_records(rows, columns=cols)

    def property_values(self, keyword: str) -> pd.DataFrame:
        return _shape_value_rows(self._query(self.PROPERTY_SQL, (keyword,)))

    def general_entries(self, keyword: str) -> pd.DataFrame:
        return _shape_text_rows(self._query(self.GENERAL_SQL, (keyword,)), ["mf_id", "entry"])

    def base_materials(self) -> pd.DataFrame:
        return _shape_text_rows(self._query(self.INDEX_SQL), ["mf_id", "base_material"])

    def references(self) -> pd.DataFrame:
        return _shape_text_rows(self._query(self.REFERENCES_SQL), ["mf_id", "label", "link"])


# ============================================================================
# In-memory and file snapshots
# ============================================================================

class FrameDataSource(DataSource):
    """Data source over in-memory copies of the four MetF tables.

    Args:
        tables: Mapping of table name -> DataFrame. Each frame must carry the
            columns listed in TABLE_COLUMNS; extra columns are ignored.

    Examples:
        >>> source = FrameDataSource({
        ...     "MetF_StandardTable": standard_df,
        ...     "MetF_General": general_df,
        ...     "MetF_Index": index_df,
        ...     "MetF_References": references_df,
        ... })
    """

    def __init__(self, tables: Optional[Mapping[str, pd.DataFrame]] = None):
        self._tables: Dict[str, pd.DataFrame] = {}
        if tables is not None:
            self._set_tables(tables)

    def _set_tables(self, tables: Mapping[str, pd.DataFrame]) -> None:
        checked = {}
        for name, columns in TABLE_COLUMNS.items():
            if name not in tables:
                raise DataSourceError(f"Missing table {name!r}")
            df = tables[name]
            missing = [c for c in columns if c not in df.columns]
            if missing:
                raise DataSourceError(f"Table {name!r} is missing columns: {', '.join(missing)}")
            checked[name] = df
        self._tables = checked

    def _table(self, name: str) -> pd.DataFrame:
        if name not in self._tables:
            raise DataSourceError(f"Table {name!r} not loaded; use 'with source.session():'")
        return self._tables[name]

    def property_values(self, keyword: str) -> pd.DataFrame:
        df = self._table(STANDARD_TABLE)
        df = df[df["keyword"] == keyword].rename(columns={"mean_value": "value"})
        return _shape_value_rows(df)

    def general_entries(self, keyword: str) -> pd.DataFrame:
        df = self._table(GENERAL_TABLE)
        return _shape_text_rows(df[df["keyword"] == keyword], ["mf_id", "entry"])

    def base_materials(self) -> pd.DataFrame:
        return _shape_text_rows(self._table(INDEX_TABLE), ["mf_id", "base_material"])

    def references(self) -> pd.DataFrame:
        return _shape_text_rows(self._table(REFERENCES_TABLE), ["mf_id", "label", "link"])


class SnapshotDataSource(FrameDataSource):
    """Data source over table exports in a directory.

    Each table is read from ``<table>.parquet`` or, failing that,
    ``<table>.csv`` when a session opens, and dropped when it closes.
    """

    def __init__(self, directory: Union[str, Path]):
        super().__init__()
        self.directory = Path(directory)

    def __repr__(self) -> str:
        return f"SnapshotDataSource({str(self.directory)!r})"

    @contextmanager
    def session(self) -> Iterator["SnapshotDataSource"]:
        tables = {}
        for name in TABLE_COLUMNS:
            path = find_data_file(self.directory, name)
            if path is None:
                raise DataSourceError(format_not_found_error(
                    subject=f"{name} table",
                    searched_locations=[
                        ("Parquet", self.directory / f"{name}.parquet"),
                        ("CSV", self.directory / f"{name}.csv"),
                    ],
                    fix_instructions=[
                        f"Export {name} from metalfoams_sqlite3.db into {self.directory}.",
                    ],
                ))
            try:
                tables[name] = load_parquet_or_csv(path)
            except (OSError, ValueError) as e:
                raise DataSourceError(f"Cannot read {path}: {e}") from e
            logger.debug(f"Loaded {len(tables[name])} rows from {path}")

        self._set_tables(tables)
        try:
            yield self
        finally:
            self._tables = {}


# ============================================================================
# Fetching row sets for a run
# ============================================================================

@dataclass
class RowSets:
    """Every row set one pipeline run needs, fetched in a single session."""

    values1: pd.DataFrame
    values2: pd.DataFrame
    base_materials: pd.DataFrame
    foam_types: pd.DataFrame
    methods: pd.DataFrame
    descriptions: pd.DataFrame
    references: pd.DataFrame
    filter_values: Optional[pd.DataFrame] = None


def fetch_row_sets(
    source: DataSource,
    variable1: str,
    variable2: str,
    filter_variable: Optional[str] = None,
) -> RowSets:
    """Run the fixed set of queries for one pipeline run.

    The source's session is opened once and released before this returns,
    whether or not a query fails.

    Args:
        source: Data source to query
        variable1: Property keyword for the x values (exact, case-sensitive)
        variable2: Property keyword for the y values
        filter_variable: Optional property keyword for the numeric-range filter

    Returns:
        RowSets with raw (unconverted) values and metadata

    Raises:
        DataSourceError: If the source cannot be opened or a query fails
    """
    with source.session():
        row_sets = RowSets(
            values1=source.property_values(variable1),
            values2=source.property_values(variable2),
            base_materials=source.base_materials(),
            foam_types=source.general_entries(FOAM_TYPE_KEYWORD),
            methods=source.general_entries(METHOD_KEYWORD),
            descriptions=source.general_entries(DESCRIPTION_KEYWORD),
            references=source.references(),
            filter_values=(
                source.property_values(filter_variable) if filter_variable else None
            ),
        )

    logger.info(
        f"Fetched {len(row_sets.values1)} {variable1!r} and "
        f"{len(row_sets.values2)} {variable2!r} values"
        + (f", {len(row_sets.filter_values)} {filter_variable!r} values" if filter_variable else "")
    )
    return row_sets


def download_database(
    url: str,
    destination: Union[str, Path],
    *,
    timeout: float = 60.0,
    chunk_size: int = 1 << 20,
) -> Path:
    """Download the SQLite database file.

    The file is streamed to ``<destination>.part`` and moved into place only
    once complete, so an interrupted download never leaves a truncated
    database behind.

    Args:
        url: HTTP(S) location of metalfoams_sqlite3.db
        destination: Target file path
        timeout: Request timeout in seconds
        chunk_size: Streaming chunk size in bytes

    Returns:
        Path to the downloaded file

    Raises:
        DataSourceError: On any network or HTTP error
    """
    import requests

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + ".part")

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_content(chunk_size=chunk_size):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        partial.unlink(missing_ok=True)
        raise DataSourceError(f"Download of {url} failed: {e}") from e
    except OSError as e:
        partial.unlink(missing_ok=True)
        raise DataSourceError(f"Cannot write {partial}: {e}") from e

    try:
        partial.replace(destination)
    except OSError as e:
        partial.unlink(missing_ok=True)
        raise DataSourceError(f"Cannot move download into {destination}: {e}") from e
    logger.info(f"Downloaded {url} to {destination} ({destination.stat().st_size:,} bytes)")
    return destination


__all__ = [
    "STANDARD_TABLE",
    "GENERAL_TABLE",
    "INDEX_TABLE",
    "REFERENCES_TABLE",
    "TABLE_COLUMNS",
    "DataSource",
    "SQLiteDataSource",
    "FrameDataSource",
    "SnapshotDataSource",
    "RowSets",
    "fetch_row_sets",
    "download_database",
]
