"""Shared test fixtures for metalfoams tests.

The sample database holds eight measurements:

  mf_id  porosity     Young modulus  yield stress   base        foam type
  1      0.35 ""      500 MPa        3 MPa          Aluminium   Closed cell
  2      80 %         1.2 GPa        5 MPa          aluminium   closed cell
  3      0.9 (none)   200 MPa        0.002 GPa      Aluminium   Closed cell
  4      0.5 ""       50 ""          -              Aluminium   Closed cell
  5      0.6 ""       300 MPa        1 MPa          Aluminium   Open cell
  6      0.7 ""       700 MPa        4 MPa          Copper      Closed cell
  7      0.4 ""       -              -              Aluminium   Closed cell
  8      NaN          100 MPa        -              Aluminium   Closed cell
"""

import sqlite3

import pandas as pd
import pytest

from metalfoams.records.recordsource import (
    GENERAL_TABLE,
    INDEX_TABLE,
    REFERENCES_TABLE,
    STANDARD_TABLE,
    FrameDataSource,
)


def _standard_rows():
    nan = float("nan")
    return [
        (1, "porosity", 0.35, ""),
        (1, "Young modulus", 500.0, "MPa"),
        (1, "yield stress", 3.0, "MPa"),
        (2, "porosity", 80.0, "%"),
        (2, "Young modulus", 1.2, "GPa"),
        (2, "yield stress", 5.0, "MPa"),
        (3, "porosity", 0.9, None),
        (3, "Young modulus", 200.0, "MPa"),
        (3, "yield stress", 0.002, "GPa"),
        (4, "porosity", 0.5, ""),
        (4, "Young modulus", 50.0, ""),
        (5, "porosity", 0.6, ""),
        (5, "Young modulus", 300.0, "MPa"),
        (5, "yield stress", 1.0, "MPa"),
        (6, "porosity", 0.7, ""),
        (6, "Young modulus", 700.0, "MPa"),
        (6, "yield stress", 4.0, "MPa"),
        (7, "porosity", 0.4, ""),
        (8, "porosity", nan, ""),
        (8, "Young modulus", 100.0, "MPa"),
    ]


def _make_tables(standard, index, general, references):
    return {
        STANDARD_TABLE: pd.DataFrame(standard, columns=["mf_id", "keyword", "mean_value", "unit"]),
        INDEX_TABLE: pd.DataFrame(index, columns=["mf_id", "base_material"]),
        GENERAL_TABLE: pd.DataFrame(general, columns=["mf_id", "keyword", "entry"]),
        REFERENCES_TABLE: pd.DataFrame(references, columns=["mf_id", "label", "link"]),
    }


@pytest.fixture
def metf_tables():
    """The four MetF tables of the sample database as DataFrames."""
    bases = {1: "Aluminium", 2: "aluminium", 3: "Aluminium", 4: "Aluminium",
             5: "Aluminium", 6: "Copper", 7: "Aluminium", 8: "Aluminium"}
    foam_types = {5: "Open cell", 2: "closed cell"}
    labels = {1: "Ra2009a", 2: "Ra2009b", 3: "An2001-sheet", 4: "An2001",
              5: "Ba2004", 6: "Ya2010", 7: "Ra2009c", 8: "Ra2009d"}

    general = []
    for mf_id in bases:
        general.append((mf_id, "foam type", foam_types.get(mf_id, "Closed cell")))
        general.append((mf_id, "method", "Alporas" if mf_id % 2 else "Powder metallurgy"))
        general.append((mf_id, "description", f"Sample {mf_id}"))

    return _make_tables(
        standard=_standard_rows(),
        index=list(bases.items()),
        general=general,
        references=[(i, label, f"https://doi.org/10.1000/mf{i}") for i, label in labels.items()],
    )


@pytest.fixture
def frame_source(metf_tables):
    """FrameDataSource over the sample database."""
    return FrameDataSource(metf_tables)


@pytest.fixture
def make_source():
    """Factory for a FrameDataSource from plain row tuples.

    Example:
        source = make_source(
            standard=[(1, "porosity", 0.35, "")],
            index=[(1, "Aluminium")],
            general=[(1, "foam type", "Closed cell")],
            references=[(1, "Ra2009", "")],
        )
    """
    def _make(standard, index, general, references):
        return FrameDataSource(_make_tables(standard, index, general, references))
    return _make


@pytest.fixture
def sqlite_db(tmp_path, metf_tables):
    """Sample database written to a temporary metalfoams_sqlite3.db file."""
    path = tmp_path / "metalfoams_sqlite3.db"
    conn = sqlite3.connect(path)
    try:
        conn.executescript(f"""
            CREATE TABLE {STANDARD_TABLE} (mf_id INTEGER, keyword TEXT, mean_value REAL, unit TEXT);
            CREATE TABLE {INDEX_TABLE} (mf_id INTEGER, base_material TEXT);
            CREATE TABLE {GENERAL_TABLE} (mf_id INTEGER, keyword TEXT, entry TEXT);
            CREATE TABLE {REFERENCES_TABLE} (mf_id INTEGER, label TEXT, link TEXT);
        """)
        for name, df in metf_tables.items():
            rows = [
                tuple(None if isinstance(v, float) and v != v else v for v in row)
                for row in df.itertuples(index=False, name=None)
            ]
            placeholders = ", ".join("?" for _ in df.columns)
            conn.executemany(f"INSERT INTO {name} VALUES ({placeholders})", rows)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def base_config():
    """Configuration mapping for porosity (%) vs Young modulus (MPa)."""
    return {
        "x": {"variable": "porosity", "unit": "percent"},
        "y": {"variable": "Young modulus", "unit": "MPa"},
        "metals": ["Aluminium"],
        "cell_type": "closed",
    }
