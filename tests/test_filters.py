"""Tests for metal, cell type and numeric range filters."""

import pandas as pd
import pytest

from metalfoams.errors import ConfigurationError
from metalfoams.filters import (
    CellType,
    NumericRange,
    apply_numeric_filter,
    filter_cell_type,
    filter_metals,
    filter_range,
    is_all_metals,
)
from metalfoams.records import convert_records, fetch_row_sets, join_records


@pytest.fixture
def records(frame_source):
    joined = join_records(fetch_row_sets(frame_source, "porosity", "Young modulus"))
    return convert_records(joined, "porosity", "percent", "Young modulus", "MPa")


@pytest.fixture
def yield_rows(frame_source):
    return frame_source.property_values("yield stress")


class TestMetalFilter:
    """Test the base material allow-list."""

    def test_case_insensitive(self, records):
        """Allow-list matching ignores case."""
        out = filter_metals(records, ["ALUMINIUM"])
        assert sorted(out["mf_id"]) == [1, 2, 3, 5]

    def test_several_metals(self, records):
        """Every listed metal is kept."""
        out = filter_metals(records, ["Aluminium", "copper"])
        assert len(out) == len(records)

    @pytest.mark.parametrize("metals", [["all"], ["All"], ["ALL", "Copper"], "all"])
    def test_all_sentinel(self, records, metals):
        """An allow-list containing 'all' is the same as no filter."""
        pd.testing.assert_frame_equal(filter_metals(records, metals), records)

    def test_empty_list(self, records):
        """An empty allow-list keeps nothing."""
        out = filter_metals(records, [])
        assert out.empty
        assert list(out.columns) == list(records.columns)

    def test_no_match_is_empty(self, records):
        """A metal absent from the data gives zero rows, not an error."""
        assert filter_metals(records, ["Titanium"]).empty

    def test_single_string(self, records):
        """A bare string is a one-element list."""
        assert sorted(filter_metals(records, "Copper")["mf_id"]) == [6]

    def test_is_all_metals(self):
        """The sentinel is detected in any case."""
        assert is_all_metals(["Aluminium", "all"])
        assert is_all_metals("ALL")
        assert not is_all_metals(["Aluminium"])
        assert not is_all_metals([])
        assert not is_all_metals(None)


class TestCellType:
    """Test the cell type selector."""

    @pytest.mark.parametrize("value,expected", [
        (None, CellType.ANY),
        (CellType.OPEN, CellType.OPEN),
        (0, CellType.ANY),
        (1, CellType.OPEN),
        (2, CellType.CLOSED),
        ("any", CellType.ANY),
        ("Open", CellType.OPEN),
        ("closed", CellType.CLOSED),
        ("Closed cell", CellType.CLOSED),
        ("2", CellType.CLOSED),
    ])
    def test_parse(self, value, expected):
        """Enum members, integer codes and names are accepted."""
        assert CellType.parse(value) is expected

    @pytest.mark.parametrize("value", [3, -1, "half-open", True, ""])
    def test_parse_invalid(self, value):
        """Anything else is a configuration error."""
        with pytest.raises(ConfigurationError):
            CellType.parse(value)

    def test_closed(self, records):
        """Closed keeps 'Closed cell' in any case."""
        out = filter_cell_type(records, CellType.CLOSED)
        assert sorted(out["mf_id"]) == [1, 2, 3, 6]

    def test_open(self, records):
        """Open keeps 'Open cell' only."""
        out = filter_cell_type(records, "open")
        assert list(out["mf_id"]) == [5]

    def test_any(self, records):
        """Any disables the filter."""
        pd.testing.assert_frame_equal(filter_cell_type(records, CellType.ANY), records)


class TestNumericRange:
    """Test the range criterion."""

    def test_exclusive_by_default(self):
        """Values equal to either bound are excluded."""
        criteria = NumericRange("yield stress", "MPa", 0, 5)
        mask = criteria.mask(pd.Series([0.0, 0.1, 2.5, 4.9, 5.0, 6.0]))
        assert list(mask) == [False, True, True, True, False, False]

    def test_inclusive(self):
        """Inclusive bounds keep values equal to either bound."""
        criteria = NumericRange("yield stress", "MPa", 0, 5, inclusive=True)
        mask = criteria.mask(pd.Series([0.0, 5.0, 5.1]))
        assert list(mask) == [True, True, False]

    def test_filter_range(self):
        """filter_range keeps rows inside the range."""
        df = pd.DataFrame({"v": [1.0, 2.0, 3.0]})
        out = filter_range(df, "v", NumericRange("x", "MPa", 1, 3))
        assert list(out["v"]) == [2.0]


class TestApplyNumericFilter:
    """Test filtering by a converted third property."""

    def test_exclusive_bounds(self, records, yield_rows):
        """Yield stress of exactly 5 MPa is outside (0, 5)."""
        out = apply_numeric_filter(records, yield_rows, NumericRange("yield stress", "MPa", 0, 5))
        assert sorted(out["mf_id"]) == [1, 3, 5, 6]

    def test_inclusive_bounds(self, records, yield_rows):
        """Yield stress of exactly 5 MPa is inside [0, 5]."""
        out = apply_numeric_filter(
            records, yield_rows, NumericRange("yield stress", "MPa", 0, 5, inclusive=True)
        )
        assert sorted(out["mf_id"]) == [1, 2, 3, 5, 6]

    def test_filter_columns(self, records, yield_rows):
        """Converted filter values are joined as filter_variable / unit_filter."""
        out = apply_numeric_filter(records, yield_rows, NumericRange("yield stress", "MPa", 0, 10))
        by_id = out.set_index("mf_id")
        assert by_id.loc[3, "filter_variable"] == pytest.approx(2.0)
        assert set(out["unit_filter"]) == {"MPa"}

    def test_filter_in_other_unit(self, records, yield_rows):
        """The range applies to values converted to the filter unit."""
        out = apply_numeric_filter(records, yield_rows, NumericRange("yield stress", "GPa", 0.0025, 0.01))
        assert sorted(out["mf_id"]) == [1, 2, 6]

    def test_records_without_filter_value_dropped(self, records, yield_rows):
        """Records with no filter value do not survive the join."""
        out = apply_numeric_filter(records, yield_rows.iloc[0:0], NumericRange("yield stress", "MPa", 0, 10))
        assert out.empty
        assert "filter_variable" in out.columns
