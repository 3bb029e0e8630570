"""
Output Formatting
-----------------

Turns filtered records into the presentation table and the pieces a chart
or spreadsheet needs:

  format_table    semantic columns -> <property> / unit_<property>, with
                  display unit strings ("g_cm3" -> "g/cm^3")
  group_labels    grouping series for a scatter plot (base metal or study)
  axis_label      "<property> (<display unit>)"
  export_table    write the table to <property1>_<property2>.xlsx

Examples:
  >>> table = format_table(records, "porosity", "Young modulus")
  >>> list(table.columns[:5])
  ['mf_id', 'porosity', 'unit_porosity', 'Young_modulus', 'unit_Young_modulus']
  >>> axis_label("bulk density", "g_cm3")
  'bulk density (g/cm^3)'
  >>> export_filename("porosity", "Young modulus")
  'porosity_Youngmodulus.xlsx'
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from metalfoams.errors import ConfigurationError
from metalfoams.records.recordjoin import FILTER_UNIT_COLUMN, FILTER_VALUE_COLUMN
from metalfoams.units.unitapi import display_unit
from metalfoams.utils.normalize import column_name, normalize_label, strip_whitespace

logger = logging.getLogger(__name__)


# Study labels are author+year codes ("Ra2009a-..."); the first six
# characters identify the study.
STUDY_LABEL_LENGTH = 6

SHEET_NAME = "Metal foams"


# ============================================================================
# Table
# ============================================================================

def format_table(
    df: pd.DataFrame,
    variable1: str,
    variable2: str,
    filter_variable: Optional[str] = None,
) -> pd.DataFrame:
    """Rename semantic columns to property names and prettify unit columns.

    Args:
        df: Converted, filtered records
        variable1, variable2: Property keywords of the value columns
        filter_variable: Property keyword of the numeric-range filter, if the
            records carry filter_variable / unit_filter columns

    Returns:
        New frame. Value columns are renamed to ``column_name(variable)`` and
        unit columns to ``unit_<column_name(variable)>``; unit columns hold
        display strings.
    """
    df = df.copy()
    renames = {}
    pairs = [("variable1", "unit_variable1", variable1), ("variable2", "unit_variable2", variable2)]
    if filter_variable is not None and FILTER_VALUE_COLUMN in df.columns:
        pairs.append((FILTER_VALUE_COLUMN, FILTER_UNIT_COLUMN, filter_variable))

    for value_col, unit_col, variable in pairs:
        name = column_name(variable)
        df[unit_col] = df[unit_col].map(display_unit)
        renames[value_col] = name
        renames[unit_col] = f"unit_{name}"

    return df.rename(columns=renames)


# ============================================================================
# Visualization handoff
# ============================================================================

class Grouping(Enum):
    """Scatter-plot grouping key. Values are the original integer codes."""

    BASE_MATERIAL = 0
    LABEL = 1

    @classmethod
    def parse(cls, value: Union["Grouping", int, str, None]) -> "Grouping":
        """Accept a Grouping, 0/1, or base_material/label (study is an alias).

        Raises:
            ConfigurationError: For anything else
        """
        if value is None:
            return cls.BASE_MATERIAL
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid grouping code {value}. Use 0 (base_material) or 1 (label)"
                ) from None
        if isinstance(value, str):
            text = normalize_label(value).replace(" ", "_")
            if text.isdigit():
                return cls.parse(int(text))
            if text == "study":
                return cls.LABEL
            for member in cls:
                if member.name.lower() == text:
                    return member
        raise ConfigurationError(
            f"Invalid grouping {value!r}. Use 'base_material' or 'label'"
        )

    @property
    def column(self) -> str:
        return self.name.lower()


def group_labels(df: pd.DataFrame, grouping: Union[Grouping, int, str]) -> pd.Series:
    """Grouping series for a scatter plot of ``df``.

    Grouping by base material returns the base_material column; grouping by
    study returns each record's label truncated to its first six characters,
    so that rows from one study share a group.
    """
    grouping = Grouping.parse(grouping)
    if grouping is Grouping.BASE_MATERIAL:
        groups = df["base_material"].astype(str)
    else:
        groups = df["label"].astype(str).str[:STUDY_LABEL_LENGTH]
    return groups.rename(grouping.column)


def axis_label(variable: str, unit: str) -> str:
    """Axis title for a converted property.

    Examples:
        >>> axis_label("porosity", "percent")
        'porosity (%)'
    """
    return f"{variable} ({display_unit(unit)})"


# ============================================================================
# Export
# ============================================================================

def export_filename(variable1: str, variable2: str, suffix: str = ".xlsx") -> str:
    """File name for an exported table, with all whitespace removed."""
    return strip_whitespace(f"{variable1}_{variable2}{suffix}")


def export_table(
    df: pd.DataFrame,
    variable1: str,
    variable2: str,
    directory: Union[str, Path] = ".",
) -> Path:
    """Write the formatted table to ``<directory>/<variable1>_<variable2>.xlsx``.

    An existing file of the same name is overwritten.

    Returns:
        Path of the written file
    """
    from openpyxl import Workbook
    from openpyxl.styles import Font
    from openpyxl.utils.dataframe import dataframe_to_rows

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(variable1, variable2)

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    for row in dataframe_to_rows(df, index=False, header=True):
        ws.append(row)

    for cell in ws[1]:
        cell.font = Font(bold=True)

    for column in ws.columns:
        width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
        ws.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

    wb.save(path)
    logger.info(f"Exported {len(df)} rows to {path}")
    return path


__all__ = [
    "STUDY_LABEL_LENGTH",
    "display_unit",
    "column_name",
    "format_table",
    "Grouping",
    "group_labels",
    "axis_label",
    "export_filename",
    "export_table",
]
