"""Presentation table, plot grouping and spreadsheet export."""

from metalfoams.output.formatter import (
    STUDY_LABEL_LENGTH,
    display_unit,
    column_name,
    format_table,
    Grouping,
    group_labels,
    axis_label,
    export_filename,
    export_table,
)

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
