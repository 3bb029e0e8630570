"""Public API for running the metal foam comparison pipeline.

One run goes through these stages in order:

  validate -> fetch -> join -> convert -> metal filter -> cell type filter
  -> numeric range filter -> format -> plot spec + groups -> export

Key Design Principles:
1. Configuration errors surface before any query runs
2. The data source session is released before any transform starts
3. Records that cannot be converted are excluded and logged, never fatal
4. An empty table is a valid result
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import pandas as pd

from metalfoams.filters.foamfilter import apply_numeric_filter, filter_cell_type, filter_metals
from metalfoams.output.formatter import (
    Grouping,
    axis_label,
    export_table,
    format_table,
    group_labels,
)
from metalfoams.pipeline.pipelineconfig import PipelineConfig
from metalfoams.records.recordconvert import convert_records
from metalfoams.records.recordjoin import join_records
from metalfoams.records.recordsource import DataSource, fetch_row_sets
from metalfoams.units.unitnorm import UnitCanonicalizer
from metalfoams.units.unittable import UnitConversionTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlotSpec:
    """Everything a scatter plot of the result needs besides the data."""

    x_label: str
    y_label: str
    x_log: bool = False
    y_log: bool = False
    x_limits: Optional[Tuple[float, float]] = None
    y_limits: Optional[Tuple[float, float]] = None
    grouping: Grouping = Grouping.BASE_MATERIAL


@dataclass
class PipelineResult:
    """Output of one pipeline run.

    Attributes:
        table: Formatted table, one row per surviving record
        groups: Grouping series aligned with ``table``
        plot: Axis labels, scales, limits and grouping
        export_path: Written spreadsheet, or None if export was off
    """

    table: pd.DataFrame
    groups: pd.Series
    plot: PlotSpec
    export_path: Optional[Path] = None

    @property
    def empty(self) -> bool:
        return self.table.empty


def plot_spec(config: PipelineConfig) -> PlotSpec:
    """Axis labels, scales and limits for a configuration."""
    return PlotSpec(
        x_label=axis_label(config.x.variable, config.x.unit),
        y_label=axis_label(config.y.variable, config.y.unit),
        x_log=config.x.log,
        y_log=config.y.log,
        x_limits=config.x.limits,
        y_limits=config.y.limits,
        grouping=config.grouping,
    )


def run_pipeline(
    config: PipelineConfig,
    source: Optional[DataSource] = None,
    table: Optional[UnitConversionTable] = None,
    canonicalizer: Optional[UnitCanonicalizer] = None,
) -> PipelineResult:
    """Fetch, join, convert, filter and format records for one comparison.

    Args:
        config: Run configuration
        source: Data source (default: the database or snapshot named in config)
        table: Conversion table (default: built from unitconfig.yaml)
        canonicalizer: Unit label canonicalizer (default: built from unitconfig.yaml)

    Returns:
        PipelineResult

    Raises:
        ConfigurationError: If the configuration is invalid (before any query)
        DataSourceError: If the data source cannot be read

    Examples:
        >>> config = load_config("closed_cell_aluminium.yaml")
        >>> result = run_pipeline(config)
        >>> result.plot.x_label
        'porosity (%)'
        >>> result.table[["porosity", "unit_porosity"]].head(1)
           porosity unit_porosity
        0      35.0             %
    """
    config.validate()
    if source is None:
        source = config.data_source()

    x, y = config.x, config.y
    row_sets = fetch_row_sets(source, x.variable, y.variable, config.filter_variable)

    records = join_records(row_sets)
    records = convert_records(records, x.variable, x.unit, y.variable, y.unit, table, canonicalizer)
    records = filter_metals(records, config.metals)
    records = filter_cell_type(records, config.cell_type)
    if config.numeric_filter is not None:
        records = apply_numeric_filter(
            records, row_sets.filter_values, config.numeric_filter, table, canonicalizer
        )
    records = records.reset_index(drop=True)

    formatted = format_table(records, x.variable, y.variable, config.filter_variable)
    groups = group_labels(formatted, config.grouping)

    export_path = None
    if config.export:
        export_path = export_table(formatted, x.variable, y.variable, config.export_dir)

    logger.info(f"Pipeline produced {len(formatted)} records for {x.variable!r} vs {y.variable!r}")
    return PipelineResult(
        table=formatted,
        groups=groups,
        plot=plot_spec(config),
        export_path=export_path,
    )


__all__ = [
    "PlotSpec",
    "PipelineResult",
    "plot_spec",
    "run_pipeline",
]
