"""Metal Foams - unit-consistent comparisons from the metal foam database

Public API for canonicalizing units, converting values, joining and filtering
metal foam records, and producing a comparison table.

Usage:
    from metalfoams import load_config, run_pipeline
    from metalfoams import canonicalize_unit, convert_value, normalize_value

    # Run a comparison described by a YAML file
    result = run_pipeline(load_config("closed_cell_aluminium.yaml"))
    result.table          # one row per surviving record
    result.plot.x_label   # 'porosity (%)'

    # Canonicalize a recorded unit label
    unit = canonicalize_unit("bulk density", "g/cm<sup>3</sup>")  # Returns: 'g_cm3'

    # Convert between canonical units
    value = convert_value(0.35, "decimal", "percent")  # Returns: 35.0

See README.md for the configuration file format.
"""

__version__ = "0.1.0"

# ============================================================================
# Errors
# ============================================================================

from .errors import (
    MetalFoamsError,
    ConfigurationError,     # Unknown variable/unit or inconsistent settings
    UnitConversionError,    # No conversion declared for a unit pair
    DataSourceError,        # Database or snapshot cannot be read
)

# ============================================================================
# Units API
# ============================================================================
# Primary interface: metalfoams.units.unitapi
# Implementation: metalfoams.units.unitnorm, metalfoams.units.unittable

from .units.unitapi import (
    canonicalize_unit,       # Map a recorded label to its canonical key
    convert_value,           # Convert between canonical units
    normalize_value,         # Canonicalize + convert, warning instead of raising
    display_unit,            # Display string for a canonical key
    list_variables,          # Property keywords and their target units
    allowed_units,           # Target units for one property keyword
    conversion_table,        # The cached UnitConversionTable
)

# ============================================================================
# Records API
# ============================================================================

from .records.recordsource import (
    SQLiteDataSource,        # metalfoams_sqlite3.db, read-only
    FrameDataSource,         # In-memory tables
    SnapshotDataSource,      # Parquet/CSV table exports
    fetch_row_sets,          # All row sets for one run, one session
    download_database,       # Fetch the database file over HTTP
)
from .records.recordjoin import join_records
from .records.recordconvert import convert_records

# ============================================================================
# Filters API
# ============================================================================

from .filters.foamfilter import (
    CellType,
    NumericRange,
    filter_metals,
    filter_cell_type,
    apply_numeric_filter,
)

# ============================================================================
# Output API
# ============================================================================

from .output.formatter import (
    Grouping,
    format_table,
    group_labels,
    axis_label,
    export_table,
)

# ============================================================================
# Pipeline API
# ============================================================================

from .pipeline.pipelineconfig import (
    AxisConfig,
    PipelineConfig,
    load_config,
)
from .pipeline.pipelineapi import (
    PlotSpec,
    PipelineResult,
    run_pipeline,            # Primary API - one full comparison run
)

__all__ = [
    # Errors
    "MetalFoamsError",
    "ConfigurationError",
    "UnitConversionError",
    "DataSourceError",
    # Units
    "canonicalize_unit",
    "convert_value",
    "normalize_value",
    "display_unit",
    "list_variables",
    "allowed_units",
    "conversion_table",
    # Records
    "SQLiteDataSource",
    "FrameDataSource",
    "SnapshotDataSource",
    "fetch_row_sets",
    "download_database",
    "join_records",
    "convert_records",
    # Filters
    "CellType",
    "NumericRange",
    "filter_metals",
    "filter_cell_type",
    "apply_numeric_filter",
    # Output
    "Grouping",
    "format_table",
    "group_labels",
    "axis_label",
    "export_table",
    # Pipeline
    "AxisConfig",
    "PipelineConfig",
    "load_config",
    "PlotSpec",
    "PipelineResult",
    "run_pipeline",
]
