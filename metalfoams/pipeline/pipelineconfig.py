"""
Run Configuration
-----------------

A pipeline run is described by a small YAML file:

    database: metalfoams_sqlite3.db       # or snapshot: path/to/tables
    x: {variable: porosity, unit: percent, log: false, limits: [0, 100]}
    y: {variable: Young modulus, unit: MPa}
    metals: [Aluminium]                   # [all] keeps every base material
    cell_type: closed                     # any | open | closed | 0 | 1 | 2
    numeric_filter: {variable: yield stress, unit: MPa, range: [0, 5]}
    grouping: label                       # base_material | label | 0 | 1
    export: true
    export_dir: .

``load_config`` parses the file into a PipelineConfig; ``validate`` checks it
against the variable catalog in unitconfig.yaml. Both raise
ConfigurationError, and validation always happens before any query runs.

Relative paths in the file are resolved against the file's directory.
"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from metalfoams.errors import ConfigurationError
from metalfoams.filters.foamfilter import ALL_METALS, CellType, NumericRange
from metalfoams.output.formatter import Grouping
from metalfoams.records.recordsource import DataSource, SnapshotDataSource, SQLiteDataSource
from metalfoams.units.unitapi import validate_variable_unit
from metalfoams.utils.build_utils import load_yaml_file
from metalfoams.utils.resolver import suggest_match

logger = logging.getLogger(__name__)


TOP_LEVEL_KEYS = (
    "database",
    "snapshot",
    "x",
    "y",
    "metals",
    "cell_type",
    "numeric_filter",
    "grouping",
    "export",
    "export_dir",
)
AXIS_KEYS = ("variable", "unit", "log", "limits")
FILTER_KEYS = ("variable", "unit", "range", "inclusive")


@dataclass
class AxisConfig:
    """One plotted property: what to convert it to and how to scale the axis."""

    variable: str
    unit: str
    log: bool = False
    limits: Optional[Tuple[float, float]] = None


@dataclass
class PipelineConfig:
    """Everything one pipeline run needs.

    Examples:
        >>> config = PipelineConfig(
        ...     x=AxisConfig("porosity", "percent"),
        ...     y=AxisConfig("Young modulus", "MPa"),
        ...     metals=["Aluminium"],
        ...     cell_type=CellType.CLOSED,
        ... )
        >>> config.validate()
    """

    x: AxisConfig
    y: AxisConfig
    metals: List[str] = field(default_factory=lambda: [ALL_METALS])
    cell_type: CellType = CellType.ANY
    numeric_filter: Optional[NumericRange] = None
    grouping: Grouping = Grouping.BASE_MATERIAL
    export: bool = False
    export_dir: Path = Path(".")
    database: Optional[Path] = None
    snapshot: Optional[Path] = None

    @property
    def filter_variable(self) -> Optional[str]:
        return self.numeric_filter.variable if self.numeric_filter is not None else None

    def validate(self) -> None:
        """Check variables, units and ranges against the variable catalog.

        Raises:
            ConfigurationError: On the first problem found
        """
        validate_variable_unit(self.x.variable, self.x.unit)
        validate_variable_unit(self.y.variable, self.y.unit)
        if self.numeric_filter is not None:
            validate_variable_unit(self.numeric_filter.variable, self.numeric_filter.unit)

        variables = [self.x.variable, self.y.variable]
        if self.filter_variable is not None:
            variables.append(self.filter_variable)
        if len(set(variables)) != len(variables):
            raise ConfigurationError(
                f"x, y and numeric filter variables must be distinct, got {variables}"
            )

        for name, axis in (("x", self.x), ("y", self.y)):
            if axis.limits is None:
                continue
            lower, upper = axis.limits
            if not lower < upper:
                raise ConfigurationError(f"{name}.limits must be increasing, got {list(axis.limits)}")
            if axis.log and lower <= 0:
                raise ConfigurationError(
                    f"{name}.limits must be positive on a log axis, got {list(axis.limits)}"
                )

        if self.numeric_filter is not None:
            criteria = self.numeric_filter
            if not criteria.lower < criteria.upper:
                raise ConfigurationError(
                    f"numeric_filter.range lower bound must be below the upper bound, "
                    f"got [{criteria.lower}, {criteria.upper}]"
                )

        if self.database is not None and self.snapshot is not None:
            raise ConfigurationError("Set either 'database' or 'snapshot', not both")

        logger.debug(f"Configuration valid: {self.x.variable!r} vs {self.y.variable!r}")

    def data_source(self) -> DataSource:
        """Data source named by the configuration.

        Raises:
            ConfigurationError: If neither database nor snapshot is set
        """
        if self.database is not None:
            return SQLiteDataSource(self.database)
        if self.snapshot is not None:
            return SnapshotDataSource(self.snapshot)
        raise ConfigurationError("No data source: set 'database' or 'snapshot'")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base_dir: Union[str, Path, None] = None) -> "PipelineConfig":
        """Build a configuration from parsed YAML.

        Args:
            data: Parsed configuration mapping
            base_dir: Directory that relative paths are resolved against

        Raises:
            ConfigurationError: On unknown keys, missing sections or bad types
        """
        _check_keys(data, TOP_LEVEL_KEYS, "configuration")
        base_dir = Path(base_dir) if base_dir is not None else None

        for required in ("x", "y"):
            if required not in data:
                raise ConfigurationError(f"Missing required section {required!r}")

        metals = data.get("metals", [ALL_METALS])
        if isinstance(metals, str):
            metals = [metals]
        if not isinstance(metals, list) or not all(isinstance(m, str) for m in metals):
            raise ConfigurationError(f"'metals' must be a list of names, got {metals!r}")

        return cls(
            x=_parse_axis(data["x"], "x"),
            y=_parse_axis(data["y"], "y"),
            metals=metals,
            cell_type=CellType.parse(data.get("cell_type")),
            numeric_filter=_parse_numeric_filter(data.get("numeric_filter")),
            grouping=Grouping.parse(data.get("grouping")),
            export=_parse_bool(data.get("export", False), "export"),
            export_dir=_resolve(data.get("export_dir", "."), base_dir),
            database=_resolve(data.get("database"), base_dir),
            snapshot=_resolve(data.get("snapshot"), base_dir),
        )


# ============================================================================
# Parsing helpers
# ============================================================================

def _check_keys(data: Any, allowed: Tuple[str, ...], where: str) -> None:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where} must be a mapping, got {type(data).__name__}")
    for key in data:
        if key not in allowed:
            message = f"Unknown key {key!r} in {where}."
            suggestion = suggest_match(str(key), allowed)
            if suggestion is not None:
                message += f" Did you mean {suggestion!r}?"
            raise ConfigurationError(message)


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value in (0, 1):
        return bool(value)
    raise ConfigurationError(f"{name!r} must be true/false or 0/1, got {value!r}")


def _parse_pair(value: Any, name: str) -> Tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ConfigurationError(f"{name!r} must be a [lower, upper] pair, got {value!r}")
    try:
        lower, upper = float(value[0]), float(value[1])
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name!r} must hold two numbers, got {value!r}") from None
    if math.isnan(lower) or math.isnan(upper):
        raise ConfigurationError(f"{name!r} must not contain NaN")
    return lower, upper


def _require_str(data: Mapping[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{where}.{key} is required")
    return value


def _parse_axis(data: Any, name: str) -> AxisConfig:
    _check_keys(data, AXIS_KEYS, name)
    limits = data.get("limits")
    return AxisConfig(
        variable=_require_str(data, "variable", name),
        unit=_require_str(data, "unit", name),
        log=_parse_bool(data.get("log", False), f"{name}.log"),
        limits=_parse_pair(limits, f"{name}.limits") if limits is not None else None,
    )


def _parse_numeric_filter(data: Any) -> Optional[NumericRange]:
    if data is None:
        return None
    _check_keys(data, FILTER_KEYS, "numeric_filter")
    if "range" not in data:
        raise ConfigurationError("numeric_filter.range is required")
    lower, upper = _parse_pair(data["range"], "numeric_filter.range")
    return NumericRange(
        variable=_require_str(data, "variable", "numeric_filter"),
        unit=_require_str(data, "unit", "numeric_filter"),
        lower=lower,
        upper=upper,
        inclusive=_parse_bool(data.get("inclusive", False), "numeric_filter.inclusive"),
    )


def _resolve(value: Any, base_dir: Optional[Path]) -> Optional[Path]:
    if value is None:
        return None
    path = Path(str(value)).expanduser()
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    return path


def load_config(path: Union[str, Path]) -> PipelineConfig:
    """Load a run configuration from a YAML file.

    The configuration is parsed but not validated; call ``validate()`` (or
    ``run_pipeline``, which does) before using it.

    Raises:
        ConfigurationError: If the file is missing, unparsable or malformed
    """
    import yaml

    path = Path(path)
    try:
        data: Dict[str, Any] = load_yaml_file(path)
    except FileNotFoundError as e:
        raise ConfigurationError(str(e)) from e
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigurationError(f"Cannot parse {path}: {e}") from e

    logger.debug(f"Loaded configuration from {path}")
    return PipelineConfig.from_dict(data, base_dir=path.parent)


__all__ = [
    "AxisConfig",
    "PipelineConfig",
    "load_config",
]
