"""Exception types raised by the metalfoams pipeline.

ConfigurationError and DataSourceError abort a run. UnitConversionError is
raised by the conversion table and handled row-by-row inside the pipeline,
where it excludes the offending record instead of failing the run.
"""

from typing import Optional


class MetalFoamsError(Exception):
    """Base class for all metalfoams errors."""


class ConfigurationError(MetalFoamsError, ValueError):
    """Raised when a run configuration names an unknown variable or unit,
    or holds inconsistent settings. Always raised before any query runs."""


class UnitConversionError(MetalFoamsError, KeyError):
    """Raised when no conversion is declared for a (from, to) unit pair."""

    def __init__(self, from_unit: Optional[str], to_unit: Optional[str], message: Optional[str] = None):
        self.from_unit = from_unit
        self.to_unit = to_unit
        if message is None:
            message = f"No conversion defined from {from_unit!r} to {to_unit!r}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class DataSourceError(MetalFoamsError, RuntimeError):
    """Raised when the data source cannot be reached or a query fails."""


__all__ = [
    "MetalFoamsError",
    "ConfigurationError",
    "UnitConversionError",
    "DataSourceError",
]
