"""Shared utilities for the metalfoams package."""

from metalfoams.utils.dataloader import (
    find_data_file,
    load_parquet_or_csv,
    format_not_found_error,
)
from metalfoams.utils.normalize import (
    normalize_label,
    column_name,
    strip_whitespace,
)
from metalfoams.utils.resolver import (
    topk_matches,
    suggest_match,
)
from metalfoams.utils.build_utils import (
    load_yaml_file,
)

__all__ = [
    # Data loading
    "find_data_file",
    "load_parquet_or_csv",
    "format_not_found_error",
    # Normalization
    "normalize_label",
    "column_name",
    "strip_whitespace",
    # Resolution
    "topk_matches",
    "suggest_match",
    # Build utilities
    "load_yaml_file",
]
