"""Shared data loading utilities.

This module provides the file lookup and table loading used by the snapshot
data source: parquet is preferred over CSV when both exports exist.
"""

from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd


def find_data_file(
    directory: Path,
    stem: str,
    suffixes: Tuple[str, ...] = (".parquet", ".csv"),
) -> Optional[Path]:
    """Find a table file by stem, trying each suffix in priority order.

    Args:
        directory: Directory to search
        stem: File name without suffix (e.g., 'MetF_Index')
        suffixes: Candidate suffixes in priority order (parquet first)

    Returns:
        Path to found file, or None if not found

    Examples:
        >>> find_data_file(Path("snapshot"), "MetF_Index")
        PosixPath('snapshot/MetF_Index.parquet')
    """
    for suffix in suffixes:
        p = Path(directory) / f"{stem}{suffix}"
        if p.exists():
            return p
    return None


def load_parquet_or_csv(file_path: Path) -> pd.DataFrame:
    """Load DataFrame from parquet or CSV file based on extension.

    CSV files are read with ``keep_default_na=False`` so that empty unit
    labels stay empty strings instead of becoming NaN.

    Args:
        file_path: Path to parquet or CSV file

    Returns:
        Loaded DataFrame

    Raises:
        ValueError: If file extension is not .parquet or .csv
    """
    if file_path.suffix == ".parquet":
        return pd.read_parquet(file_path)
    elif file_path.suffix == ".csv":
        return pd.read_csv(file_path, keep_default_na=False, na_values=["NaN", "nan"])
    else:
        raise ValueError(f"Unsupported file format: {file_path.suffix}. Use .parquet or .csv")


def format_not_found_error(
    subject: str,
    searched_locations: List[Tuple[str, Path]],
    fix_instructions: List[str],
) -> str:
    """Format a helpful not-found error message.

    Args:
        subject: What was being looked for (e.g., 'MetF_Index table')
        searched_locations: List of (description, path) tuples for locations searched
        fix_instructions: List of commands/instructions to fix the issue

    Returns:
        Formatted error message string
    """
    lines = [f"No {subject} found in standard locations.\n"]

    lines.append("Searched:")
    for i, (desc, path) in enumerate(searched_locations, 1):
        lines.append(f"  {i}. {desc}: {path}")

    lines.append("\nTo fix:")
    for instruction in fix_instructions:
        lines.append(f"  • {instruction}")

    return "\n".join(lines)


__all__ = [
    "find_data_file",
    "load_parquet_or_csv",
    "format_not_found_error",
]
