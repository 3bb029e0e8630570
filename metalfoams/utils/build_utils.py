"""
Build Utility Functions
-----------------------

YAML loading shared by the unit configuration and run configuration loaders.

Functions:
  - load_yaml_file: Load and parse YAML file
"""

from pathlib import Path
from typing import Union


def load_yaml_file(path: Union[str, Path]) -> dict:
    """
    Load and parse YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Parsed YAML data as dictionary (empty dict for an empty file)

    Raises:
        FileNotFoundError: If file does not exist
        ValueError: If the document is not a mapping

    Examples:
        >>> data = load_yaml_file(Path("run.yaml"))
        >>> data['x']['variable']
        'porosity'
    """
    import yaml

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


__all__ = [
    "load_yaml_file",
]
