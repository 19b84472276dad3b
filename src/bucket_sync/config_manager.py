"""User configuration file management."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def get_config_path() -> Path:
    """Return the path of the user config file."""
    return Path.home() / ".bucket-sync" / "config.yaml"


def load_config(config_path: Path) -> Optional[Dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Returns:
        Parsed mapping, or None if the file does not exist

    Raises:
        yaml.YAMLError: If the file is not valid YAML
    """
    if not config_path.exists():
        return None
    with open(config_path, "r") as f:
        return yaml.safe_load(f)


def save_config(config_path: Path, data: Dict[str, Any]) -> None:
    """Write configuration to a YAML file, creating its directory if needed."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
