"\"\"\"YAML configuration loading.\"\"\""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML file into a mapping. An empty document loads as ``{}``."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config {path} must be a YAML mapping")
    return loaded


__all__ = ["load_yaml"]
