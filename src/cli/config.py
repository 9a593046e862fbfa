"""Configuration loading."""

from pathlib import Path
from typing import Optional

import yaml

from .config_models import ReflectConfig


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "reflect.yaml",
        Path.home() / ".claude-reflect" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config_model(config_path: Optional[Path] = None) -> ReflectConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    try:
        return ReflectConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")
