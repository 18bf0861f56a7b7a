"""Utility module."""

from __future__ import annotations

from pathlib import Path

import toml
from ml_collections import ConfigDict


def load_config(config: Path) -> ConfigDict:
    """Load the benchmark configuration from a TOML file.

    Args:
        config: Path to the configuration file.

    Returns:
        The configuration.
    """
    config = Path(config)
    assert config.exists(), f"Configuration file not found: {config}"
    assert config.suffix == ".toml", f"Configuration file has to be a TOML file: {config}"

    with open(config, "r") as f:
        return ConfigDict(toml.load(f))
