"""Model registry and TOML configuration loader.

Loads model definitions from models.toml and packing defaults from
defaults.toml.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from promptfit.schemas.config import PackingConfig
from promptfit.schemas.model import ModelConfig

# Default config directory relative to the promptfit package
_CONFIG_DIR = Path(__file__).parent.parent / "config"


def load_models(config_path: Path | None = None) -> dict[str, ModelConfig]:
    """Load the model registry from a TOML file.

    Args:
        config_path: Path to models.toml. Defaults to promptfit/config/models.toml.

    Returns:
        Dictionary mapping model keys to ModelConfig instances.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid.
    """
    path = config_path or _CONFIG_DIR / "models.toml"
    if not path.exists():
        raise FileNotFoundError(f"Model registry not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    models_section = raw.get("models")
    if not models_section or not isinstance(models_section, dict):
        raise ValueError(f"No [models] section found in {path}")

    return {
        key: ModelConfig(**entry)
        for key, entry in models_section.items()
        if isinstance(entry, dict)
    }


def load_packing_config(config_path: Path | None = None) -> PackingConfig:
    """Load packing defaults from a TOML file.

    Args:
        config_path: Path to defaults.toml. Defaults to promptfit/config/defaults.toml.

    Returns:
        PackingConfig with values from the ``[packing]`` table.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Packing config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    return PackingConfig(**raw.get("packing", {}))
