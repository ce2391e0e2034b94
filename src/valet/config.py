from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

# Supported config filenames (in order of preference)
CONFIG_FILENAMES: List[str] = [".valet.yaml", ".valet.yml"]


def get_config_path(home: Optional[Path] = None) -> Path:
    """Find the config file path, checking both .yaml and .yml extensions.

    Returns the first existing config file, or the default (.valet.yaml)
    if none exist yet.
    """
    home_dir = home or Path.home()
    for filename in CONFIG_FILENAMES:
        path = home_dir / filename
        if path.exists():
            return path
    return home_dir / CONFIG_FILENAMES[0]


class Config:
    """User configuration for valet.

    Values from the user's YAML file are merged over ``DEFAULT_CONFIG``.
    """

    DEFAULT_CONFIG = {
        "git": {"executable": "git"},
        "overlay": {
            "excludes_dir": ".gitignore.d",
            "attributes_dir": ".gitattributes.d",
        },
        "paths": {"data_dir": None},
    }

    def __init__(self, config_path: Optional[Path] = None):
        # Use deepcopy to avoid mutating the class-level DEFAULT_CONFIG
        self.data = copy.deepcopy(self.DEFAULT_CONFIG)
        self.path = config_path

        if config_path and config_path.exists():
            try:
                with open(config_path, "r") as f:
                    user_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(
                    f"failed to load config from {config_path}: {e}"
                ) from e

            if user_config is not None and not isinstance(user_config, dict):
                raise ConfigError(
                    f"expected a mapping at the top of {config_path}"
                )
            if user_config:
                self._deep_update(self.data, user_config)

    def _deep_update(self, base: Dict, update: Dict):
        for k, v in update.items():
            if isinstance(v, dict) and k in base and isinstance(base[k], dict):
                self._deep_update(base[k], v)
            else:
                base[k] = v

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a config value by dot-separated path."""
        keys = key_path.split(".")
        value = self.data
        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    @property
    def git_executable(self) -> str:
        return str(self.get("git.executable") or "git")

    @property
    def data_dir(self) -> Optional[Path]:
        data_dir = self.get("paths.data_dir")
        if not data_dir:
            return None
        return Path(str(data_dir)).expanduser()

    @property
    def overlay_excludes_dir(self) -> str:
        return str(self.get("overlay.excludes_dir") or ".gitignore.d")

    @property
    def overlay_attributes_dir(self) -> str:
        return str(self.get("overlay.attributes_dir") or ".gitattributes.d")
