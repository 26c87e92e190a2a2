"""TOML configuration loader.

Settings come from `config/default.toml` with `config/{env}.toml` layered
on top. The environment name ends up in a file path, so it is restricted
to a safe slug.
"""

import os
import re
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "CMS_WEBHOOKS_CONFIG_DIR"
ENVIRONMENT_ENV = "CMS_WEBHOOKS_ENV"
DEFAULT_ENVIRONMENT = "development"

_ENV_NAME = re.compile(r"^[a-z0-9][a-z0-9_-]*$")

# Repository checkout: cms_webhooks/config/loader.py -> <root>/config
_CHECKOUT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def get_config_dir() -> Path:
    """Resolve the directory holding the TOML files.

    CMS_WEBHOOKS_CONFIG_DIR wins when set and must exist. Otherwise
    `./config` is used if present, then the `config/` directory of the
    source checkout.

    Raises:
        FileNotFoundError: If CMS_WEBHOOKS_CONFIG_DIR points nowhere
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    local = Path.cwd() / "config"
    if local.is_dir():
        return local
    return _CHECKOUT_CONFIG_DIR


def get_environment() -> str:
    """Return the normalized environment name from CMS_WEBHOOKS_ENV.

    Raises:
        ValueError: If the name is not a lowercase slug (e.g. contains a
            path separator)
    """
    env = os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT).strip().lower()
    if not _ENV_NAME.match(env):
        raise ValueError(f"Invalid {ENVIRONMENT_ENV} value: {env!r}")
    return env


def config_files(config_dir: Path, env: str) -> list[Path]:
    """List the files merged for `env`, lowest precedence first.

    default.toml is required; the environment file is optional.
    """
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            f"Create config/default.toml or set {CONFIG_DIR_ENV}."
        )

    files = [default_path]
    env_path = config_dir / f"{env}.toml"
    if env_path.exists():
        files.append(env_path)
    return files


def load_toml(file_path: Path) -> dict[str, Any]:
    """Load a TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge `override` into a copy of `base`, recursing into tables."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Load and merge the TOML files for the current environment."""
    config: dict[str, Any] = {}
    for path in config_files(get_config_dir(), get_environment()):
        config = deep_merge(config, load_toml(path))
    return config
