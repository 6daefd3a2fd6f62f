import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from revlens_core.selector import DEFAULT_SKIP_DIRECTORIES, DEFAULT_SKIP_EXTENSIONS, SkipPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".revlens.yml"

PROVIDER_NAMES = ("anthropic", "openai", "demo")
OUTPUT_FORMATS = ("json", "html", "markdown")

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "model_name": None,  # None = provider default; REVLENS_MODEL also overrides
    "max_chars_per_file": 20000,
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "skip_extensions": sorted(DEFAULT_SKIP_EXTENSIONS),
    "skip_directories": sorted(DEFAULT_SKIP_DIRECTORIES),
    "format": "json",
}

# Only these keys are ever written back. Credentials stay in the environment.
PERSISTED_KEYS = tuple(DEFAULT_CONFIG)

_LIST_KEYS = ("exclude", "skip_extensions", "skip_directories")

_CREDENTIAL_ENV = {
    "github_token": "GITHUB_TOKEN",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
}


class ConfigError(ValueError):
    """The configuration file is unreadable or holds invalid values."""


def _read_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings, got {type(data).__name__}")

    unknown = sorted(set(data) - set(DEFAULT_CONFIG))
    if unknown:
        logger.warning("Ignoring unknown keys in %s: %s", path, ", ".join(unknown))
    return {key: value for key, value in data.items() if key in DEFAULT_CONFIG}


def _validate(config: dict) -> None:
    if config["model"] not in PROVIDER_NAMES:
        raise ConfigError(f"Unknown model provider {config['model']!r}; choose one of: {', '.join(PROVIDER_NAMES)}")
    limit = config["max_chars_per_file"]
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
        raise ConfigError(f"max_chars_per_file must be a positive integer, got {limit!r}")
    fmt = config["format"]
    if not isinstance(fmt, str) or fmt.lower() not in OUTPUT_FORMATS:
        raise ConfigError(f"Unknown output format {fmt!r}; choose one of: {', '.join(OUTPUT_FORMATS)}")
    config["format"] = fmt.lower()
    for key in _LIST_KEYS:
        if not isinstance(config[key], list):
            raise ConfigError(f"{key} must be a list")
        bad = [item for item in config[key] if not isinstance(item, str)]
        if bad:
            raise ConfigError(f"{key} entries must be strings, got {bad!r}")


def load_config(config_path: str = DEFAULT_CONFIG_PATH, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .revlens.yml in the current directory
      3. CLI argument overrides (None values are ignored)

    Raises:
        ConfigError: the file cannot be parsed or a value is invalid
    """
    config = {key: list(value) if key in _LIST_KEYS else value for key, value in DEFAULT_CONFIG.items()}
    config.update(_read_file(Path(config_path)))
    config.update({key: value for key, value in (cli_overrides or {}).items() if value is not None})
    _validate(config)

    config["model_name"] = config.get("model_name") or os.environ.get("REVLENS_MODEL") or None
    for key, env_var in _CREDENTIAL_ENV.items():
        config[key] = os.environ.get(env_var)
    return config


def save_config(config: dict, config_path: str = DEFAULT_CONFIG_PATH) -> Path:
    """Write the non-secret keys of ``config`` to ``config_path`` and return the path."""
    path = Path(config_path)
    data = {key: config[key] for key in PERSISTED_KEYS if config.get(key) is not None}
    path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    return path


def build_skip_policy(config: dict) -> SkipPolicy:
    """Build the selector's block-lists from config, normalising case and leading dots.

    A missing key falls back to the built-in list; an empty list disables it.
    """
    extensions = config.get("skip_extensions", DEFAULT_SKIP_EXTENSIONS)
    directories = config.get("skip_directories", DEFAULT_SKIP_DIRECTORIES)
    return SkipPolicy(
        skip_extensions=frozenset("." + ext.lower().lstrip(".") for ext in extensions),
        skip_directories=frozenset(directories),
    )
