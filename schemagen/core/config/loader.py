"""
Configuration loader — presets + schemagen.yml + CLI overrides.

Resolution order (later wins):

    built-in preset for the env
      → top-level keys of schemagen.yml
        → schemagen.yml ``environments.<env>`` keys
          → explicit overrides (CLI flags)

The result is validated by Pydantic and returned as an immutable
``GenerationConfig`` with absolute paths.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from schemagen.core.errors import ConfigurationError
from schemagen.core.models.config import GenerationConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "schemagen.yml"
ENVIRONMENTS = ("default", "dev", "prod")

_DEFAULT_PRESET: dict[str, Any] = {
    "schema_dir": "src/db/schema",
    "output_file": "src/db/schema/index.ts",
    "exclude_patterns": [
        "**/generated-*.ts",
        "**/index.ts",
        "**/*.test.ts",
        "**/*.spec.ts",
    ],
    "include_table_patterns": [".*"],
    "exclude_table_patterns": [
        ".*Relations$",
        ".*Enum$",
    ],
    "generate_types": True,
    "generate_table_names": True,
    "import_path_mapping": {},
}

# dev and prod currently share the defaults; they exist so a
# schemagen.yml can diverge per environment without new CLI plumbing.
PRESETS: dict[str, dict[str, Any]] = {
    "default": _DEFAULT_PRESET,
    "dev": dict(_DEFAULT_PRESET),
    "prod": dict(_DEFAULT_PRESET),
}

_KNOWN_KEYS = set(GenerationConfig.model_fields)
_PATH_KEYS = ("schema_dir", "output_file")


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for schemagen.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to schemagen.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(
    env: str = "default",
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    search: bool = True,
) -> GenerationConfig:
    """Build the generation config for an environment.

    Args:
        env: Preset name (default, dev, prod).
        config_path: Explicit schemagen.yml. If None and ``search`` is set,
            searches upward from the cwd; without a file only the preset
            and overrides apply.
        overrides: Field values that win over everything else. ``None``
            values are ignored so CLI options can be passed through as-is.
            Relative override paths resolve against the cwd, while paths
            from schemagen.yml resolve against the file's directory.
        search: Whether to look for schemagen.yml when no path is given.

    Returns:
        Validated, immutable GenerationConfig with absolute paths.

    Raises:
        ConfigurationError: Unknown env, unreadable/invalid file or values.
    """
    if env not in ENVIRONMENTS:
        raise ConfigurationError(
            f"Unknown environment '{env}'. Valid: {', '.join(ENVIRONMENTS)}"
        )

    data: dict[str, Any] = dict(PRESETS[env])

    if config_path is None and search:
        config_path = find_config_file()

    if config_path is not None:
        data.update(_read_config_file(config_path, env))
        base_dir = config_path.parent.resolve()
    else:
        base_dir = Path.cwd().resolve()

    data["schema_dir"] = _absolute(data["schema_dir"], base_dir)
    data["output_file"] = _absolute(data["output_file"], base_dir)

    # Command-line paths are relative to where the command runs.
    cwd = Path.cwd().resolve()
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key in _PATH_KEYS:
            value = _absolute(value, cwd)
        data[key] = value

    _check_keys(data, source="overrides")

    try:
        config = GenerationConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.debug(
        "Loaded config env=%s schema_dir=%s output_file=%s",
        env, config.schema_dir, config.output_file,
    )
    return config


def _read_config_file(path: Path, env: str) -> dict[str, Any]:
    """Read schemagen.yml and flatten the section for ``env``."""
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    logger.debug("Loading schemagen config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a YAML mapping in {path}, got {type(data).__name__}"
        )

    environments = data.pop("environments", None) or {}
    if not isinstance(environments, dict):
        raise ConfigurationError(f"'environments' in {path} must be a mapping")

    _check_keys(data, source=str(path))
    merged = dict(data)

    section = environments.get(env) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'environments.{env}' in {path} must be a mapping")
    _check_keys(section, source=f"{path} (environments.{env})")
    merged.update(section)

    return merged


def _check_keys(data: dict[str, Any], source: str) -> None:
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown config keys in {source}: {', '.join(unknown)}")


def _absolute(value: Any, base_dir: Path) -> Path:
    try:
        path = Path(value)
    except TypeError as e:
        raise ConfigurationError(f"Invalid path value {value!r}") from e
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()
