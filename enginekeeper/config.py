"""Configuration file loader for enginekeeper.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two locations:

- ``enginekeeper.toml``: settings under an ``[enginekeeper]`` table
- ``package.json``: settings under an ``"enginekeeper"`` key

Discovery order:

1. Explicit path from ``--config`` or ``ENGINEKEEPER_CONFIG``
2. ``enginekeeper.toml`` in current directory
3. ``package.json`` with an ``"enginekeeper"`` key in current directory

Configuration precedence: defaults < config file < environment < CLI args.
(The environment layer is handled by Click ``envvar`` options.)

Example (``enginekeeper.toml``)::

    [enginekeeper]
    registry = "https://registry.npmmirror.com/"
    node_version = "16.20.2"
    all_versions = false
    concurrent_limit = 8
    timeout = 20
"""

from __future__ import annotations

import json
import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from enginekeeper.exceptions import ConfigError
from enginekeeper.utils.logger import get_logger
from enginekeeper.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_ALL_VERSIONS,
    DEFAULT_CONCURRENT_LIMIT,
    DEFAULT_TIMEOUT,
    MANIFEST_CONFIG_KEY,
    MANIFEST_FILE_NAME,
)

logger = get_logger("config")

#: Known option names and their expected types.
_OPTION_TYPES: Dict[str, type] = {
    "registry": str,
    "node_version": str,
    "all_versions": bool,
    "concurrent_limit": int,
    "timeout": int,
}

_POSITIVE_INT_OPTIONS = ("concurrent_limit", "timeout")


@dataclass
class EngineKeeperConfig:
    """Parsed and validated enginekeeper configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        registry: npm registry URL.  ``None`` means "ask npm".
        node_version: Target Node.js version.  ``None`` means "ask node".
        all_versions: Include pre-release and build-tagged versions.
        concurrent_limit: Maximum concurrent registry fetches.
        timeout: HTTP timeout in seconds.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    registry: Optional[str] = None
    node_version: Optional[str] = None
    all_versions: bool = DEFAULT_ALL_VERSIONS
    concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT
    timeout: int = DEFAULT_TIMEOUT

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {name: getattr(self, name) for name in _OPTION_TYPES}


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    config_toml = cwd / CONFIG_FILE_NAME
    if config_toml.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, config_toml)
        return config_toml

    manifest = cwd / MANIFEST_FILE_NAME
    if manifest.is_file() and _manifest_has_config(manifest):
        logger.debug("Found \"%s\" key in %s", MANIFEST_CONFIG_KEY, manifest)
        return manifest

    logger.debug("No configuration file found")
    return None


def _manifest_has_config(path: Path) -> bool:
    """Check whether package.json carries an ``"enginekeeper"`` key.

    Parse errors mean "no": a broken package.json is reported later by
    the manifest loader, with a better message.
    """
    try:
        raw = _read_json(path)
    except ConfigError:
        return False
    return MANIFEST_CONFIG_KEY in raw


def load_config(config_path: Optional[Path] = None) -> EngineKeeperConfig:
    """Load and validate enginekeeper configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`EngineKeeperConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return EngineKeeperConfig()

    logger.info("Loading configuration from %s", resolved)

    if resolved.suffix == ".json":
        section = _read_json(resolved).get(MANIFEST_CONFIG_KEY, {})
    else:
        section = _read_toml(resolved).get(MANIFEST_CONFIG_KEY, {})

    if not isinstance(section, dict):
        raise ConfigError(
            f"'{MANIFEST_CONFIG_KEY}' settings must be a table/object",
            config_path=str(resolved),
        )

    if not section:
        logger.debug("Config file found but no enginekeeper section, using defaults")
        return EngineKeeperConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _read_json(path: Path) -> Dict[str, Any]:
    """Read and parse a JSON object file.

    Raises:
        ConfigError: File cannot be read, is not valid JSON, or is not an object.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"Invalid JSON in {path.name}: {exc.msg}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc

    if not isinstance(data, dict):
        raise ConfigError(
            f"{path.name} must contain a JSON object",
            config_path=str(path),
        )
    return data


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> EngineKeeperConfig:
    """Parse and validate the enginekeeper settings table.

    Raises:
        ConfigError: Unknown keys, wrong types, or non-positive limits.
    """
    unknown = set(section) - set(_OPTION_TYPES)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = EngineKeeperConfig()

    for option, expected in _OPTION_TYPES.items():
        if option not in section:
            continue

        val = section[option]
        # bool is an int subclass; never accept it for numeric options
        if not isinstance(val, expected) or (expected is int and isinstance(val, bool)):
            raise ConfigError(
                f"{option} must be a {_type_label(expected)}, got {type(val).__name__}",
                config_path=config_path,
                option=option,
            )

        if option in _POSITIVE_INT_OPTIONS and val <= 0:
            raise ConfigError(
                f"{option} must be greater than zero, got {val}",
                config_path=config_path,
                option=option,
            )

        if expected is str and not val.strip():
            raise ConfigError(
                f"{option} must not be empty",
                config_path=config_path,
                option=option,
            )

        setattr(config, option, val)

    return config


def _type_label(expected: type) -> str:
    return {bool: "boolean", int: "integer", str: "string"}[expected]
