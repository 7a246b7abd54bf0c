"""
Centralized constants for enginekeeper.

This module defines immutable configuration values used across enginekeeper,
including registry endpoints, network settings, manifest sections, and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "enginekeeper/{version}"

# ---------------------------------------------------------------------------
# npm registry
# ---------------------------------------------------------------------------

#: Registry used when ``npm config get registry`` is unavailable.
DEFAULT_REGISTRY: Final[str] = "https://registry.npmjs.org/"

#: Accept header for full packuments. The abbreviated install format drops
#: ``_nodeVersion``, which engine inference depends on.
PACKUMENT_ACCEPT: Final[str] = "application/json"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Maximum number of packuments fetched concurrently.
DEFAULT_CONCURRENT_LIMIT: Final[int] = 10

#: Timeout in seconds for ``node`` / ``npm`` subprocess calls.
SUBPROCESS_TIMEOUT: Final[int] = 15

# ---------------------------------------------------------------------------
# Engine requirements
# ---------------------------------------------------------------------------

#: Constraint assigned to versions with no engine signal at all.
ANY_VERSION_CONSTRAINT: Final[str] = "*"

#: Separator between rendered compatibility intervals.
RANGE_SEPARATOR: Final[str] = " || "

# ---------------------------------------------------------------------------
# Manifest (package.json)
# ---------------------------------------------------------------------------

#: Default manifest file name.
MANIFEST_FILE_NAME: Final[str] = "package.json"

#: Manifest section holding runtime dependencies.
DEPENDENCIES_SECTION: Final[str] = "dependencies"

#: Manifest section holding development dependencies.
DEV_DEPENDENCIES_SECTION: Final[str] = "devDependencies"

#: Indentation used when writing package.json (matches npm).
MANIFEST_INDENT: Final[int] = 2

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Configuration file looked up in the current directory.
CONFIG_FILE_NAME: Final[str] = "enginekeeper.toml"

#: Key holding enginekeeper settings inside package.json.
MANIFEST_CONFIG_KEY: Final[str] = "enginekeeper"

#: Include pre-release and build-tagged versions by default.
DEFAULT_ALL_VERSIONS: Final[bool] = False

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
