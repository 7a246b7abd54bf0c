"""
Utility helpers for enginekeeper.

This package provides reusable utilities used across enginekeeper, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Async HTTP client utilities
- npm version and range helpers
- Node.js / npm environment discovery

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from enginekeeper.utils.filesystem import (
    create_timestamped_backup,
    restore_backup,
    safe_read_file,
    safe_write_file,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from enginekeeper.utils.logger import (
    get_logger,
    level_for_verbosity,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from enginekeeper.utils.console import (
    colorize_status,
    colorize_update_type,
    confirm,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from enginekeeper.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from enginekeeper.utils.version_utils import (
    extract_base_version,
    get_update_type,
    parse_range,
    parse_version,
    sort_versions,
)

# ---------------------------------------------------------------------------
# Environment discovery
# ---------------------------------------------------------------------------

from enginekeeper.utils.environment import (
    get_current_node_version,
    get_current_registry,
    normalize_node_version,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "confirm",
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "colorize_status",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "level_for_verbosity",
    # Filesystem
    "safe_read_file",
    "safe_write_file",
    "restore_backup",
    "create_timestamped_backup",
    # HTTP
    "HTTPClient",
    # Version utilities
    "parse_range",
    "parse_version",
    "sort_versions",
    "get_update_type",
    "extract_base_version",
    # Environment
    "get_current_node_version",
    "get_current_registry",
    "normalize_node_version",
]
