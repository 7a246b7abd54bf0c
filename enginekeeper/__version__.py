"""
enginekeeper version information.

Single source of truth for the package version, read by the CLI
(``--version``) and the startup error report.
"""

from __future__ import annotations

__version__ = "0.1.0.dev0"
