"""
Shared context object for enginekeeper CLI commands.

This module defines the global Click context used to share configuration
and runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from enginekeeper.config import EngineKeeperConfig


class EngineKeeperContext:
    """Global context object for enginekeeper CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the enginekeeper configuration file, if any.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration (``None`` until the group callback runs).
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: Optional[EngineKeeperConfig] = None

    def get_config(self) -> EngineKeeperConfig:
        """Return the loaded configuration, or defaults when none was loaded."""
        return self.config if self.config is not None else EngineKeeperConfig()


#: Click decorator for injecting :class:`EngineKeeperContext` into commands.
pass_context = click.make_pass_decorator(EngineKeeperContext, ensure=True)
