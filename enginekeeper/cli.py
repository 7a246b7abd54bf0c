"""
Command-line interface for enginekeeper.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from enginekeeper.config import load_config
from enginekeeper.__version__ import __version__
from enginekeeper.context import EngineKeeperContext
from enginekeeper.exceptions import ConfigError, EngineKeeperError
from enginekeeper.utils.console import print_error, print_warning, reconfigure_console
from enginekeeper.utils.logger import get_logger, level_for_verbosity, setup_logging

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="ENGINEKEEPER_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="ENGINEKEEPER_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="enginekeeper",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """enginekeeper: pin npm dependencies to versions your Node.js supports.

    \b
    Available commands:
      enginekeeper check           Show compatible version ranges
      enginekeeper update          Write compatible versions to package.json

    \b
    Examples:
      enginekeeper check --node 14
      enginekeeper update -d lodash -D jest
      enginekeeper -v update --dry-run

    Use ``enginekeeper COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for rich and the log formatter alike
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    engine_ctx = ctx.ensure_object(EngineKeeperContext)
    engine_ctx.config_path = config or loaded_config.source_path
    engine_ctx.color = color
    engine_ctx.verbose = verbose
    engine_ctx.config = loaded_config

    logger.debug("enginekeeper v%s", __version__)
    logger.debug("Config path: %s", engine_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    level = level_for_verbosity(verbose)
    setup_logging(level=level)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
from enginekeeper.commands.check import check  # noqa: E402
from enginekeeper.commands.update import update  # noqa: E402

cli.add_command(check)
cli.add_command(update)


def main() -> int:
    """Main entry point for the enginekeeper CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except EngineKeeperError as exc:
        print_error(str(exc))
        logger.debug(
            "EngineKeeperError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.debug("Unhandled exception in CLI", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
