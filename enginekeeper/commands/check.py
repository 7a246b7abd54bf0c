"""Check command implementation for enginekeeper.

Reports, for each dependency, which published versions declare support
for the target Node.js version.  Nothing is written to disk.

The command runs one resolution pass:

1. **PackageManifest** supplies the dependency names (unless ``--deps`` /
   ``--dev-deps`` are given).
2. **NpmRegistryStore** fetches every packument concurrently, once.
3. **CompatibilityFinder** derives engine requirements and collapses the
   compatible versions into contiguous ranges.

Typical usage::

    # Ranges for everything in ./package.json, against the local node
    $ enginekeeper check

    # A single package, against Node 14
    $ enginekeeper check -d eslint --node 14

    # Machine-readable JSON output
    $ enginekeeper check --format json > ranges.json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Tuple

from enginekeeper.exceptions import EngineKeeperError
from enginekeeper.context import pass_context, EngineKeeperContext
from enginekeeper.models import DependencyResult, DependencyStatus
from enginekeeper.commands.common import (
    ResolutionSettings,
    collect_requests,
    dependency_options,
    resolve_dependencies,
    resolve_settings,
)
from enginekeeper.utils import (
    get_logger,
    print_success,
    print_error,
    print_warning,
    print_table,
    get_raw_console,
    colorize_status,
)

logger = get_logger("commands.check")


@click.command()
@dependency_options
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def check(
    ctx: EngineKeeperContext,
    file: Path,
    deps: Tuple[str, ...],
    dev_deps: Tuple[str, ...],
    all_versions: bool,
    node_version: str,
    registry: str,
    format: str,
) -> None:
    """Show the versions of each dependency that support a Node.js version.

    Dependencies come from FILE (default: ``package.json``) unless
    ``--deps`` / ``--dev-deps`` name them explicitly.

    Exits:
        0 if every dependency has a compatible version, 1 if any has none,
        could not be fetched, or an error occurred.
    """
    try:
        settings = resolve_settings(
            ctx.get_config(),
            node_version=node_version,
            registry=registry,
            all_versions=all_versions,
        )
        all_resolved = asyncio.run(
            _check_async(ctx, file, deps, dev_deps, settings, format.lower())
        )
        sys.exit(0 if all_resolved else 1)

    except EngineKeeperError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in check command")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _check_async(
    ctx: EngineKeeperContext,
    file: Path,
    deps: Tuple[str, ...],
    dev_deps: Tuple[str, ...],
    settings: ResolutionSettings,
    format: str,
) -> bool:
    """Resolve every requested dependency and display the outcome.

    Returns:
        ``True`` if every dependency has at least one compatible version.

    Raises:
        EngineKeeperError: The manifest cannot be read.
    """
    # Only show progress/status for human-readable formats
    show_progress: bool = format == "table" or ctx.verbose > 0

    _, requests = collect_requests(file, deps, dev_deps)

    if not requests:
        if show_progress:
            print_warning("No dependencies to check")
        if format == "json":
            _display_json([], settings)
        return True

    logger.info(
        "Checking %d dependenc(ies) against Node.js %s",
        len(requests),
        settings.target_version,
    )
    if show_progress:
        get_raw_console().print(
            f"Target Node.js [bold]{settings.target_version}[/bold] "
            f"· registry [dim]{settings.registry}[/dim]\n"
        )

    results = await resolve_dependencies(requests, settings)

    if format == "table":
        _display_table(results)
    elif format == "simple":
        _display_simple(results, settings.target_version)
    else:  # json
        _display_json(results, settings)

    failed = [r for r in results if not r.is_resolved()]

    if show_progress:
        if failed:
            print_warning(
                f"\n{len(failed)} of {len(results)} dependenc(ies) have no "
                f"version supporting Node.js {settings.target_version}"
            )
        else:
            print_success(
                f"\nAll {len(results)} dependenc(ies) have a version "
                f"supporting Node.js {settings.target_version}"
            )

    return not failed


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_table(results: List[DependencyResult]) -> None:
    """Render results as a Rich-formatted table.

    Example::

        ┏━━━━━━━━━━┳━━━━━━━━━━━━━━━━━┳━━━━━━━━━━━━┳━━━━━━━━━━┳━━━━━━━━━━━━━━━━━━━━━┓
        ┃ Package  ┃ Group           ┃ Status     ┃ Selected ┃ Compatible Ranges   ┃
        ┡━━━━━━━━━━╇━━━━━━━━━━━━━━━━━╇━━━━━━━━━━━━╇━━━━━━━━━━╇━━━━━━━━━━━━━━━━━━━━━┩
        │ eslint   │ devDependencies │ compatible │ 7.32.0   │ >=0.0.1 <=7.32.0    │
        └──────────┴─────────────────┴────────────┴──────────┴─────────────────────┘
    """
    data = [_create_table_row(result) for result in results]

    column_styles: Dict[str, Dict[str, Any]] = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Group": {"style": "dim", "no_wrap": True},
        "Current": {"justify": "center", "style": "dim"},
        "Status": {"justify": "center", "no_wrap": True},
        "Selected": {"justify": "center", "style": "bold green"},
        "Compatible Ranges": {"justify": "left", "no_wrap": False},
    }

    print_table(
        data,
        title="Node.js Compatibility",
        column_styles=column_styles,
        show_row_lines=True,
    )


def _create_table_row(result: DependencyResult) -> Dict[str, str]:
    """Build a Rich-formatted table row for a single dependency."""
    if result.status is DependencyStatus.UNAVAILABLE:
        ranges = f"[red]{result.error or 'unavailable'}[/red]"
    elif result.intervals:
        ranges = "\n".join(interval.to_range() for interval in result.intervals)
    else:
        ranges = f"[dim]none of {result.version_count} version(s)[/dim]"

    return {
        "Package": result.name,
        "Group": result.group,
        "Current": result.current_spec or "[dim]-[/dim]",
        "Status": colorize_status(result.status.value),
        "Selected": result.selected_version or "[dim]-[/dim]",
        "Compatible Ranges": ranges,
    }


def _display_simple(results: List[DependencyResult], target_version: str) -> None:
    """Render results one line per dependency.

    Example::

        eslint range is: >=0.0.1 <=7.32.0
        left-pad: no version supports Node.js 0.8.0
        not-a-real-pkg: unavailable (Package 'not-a-real-pkg' not found in registry)
    """
    console = get_raw_console()

    for result in results:
        if result.intervals:
            line = f"{result.name} range is: {result.range_expression}"
        elif result.status is DependencyStatus.UNAVAILABLE:
            line = f"{result.name}: unavailable ({result.error})"
        else:
            line = f"{result.name}: no version supports Node.js {target_version}"
        console.print(line, markup=False, highlight=False)


def _display_json(
    results: List[DependencyResult],
    settings: ResolutionSettings,
) -> None:
    """Render results as formatted JSON for machine consumption.

    Example::

        {
          "node": "14.21.3",
          "registry": "https://registry.npmjs.org/",
          "dependencies": [
            {"name": "eslint", "status": "compatible", "range": ">=0.0.1 <=7.32.0", ...}
          ]
        }
    """
    data = {
        "node": settings.target_version,
        "registry": settings.registry,
        "dependencies": [result.to_json() for result in results],
    }
    print(json.dumps(data, indent=2))
