"""Update command implementation for enginekeeper.

Writes, for each dependency, the newest version that supports the target
Node.js version into ``package.json``.

The command uses the same core components as the check command:

1. **PackageManifest**: reads dependency names and writes the result
2. **NpmRegistryStore**: shared cache for registry data (one fetch per package)
3. **CompatibilityFinder**: collapses compatible versions into ranges

The version written is the upper bound of the last compatible range, so a
dependency whose newest releases dropped support for the target lands on
the last release that still declared it.  ``--range`` writes that whole
range instead of a single version.

Dependencies that cannot be fetched or have no compatible release are
reported and left untouched; the rest are still written.

Typical usage::

    # Pin every dependency in ./package.json for the local node
    $ enginekeeper update

    # Preview what Node 12 would need, without writing
    $ enginekeeper update --node 12 --dry-run

    # Add two packages, with a backup and no prompt
    $ enginekeeper update -d express -D mocha --backup -y
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

import click

from enginekeeper.core import PackageManifest
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
    confirm,
    get_logger,
    print_success,
    print_error,
    print_warning,
    print_table,
    colorize_update_type,
    extract_base_version,
    get_update_type,
)

logger = get_logger("commands.update")

#: A planned change: result, specifier to write.
PlannedUpdate = Tuple[DependencyResult, str]


@click.command()
@dependency_options
@click.option(
    "--view",
    "--dry-run",
    "view",
    is_flag=True,
    help="Preview changes without writing package.json.",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt.",
)
@click.option(
    "--backup",
    is_flag=True,
    help="Create backup file before updating.",
)
@click.option(
    "--range",
    "write_range",
    is_flag=True,
    help="Write the newest compatible range instead of a single version.",
)
@pass_context
def update(
    ctx: EngineKeeperContext,
    file: Path,
    deps: Tuple[str, ...],
    dev_deps: Tuple[str, ...],
    all_versions: bool,
    node_version: Optional[str],
    registry: Optional[str],
    view: bool,
    yes: bool,
    backup: bool,
    write_range: bool,
) -> None:
    """Write Node.js-compatible dependency versions to package.json.

    Dependencies come from FILE (default: ``package.json``) unless
    ``--deps`` / ``--dev-deps`` name them; named packages are added to
    ``dependencies`` / ``devDependencies`` respectively.

    Exits:
        0 if every dependency was resolved (written or already current),
        1 if any dependency was skipped or an error occurred.
    """
    try:
        settings = resolve_settings(
            ctx.get_config(),
            node_version=node_version,
            registry=registry,
            all_versions=all_versions,
        )
        all_resolved = asyncio.run(
            _update_async(
                file,
                deps,
                dev_deps,
                settings,
                view=view,
                skip_confirm=yes,
                backup=backup,
                write_range=write_range,
            )
        )
        sys.exit(0 if all_resolved else 1)

    except EngineKeeperError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in update command")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _update_async(
    file: Path,
    deps: Tuple[str, ...],
    dev_deps: Tuple[str, ...],
    settings: ResolutionSettings,
    *,
    view: bool,
    skip_confirm: bool,
    backup: bool,
    write_range: bool,
) -> bool:
    """Async implementation of the update command.

    Core logic:

    1. Load the manifest and build the request list.
    2. Resolve every dependency against the target Node.js version.
    3. Report dependencies that have to be skipped.
    4. Display the update plan.
    5. Unless viewing, confirm and write the manifest (optionally after
       a backup).

    Returns:
        ``True`` if no dependency had to be skipped.

    Raises:
        EngineKeeperError: The manifest cannot be read or written.
    """
    manifest, requests = collect_requests(file, deps, dev_deps, require_manifest=True)
    assert manifest is not None

    if not requests:
        print_warning(f"No dependencies found in {file}")
        return True

    logger.info(
        "Resolving %d dependenc(ies) for Node.js %s",
        len(requests),
        settings.target_version,
    )

    results = await resolve_dependencies(requests, settings)

    skipped = [r for r in results if not r.is_resolved()]
    _report_skipped(skipped, settings.target_version)

    updates = _find_updates(results, write_range)

    if not updates:
        print_success(
            f"All resolvable dependencies already match Node.js {settings.target_version}"
        )
        return not skipped

    _display_update_plan(updates, view)

    if view:
        print_warning("\nView mode - package.json not modified")
        return not skipped

    if not skip_confirm and not _confirm_update(len(updates)):
        logger.info("Update cancelled by user")
        return not skipped

    _apply_updates(manifest, updates)
    backup_path = manifest.save(backup=backup)
    if backup_path:
        print_success(f"Backup written to {backup_path}")

    print_success(f"\nUpdated {len(updates)} dependenc(ies) in {file}")
    for result, spec in updates:
        logger.debug("  %s: %s -> %s", result.name, result.current_spec, spec)

    return not skipped


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def _report_skipped(skipped: List[DependencyResult], target_version: str) -> None:
    """Warn about each dependency that will be left untouched."""
    for result in skipped:
        if result.status is DependencyStatus.UNAVAILABLE:
            print_warning(f"Skipping {result.name}: {result.error}")
        else:
            print_warning(
                f"Skipping {result.name}: none of {result.version_count} "
                f"version(s) supports Node.js {target_version}"
            )


def _find_updates(
    results: List[DependencyResult],
    write_range: bool,
) -> List[PlannedUpdate]:
    """Pick the specifier to write for every resolved dependency.

    Dependencies whose manifest entry already equals the chosen specifier
    are left out.
    """
    updates: List[PlannedUpdate] = []

    for result in results:
        if not result.is_resolved():
            continue

        spec = result.latest_range if write_range else result.selected_version
        if spec is None:
            continue

        if result.current_spec == spec:
            logger.debug("%s already at %s", result.name, spec)
            continue

        updates.append((result, spec))

    return updates


def _display_update_plan(updates: List[PlannedUpdate], view: bool) -> None:
    """Display planned updates as a Rich-formatted table.

    Example output::

        ┏━━━━━━━━━━┳━━━━━━━━━━━━━━━━━┳━━━━━━━━━━┳━━━━━━━━━━┳━━━━━━━━━━┓
        ┃ Package  ┃ Group           ┃ Current  ┃ New      ┃ Change   ┃
        ┡━━━━━━━━━━╇━━━━━━━━━━━━━━━━━╇━━━━━━━━━━╇━━━━━━━━━━╇━━━━━━━━━━┩
        │ eslint   │ devDependencies │ ^8.57.0  │ 7.32.0   │ downgrade│
        │ chalk    │ dependencies    │ -        │ 4.1.2    │ new      │
        └──────────┴─────────────────┴──────────┴──────────┴──────────┘
    """
    title = "Update Plan (View Only)" if view else "Update Plan"

    data = []
    for result, spec in updates:
        update_type = get_update_type(
            extract_base_version(result.current_spec) or result.current_spec,
            result.selected_version,
        )
        data.append(
            {
                "Package": result.name,
                "Group": result.group,
                "Current": result.current_spec or "[dim]-[/dim]",
                "New": f"[bold green]{spec}[/bold green]",
                "Change": colorize_update_type(update_type),
            }
        )

    column_styles = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Group": {"style": "dim", "no_wrap": True},
        "Current": {"justify": "center", "style": "dim"},
        "New": {"justify": "center"},
        "Change": {"justify": "center"},
    }

    print_table(data, title=title, column_styles=column_styles)


def _confirm_update(count: int) -> bool:
    """Prompt user to confirm the write. Defaults to 'yes'."""
    plural = "dependency" if count == 1 else "dependencies"
    return confirm(f"\nWrite {count} {plural} to package.json?", default=True)


def _apply_updates(manifest: PackageManifest, updates: List[PlannedUpdate]) -> None:
    """Record each planned specifier in the in-memory manifest."""
    for result, spec in updates:
        manifest.set_version(result.group, result.name, spec)
