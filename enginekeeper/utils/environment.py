"""
Local Node.js toolchain discovery for enginekeeper.

The resolution core never looks anything up on its own; the CLI uses
these helpers to fill in defaults (target Node.js version, npm registry)
when the user did not supply them explicitly.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from typing import List

from enginekeeper.utils.logger import get_logger
from enginekeeper.exceptions import EnvironmentDiscoveryError
from enginekeeper.constants import DEFAULT_REGISTRY, SUBPROCESS_TIMEOUT

logger = get_logger("environment")

_NODE_VERSION_RE = re.compile(r"^v?(\d+\.\d+\.\d+)$")
_PARTIAL_VERSION_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?$")


def _run(command: List[str]) -> str:
    """Run ``command`` and return its stripped stdout.

    Raises:
        EnvironmentDiscoveryError: The executable is missing, fails, or
            does not answer within :data:`SUBPROCESS_TIMEOUT` seconds.
    """
    executable = shutil.which(command[0])
    rendered = " ".join(command)

    if executable is None:
        raise EnvironmentDiscoveryError(
            f"'{command[0]}' was not found on PATH",
            command=rendered,
        )

    try:
        completed = subprocess.run(
            [executable, *command[1:]],
            capture_output=True,
            text=True,
            check=True,
            timeout=SUBPROCESS_TIMEOUT,
        )
    except subprocess.CalledProcessError as exc:
        raise EnvironmentDiscoveryError(
            f"'{rendered}' exited with status {exc.returncode}",
            command=rendered,
        ) from exc
    except (subprocess.TimeoutExpired, OSError) as exc:
        raise EnvironmentDiscoveryError(
            f"Could not run '{rendered}': {exc}",
            command=rendered,
        ) from exc

    return completed.stdout.strip()


def get_current_node_version() -> str:
    """Return the installed Node.js version as ``"major.minor.patch"``.

    Raises:
        EnvironmentDiscoveryError: ``node`` is unavailable or printed
            something other than a release version.

    Example::

        >>> get_current_node_version()
        '18.19.0'
    """
    output = _run(["node", "--version"])
    match = _NODE_VERSION_RE.match(output)
    if not match:
        raise EnvironmentDiscoveryError(
            f"Unrecognized Node.js version output: {output!r}",
            command="node --version",
        )
    return match.group(1)


def get_current_registry() -> str:
    """Return the npm registry configured for the current user.

    Falls back to the public registry when npm is not installed or its
    configuration cannot be read.
    """
    try:
        registry = _run(["npm", "config", "get", "registry"])
    except EnvironmentDiscoveryError as exc:
        logger.info("Using default registry %s (%s)", DEFAULT_REGISTRY, exc.message)
        return DEFAULT_REGISTRY

    if not registry.startswith(("http://", "https://")):
        logger.warning(
            "Ignoring unexpected npm registry value %r; using %s",
            registry,
            DEFAULT_REGISTRY,
        )
        return DEFAULT_REGISTRY

    return registry


def normalize_node_version(value: str) -> str:
    """Expand user input such as ``v18`` or ``16.4`` to a full version.

    Strings that do not look like a release version are returned stripped
    but otherwise unchanged, so the resolver can reject them with a
    descriptive error.

    Examples:
        >>> normalize_node_version("v18")
        '18.0.0'
        >>> normalize_node_version("16.4")
        '16.4.0'
    """
    cleaned = value.strip()
    match = _PARTIAL_VERSION_RE.match(cleaned)
    if not match:
        return cleaned
    major, minor, patch = match.groups()
    return f"{major}.{minor or 0}.{patch or 0}"
