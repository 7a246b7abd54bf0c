"""
Semantic version helpers for enginekeeper.

npm versions and ranges do not follow PEP 440, so this module works with
:mod:`semantic_version`: :class:`semantic_version.Version` for ordering and
:class:`semantic_version.NpmSpec` for range satisfaction (``^``, ``~``,
``x``-ranges, hyphen ranges, space conjunction and ``||`` disjunction).
"""

from __future__ import annotations

import re
import functools
from typing import Iterable, List, Optional

from semantic_version import NpmSpec, Version

from enginekeeper.exceptions import MalformedVersionError

#: Strict ``major.minor.patch`` with no pre-release or build suffix.
CANONICAL_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")

# ">= 1.2.3" is legal npm syntax but NpmSpec wants the operator attached
_OPERATOR_GAP_RE = re.compile(r"(<=|>=|<|>|=|\^|~)\s+(?=[v\d*xX])")
_V_PREFIX_RE = re.compile(r"(^|[\s<>=^~])v(?=\d)")

# Leading operators that pin a lower bound, for extract_base_version()
_BASE_VERSION_RE = re.compile(r"^(?:\^|~|>=|=)?\s*v?(\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.+-]+)?)$")


def is_canonical_version(version: str) -> bool:
    """Return True for plain ``major.minor.patch`` strings.

    Examples:
        >>> is_canonical_version("1.2.3")
        True
        >>> is_canonical_version("1.2.3-beta.1")
        False
    """
    return bool(CANONICAL_VERSION_RE.match(version))


def try_parse_version(value: str) -> Optional[Version]:
    """Parse a strict semantic version, returning ``None`` when invalid."""
    try:
        return Version(value)
    except (ValueError, TypeError):
        return None


def parse_version(value: str) -> Version:
    """Parse a strict semantic version.

    Raises:
        MalformedVersionError: ``value`` is not a valid semantic version.
    """
    parsed = try_parse_version(value)
    if parsed is None:
        raise MalformedVersionError(
            f"Invalid semantic version: {value!r}",
            version=value,
        )
    return parsed


def sort_versions(versions: Iterable[str]) -> List[str]:
    """Sort version strings ascending by semantic-version precedence.

    Versions of equal precedence (differing only in build metadata) are
    ordered by their string form so the result is a total order.

    Raises:
        MalformedVersionError: Any entry is not a valid semantic version.
    """
    parsed = {raw: parse_version(raw) for raw in versions}

    def _compare(left: str, right: str) -> int:
        a, b = parsed[left], parsed[right]
        if a < b:
            return -1
        if a > b:
            return 1
        return (left > right) - (left < right)

    return sorted(parsed, key=functools.cmp_to_key(_compare))


def normalize_range(expression: str) -> str:
    """Tidy npm range syntax that :class:`NpmSpec` is stricter about.

    Examples:
        >>> normalize_range(">= 10.0.0")
        '>=10.0.0'
        >>> normalize_range("^v4.2")
        '^4.2'
    """
    cleaned = " ".join(expression.split())
    cleaned = _OPERATOR_GAP_RE.sub(r"\1", cleaned)
    return _V_PREFIX_RE.sub(r"\1", cleaned)


def parse_range(expression: str) -> Optional[NpmSpec]:
    """Parse an npm range expression, returning ``None`` when invalid."""
    try:
        return NpmSpec(normalize_range(expression))
    except (ValueError, TypeError):
        return None


def extract_base_version(spec: Optional[str]) -> Optional[str]:
    """Infer the version a manifest specifier currently points at.

    Exact pins and ``^``/``~``/``>=``/``=`` prefixed versions yield their
    version; anything more complex (unions, tags, URLs) yields ``None``.

    Examples:
        >>> extract_base_version("^4.17.21")
        '4.17.21'
        >>> extract_base_version(">=1 <2") is None
        True
    """
    if not spec:
        return None
    match = _BASE_VERSION_RE.match(spec.strip())
    return match.group(1) if match else None


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Determine the semantic update type between two versions.

    Returns:
        One of ``"new"``, ``"same"``, ``"downgrade"``, ``"major"``,
        ``"minor"``, ``"patch"``, ``"update"`` or ``"unknown"``.

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type(None, "1.0.0")
        'new'
    """
    if current_version is None and target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    current = try_parse_version(current_version) if current_version else None
    target = try_parse_version(target_version) if target_version else None
    if current is None or target is None:
        return "unknown"

    if target == current:
        return "same"
    if target < current:
        return "downgrade"

    if current.major != target.major:
        return "major"
    if current.minor != target.minor:
        return "minor"
    if current.patch != target.patch:
        return "patch"

    # pre-release -> release, or build metadata only
    return "update"
