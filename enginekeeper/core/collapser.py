"""Compatible version range collapsing for enginekeeper.

Given the requirement map produced by
:class:`~enginekeeper.core.resolver.EngineRequirementResolver` and a target
Node.js version, :class:`RangeCollapser` walks the versions in ascending
order and groups every maximal run of consecutive compatible versions into
a :class:`CompatibilityInterval`::

    version   1.0.0  1.1.0  1.2.0  2.0.0  2.1.0
    target ok   ✓      ✓      ✗      ✓      ✓
    result   [1.0.0, 1.1.0]        [2.0.0, 2.1.0]

Intervals come back ascending, so the *last* one always holds the newest
compatible releases; :meth:`RangeCollapser.select_latest` returns its
upper bound.  An empty list means no release supports the target.
"""

from __future__ import annotations

from typing import List, Mapping, Optional

from enginekeeper.models.catalog import CompatibilityInterval, EngineRequirement
from enginekeeper.utils.logger import get_logger
from enginekeeper.utils.version_utils import parse_range, parse_version, sort_versions

logger = get_logger("collapser")


class RangeCollapser:
    """Collapse compatible versions into contiguous intervals.

    Stateless: the same inputs always produce the same intervals.
    """

    def collapse(
        self,
        requirements: Mapping[str, EngineRequirement],
        target_version: str,
    ) -> List[CompatibilityInterval]:
        """Return every maximal run of versions that accept ``target_version``.

        Args:
            requirements: Version -> requirement map.
            target_version: Node.js version to test, e.g. ``"16.20.2"``.

        Returns:
            Disjoint intervals in ascending version order.

        Raises:
            MalformedVersionError: ``target_version`` or a map key is not a
                valid semantic version.

        Example::

            >>> collapser.collapse(requirements, "12.0.0")
            [CompatibilityInterval(lower='1.0.0', upper='1.1.0')]
        """
        target = parse_version(target_version)
        intervals: List[CompatibilityInterval] = []

        run_start: Optional[str] = None
        run_end: Optional[str] = None

        for version in sort_versions(requirements):
            if self._is_satisfied(requirements[version], target):
                if run_start is None:
                    run_start = version
                run_end = version
            elif run_start is not None:
                intervals.append(CompatibilityInterval(run_start, run_end or run_start))
                run_start = run_end = None

        if run_start is not None:
            intervals.append(CompatibilityInterval(run_start, run_end or run_start))

        logger.debug(
            "Node %s: %d interval(s) across %d version(s)",
            target_version,
            len(intervals),
            len(requirements),
        )
        return intervals

    @staticmethod
    def select_latest(intervals: List[CompatibilityInterval]) -> Optional[str]:
        """Return the newest compatible version, or ``None`` if there is none."""
        if not intervals:
            return None
        return intervals[-1].upper

    @staticmethod
    def _is_satisfied(requirement: EngineRequirement, target) -> bool:
        """Check ``target`` against one requirement's range.

        A range npm itself could not parse counts as unsatisfied.
        """
        spec = parse_range(requirement.constraint)
        if spec is None:
            logger.debug(
                "Unparseable engine range %r for version %s; treating as incompatible",
                requirement.constraint,
                requirement.version,
            )
            return False
        return spec.match(target)
