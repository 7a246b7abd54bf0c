"""package.json access for enginekeeper.

:class:`PackageManifest` reads the dependency names enginekeeper should
resolve and writes the chosen versions back.  Only ``dependencies`` and
``devDependencies`` are touched; every other key and the original key
order are preserved.  Output uses npm's own layout (two-space indent,
trailing newline).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from enginekeeper.constants import (
    DEPENDENCIES_SECTION,
    DEV_DEPENDENCIES_SECTION,
    MANIFEST_INDENT,
)
from enginekeeper.exceptions import FileOperationError, ManifestError
from enginekeeper.models.result import DependencyRequest
from enginekeeper.utils.filesystem import safe_read_file, safe_write_file
from enginekeeper.utils.logger import get_logger

logger = get_logger("manifest")


class PackageManifest:
    """In-memory view of a ``package.json`` file.

    Args:
        path: Location of the manifest.
        data: Parsed JSON object.
    """

    def __init__(self, path: Path, data: Dict[str, Any]) -> None:
        self.path = path
        self.data = data

    @classmethod
    def load(cls, path: Path) -> "PackageManifest":
        """Read and parse ``path``.

        Raises:
            ManifestError: The file is missing, unreadable, not valid JSON,
                or not a JSON object.
        """
        try:
            text = safe_read_file(path)
        except FileOperationError as exc:
            raise ManifestError(exc.message, file_path=str(path)) from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestError(
                f"Invalid JSON in {path.name}: {exc.msg} (line {exc.lineno})",
                file_path=str(path),
            ) from exc

        if not isinstance(data, dict):
            raise ManifestError(
                f"{path.name} must contain a JSON object",
                file_path=str(path),
            )

        logger.debug("Loaded manifest %s", path)
        return cls(path, data)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def section(self, group: str) -> Dict[str, Any]:
        """Return the ``group`` section, or ``{}`` when absent or malformed."""
        value = self.data.get(group)
        return value if isinstance(value, dict) else {}

    def dependency_names(self, group: str) -> List[str]:
        """Names declared in ``group``, in file order."""
        return list(self.section(group))

    def get_spec(self, group: str, name: str) -> Optional[str]:
        """Specifier currently declared for ``name`` in ``group``."""
        value = self.section(group).get(name)
        return value if isinstance(value, str) else None

    def collect_requests(
        self,
        deps: Sequence[str] = (),
        dev_deps: Sequence[str] = (),
    ) -> List[DependencyRequest]:
        """Build resolution requests.

        Explicit ``deps`` / ``dev_deps`` win; when both are empty every
        entry of ``dependencies`` and ``devDependencies`` is requested.
        """
        if not deps and not dev_deps:
            deps = self.dependency_names(DEPENDENCIES_SECTION)
            dev_deps = self.dependency_names(DEV_DEPENDENCIES_SECTION)

        return [
            DependencyRequest(name, group, self.get_spec(group, name))
            for group, names in (
                (DEPENDENCIES_SECTION, deps),
                (DEV_DEPENDENCIES_SECTION, dev_deps),
            )
            for name in names
        ]

    # ------------------------------------------------------------------
    # Mutation & persistence
    # ------------------------------------------------------------------

    def set_version(self, group: str, name: str, spec: str) -> None:
        """Declare ``name`` at ``spec`` in ``group``, creating the section."""
        if not isinstance(self.data.get(group), dict):
            self.data[group] = {}
        self.data[group][name] = spec

    def to_json_text(self) -> str:
        """Serialize the manifest the way npm writes it."""
        return json.dumps(self.data, indent=MANIFEST_INDENT, ensure_ascii=False) + "\n"

    def save(self, *, backup: bool = False) -> Optional[Path]:
        """Write the manifest back atomically.

        Args:
            backup: Copy the previous file to a timestamped backup first.

        Returns:
            Path of the backup, if one was created.
        """
        backup_path = safe_write_file(self.path, self.to_json_text(), create_backup=backup)
        logger.info("Wrote %s", self.path)
        return backup_path
