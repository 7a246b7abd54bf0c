"""
Filesystem utilities for enginekeeper.

This module provides safe helpers for reading, writing, backing up and
restoring the package manifest. All filesystem errors are normalized to
``FileOperationError``.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

from enginekeeper.utils.logger import get_logger
from enginekeeper.exceptions import FileOperationError
from enginekeeper.constants import MAX_FILE_SIZE


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Ensure ``path`` is an existing regular file and resolve it."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def _atomic_write(target: Path, content: str) -> None:
    """Atomically write text to a file using a temporary file + replace."""
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Optional[Path] = None

    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except Exception as exc:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
                logger.debug("Cleaned up temporary file: %s", temp_path)
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Safely read a text file with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(
    file_path: PathLike,
    content: str,
    *,
    create_backup: bool = False,
) -> Optional[Path]:
    """Safely write text to a file using atomic replacement.

    When ``create_backup`` is set, the previous content is copied to a
    timestamped sibling first and put back if the write fails.

    Args:
        file_path: Destination path.
        content: Text content to write.
        create_backup: Whether to create a backup before writing.

    Returns:
        Path to the created backup, if any.
    """
    path = Path(file_path)
    backup: Optional[Path] = None

    if create_backup and path.is_file():
        backup = create_timestamped_backup(path)

    try:
        _atomic_write(path, content)
    except FileOperationError:
        if backup is not None:
            restore_backup(backup, path)
        raise

    return backup


def create_timestamped_backup(file_path: PathLike) -> Path:
    """Create a backup named ``{stem}.{timestamp}.backup{suffix}``.

    For ``package.json`` this yields ``package.20240101_120000.backup.json``.
    """
    path = Path(file_path)

    if not path.exists() or not path.is_file():
        raise FileOperationError(
            f"Cannot backup invalid file: {path}",
            file_path=str(path),
            operation="backup",
        )

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = path.parent / f"{path.stem}.{timestamp}.backup{path.suffix}"

    try:
        shutil.copy2(path, backup_path)
        logger.debug("Created timestamped backup: %s", backup_path)
        return backup_path
    except OSError as exc:
        raise FileOperationError(
            f"Failed to create backup: {exc}",
            file_path=str(path),
            operation="backup",
            original_error=exc,
        ) from exc


def restore_backup(backup_path: PathLike, target_path: PathLike) -> None:
    """Copy ``backup_path`` over ``target_path``."""
    backup = Path(backup_path)

    if not backup.is_file():
        raise FileOperationError(
            f"Backup file not found: {backup}",
            file_path=str(backup),
            operation="restore",
        )

    logger.debug("Restoring %s from backup %s", target_path, backup)
    try:
        shutil.copy2(backup, target_path)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to restore backup: {exc}",
            file_path=str(target_path),
            operation="restore",
            original_error=exc,
        ) from exc
