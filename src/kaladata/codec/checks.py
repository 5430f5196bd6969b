"""File-level pre-checks run before any container bytes are parsed."""

from __future__ import annotations

import errno
import os
import stat
from pathlib import Path

from ..config import ImportLimits
from .errors import FormatError, ImportResult
from .layout import ContainerFormat

__all__ = ["pre_read_check", "try_open_check", "run_checks"]

_LOCKED_ERRNOS = {errno.EBUSY, getattr(errno, "ETXTBSY", errno.EBUSY)}
# ERROR_SHARING_VIOLATION / ERROR_LOCK_VIOLATION
_LOCKED_WINERRORS = {32, 33}

_ANY_READ = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH


def pre_read_check(path: Path, fmt: ContainerFormat) -> ImportResult:
    if not path.exists():
        return ImportResult.FILE_NOT_FOUND
    if not path.is_file() or path.suffix != fmt.extension:
        return ImportResult.INVALID_EXTENSION
    mode = path.stat().st_mode
    if not mode & _ANY_READ or not os.access(path, os.R_OK):
        return ImportResult.UNAUTHORIZED_READ
    return ImportResult.SUCCESS


def _is_locked(exc: OSError) -> bool:
    if exc.errno in _LOCKED_ERRNOS:
        return True
    return getattr(exc, "winerror", None) in _LOCKED_WINERRORS


def try_open_check(
    path: Path, fmt: ContainerFormat, limits: ImportLimits
) -> ImportResult:
    try:
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
    except OSError as exc:
        if _is_locked(exc):
            return ImportResult.FILE_LOCKED
        return ImportResult.UNKNOWN_READ_ERROR
    if size == 0:
        return ImportResult.FILE_EMPTY
    if size < fmt.min_file_size or size > fmt.max_file_size(limits):
        return ImportResult.UNSUPPORTED_FILE_SIZE
    return ImportResult.SUCCESS


def run_checks(path: Path, fmt: ContainerFormat, limits: ImportLimits) -> None:
    """Raise ``FormatError`` with the first failing check."""
    result = pre_read_check(path, fmt)
    if result.ok:
        result = try_open_check(path, fmt, limits)
    if not result.ok:
        raise FormatError(
            result,
            f"{fmt.name} file check failed for '{path}'",
            {"path": str(path)},
        )
