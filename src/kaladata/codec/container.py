"""Header, table and block reading shared by every container format.

All functions raise :class:`FormatError` on the first violated invariant;
``kaladata.api`` turns that into an ``ImportOutcome`` value. Each call owns
its file handle for its whole duration and keeps no state afterwards.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Iterator, List, Sequence, Tuple

from ..config import ImportLimits
from .checks import run_checks
from .cursor import ByteCursor
from .errors import FormatError, ImportResult, unexpected_eof
from .layout import ContainerFormat

__all__ = [
    "ContainerData",
    "read_header",
    "read_table",
    "stream_blocks",
    "import_all",
    "decode_table",
    "decode_blocks_from_region",
    "decode_container",
]


@dataclass(slots=True)
class ContainerData:
    header: Any
    entries: List[Any] = field(default_factory=list)
    blocks: List[Any] = field(default_factory=list)


@contextmanager
def _open(path: Path) -> Iterator[BinaryIO]:
    try:
        f = open(path, "rb")
    except OSError as exc:
        raise FormatError(
            ImportResult.UNKNOWN_READ_ERROR,
            f"Cannot open '{path}': {exc}",
            {"path": str(path)},
        ) from exc
    with f:
        try:
            yield f
        except OSError as exc:
            raise FormatError(
                ImportResult.UNKNOWN_READ_ERROR,
                f"Read failed for '{path}': {exc}",
                {"path": str(path)},
            ) from exc


def _decode_header(
    f: BinaryIO, fmt: ContainerFormat, limits: ImportLimits
) -> Any:
    f.seek(0)
    raw = f.read(fmt.header_size)
    return fmt.decode_header(ByteCursor(raw, label="header"), limits)


def decode_table(raw: bytes | memoryview, fmt: ContainerFormat) -> List[Any]:
    """Decode fixed-size entries until ``raw`` is exhausted."""
    cursor = ByteCursor(raw, label="table")
    entries = []
    while cursor.remaining:
        entries.append(
            fmt.decode_entry(cursor.window(fmt.entry_size, "table entry"))
        )
    return entries


def read_header(
    path: Path,
    fmt: ContainerFormat,
    limits: ImportLimits,
    *,
    skip_checks: bool = False,
) -> Any:
    if not skip_checks:
        run_checks(path, fmt, limits)
    with _open(path) as f:
        return _decode_header(f, fmt, limits)


def read_table(
    path: Path,
    fmt: ContainerFormat,
    limits: ImportLimits,
    *,
    skip_checks: bool = False,
) -> Tuple[Any, List[Any]]:
    if not skip_checks:
        run_checks(path, fmt, limits)
    with _open(path) as f:
        header = _decode_header(f, fmt, limits)
        f.seek(fmt.header_size)
        raw = f.read(header.tables_size)
    if len(raw) != header.tables_size:
        raise unexpected_eof(
            f"Table section truncated: {len(raw)}/{header.tables_size} bytes",
            {"path": str(path)},
        )
    return header, decode_table(raw, fmt)


def stream_blocks(
    path: Path,
    fmt: ContainerFormat,
    limits: ImportLimits,
    entries: Sequence[Any],
    *,
    skip_checks: bool = False,
) -> List[Any]:
    """Seek to and decode only the blocks of ``entries``."""
    if not skip_checks:
        run_checks(path, fmt, limits)
    blocks = []
    with _open(path) as f:
        file_size = os.fstat(f.fileno()).st_size
        for entry in entries:
            end = entry.block_offset + entry.block_size
            if end > file_size:
                raise unexpected_eof(
                    f"Block at {entry.block_offset}+{entry.block_size} "
                    f"overruns file of {file_size} bytes",
                    {
                        "path": str(path),
                        "block_offset": entry.block_offset,
                        "block_size": entry.block_size,
                    },
                )
            f.seek(entry.block_offset)
            raw = f.read(entry.block_size)
            if len(raw) != entry.block_size:
                raise unexpected_eof(
                    f"Short read at {entry.block_offset}: "
                    f"{len(raw)}/{entry.block_size} bytes",
                    {"path": str(path)},
                )
            blocks.append(fmt.decode_block(ByteCursor(raw, label="block"), entry))
    return blocks


def decode_blocks_from_region(
    region: ByteCursor,
    region_offset: int,
    fmt: ContainerFormat,
    entries: Sequence[Any],
) -> List[Any]:
    """Decode blocks out of an in-memory block region.

    ``region_offset`` is the absolute file offset of the region's first byte;
    entry offsets are rebased onto it.
    """
    blocks = []
    for entry in entries:
        relative = entry.block_offset - region_offset
        window = region.window_at(relative, entry.block_size, "block")
        blocks.append(fmt.decode_block(window, entry))
    return blocks


def import_all(
    path: Path,
    fmt: ContainerFormat,
    limits: ImportLimits,
    *,
    skip_checks: bool = False,
) -> ContainerData:
    """Decode header, table and every block with one read of the body."""
    if not skip_checks:
        run_checks(path, fmt, limits)
    with _open(path) as f:
        header = _decode_header(f, fmt, limits)
        f.seek(fmt.header_size)
        body = memoryview(f.read(header.tables_size + header.blocks_size))
    return _decode_body(header, body, fmt, {"path": str(path)})


def _decode_body(
    header: Any, body: memoryview, fmt: ContainerFormat, context: dict
) -> ContainerData:
    if len(body) < header.tables_size:
        raise unexpected_eof(
            f"Table section truncated: {len(body)}/{header.tables_size} bytes",
            context,
        )
    entries = decode_table(body[: header.tables_size], fmt)
    region = ByteCursor(body, header.tables_size, label="block region")
    blocks = decode_blocks_from_region(
        region, fmt.header_size + header.tables_size, fmt, entries
    )
    return ContainerData(header=header, entries=entries, blocks=blocks)


def decode_container(
    data: bytes, fmt: ContainerFormat, limits: ImportLimits
) -> ContainerData:
    """Decode a whole in-memory container, size bounds included."""
    if not data:
        raise FormatError(ImportResult.FILE_EMPTY, "Container is empty")
    if len(data) < fmt.min_file_size or len(data) > fmt.max_file_size(limits):
        raise FormatError(
            ImportResult.UNSUPPORTED_FILE_SIZE,
            f"{fmt.name} container of {len(data)} bytes is outside "
            f"{fmt.min_file_size}..{fmt.max_file_size(limits)}",
            {"size": len(data)},
        )
    view = memoryview(data)
    header = fmt.decode_header(
        ByteCursor(view[: fmt.header_size], label="header"), limits
    )
    end = fmt.header_size + header.tables_size + header.blocks_size
    body = view[fmt.header_size : end]
    return _decode_body(header, body, fmt, {"size": len(data)})
