"""Public entry points for reading model (.kmd) and glyph (.kfd) containers.

Every function returns an :class:`ImportOutcome`; malformed input is never
raised to the caller. ``fmt`` defaults to the format registered for the
file's suffix.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from .codec import container
from .codec.checks import pre_read_check as _pre_read_check
from .codec.checks import try_open_check as _try_open_check
from .codec.container import ContainerData
from .codec.errors import FormatError, ImportResult
from .codec.glyph import GLYPH_FORMAT, GlyphBlock, GlyphHeader, GlyphTable
from .codec.layout import ContainerFormat
from .codec.model import MODEL_FORMAT, ModelBlock, ModelHeader, ModelTable
from .config import ImportLimits
from .logging import get_logger

__all__ = [
    "ImportOutcome",
    "ImportResult",
    "FormatError",
    "ContainerData",
    "FORMATS",
    "format_for_path",
    "pre_read_check",
    "try_open_check",
    "get_header_data",
    "get_table_data",
    "stream_blocks",
    "import_all",
    "import_kmd",
    "stream_models",
    "import_kfd",
    "stream_glyphs",
    "inspect_file",
]

T = TypeVar("T")

FORMATS: Dict[str, ContainerFormat] = {
    MODEL_FORMAT.extension: MODEL_FORMAT,
    GLYPH_FORMAT.extension: GLYPH_FORMAT,
}

LimitsArg = Optional[ImportLimits | Dict[str, ImportLimits]]


@dataclass(slots=True)
class ImportOutcome(Generic[T]):
    result: ImportResult
    path: Path
    value: Optional[T] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.result.ok

    def unwrap(self) -> T:
        if not self.ok:
            raise FormatError(
                self.result, self.detail or str(self), {"path": str(self.path)}
            )
        return self.value  # type: ignore[return-value]

    def __str__(self) -> str:
        text = f"{self.result.value} ({self.path})"
        return f"{text}: {self.detail}" if self.detail else text


def format_for_path(path: str | Path) -> Optional[ContainerFormat]:
    return FORMATS.get(Path(path).suffix)


def _resolve_limits(fmt: ContainerFormat, limits: LimitsArg) -> ImportLimits:
    if limits is None:
        return fmt.default_limits
    if isinstance(limits, ImportLimits):
        return limits
    return limits.get(fmt.name, fmt.default_limits)


def _run(
    operation: str,
    path: str | Path,
    fmt: Optional[ContainerFormat],
    fn: Callable[[Path, ContainerFormat], T],
) -> ImportOutcome[T]:
    logger = get_logger()
    p = Path(path)
    resolved = fmt or format_for_path(p)
    if resolved is None:
        outcome: ImportOutcome[T] = ImportOutcome(
            ImportResult.INVALID_EXTENSION,
            p,
            detail=f"No container format registered for '{p.suffix}'",
        )
        logger.error("Failed to %s from '%s': %s", operation, p, outcome.result)
        return outcome
    try:
        value = fn(p, resolved)
    except FormatError as exc:
        logger.error(
            "Failed to %s from '%s'! Reason: %s", operation, p, exc.result
        )
        logger.debug("detail: %s", exc.to_dict())
        return ImportOutcome(exc.result, p, detail=exc.message)
    logger.debug("%s from '%s' succeeded", operation, p)
    return ImportOutcome(ImportResult.SUCCESS, p, value)


def pre_read_check(
    path: str | Path, fmt: Optional[ContainerFormat] = None
) -> ImportResult:
    p = Path(path)
    resolved = fmt or format_for_path(p)
    if resolved is None:
        return (
            ImportResult.FILE_NOT_FOUND
            if not p.exists()
            else ImportResult.INVALID_EXTENSION
        )
    return _pre_read_check(p, resolved)


def try_open_check(
    path: str | Path,
    fmt: Optional[ContainerFormat] = None,
    limits: LimitsArg = None,
) -> ImportResult:
    p = Path(path)
    resolved = fmt or format_for_path(p)
    if resolved is None:
        return ImportResult.INVALID_EXTENSION
    return _try_open_check(p, resolved, _resolve_limits(resolved, limits))


def get_header_data(
    path: str | Path,
    *,
    fmt: Optional[ContainerFormat] = None,
    skip_checks: bool = False,
    limits: LimitsArg = None,
) -> ImportOutcome[Any]:
    """Decode and validate only the top header."""
    return _run(
        "read header",
        path,
        fmt,
        lambda p, f: container.read_header(
            p, f, _resolve_limits(f, limits), skip_checks=skip_checks
        ),
    )


def get_table_data(
    path: str | Path,
    *,
    fmt: Optional[ContainerFormat] = None,
    skip_checks: bool = False,
    limits: LimitsArg = None,
) -> ImportOutcome[List[Any]]:
    """Decode the entry table; pass entries on to :func:`stream_blocks`."""

    def _read(p: Path, f: ContainerFormat) -> List[Any]:
        _, entries = container.read_table(
            p, f, _resolve_limits(f, limits), skip_checks=skip_checks
        )
        return entries

    return _run("read table", path, fmt, _read)


def stream_blocks(
    path: str | Path,
    entries: Sequence[Any],
    *,
    fmt: Optional[ContainerFormat] = None,
    skip_checks: bool = False,
    limits: LimitsArg = None,
) -> ImportOutcome[List[Any]]:
    """Decode the blocks of ``entries`` only, seeking to each one."""
    return _run(
        "stream blocks",
        path,
        fmt,
        lambda p, f: container.stream_blocks(
            p, f, _resolve_limits(f, limits), entries, skip_checks=skip_checks
        ),
    )


def import_all(
    path: str | Path,
    *,
    fmt: Optional[ContainerFormat] = None,
    skip_checks: bool = False,
    limits: LimitsArg = None,
) -> ImportOutcome[ContainerData]:
    """Decode header, table and all blocks from one read of the file body."""
    return _run(
        "import",
        path,
        fmt,
        lambda p, f: container.import_all(
            p, f, _resolve_limits(f, limits), skip_checks=skip_checks
        ),
    )


def import_kmd(
    path: str | Path, *, limits: LimitsArg = None
) -> ImportOutcome[ContainerData]:
    return import_all(path, fmt=MODEL_FORMAT, limits=limits)


def stream_models(
    path: str | Path,
    tables: Sequence[ModelTable],
    *,
    skip_checks: bool = False,
    limits: LimitsArg = None,
) -> ImportOutcome[List[ModelBlock]]:
    return stream_blocks(
        path, tables, fmt=MODEL_FORMAT, skip_checks=skip_checks, limits=limits
    )


def import_kfd(
    path: str | Path, *, limits: LimitsArg = None
) -> ImportOutcome[ContainerData]:
    return import_all(path, fmt=GLYPH_FORMAT, limits=limits)


def stream_glyphs(
    path: str | Path,
    tables: Sequence[GlyphTable],
    *,
    skip_checks: bool = False,
    limits: LimitsArg = None,
) -> ImportOutcome[List[GlyphBlock]]:
    return stream_blocks(
        path, tables, fmt=GLYPH_FORMAT, skip_checks=skip_checks, limits=limits
    )


def _header_dict(header: Any) -> Dict[str, Any]:
    if isinstance(header, ModelHeader):
        return {
            "magic": header.magic.hex(),
            "version": header.version,
            "scale_factor": header.scale_factor,
            "scale_multiplier": header.scale_multiplier,
            "entry_count": header.model_count,
            "tables_size": header.tables_size,
            "blocks_size": header.blocks_size,
        }
    if isinstance(header, GlyphHeader):
        return {
            "magic": header.magic.hex(),
            "version": header.version,
            "glyph_type": header.glyph_type,
            "glyph_height": header.glyph_height,
            "entry_count": header.glyph_count,
            "indices": list(header.indices),
            "uvs": [list(uv) for uv in header.uvs],
            "tables_size": header.tables_size,
            "blocks_size": header.blocks_size,
        }
    raise TypeError(f"Unsupported header type {type(header).__name__}")


def _block_dict(entry: Any, block: Any) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "block_offset": entry.block_offset,
        "block_size": entry.block_size,
    }
    if isinstance(block, ModelBlock):
        d.update(
            {
                "name": block.node_name,
                "mesh_name": block.mesh_name,
                "node_path": block.node_path,
                "data_flags": int(block.data_flags),
                "render_type": block.render_type.name.lower(),
                "position": list(block.position),
                "rotation": list(block.rotation),
                "size": list(block.size),
                "vertices": len(block.vertices),
                "indices": len(block.indices),
            }
        )
    elif isinstance(block, GlyphBlock):
        d.update(
            {
                "char_code": block.char_code,
                "width": block.width,
                "height": block.height,
                "bearing": [block.bearing_x, block.bearing_y],
                "advance": block.advance,
                "pixels": block.raw_pixel_size,
            }
        )
    return d


def inspect_file(
    path: str | Path, *, limits: LimitsArg = None
) -> Dict[str, Any]:
    """Summarise a container as a JSON-serialisable dict.

    Decode failures are reported under ``result``/``detail`` instead of
    raising, so the summary is usable for corrupt files too.
    """
    outcome = import_all(path, limits=limits)
    info: Dict[str, Any] = {
        "path": str(outcome.path),
        "result": outcome.result.value,
    }
    fmt = format_for_path(path)
    if fmt is not None:
        info["format"] = fmt.name
    if not outcome.ok:
        info["detail"] = outcome.detail
        return info
    data = outcome.unwrap()
    info["header"] = _header_dict(data.header)
    info["entries"] = [
        _block_dict(e, b) for e, b in zip(data.entries, data.blocks)
    ]
    return info
