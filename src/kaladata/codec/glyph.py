"""Glyph data (.kfd) records, the font sibling of the model container."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..config import GLYPH_LIMITS, ImportLimits
from .constants import (
    GLYPH_EXTENSION,
    GLYPH_HEADER_SIZE,
    GLYPH_MAGIC,
    GLYPH_TABLE_ENTRY_SIZE,
    GLYPH_TYPES,
    GLYPH_VERSION,
    MAX_GLYPH_HEIGHT,
    MIN_GLYPH_HEIGHT,
    PIXEL_DATA_OFFSET,
    QUAD_INDICES,
    QUAD_UVS,
)
from .cursor import ByteCursor
from .errors import FormatError, ImportResult
from .layout import ContainerFormat

__all__ = [
    "GlyphHeader",
    "GlyphTable",
    "GlyphBlock",
    "decode_glyph_header",
    "decode_glyph_table",
    "decode_glyph_block",
    "GLYPH_FORMAT",
]

Point = Tuple[int, int]
Quad = Tuple[Point, Point, Point, Point]


def _pairs(values: Tuple[int, ...]) -> Quad:
    return tuple(  # type: ignore[return-value]
        (values[i], values[i + 1]) for i in range(0, len(values), 2)
    )


@dataclass(slots=True)
class GlyphHeader:
    magic: bytes = GLYPH_MAGIC
    version: int = GLYPH_VERSION
    glyph_type: int = 1
    glyph_height: int = 0
    glyph_count: int = 0
    indices: Tuple[int, ...] = QUAD_INDICES
    uvs: Quad = QUAD_UVS
    tables_size: int = 0
    blocks_size: int = 0


@dataclass(slots=True)
class GlyphTable:
    char_code: int = 0
    block_offset: int = 0
    block_size: int = 0

    @property
    def char(self) -> str:
        return chr(self.char_code)


@dataclass(slots=True)
class GlyphBlock:
    char_code: int = 0
    width: int = 0
    height: int = 0
    bearing_x: int = 0
    bearing_y: int = 0
    advance: int = 0
    # top-left, top-right, bottom-right, bottom-left; may be negative
    vertices: Quad = ((0, 0), (0, 0), (0, 0), (0, 0))
    raw_pixel_size: int = 0
    raw_pixels: bytes = b""


def decode_glyph_header(cursor: ByteCursor, limits: ImportLimits) -> GlyphHeader:
    magic = cursor.read_bytes(4, "magic")
    if magic != GLYPH_MAGIC:
        raise FormatError(
            ImportResult.INVALID_MAGIC,
            f"Glyph magic mismatch: {magic!r}",
            {"magic": magic.hex()},
        )
    version = cursor.read_u8("version")
    if version != GLYPH_VERSION:
        raise FormatError(
            ImportResult.INVALID_VERSION,
            f"Unsupported glyph version {version}",
            {"version": version},
        )
    glyph_type = cursor.read_u8("glyph_type")
    if glyph_type not in GLYPH_TYPES:
        raise FormatError(
            ImportResult.INVALID_TYPE,
            f"Glyph type {glyph_type} is neither bitmap nor glyph",
            {"glyph_type": glyph_type},
        )
    glyph_height = cursor.read_u16("glyph_height")
    if not MIN_GLYPH_HEIGHT <= glyph_height <= MAX_GLYPH_HEIGHT:
        raise FormatError(
            ImportResult.INVALID_GLYPH_HEIGHT,
            f"Glyph height {glyph_height} out of range",
            {"glyph_height": glyph_height},
        )
    glyph_count = cursor.read_u32("glyph_count")
    if glyph_count < 1 or glyph_count > limits.max_entry_count:
        raise FormatError(
            ImportResult.INVALID_ENTRY_COUNT,
            f"Glyph count {glyph_count} out of range",
            {"glyph_count": glyph_count},
        )
    indices = cursor.read_u8s(6, "indices")
    uvs = _pairs(cursor.read_u8s(8, "uvs"))
    tables_size = cursor.read_u32("tables_size")
    if (
        tables_size < GLYPH_TABLE_ENTRY_SIZE
        or tables_size > limits.max_table_size
        or tables_size % GLYPH_TABLE_ENTRY_SIZE
    ):
        raise FormatError(
            ImportResult.INVALID_TABLE_SIZE,
            f"Glyph table section size {tables_size} is invalid",
            {"tables_size": tables_size},
        )
    blocks_size = cursor.read_u32("blocks_size")
    if blocks_size < PIXEL_DATA_OFFSET or blocks_size > limits.max_block_size:
        raise FormatError(
            ImportResult.INVALID_BLOCK_SIZE,
            f"Glyph block section size {blocks_size} is invalid",
            {"blocks_size": blocks_size},
        )
    return GlyphHeader(
        magic=magic,
        version=version,
        glyph_type=glyph_type,
        glyph_height=glyph_height,
        glyph_count=glyph_count,
        indices=indices,
        uvs=uvs,
        tables_size=tables_size,
        blocks_size=blocks_size,
    )


def decode_glyph_table(cursor: ByteCursor) -> GlyphTable:
    return GlyphTable(
        char_code=cursor.read_u32("table.char_code"),
        block_offset=cursor.read_u32("table.block_offset"),
        block_size=cursor.read_u32("table.block_size"),
    )


def decode_glyph_block(cursor: ByteCursor, entry: GlyphTable) -> GlyphBlock:
    b = GlyphBlock(
        char_code=cursor.read_u32("char_code"),
        width=cursor.read_u16("width"),
        height=cursor.read_u16("height"),
        bearing_x=cursor.read_i16("bearing_x"),
        bearing_y=cursor.read_i16("bearing_y"),
        advance=cursor.read_u16("advance"),
        vertices=_pairs(cursor.read_i16s(8, "vertices")),
    )
    b.raw_pixel_size = cursor.read_u32("raw_pixel_size")
    b.raw_pixels = cursor.read_bytes(b.raw_pixel_size, "raw_pixels")
    return b


GLYPH_FORMAT = ContainerFormat(
    name="glyph",
    extension=GLYPH_EXTENSION,
    header_size=GLYPH_HEADER_SIZE,
    entry_size=GLYPH_TABLE_ENTRY_SIZE,
    min_block_size=PIXEL_DATA_OFFSET,
    default_limits=GLYPH_LIMITS,
    decode_header=decode_glyph_header,
    decode_entry=decode_glyph_table,
    decode_block=decode_glyph_block,
)
