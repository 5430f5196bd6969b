"""Binary packing functions for model and glyph containers.

All functions are side-effect free and validate the sizes they emit. The
array offset/size fields of a model block are recomputed from its arrays,
so callers only fill in names, transform and geometry.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Sequence

from .constants import (
    GLYPH_HEADER_SIZE,
    GLYPH_MAGIC,
    GLYPH_TABLE_ENTRY_SIZE,
    GLYPH_VERSION,
    INDEX_SIZE,
    MESH_NAME_SIZE,
    MODEL_HEADER_SIZE,
    MODEL_MAGIC,
    MODEL_TABLE_ENTRY_SIZE,
    MODEL_VERSION,
    NODE_NAME_SIZE,
    NODE_PATH_SIZE,
    PIXEL_DATA_OFFSET,
    QUAD_INDICES,
    QUAD_UVS,
    TABLE_NAME_SIZE,
    VERTEX_DATA_OFFSET,
    VERTEX_SIZE,
)
from .errors import FormatError, ImportResult
from .glyph import GlyphBlock, GlyphHeader
from .layout import pack_name_string
from .model import ModelBlock

__all__ = [
    "pack_model_header",
    "pack_model_table_entry",
    "pack_model_block",
    "pack_model_container",
    "pack_glyph_header",
    "pack_glyph_table_entry",
    "pack_glyph_block",
    "pack_glyph_container",
    "write_container",
]


def _check_size(label: str, data: bytes, expected: int) -> bytes:
    if len(data) != expected:
        raise FormatError(
            ImportResult.INVALID_BLOCK_SIZE,
            f"{label} size mismatch: {len(data)} != {expected}",
        )
    return data


def _require_entries(kind: str, blocks: Sequence) -> None:
    if not blocks:
        raise FormatError(
            ImportResult.INVALID_ENTRY_COUNT,
            f"A {kind} container needs at least one entry",
        )


def pack_model_header(
    *,
    scale_factor: int,
    model_count: int,
    tables_size: int,
    blocks_size: int,
) -> bytes:
    out = MODEL_MAGIC + struct.pack(
        "<BBIII",
        MODEL_VERSION,
        scale_factor,
        model_count,
        tables_size,
        blocks_size,
    )
    return _check_size("ModelHeader", out, MODEL_HEADER_SIZE)


def pack_model_table_entry(name: str, block_offset: int, block_size: int) -> bytes:
    out = pack_name_string(name, TABLE_NAME_SIZE) + struct.pack(
        "<II", block_offset, block_size
    )
    return _check_size("ModelTable", out, MODEL_TABLE_ENTRY_SIZE)


def pack_model_block(block: ModelBlock) -> bytes:
    vertex_data = b"".join(
        struct.pack("<12f", *v.to_floats()) for v in block.vertices
    )
    index_data = struct.pack(f"<{len(block.indices)}I", *block.indices)
    vertices_size = len(block.vertices) * VERTEX_SIZE
    indices_size = len(block.indices) * INDEX_SIZE
    # Block metadata: names(20+20+50) + flags(u8) + render type(u8) + position(3f)
    # + rotation(4f) + size(3f) + 4 x u32 array fields = 148 bytes.
    meta = (
        pack_name_string(block.node_name, NODE_NAME_SIZE)
        + pack_name_string(block.mesh_name, MESH_NAME_SIZE)
        + pack_name_string(block.node_path, NODE_PATH_SIZE)
        + struct.pack("<BB", int(block.data_flags), int(block.render_type))
        + struct.pack("<3f", *block.position)
        + struct.pack("<4f", *block.rotation)
        + struct.pack("<3f", *block.size)
        + struct.pack(
            "<IIII",
            VERTEX_DATA_OFFSET,
            vertices_size,
            VERTEX_DATA_OFFSET + vertices_size,
            indices_size,
        )
    )
    _check_size("ModelBlock metadata", meta, VERTEX_DATA_OFFSET)
    return meta + vertex_data + index_data


def pack_model_container(
    blocks: Sequence[ModelBlock], *, scale_factor: int = 0
) -> bytes:
    _require_entries("model", blocks)
    payloads = [pack_model_block(b) for b in blocks]
    tables_size = MODEL_TABLE_ENTRY_SIZE * len(payloads)
    offset = MODEL_HEADER_SIZE + tables_size
    table = bytearray()
    for block, payload in zip(blocks, payloads):
        table += pack_model_table_entry(block.node_name, offset, len(payload))
        offset += len(payload)
    body = b"".join(payloads)
    header = pack_model_header(
        scale_factor=scale_factor,
        model_count=len(payloads),
        tables_size=tables_size,
        blocks_size=len(body),
    )
    return header + bytes(table) + body


def pack_glyph_header(
    header: GlyphHeader, *, glyph_count: int, tables_size: int, blocks_size: int
) -> bytes:
    indices = header.indices or QUAD_INDICES
    uvs = header.uvs or QUAD_UVS
    out = (
        GLYPH_MAGIC
        + struct.pack(
            "<BBHI",
            GLYPH_VERSION,
            header.glyph_type,
            header.glyph_height,
            glyph_count,
        )
        + bytes(indices)
        + bytes(c for uv in uvs for c in uv)
        + struct.pack("<II", tables_size, blocks_size)
    )
    return _check_size("GlyphHeader", out, GLYPH_HEADER_SIZE)


def pack_glyph_table_entry(char_code: int, block_offset: int, block_size: int) -> bytes:
    out = struct.pack("<III", char_code, block_offset, block_size)
    return _check_size("GlyphTable", out, GLYPH_TABLE_ENTRY_SIZE)


def pack_glyph_block(block: GlyphBlock) -> bytes:
    meta = struct.pack(
        "<IHHhhH",
        block.char_code,
        block.width,
        block.height,
        block.bearing_x,
        block.bearing_y,
        block.advance,
    )
    meta += struct.pack("<8h", *(c for xy in block.vertices for c in xy))
    meta += struct.pack("<I", len(block.raw_pixels))
    _check_size("GlyphBlock metadata", meta, PIXEL_DATA_OFFSET)
    return meta + bytes(block.raw_pixels)


def pack_glyph_container(header: GlyphHeader, blocks: Sequence[GlyphBlock]) -> bytes:
    _require_entries("glyph", blocks)
    payloads = [pack_glyph_block(b) for b in blocks]
    tables_size = GLYPH_TABLE_ENTRY_SIZE * len(payloads)
    offset = GLYPH_HEADER_SIZE + tables_size
    table = bytearray()
    for block, payload in zip(blocks, payloads):
        table += pack_glyph_table_entry(block.char_code, offset, len(payload))
        offset += len(payload)
    body = b"".join(payloads)
    head = pack_glyph_header(
        header,
        glyph_count=len(payloads),
        tables_size=tables_size,
        blocks_size=len(body),
    )
    return head + bytes(table) + body


def write_container(path: Path, data: bytes) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return len(data)
