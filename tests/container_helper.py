"""Builders for small .kmd/.kfd files used across the tests.

Usage:
    from container_helper import triangle, write_models, tamper
    path = write_models(tmp_path, [triangle("tri")])
    tamper(path, MODEL_BLOCK_START + BLOCK_RENDER_TYPE, "<B", 7)

All float values are exactly representable in single precision so decoded
records compare equal to the ones written.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Sequence

from kaladata.codec.constants import (
    GLYPH_HEADER_SIZE,
    GLYPH_TABLE_ENTRY_SIZE,
    MODEL_HEADER_SIZE,
    MODEL_TABLE_ENTRY_SIZE,
)
from kaladata.codec.glyph import GlyphBlock, GlyphHeader
from kaladata.codec.model import DataTypeFlags, ModelBlock, RenderType, Vertex
from kaladata.codec.packers import (
    pack_glyph_container,
    pack_model_container,
    write_container,
)

# Model header field offsets
HDR_VERSION = 4
HDR_SCALE = 5
HDR_COUNT = 6
HDR_TABLES_SIZE = 10
HDR_BLOCKS_SIZE = 14

# Offsets inside a model block
BLOCK_DATA_FLAGS = 90
BLOCK_RENDER_TYPE = 91
BLOCK_POSITION = 92
BLOCK_ROTATION = 104
BLOCK_SIZE = 120
BLOCK_VERTICES_SIZE = 136
BLOCK_INDICES_SIZE = 144


def model_block_start(count: int) -> int:
    """File offset of the first block for a file with ``count`` models."""
    return MODEL_HEADER_SIZE + MODEL_TABLE_ENTRY_SIZE * count


def glyph_block_start(count: int) -> int:
    return GLYPH_HEADER_SIZE + GLYPH_TABLE_ENTRY_SIZE * count


def triangle(name: str = "tri", **overrides) -> ModelBlock:
    block = ModelBlock(
        node_name=name,
        mesh_name=f"{name}_mesh",
        node_path=f"root/{name}",
        data_flags=DataTypeFlags.MATERIAL | DataTypeFlags.TEXTURE,
        render_type=RenderType.OPAQUE,
        position=(1.5, -2.0, 0.25),
        rotation=(1.0, 0.0, 0.0, 0.0),
        size=(1.0, 2.0, 0.5),
        vertices=[
            Vertex((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0), (1.0, 0.0, 0.0, 1.0)),
            Vertex((1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (1.0, 0.0), (1.0, 0.0, 0.0, 1.0)),
            Vertex((0.0, 1.0, 0.0), (0.0, 0.0, 1.0), (0.0, 1.0), (1.0, 0.0, 0.0, 1.0)),
        ],
        indices=[0, 1, 2],
    )
    for key, value in overrides.items():
        setattr(block, key, value)
    return block


def write_models(
    tmp: Path,
    blocks: Sequence[ModelBlock],
    name: str = "scene.kmd",
    scale_factor: int = 0,
) -> Path:
    path = tmp / name
    write_container(path, pack_model_container(blocks, scale_factor=scale_factor))
    return path


def glyph(char: str, width: int = 4, height: int = 2) -> GlyphBlock:
    return GlyphBlock(
        char_code=ord(char),
        width=width,
        height=height,
        bearing_x=1,
        bearing_y=-3,
        advance=width + 1,
        vertices=((0, 0), (width, 0), (width, height), (0, height)),
        raw_pixels=bytes(range(width * height)),
    )


def write_glyphs(
    tmp: Path,
    blocks: Sequence[GlyphBlock],
    name: str = "font.kfd",
    glyph_height: int = 16,
    glyph_type: int = 1,
) -> Path:
    path = tmp / name
    header = GlyphHeader(glyph_type=glyph_type, glyph_height=glyph_height)
    write_container(path, pack_glyph_container(header, blocks))
    return path


def tamper(path: Path, offset: int, fmt: str, *values) -> None:
    data = bytearray(path.read_bytes())
    struct.pack_into(fmt, data, offset, *values)
    path.write_bytes(data)


def truncate(path: Path, count: int = 1) -> None:
    data = path.read_bytes()
    path.write_bytes(data[:-count])
