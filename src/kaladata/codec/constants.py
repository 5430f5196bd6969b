"""Binary layout constants for the model (.kmd) and glyph (.kfd) containers."""

from __future__ import annotations

import struct


def _as_f32(value: float) -> float:
    # Range limits are compared at the precision they are stored with.
    return struct.unpack("<f", struct.pack("<f", value))[0]


# Model container ------------------------------------------------------------

MODEL_MAGIC = b"KMD\x00"
MODEL_VERSION = 1
MODEL_EXTENSION = ".kmd"

MODEL_HEADER_SIZE = 18
MODEL_TABLE_ENTRY_SIZE = 28
# Vertex data always starts here, relative to the block start.
VERTEX_DATA_OFFSET = 148

TABLE_NAME_SIZE = 20
NODE_NAME_SIZE = 20
MESH_NAME_SIZE = 20
NODE_PATH_SIZE = 50

# position(3f) + normal(3f) + tex_coord(2f) + tangent(4f)
VERTEX_FLOATS = 12
VERTEX_SIZE = VERTEX_FLOATS * 4
INDEX_SIZE = 4

MAX_MODEL_COUNT = 1024
MAX_MODEL_TABLE_SIZE = 28672
MAX_MODEL_BLOCK_SIZE = 1073741824

MAX_SCALE_FACTOR = 8
SCALE_MULTIPLIERS = (
    1.0,
    10.0,
    100.0,
    1000.0,
    10000.0,
    0.1,
    0.01,
    0.001,
    0.0001,
)

DATA_FLAGS_MASK = 0b00011111
MAX_RENDER_TYPE = 2

MIN_POSITION = _as_f32(-10000.0)
MAX_POSITION = _as_f32(10000.0)
MIN_ROTATION = _as_f32(-1.0)
MAX_ROTATION = _as_f32(1.0)
MIN_SIZE = _as_f32(1e-6)
MAX_SIZE = _as_f32(10000.0)

# Glyph container ------------------------------------------------------------

GLYPH_MAGIC = b"KFD\x00"
GLYPH_VERSION = 1
GLYPH_EXTENSION = ".kfd"

GLYPH_HEADER_SIZE = 34
GLYPH_TABLE_ENTRY_SIZE = 12
# Raw pixel data always starts here, relative to the block start.
PIXEL_DATA_OFFSET = 34

MAX_GLYPH_COUNT = 1024
MAX_GLYPH_TABLE_SIZE = 12288
MAX_GLYPH_BLOCK_SIZE = 1048576

MIN_GLYPH_HEIGHT = 10
MAX_GLYPH_HEIGHT = 100

GLYPH_TYPE_BITMAP = 1
GLYPH_TYPE_GLYPH = 2
GLYPH_TYPES = (GLYPH_TYPE_BITMAP, GLYPH_TYPE_GLYPH)

QUAD_INDICES = (0, 1, 2, 2, 3, 0)
# top-left, top-right, bottom-right, bottom-left
QUAD_UVS = ((0, 0), (1, 0), (1, 1), (0, 1))

__all__ = [name for name in dir() if name.isupper()]
