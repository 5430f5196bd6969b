"""Model data (.kmd) records and their per-field decoders.

Layout, little endian::

    header  0  magic 'KMD\\0' | 4 version | 5 scale code | 6 model count
            10 table section size | 14 block section size
    table  +0  node name[20] | +20 block offset | +24 block size
    block  +0  node name[20] | +20 mesh name[20] | +40 node path[50]
          +90  data flags | +91 render type | +92 position 3f
         +104  rotation 4f (w, x, y, z) | +120 size 3f
         +132  vertices offset | +136 vertices size
         +140  indices offset | +144 indices size
         +148  vertices (48 bytes each), then u32 indices
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import List, Sequence, Tuple

from ..config import MODEL_LIMITS, ImportLimits
from .constants import (
    DATA_FLAGS_MASK,
    INDEX_SIZE,
    MAX_POSITION,
    MAX_RENDER_TYPE,
    MAX_ROTATION,
    MAX_SCALE_FACTOR,
    MAX_SIZE,
    MESH_NAME_SIZE,
    MIN_POSITION,
    MIN_ROTATION,
    MIN_SIZE,
    MODEL_EXTENSION,
    MODEL_HEADER_SIZE,
    MODEL_MAGIC,
    MODEL_TABLE_ENTRY_SIZE,
    MODEL_VERSION,
    NODE_NAME_SIZE,
    NODE_PATH_SIZE,
    SCALE_MULTIPLIERS,
    TABLE_NAME_SIZE,
    VERTEX_DATA_OFFSET,
    VERTEX_FLOATS,
    VERTEX_SIZE,
)
from .cursor import ByteCursor
from .errors import FormatError, ImportResult
from .layout import ContainerFormat

__all__ = [
    "DataTypeFlags",
    "RenderType",
    "ModelHeader",
    "ModelTable",
    "Vertex",
    "ModelBlock",
    "decode_model_header",
    "decode_model_table",
    "decode_model_block",
    "MODEL_FORMAT",
]

Vec3 = Tuple[float, float, float]
Vec4 = Tuple[float, float, float, float]

_VERTEX = struct.Struct(f"<{VERTEX_FLOATS}f")


class DataTypeFlags(IntFlag):
    NONE = 0
    MATERIAL = 1 << 0
    TEXTURE = 1 << 1
    CAMERA = 1 << 2
    LIGHT = 1 << 3
    ANIMATION = 1 << 4


class RenderType(IntEnum):
    OPAQUE = 0
    TRANSPARENT = 1
    MASKED = 2


@dataclass(slots=True)
class ModelHeader:
    magic: bytes = MODEL_MAGIC
    version: int = MODEL_VERSION
    scale_factor: int = 0
    model_count: int = 0
    tables_size: int = 0
    blocks_size: int = 0

    @property
    def scale_multiplier(self) -> float:
        return SCALE_MULTIPLIERS[self.scale_factor]


@dataclass(slots=True)
class ModelTable:
    node_name: str = ""
    block_offset: int = 0
    block_size: int = 0


@dataclass(frozen=True, slots=True)
class Vertex:
    position: Vec3 = (0.0, 0.0, 0.0)
    normal: Vec3 = (0.0, 0.0, 0.0)
    tex_coord: Tuple[float, float] = (0.0, 0.0)
    tangent: Vec4 = (0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_floats(cls, values: Sequence[float]) -> "Vertex":
        return cls(
            position=tuple(values[0:3]),  # type: ignore[arg-type]
            normal=tuple(values[3:6]),  # type: ignore[arg-type]
            tex_coord=tuple(values[6:8]),  # type: ignore[arg-type]
            tangent=tuple(values[8:12]),  # type: ignore[arg-type]
        )

    def to_floats(self) -> Tuple[float, ...]:
        return (*self.position, *self.normal, *self.tex_coord, *self.tangent)


@dataclass(slots=True)
class ModelBlock:
    node_name: str = ""
    mesh_name: str = ""
    node_path: str = ""
    data_flags: DataTypeFlags = DataTypeFlags.NONE
    render_type: RenderType = RenderType.OPAQUE
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec4 = (1.0, 0.0, 0.0, 0.0)
    size: Vec3 = (1.0, 1.0, 1.0)
    vertices_offset: int = 0
    vertices_size: int = 0
    indices_offset: int = 0
    indices_size: int = 0
    vertices: List[Vertex] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)


def _in_range(values: Sequence[float], low: float, high: float) -> bool:
    # NaN fails both comparisons and is rejected.
    return all(low <= v <= high for v in values)


def decode_model_header(cursor: ByteCursor, limits: ImportLimits) -> ModelHeader:
    magic = cursor.read_bytes(4, "magic")
    if magic != MODEL_MAGIC:
        raise FormatError(
            ImportResult.INVALID_MAGIC,
            f"Model magic mismatch: {magic!r}",
            {"magic": magic.hex()},
        )
    version = cursor.read_u8("version")
    if version != MODEL_VERSION:
        raise FormatError(
            ImportResult.INVALID_VERSION,
            f"Unsupported model version {version}",
            {"version": version},
        )
    scale_factor = cursor.read_u8("scale_factor")
    if scale_factor > MAX_SCALE_FACTOR:
        scale_factor = 0
    model_count = cursor.read_u32("model_count")
    if model_count > limits.max_entry_count:
        raise FormatError(
            ImportResult.INVALID_ENTRY_COUNT,
            f"Model count {model_count} exceeds {limits.max_entry_count}",
            {"model_count": model_count},
        )
    tables_size = cursor.read_u32("tables_size")
    if (
        tables_size < MODEL_TABLE_ENTRY_SIZE
        or tables_size > limits.max_table_size
        or tables_size % MODEL_TABLE_ENTRY_SIZE
    ):
        raise FormatError(
            ImportResult.INVALID_TABLE_SIZE,
            f"Model table section size {tables_size} is invalid",
            {"tables_size": tables_size},
        )
    blocks_size = cursor.read_u32("blocks_size")
    if blocks_size < VERTEX_DATA_OFFSET or blocks_size > limits.max_block_size:
        raise FormatError(
            ImportResult.INVALID_BLOCK_SIZE,
            f"Model block section size {blocks_size} is invalid",
            {"blocks_size": blocks_size},
        )
    return ModelHeader(
        magic=magic,
        version=version,
        scale_factor=scale_factor,
        model_count=model_count,
        tables_size=tables_size,
        blocks_size=blocks_size,
    )


def decode_model_table(cursor: ByteCursor) -> ModelTable:
    return ModelTable(
        node_name=cursor.read_name(TABLE_NAME_SIZE, "table.node_name"),
        block_offset=cursor.read_u32("table.block_offset"),
        block_size=cursor.read_u32("table.block_size"),
    )


def decode_model_block(cursor: ByteCursor, entry: ModelTable) -> ModelBlock:
    """Decode one model block from a cursor limited to ``entry.block_size``."""
    ctx = {"node_name": entry.node_name, "block_offset": entry.block_offset}
    b = ModelBlock(
        node_name=cursor.read_name(NODE_NAME_SIZE, "node_name"),
        mesh_name=cursor.read_name(MESH_NAME_SIZE, "mesh_name"),
        node_path=cursor.read_name(NODE_PATH_SIZE, "node_path"),
    )

    flags = cursor.read_u8("data_flags")
    if flags & ~DATA_FLAGS_MASK:
        raise FormatError(
            ImportResult.INVALID_DATA_FLAGS,
            f"Data flags {flags:#04x} use reserved bits",
            {**ctx, "data_flags": flags},
        )
    b.data_flags = DataTypeFlags(flags)

    render_type = cursor.read_u8("render_type")
    if render_type > MAX_RENDER_TYPE:
        raise FormatError(
            ImportResult.INVALID_RENDER_TYPE,
            f"Render type {render_type} out of range",
            {**ctx, "render_type": render_type},
        )
    b.render_type = RenderType(render_type)

    position = cursor.read_f32s(3, "position")
    if not _in_range(position, MIN_POSITION, MAX_POSITION):
        raise FormatError(
            ImportResult.INVALID_POSITION,
            f"Position {position} out of range",
            {**ctx, "position": list(position)},
        )
    b.position = position  # type: ignore[assignment]

    rotation = cursor.read_f32s(4, "rotation")
    if not _in_range(rotation, MIN_ROTATION, MAX_ROTATION):
        raise FormatError(
            ImportResult.INVALID_ROTATION,
            f"Rotation {rotation} out of range",
            {**ctx, "rotation": list(rotation)},
        )
    b.rotation = rotation  # type: ignore[assignment]

    size = cursor.read_f32s(3, "size")
    if not _in_range(size, MIN_SIZE, MAX_SIZE):
        raise FormatError(
            ImportResult.INVALID_SIZE,
            f"Size {size} out of range",
            {**ctx, "size": list(size)},
        )
    b.size = size  # type: ignore[assignment]

    (
        b.vertices_offset,
        b.vertices_size,
        b.indices_offset,
        b.indices_size,
    ) = cursor.read_u32s(4, "array_fields")

    # The cursor now sits at VERTEX_DATA_OFFSET and stops at the declared
    # block size, so array overruns surface as UNEXPECTED_EOF.
    vertex_data = cursor.read_bytes(b.vertices_size, "vertices")
    if b.vertices_size % VERTEX_SIZE:
        raise FormatError(
            ImportResult.INVALID_BLOCK_SIZE,
            f"Vertex array size {b.vertices_size} is not a multiple of {VERTEX_SIZE}",
            {**ctx, "vertices_size": b.vertices_size},
        )
    b.vertices = [Vertex.from_floats(v) for v in _VERTEX.iter_unpack(vertex_data)]

    if b.indices_size % INDEX_SIZE:
        cursor.skip(b.indices_size, "indices")
        raise FormatError(
            ImportResult.INVALID_BLOCK_SIZE,
            f"Index array size {b.indices_size} is not a multiple of {INDEX_SIZE}",
            {**ctx, "indices_size": b.indices_size},
        )
    b.indices = cursor.read_u32s(b.indices_size // INDEX_SIZE, "indices")
    return b


MODEL_FORMAT = ContainerFormat(
    name="model",
    extension=MODEL_EXTENSION,
    header_size=MODEL_HEADER_SIZE,
    entry_size=MODEL_TABLE_ENTRY_SIZE,
    min_block_size=VERTEX_DATA_OFFSET,
    default_limits=MODEL_LIMITS,
    decode_header=decode_model_header,
    decode_entry=decode_model_table,
    decode_block=decode_model_block,
)
