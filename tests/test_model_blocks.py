"""Per-block validation, checked through both the bulk and the streamed path."""

from __future__ import annotations

from pathlib import Path

import pytest

from kaladata import api
from kaladata.codec.errors import ImportResult
from kaladata.codec.model import DataTypeFlags, RenderType

from container_helper import (
    BLOCK_DATA_FLAGS,
    BLOCK_INDICES_SIZE,
    BLOCK_POSITION,
    BLOCK_RENDER_TYPE,
    BLOCK_ROTATION,
    BLOCK_SIZE,
    BLOCK_VERTICES_SIZE,
    model_block_start,
    tamper,
    triangle,
    write_models,
)

START = model_block_start(1)
# Table entry fields of the first (only) model
ENTRY_OFFSET = 18 + 20
ENTRY_SIZE = 18 + 24


def _bulk(path: Path):
    return api.import_all(path)


def _streamed(path: Path):
    table = api.get_table_data(path)
    if not table.ok:
        return table
    return api.stream_blocks(path, table.value)


MODES = pytest.mark.parametrize("read", [_bulk, _streamed], ids=["bulk", "streamed"])


def _blocks(outcome):
    value = outcome.value
    return value.blocks if hasattr(value, "blocks") else value


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    return write_models(tmp_path, [triangle()])


@MODES
def test_decoded_fields(model_file: Path, read):  # noqa: N802
    outcome = read(model_file)
    assert outcome.ok
    (block,) = _blocks(outcome)
    expected = triangle()
    assert block.node_name == "tri"
    assert block.mesh_name == "tri_mesh"
    assert block.node_path == "root/tri"
    assert block.data_flags == DataTypeFlags.MATERIAL | DataTypeFlags.TEXTURE
    assert block.render_type is RenderType.OPAQUE
    assert block.position == expected.position
    assert block.rotation == expected.rotation
    assert block.size == expected.size
    assert block.vertices == expected.vertices
    assert block.indices == [0, 1, 2]
    assert (block.vertices_offset, block.vertices_size) == (148, 144)
    assert (block.indices_offset, block.indices_size) == (292, 12)


@MODES
@pytest.mark.parametrize("flags", [0x20, 0x40, 0x80, 0xFF])
def test_reserved_flag_bits(model_file: Path, read, flags: int):  # noqa: N802
    tamper(model_file, START + BLOCK_DATA_FLAGS, "<B", flags)
    assert read(model_file).result is ImportResult.INVALID_DATA_FLAGS


@MODES
def test_all_defined_flags(model_file: Path, read):  # noqa: N802
    tamper(model_file, START + BLOCK_DATA_FLAGS, "<B", 0x1F)
    (block,) = _blocks(read(model_file))
    assert DataTypeFlags.ANIMATION in block.data_flags
    assert DataTypeFlags.CAMERA in block.data_flags


@MODES
def test_render_type_range(model_file: Path, read):  # noqa: N802
    tamper(model_file, START + BLOCK_RENDER_TYPE, "<B", 2)
    assert _blocks(read(model_file))[0].render_type is RenderType.MASKED
    tamper(model_file, START + BLOCK_RENDER_TYPE, "<B", 3)
    assert read(model_file).result is ImportResult.INVALID_RENDER_TYPE


@MODES
def test_first_failing_field_wins(model_file: Path, read):  # noqa: N802
    tamper(model_file, START + BLOCK_DATA_FLAGS, "<BB", 0x80, 9)
    assert read(model_file).result is ImportResult.INVALID_DATA_FLAGS


@MODES
@pytest.mark.parametrize(
    "position, ok",
    [
        ((10000.0, -10000.0, 0.0), True),
        ((10001.0, 0.0, 0.0), False),
        ((0.0, 0.0, -10001.0), False),
        ((float("nan"), 0.0, 0.0), False),
        ((0.0, float("inf"), 0.0), False),
    ],
)
def test_position_range(model_file: Path, read, position, ok):  # noqa: N802
    tamper(model_file, START + BLOCK_POSITION, "<3f", *position)
    result = read(model_file).result
    assert result is (ImportResult.SUCCESS if ok else ImportResult.INVALID_POSITION)


@MODES
@pytest.mark.parametrize(
    "rotation, ok",
    [
        ((-1.0, 1.0, 0.5, -0.5), True),
        ((1.5, 0.0, 0.0, 0.0), False),
        ((0.0, 0.0, 0.0, -1.25), False),
        ((0.0, float("nan"), 0.0, 0.0), False),
    ],
)
def test_rotation_range(model_file: Path, read, rotation, ok):  # noqa: N802
    tamper(model_file, START + BLOCK_ROTATION, "<4f", *rotation)
    result = read(model_file).result
    assert result is (ImportResult.SUCCESS if ok else ImportResult.INVALID_ROTATION)


@MODES
@pytest.mark.parametrize(
    "size, ok",
    [
        ((1e-6, 10000.0, 1.0), True),
        ((0.0, 1.0, 1.0), False),
        ((1.0, -1.0, 1.0), False),
        ((1.0, 1.0, 10000.5), False),
    ],
)
def test_size_range(model_file: Path, read, size, ok):  # noqa: N802
    tamper(model_file, START + BLOCK_SIZE, "<3f", *size)
    result = read(model_file).result
    assert result is (ImportResult.SUCCESS if ok else ImportResult.INVALID_SIZE)


@MODES
def test_vertex_size_not_a_multiple(model_file: Path, read):  # noqa: N802
    tamper(model_file, START + BLOCK_VERTICES_SIZE, "<I", 47)
    assert read(model_file).result is ImportResult.INVALID_BLOCK_SIZE


@MODES
def test_index_size_not_a_multiple(model_file: Path, read):  # noqa: N802
    tamper(model_file, START + BLOCK_INDICES_SIZE, "<I", 6)
    assert read(model_file).result is ImportResult.INVALID_BLOCK_SIZE


@MODES
def test_vertex_array_past_block(model_file: Path, read):  # noqa: N802
    tamper(model_file, START + BLOCK_VERTICES_SIZE, "<I", 4 * 48)
    assert read(model_file).result is ImportResult.UNEXPECTED_EOF


@MODES
def test_index_array_past_block(model_file: Path, read):  # noqa: N802
    tamper(model_file, START + BLOCK_INDICES_SIZE, "<I", 16)
    assert read(model_file).result is ImportResult.UNEXPECTED_EOF


@MODES
def test_empty_geometry(tmp_path: Path, read):  # noqa: N802
    path = write_models(tmp_path, [triangle("empty", vertices=[], indices=[])])
    (block,) = _blocks(read(path))
    assert block.vertices == []
    assert block.indices == []


@MODES
def test_entry_offset_past_file(model_file: Path, read):  # noqa: N802
    tamper(model_file, ENTRY_OFFSET, "<I", 10_000)
    assert read(model_file).result is ImportResult.UNEXPECTED_EOF


@MODES
def test_entry_size_past_file(model_file: Path, read):  # noqa: N802
    tamper(model_file, ENTRY_SIZE, "<I", 400)
    assert read(model_file).result is ImportResult.UNEXPECTED_EOF


@MODES
def test_entry_size_below_metadata(model_file: Path, read):  # noqa: N802
    tamper(model_file, ENTRY_SIZE, "<I", 100)
    assert read(model_file).result is ImportResult.UNEXPECTED_EOF
