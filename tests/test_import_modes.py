from pathlib import Path

import pytest

from kaladata import api
from kaladata.codec import container
from kaladata.codec.errors import FormatError, ImportResult
from kaladata.codec.model import MODEL_FORMAT, ModelHeader, RenderType

from container_helper import triangle, truncate, write_models


def _scene(tmp: Path) -> Path:
    blocks = [
        triangle("a"),
        triangle("b", render_type=RenderType.TRANSPARENT, indices=[2, 1, 0, 0, 1, 2]),
        triangle("c", vertices=[], indices=[]),
    ]
    return write_models(tmp, blocks)


def test_single_triangle_scenario(tmp_path: Path):  # noqa: N802
    path = write_models(tmp_path, [triangle()])
    outcome = api.import_kmd(path)
    assert outcome.ok
    data = outcome.value
    assert data.header.model_count == 1
    assert data.header.blocks_size == 148 + 3 * 48 + 3 * 4
    assert len(data.entries) == 1
    (block,) = data.blocks
    assert len(block.vertices) == 3
    assert len(block.indices) == 3
    assert block.vertices[1].tex_coord == (1.0, 0.0)


def test_streaming_all_entries_matches_bulk(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    bulk = api.import_all(path).unwrap()
    entries = api.get_table_data(path).unwrap()
    streamed = api.stream_models(path, entries).unwrap()
    assert entries == bulk.entries
    assert streamed == bulk.blocks
    assert [b.node_name for b in streamed] == ["a", "b", "c"]
    assert bulk.blocks[1].indices == [2, 1, 0, 0, 1, 2]


def test_streaming_a_subset(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    entries = api.get_table_data(path).unwrap()
    picked = [entries[2], entries[0]]
    blocks = api.stream_blocks(path, picked, skip_checks=True).unwrap()
    assert [b.node_name for b in blocks] == ["c", "a"]


def test_streaming_nothing(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    assert api.stream_blocks(path, []).unwrap() == []


@pytest.mark.parametrize("count", [1, 5, 148])
def test_truncated_file_is_unexpected_eof(tmp_path: Path, count: int):  # noqa: N802
    path = _scene(tmp_path)
    entries = api.get_table_data(path).unwrap()
    truncate(path, count)
    assert api.import_all(path).result is ImportResult.UNEXPECTED_EOF
    assert api.stream_blocks(path, entries).result is ImportResult.UNEXPECTED_EOF


def test_failure_discards_partial_results(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    truncate(path)
    outcome = api.import_all(path)
    assert outcome.value is None
    assert outcome.detail
    with pytest.raises(FormatError) as exc:
        outcome.unwrap()
    assert exc.value.result is ImportResult.UNEXPECTED_EOF


def test_read_error_after_checks(tmp_path: Path, monkeypatch):  # noqa: N802
    path = _scene(tmp_path)

    def failing_open(*_args, **_kwargs):
        raise OSError(5, "Input/output error")

    monkeypatch.setattr(container, "open", failing_open, raising=False)
    assert api.import_all(path).result is ImportResult.UNKNOWN_READ_ERROR
    assert api.get_header_data(path).result is ImportResult.UNKNOWN_READ_ERROR


def test_unknown_suffix(tmp_path: Path):  # noqa: N802
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    outcome = api.get_header_data(path)
    assert outcome.result is ImportResult.INVALID_EXTENSION
    assert api.format_for_path(path) is None
    assert api.format_for_path("x.kmd") is MODEL_FORMAT
    assert api.format_for_path("x.KMD") is None


def test_outcome_string(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    outcome = api.get_header_data(path)
    assert isinstance(outcome.unwrap(), ModelHeader)
    assert str(outcome).startswith("RESULT_SUCCESS")


def test_independent_calls_share_nothing(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    first = api.import_all(path).unwrap()
    second = api.import_all(path).unwrap()
    assert first == second
    assert first.blocks[0] is not second.blocks[0]


def test_inspect_file_summary(tmp_path: Path):  # noqa: N802
    info = api.inspect_file(_scene(tmp_path))
    assert info["result"] == "RESULT_SUCCESS"
    assert info["format"] == "model"
    assert info["header"]["entry_count"] == 3
    assert info["header"]["magic"] == b"KMD\x00".hex()
    names = [e["name"] for e in info["entries"]]
    assert names == ["a", "b", "c"]
    assert info["entries"][1]["render_type"] == "transparent"
    assert info["entries"][2]["vertices"] == 0


def test_inspect_file_failure(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    truncate(path)
    info = api.inspect_file(path)
    assert info["result"] == "RESULT_UNEXPECTED_EOF"
    assert "entries" not in info
    assert info["detail"]


def test_in_memory_decode_matches_file_import(tmp_path: Path):  # noqa: N802
    path = _scene(tmp_path)
    from_file = api.import_all(path).unwrap()
    in_memory = container.decode_container(
        path.read_bytes(), MODEL_FORMAT, MODEL_FORMAT.default_limits
    )
    assert in_memory.header == from_file.header
    assert in_memory.entries == from_file.entries
    assert in_memory.blocks == from_file.blocks


def test_in_memory_decode_checks_size():  # noqa: N802
    limits = MODEL_FORMAT.default_limits
    with pytest.raises(FormatError) as exc:
        container.decode_container(b"", MODEL_FORMAT, limits)
    assert exc.value.result is ImportResult.FILE_EMPTY
    with pytest.raises(FormatError) as exc:
        container.decode_container(b"KMD\x00" + b"\x00" * 20, MODEL_FORMAT, limits)
    assert exc.value.result is ImportResult.UNSUPPORTED_FILE_SIZE
