import json
from pathlib import Path

import pytest

from kaladata.config import (
    GLYPH_LIMITS,
    LIMITS_ENV_VAR,
    MODEL_LIMITS,
    ConfigError,
    ImportLimits,
    limits_from_env,
    load_limits,
)


def test_defaults():  # noqa: N802
    assert MODEL_LIMITS == ImportLimits(1024, 28672, 1073741824)
    assert GLYPH_LIMITS == ImportLimits(1024, 12288, 1048576)


def test_yaml_overrides(tmp_path: Path):  # noqa: N802
    p = tmp_path / "limits.yaml"
    p.write_text("model:\n  max_entry_count: 8\n  max_block_size: 4096\n", encoding="utf-8")
    limits = load_limits(p)
    assert limits["model"] == ImportLimits(8, 28672, 4096)
    assert limits["glyph"] == GLYPH_LIMITS


def test_json_overrides(tmp_path: Path):  # noqa: N802
    p = tmp_path / "limits.json"
    p.write_text(json.dumps({"glyph": {"max_table_size": 120}}), encoding="utf-8")
    assert load_limits(p)["glyph"].max_table_size == 120


def test_empty_yaml_keeps_defaults(tmp_path: Path):  # noqa: N802
    p = tmp_path / "limits.yml"
    p.write_text("", encoding="utf-8")
    assert load_limits(p) == {"model": MODEL_LIMITS, "glyph": GLYPH_LIMITS}


@pytest.mark.parametrize(
    "payload",
    [
        {"texture": {}},
        {"model": {"max_vertices": 3}},
        {"model": {"max_entry_count": 0}},
        {"model": {"max_entry_count": -4}},
        {"model": {"max_entry_count": "12"}},
        {"model": {"max_entry_count": True}},
        {"model": [1, 2]},
        [1, 2, 3],
    ],
)
def test_rejected_overrides(tmp_path: Path, payload):  # noqa: N802
    p = tmp_path / "limits.json"
    p.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_limits(p)


def test_missing_file(tmp_path: Path):  # noqa: N802
    with pytest.raises(FileNotFoundError):
        load_limits(tmp_path / "absent.yaml")


def test_environment_variable(tmp_path: Path, monkeypatch):  # noqa: N802
    monkeypatch.delenv(LIMITS_ENV_VAR, raising=False)
    assert limits_from_env() is None
    p = tmp_path / "limits.yaml"
    p.write_text("glyph:\n  max_entry_count: 2\n", encoding="utf-8")
    monkeypatch.setenv(LIMITS_ENV_VAR, str(p))
    assert limits_from_env()["glyph"].max_entry_count == 2
