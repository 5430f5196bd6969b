"""Build description loading (JSON/YAML) for the container encoder.

A model description::

    format: kmd
    scale_factor: 0
    models:
      - node_name: cube
        mesh_name: cube_mesh
        node_path: root/cube
        data_flags: [material, texture]
        render_type: opaque
        position: [0, 0, 0]
        vertices:
          - {position: [0, 0, 0], normal: [0, 0, 1], tex_coord: [0, 0]}
        indices: [0, 1, 2]

A glyph description uses ``format: kfd`` with ``glyph_type``,
``glyph_height`` and a ``glyphs`` list (``char`` or ``char_code``,
metrics and ``pixels`` as a hex string or a list of byte values).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from ..codec.constants import GLYPH_EXTENSION, MODEL_EXTENSION
from ..codec.container import decode_container
from ..codec.glyph import GLYPH_FORMAT, GlyphBlock, GlyphHeader
from ..codec.model import MODEL_FORMAT, DataTypeFlags, ModelBlock, RenderType, Vertex
from ..codec.packers import pack_glyph_container, pack_model_container
from ..config import ImportLimits

__all__ = [
    "DescriptionError",
    "BuildDescription",
    "load_description",
    "parse_build_dict",
]

_FORMATS = {
    "kmd": MODEL_EXTENSION,
    "model": MODEL_EXTENSION,
    "kfd": GLYPH_EXTENSION,
    "glyph": GLYPH_EXTENSION,
}


class DescriptionError(ValueError):
    pass


@dataclass
class BuildDescription:
    extension: str
    scale_factor: int = 0
    glyph_header: GlyphHeader | None = None
    blocks: List[Any] = field(default_factory=list)

    def encode(self, limits: ImportLimits | None = None) -> bytes:
        """Pack the container and decode it back; raises ``FormatError``."""
        if self.extension == MODEL_EXTENSION:
            fmt = MODEL_FORMAT
            data = pack_model_container(self.blocks, scale_factor=self.scale_factor)
        else:
            fmt = GLYPH_FORMAT
            data = pack_glyph_container(self.glyph_header or GlyphHeader(), self.blocks)
        decode_container(data, fmt, limits or fmt.default_limits)
        return data


def load_description(path: str | Path) -> BuildDescription:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise DescriptionError("Root of build description must be an object")
    return parse_build_dict(data)


def _int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise DescriptionError(f"{what} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise DescriptionError(f"{what} must be an integer") from exc


def _list(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DescriptionError(f"{what} must be a list")
    return value


def _floats(value: Any, count: int, what: str, default: Sequence[float]) -> tuple:
    if value is None:
        return tuple(float(v) for v in default)
    if not isinstance(value, (list, tuple)) or len(value) != count:
        raise DescriptionError(f"{what} must be a list of {count} numbers")
    try:
        return tuple(float(v) for v in value)
    except (TypeError, ValueError) as exc:
        raise DescriptionError(f"{what} must contain numbers") from exc


def _data_flags(value: Any) -> DataTypeFlags:
    if value is None:
        return DataTypeFlags.NONE
    if isinstance(value, int) and not isinstance(value, bool):
        return DataTypeFlags(value)
    flags = DataTypeFlags.NONE
    for name in _list(value, "data_flags"):
        try:
            flags |= DataTypeFlags[str(name).upper()]
        except KeyError as exc:
            raise DescriptionError(f"Unknown data flag '{name}'") from exc
    return flags


def _render_type(value: Any) -> RenderType:
    if value is None:
        return RenderType.OPAQUE
    try:
        if isinstance(value, int):
            return RenderType(value)
        return RenderType[str(value).upper()]
    except (KeyError, ValueError) as exc:
        raise DescriptionError(f"Unknown render type '{value}'") from exc


def _vertex(raw: Dict[str, Any], where: str) -> Vertex:
    if not isinstance(raw, dict):
        raise DescriptionError(f"{where} must be an object")
    return Vertex(
        position=_floats(raw.get("position"), 3, f"{where}.position", (0, 0, 0)),
        normal=_floats(raw.get("normal"), 3, f"{where}.normal", (0, 0, 0)),
        tex_coord=_floats(raw.get("tex_coord"), 2, f"{where}.tex_coord", (0, 0)),
        tangent=_floats(raw.get("tangent"), 4, f"{where}.tangent", (0, 0, 0, 0)),
    )


def _model(raw: Dict[str, Any], index: int) -> ModelBlock:
    where = f"models[{index}]"
    if not isinstance(raw, dict):
        raise DescriptionError(f"{where} must be an object")
    name = raw.get("node_name") or raw.get("name")
    if not name:
        raise DescriptionError(f"{where} is missing 'node_name'")
    return ModelBlock(
        node_name=str(name),
        mesh_name=str(raw.get("mesh_name", "")),
        node_path=str(raw.get("node_path", "")),
        data_flags=_data_flags(raw.get("data_flags")),
        render_type=_render_type(raw.get("render_type")),
        position=_floats(raw.get("position"), 3, f"{where}.position", (0, 0, 0)),
        rotation=_floats(raw.get("rotation"), 4, f"{where}.rotation", (1, 0, 0, 0)),
        size=_floats(raw.get("size"), 3, f"{where}.size", (1, 1, 1)),
        vertices=[
            _vertex(v, f"{where}.vertices[{i}]")
            for i, v in enumerate(_list(raw.get("vertices"), f"{where}.vertices"))
        ],
        indices=[
            _int(v, f"{where}.indices[{i}]")
            for i, v in enumerate(_list(raw.get("indices"), f"{where}.indices"))
        ],
    )


def _pixels(value: Any, where: str) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        try:
            return bytes.fromhex(value)
        except ValueError as exc:
            raise DescriptionError(f"{where}.pixels is not a hex string") from exc
    try:
        return bytes(value)
    except (TypeError, ValueError) as exc:
        raise DescriptionError(f"{where}.pixels must be bytes 0..255") from exc


def _glyph(raw: Dict[str, Any], index: int) -> GlyphBlock:
    where = f"glyphs[{index}]"
    if not isinstance(raw, dict):
        raise DescriptionError(f"{where} must be an object")
    if "char_code" in raw:
        code = _int(raw["char_code"], f"{where}.char_code")
    elif isinstance(raw.get("char"), str) and len(raw["char"]) == 1:
        code = ord(raw["char"])
    else:
        raise DescriptionError(f"{where} needs 'char_code' or a single-character 'char'")
    bearing = _list(raw.get("bearing"), f"{where}.bearing") or [0, 0]
    if len(bearing) != 2:
        raise DescriptionError(f"{where}.bearing must be an [x, y] pair")
    quad = _list(raw.get("vertices"), f"{where}.vertices") or [[0, 0]] * 4
    if len(quad) != 4 or any(not isinstance(p, list) or len(p) != 2 for p in quad):
        raise DescriptionError(f"{where}.vertices must be four [x, y] points")
    return GlyphBlock(
        char_code=code,
        width=_int(raw.get("width", 0), f"{where}.width"),
        height=_int(raw.get("height", 0), f"{where}.height"),
        bearing_x=_int(bearing[0], f"{where}.bearing"),
        bearing_y=_int(bearing[1], f"{where}.bearing"),
        advance=_int(raw.get("advance", 0), f"{where}.advance"),
        vertices=tuple(
            (_int(x, f"{where}.vertices"), _int(y, f"{where}.vertices"))
            for x, y in quad
        ),  # type: ignore[arg-type]
        raw_pixels=_pixels(raw.get("pixels"), where),
    )


def parse_build_dict(data: Dict[str, Any]) -> BuildDescription:
    fmt = str(data.get("format", "")).lower().lstrip(".")
    extension = _FORMATS.get(fmt)
    if extension is None:
        raise DescriptionError(f"Unknown container format '{data.get('format')}'")
    if extension == MODEL_EXTENSION:
        models = data.get("models", [])
        if not isinstance(models, list):
            raise DescriptionError("'models' must be a list")
        return BuildDescription(
            extension=extension,
            scale_factor=_int(data.get("scale_factor", 0), "scale_factor"),
            blocks=[_model(m, i) for i, m in enumerate(models)],
        )
    glyphs = data.get("glyphs", [])
    if not isinstance(glyphs, list):
        raise DescriptionError("'glyphs' must be a list")
    header = GlyphHeader(
        glyph_type=_int(data.get("glyph_type", 1), "glyph_type"),
        glyph_height=_int(data.get("glyph_height", 0), "glyph_height"),
    )
    return BuildDescription(
        extension=extension,
        glyph_header=header,
        blocks=[_glyph(g, i) for i, g in enumerate(glyphs)],
    )
