"""Command line interface for kaladata."""

from __future__ import annotations

import argparse
import json
import struct
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .api import (
    get_header_data,
    get_table_data,
    import_all,
    inspect_file,
    stream_blocks,
)
from .codec.errors import FormatError
from .codec.glyph import GlyphTable
from .codec.packers import write_container
from .config import ConfigError, ImportLimits, limits_from_env, load_limits
from .logging import configure_logging, step
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
    task,
)
from .description import DescriptionError, load_description

_Limits = Optional[Dict[str, ImportLimits]]


def _entry_label(entry: Any) -> str:
    if isinstance(entry, GlyphTable):
        code = entry.char_code
        if 0x20 < code < 0x110000 and chr(code).isprintable():
            return f"{chr(code)} (U+{code:04X})"
        return f"U+{code:04X}"
    return entry.node_name


def _matches(entry: Any, name: str) -> bool:
    if isinstance(entry, GlyphTable):
        if name.upper().startswith("U+"):
            try:
                return entry.char_code == int(name[2:], 16)
            except ValueError:
                return False
        return len(name) == 1 and entry.char_code == ord(name)
    return entry.node_name == name


def _emit_json(obj: Any) -> None:
    get_reporter().flush()
    print(json.dumps(obj, indent=2, sort_keys=True, default=str))


def _header_cmd(args: argparse.Namespace) -> int:
    outcome = get_header_data(args.file, limits=args.limits)
    if not outcome.ok:
        return 1
    header = outcome.value
    rows = []
    for f in fields(header):
        name, value = f.name, getattr(header, f.name)
        rows.append((name, value.hex() if isinstance(value, bytes) else value))
    get_reporter().table(f"Header: {args.file.name}", ["field", "value"], rows)
    return 0


def _table_cmd(args: argparse.Namespace) -> int:
    outcome = get_table_data(args.file, limits=args.limits)
    if not outcome.ok:
        return 1
    rows = [
        (i, _entry_label(e), e.block_offset, e.block_size)
        for i, e in enumerate(outcome.value)
    ]
    get_reporter().table(
        f"Table: {args.file.name}", ["#", "name", "offset", "size"], rows
    )
    return 0


def _summary_rows(entries: Sequence[Dict[str, Any]]) -> List[tuple]:
    rows = []
    for i, e in enumerate(entries):
        if "char_code" in e:
            label = f"U+{e['char_code']:04X}"
            detail = f"{e['width']}x{e['height']} pixels={e['pixels']}"
        else:
            label = e["name"]
            detail = (
                f"{e['render_type']} vertices={e['vertices']} "
                f"indices={e['indices']}"
            )
        rows.append((i, label, e["block_offset"], e["block_size"], detail))
    return rows


def _import_cmd(args: argparse.Namespace) -> int:
    info = inspect_file(args.file, limits=args.limits)
    if args.json:
        _emit_json(info)
        return 0 if info["result"] == "RESULT_SUCCESS" else 1
    if "entries" not in info:
        return 1
    get_reporter().table(
        f"Blocks: {args.file.name}",
        ["#", "name", "offset", "size", "content"],
        _summary_rows(info["entries"]),
    )
    return 0


def _stream_cmd(args: argparse.Namespace) -> int:
    rep = get_reporter()
    table = get_table_data(args.file, limits=args.limits)
    if not table.ok:
        return 1
    selected = []
    for name in args.names:
        matches = [e for e in table.value if _matches(e, name)]
        if not matches:
            rep.error(f"No entry named '{name}' in {args.file}")
            return 1
        selected.extend(matches)
    step(f"streaming {len(selected)} of {len(table.value)} entries")
    outcome = stream_blocks(
        args.file, selected, skip_checks=True, limits=args.limits
    )
    if not outcome.ok:
        return 1
    rows = []
    for entry, block in zip(selected, outcome.value):
        if isinstance(entry, GlyphTable):
            detail = f"{block.width}x{block.height} advance={block.advance}"
        else:
            detail = (
                f"mesh={block.mesh_name} vertices={len(block.vertices)} "
                f"indices={len(block.indices)}"
            )
        rows.append((_entry_label(entry), entry.block_offset, detail))
    rep.table(f"Streamed: {args.file.name}", ["name", "offset", "content"], rows)
    return 0


def _validate_cmd(args: argparse.Namespace) -> int:
    rep = get_reporter()
    failed = 0
    for path in args.files:
        with task(f"validate:{path}", f"validate {path.name}") as meta:
            outcome = import_all(path, limits=args.limits)
            meta["result"] = outcome.result.value
            if outcome.ok:
                meta["entries"] = len(outcome.value.entries)
                meta["blocks"] = len(outcome.value.blocks)
        if outcome.ok:
            rep.status(f"{path}: OK")
        else:
            failed += 1
            rep.error(f"{path}: {outcome.result.value}")
    rep.status(f"Validated {len(args.files)} file(s), {failed} failed")
    return 1 if failed else 0


def _build_cmd(args: argparse.Namespace) -> int:
    rep = get_reporter()
    try:
        description = load_description(args.description)
    except (
        DescriptionError,
        FileNotFoundError,
        json.JSONDecodeError,
        yaml.YAMLError,
    ) as exc:
        rep.error(f"Cannot load build description '{args.description}': {exc}")
        return 2
    try:
        data = description.encode()
    except (FormatError, struct.error) as exc:
        rep.error(f"Cannot encode '{args.description}': {exc}")
        return 2
    if args.output.suffix != description.extension:
        rep.warning(
            f"Output '{args.output.name}' does not use the "
            f"{description.extension} extension"
        )
    with task("build", f"build {args.output.name}") as meta:
        size = write_container(args.output, data)
        meta["entries"] = len(description.blocks)
        meta["bytes"] = size
    rep.status(f"Wrote {size} bytes to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="kaladata",
        description="Inspect and build .kmd model and .kfd glyph containers",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    p.add_argument(
        "--limits",
        dest="limits_file",
        type=Path,
        help="YAML/JSON file overriding import limits (default: $KALADATA_LIMITS)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    h = sub.add_parser("header", help="Print the decoded header")
    h.add_argument("file", type=Path)
    h.set_defaults(func=_header_cmd)

    t = sub.add_parser("table", help="Print the entry table")
    t.add_argument("file", type=Path)
    t.set_defaults(func=_table_cmd)

    i = sub.add_parser("import", help="Decode every block of a container")
    i.add_argument("file", type=Path)
    i.add_argument("--json", action="store_true", help="Emit a JSON summary")
    i.set_defaults(func=_import_cmd)

    s = sub.add_parser("stream", help="Decode only the named entries")
    s.add_argument("file", type=Path)
    s.add_argument(
        "names",
        nargs="+",
        help="Node names, or characters / U+XXXX codes for glyph files",
    )
    s.set_defaults(func=_stream_cmd)

    v = sub.add_parser("validate", help="Check that containers import cleanly")
    v.add_argument("files", type=Path, nargs="+")
    v.set_defaults(func=_validate_cmd)

    b = sub.add_parser("build", help="Encode a container from a description")
    b.add_argument("description", type=Path)
    b.add_argument("output", type=Path)
    b.set_defaults(func=_build_cmd)

    return p


def _select_reporter(requested: str) -> None:
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        set_reporter(PlainReporter())


def _resolve_limits(path: Optional[Path]) -> _Limits:
    if path is not None:
        return load_limits(path)
    return limits_from_env()


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    _select_reporter(args.reporter)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        args.limits = _resolve_limits(args.limits_file)
    except (
        ConfigError,
        FileNotFoundError,
        json.JSONDecodeError,
        yaml.YAMLError,
    ) as exc:
        get_reporter().error(f"Invalid limits configuration: {exc}")
        return 2
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
