"""kaladata: chunked binary asset containers (.kmd models, .kfd glyphs)."""

from .api import (
    ImportOutcome,
    ImportResult,
    FormatError,
    ContainerData,
    format_for_path,
    pre_read_check,
    try_open_check,
    get_header_data,
    get_table_data,
    stream_blocks,
    import_all,
    import_kmd,
    stream_models,
    import_kfd,
    stream_glyphs,
    inspect_file,
)
from .config import ImportLimits, load_limits

__version__ = "0.1.0"

__all__ = [
    "ImportOutcome",
    "ImportResult",
    "FormatError",
    "ContainerData",
    "ImportLimits",
    "load_limits",
    "format_for_path",
    "pre_read_check",
    "try_open_check",
    "get_header_data",
    "get_table_data",
    "stream_blocks",
    "import_all",
    "import_kmd",
    "stream_models",
    "import_kfd",
    "stream_glyphs",
    "inspect_file",
]
