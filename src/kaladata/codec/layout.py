"""Container format descriptors and name packing helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..config import ImportLimits
from .cursor import ByteCursor

__all__ = ["ContainerFormat", "pack_name_string"]


@dataclass(frozen=True, slots=True)
class ContainerFormat:
    """Shape shared by every header/table/block container.

    ``decode_block`` receives a cursor limited to the entry's declared block
    size, so both the streamed and the bulk path hand it the same window.
    """

    name: str
    extension: str
    header_size: int
    entry_size: int
    # Smallest block section the header may declare.
    min_block_size: int
    default_limits: ImportLimits
    decode_header: Callable[[ByteCursor, ImportLimits], Any]
    decode_entry: Callable[[ByteCursor], Any]
    decode_block: Callable[[ByteCursor, Any], Any]

    @property
    def min_file_size(self) -> int:
        return self.header_size + self.entry_size + self.min_block_size

    def max_file_size(self, limits: ImportLimits) -> int:
        return self.header_size + limits.max_table_size + limits.max_block_size


def pack_name_string(name: str, size: int) -> bytes:
    """Encode ``name`` into ``size`` bytes, always leaving a NUL terminator."""
    name_bytes = name.encode("utf-8")[: size - 1]
    return name_bytes + b"\x00" * (size - len(name_bytes))
