"""Bounds-checked sequential reader over an in-memory buffer.

Every read first verifies that the requested width fits in the cursor's
window and only then advances. A read that would leave the window raises
``FormatError(UNEXPECTED_EOF)`` and leaves the position untouched, so no
decoder can ever observe bytes past the length it was handed.
"""

from __future__ import annotations

import struct
from typing import List, Tuple, Union

from .errors import unexpected_eof

__all__ = ["ByteCursor"]

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_F32 = struct.Struct("<f")

Buffer = Union[bytes, bytearray, memoryview]


class ByteCursor:
    __slots__ = ("_view", "_start", "_end", "_pos", "label")

    def __init__(
        self,
        buffer: Buffer,
        start: int = 0,
        end: int | None = None,
        *,
        label: str = "buffer",
    ) -> None:
        view = buffer if isinstance(buffer, memoryview) else memoryview(buffer)
        if end is None:
            end = len(view)
        if start < 0 or end < start or end > len(view):
            raise unexpected_eof(
                f"Window {start}:{end} outside {label} of {len(view)} bytes",
                {"start": start, "end": end, "length": len(view)},
            )
        self._view = view
        self._start = start
        self._end = end
        self._pos = start
        self.label = label

    def __len__(self) -> int:
        return self._end - self._start

    def __repr__(self) -> str:
        return (
            f"<ByteCursor {self.label} pos={self.position}/{len(self)}>"
        )

    @property
    def position(self) -> int:
        """Position relative to the start of the window."""
        return self._pos - self._start

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def _claim(self, size: int, what: str) -> int:
        if size < 0 or size > self.remaining:
            raise unexpected_eof(
                f"Out of range read for {what} in {self.label}: "
                f"{self.position}+{size}>{len(self)}",
                {
                    "label": self.label,
                    "field": what,
                    "position": self.position,
                    "size": size,
                    "length": len(self),
                },
            )
        pos = self._pos
        self._pos += size
        return pos

    def seek(self, position: int) -> None:
        if position < 0 or position > len(self):
            raise unexpected_eof(
                f"Seek to {position} outside {self.label} of {len(self)} bytes"
            )
        self._pos = self._start + position

    def skip(self, size: int, what: str = "padding") -> None:
        self._claim(size, what)

    def read_u8(self, what: str = "u8") -> int:
        return _U8.unpack_from(self._view, self._claim(1, what))[0]

    def read_u16(self, what: str = "u16") -> int:
        return _U16.unpack_from(self._view, self._claim(2, what))[0]

    def read_i16(self, what: str = "i16") -> int:
        return _I16.unpack_from(self._view, self._claim(2, what))[0]

    def read_u32(self, what: str = "u32") -> int:
        return _U32.unpack_from(self._view, self._claim(4, what))[0]

    def read_f32(self, what: str = "f32") -> float:
        return _F32.unpack_from(self._view, self._claim(4, what))[0]

    def read_f32s(self, count: int, what: str = "f32[]") -> Tuple[float, ...]:
        return struct.unpack_from(
            f"<{count}f", self._view, self._claim(4 * count, what)
        )

    def read_i16s(self, count: int, what: str = "i16[]") -> Tuple[int, ...]:
        return struct.unpack_from(
            f"<{count}h", self._view, self._claim(2 * count, what)
        )

    def read_u8s(self, count: int, what: str = "u8[]") -> Tuple[int, ...]:
        return tuple(self.read_bytes(count, what))

    def read_u32s(self, count: int, what: str = "u32[]") -> List[int]:
        return list(
            struct.unpack_from(
                f"<{count}I", self._view, self._claim(4 * count, what)
            )
        )

    def read_bytes(self, size: int, what: str = "bytes") -> bytes:
        pos = self._claim(size, what)
        return bytes(self._view[pos : pos + size])

    def read_name(self, size: int, what: str = "name") -> str:
        """Fixed-width, null-terminated string; anything after the NUL is ignored."""
        raw = self.read_bytes(size, what)
        return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")

    def window(self, size: int, what: str = "window") -> "ByteCursor":
        """Consume ``size`` bytes and return a cursor limited to them."""
        pos = self._claim(size, what)
        return ByteCursor(self._view, pos, pos + size, label=what)

    def window_at(
        self, offset: int, size: int, what: str = "window"
    ) -> "ByteCursor":
        """Cursor over ``[offset, offset + size)`` of this window, position unchanged."""
        if offset < 0 or size < 0 or offset + size > len(self):
            raise unexpected_eof(
                f"Out of range window for {what} in {self.label}: "
                f"{offset}+{size}>{len(self)}",
                {
                    "label": self.label,
                    "field": what,
                    "offset": offset,
                    "size": size,
                    "length": len(self),
                },
            )
        begin = self._start + offset
        return ByteCursor(self._view, begin, begin + size, label=what)
