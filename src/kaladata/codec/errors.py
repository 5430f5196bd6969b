"""Import result codes and the exception used to carry them between codecs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ImportResult(Enum):
    SUCCESS = "RESULT_SUCCESS"

    # file operations
    FILE_NOT_FOUND = "RESULT_FILE_NOT_FOUND"
    INVALID_EXTENSION = "RESULT_INVALID_EXTENSION"
    UNAUTHORIZED_READ = "RESULT_UNAUTHORIZED_READ"
    FILE_LOCKED = "RESULT_FILE_LOCKED"
    UNKNOWN_READ_ERROR = "RESULT_UNKNOWN_READ_ERROR"
    FILE_EMPTY = "RESULT_FILE_EMPTY"
    UNSUPPORTED_FILE_SIZE = "RESULT_UNSUPPORTED_FILE_SIZE"

    # container structure
    INVALID_MAGIC = "RESULT_INVALID_MAGIC"
    INVALID_VERSION = "RESULT_INVALID_VERSION"
    INVALID_ENTRY_COUNT = "RESULT_INVALID_ENTRY_COUNT"
    INVALID_TABLE_SIZE = "RESULT_INVALID_TABLE_SIZE"
    INVALID_BLOCK_SIZE = "RESULT_INVALID_BLOCK_SIZE"
    INVALID_TYPE = "RESULT_INVALID_TYPE"
    INVALID_GLYPH_HEIGHT = "RESULT_INVALID_GLYPH_HEIGHT"

    # per block
    INVALID_DATA_FLAGS = "RESULT_INVALID_DATA_FLAGS"
    INVALID_RENDER_TYPE = "RESULT_INVALID_RENDER_TYPE"
    INVALID_POSITION = "RESULT_INVALID_POSITION"
    INVALID_ROTATION = "RESULT_INVALID_ROTATION"
    INVALID_SIZE = "RESULT_INVALID_SIZE"
    UNEXPECTED_EOF = "RESULT_UNEXPECTED_EOF"

    @property
    def ok(self) -> bool:
        return self is ImportResult.SUCCESS

    def __str__(self) -> str:
        return self.value


@dataclass
class FormatError(Exception):
    result: ImportResult
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.result.value}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result.value,
            "message": self.message,
            "context": self.context or {},
        }


def unexpected_eof(
    message: str, context: Optional[Dict[str, Any]] = None
) -> FormatError:
    return FormatError(ImportResult.UNEXPECTED_EOF, message, context)


__all__ = [
    "ImportResult",
    "FormatError",
    "unexpected_eof",
]
