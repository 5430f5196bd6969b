from __future__ import annotations

import json
import sys
from typing import Any, Optional, Sequence

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity


class JsonLinesReporter(Reporter):
    """Machine-readable JSON lines reporter."""

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stdout

    def _emit(self, obj: dict) -> None:
        self.stream.write(json.dumps(obj, sort_keys=True, default=str) + "\n")

    def start_task(self, task_id: str, name: str, **meta: Any) -> None:
        super().start_task(task_id, name, **meta)
        self._emit({"event": "task_start", "id": task_id, "name": name, **meta})

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> Optional[TaskRecord]:
        rec = super().end_task(task_id, status, **final_meta)
        if rec is not None:
            self._emit(
                {
                    "event": "task_end",
                    "id": task_id,
                    "status": status.name.lower(),
                    "duration_seconds": rec.duration,
                    **rec.meta,
                }
            )
        return rec

    def _message(self, message: str, level: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": level, **fields}
        )

    def status(self, message: str, **fields: Any) -> None:
        self._message(message, "info", **fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._message(message, f"verbose{level}", vlevel=level, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._message(message, "error", **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._message(message, "warning", **fields)

    def section(self, title: str) -> None:
        self._emit({"event": "section", "title": title})

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> None:
        self._emit(
            {
                "event": "table",
                "title": title,
                "rows": [dict(zip(columns, r)) for r in rows],
            }
        )
