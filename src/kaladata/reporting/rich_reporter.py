from __future__ import annotations

from typing import Any, Optional, Sequence

from rich.console import Console
from rich.table import Table

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
}


class RichReporter(Reporter):
    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )

    def start_task(self, task_id: str, name: str, **meta: Any) -> None:
        super().start_task(task_id, name, **meta)
        self.verbose(f"{name}…")

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> Optional[TaskRecord]:
        rec = super().end_task(task_id, status, **final_meta)
        if rec is not None:
            icon = _STATUS_ICON.get(status, "")
            self.console.print(
                f"{icon} {rec.name} ({rec.duration:.2f}s){rec.stats()}",
                markup=True,
            )
        return rec

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {message}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self.console.print(f"[cyan]VERB{level}[/]: {message}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {message}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {message}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> None:
        t = Table(
            title=title, title_justify="left", expand=False, min_width=len(title)
        )
        for col in columns:
            t.add_column(col)
        for row in rows:
            t.add_row(*(str(v) for v in row))
        self.console.print(t)
