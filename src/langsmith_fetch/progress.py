from __future__ import annotations

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TaskProgressColumn, TextColumn

from langsmith_fetch.bulk import ProgressCallback


def _build_progress(console: Console) -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=False,
    )


class LazyProgress:
    """Progress observer that creates its bar on the first report.

    The batch size is only known once the run query returns, so the bar can't be
    drawn up front. Output goes to stderr unless a console is given.
    """

    def __init__(self, enabled: bool = True, console: Console | None = None, description: str = "Fetching"):
        self._enabled = enabled
        self._console = console
        self._description = description
        self._progress: Progress | None = None
        self._task: TaskID | None = None

    @property
    def callback(self) -> ProgressCallback | None:
        return self._report if self._enabled else None

    def _report(self, completed: int, total: int) -> None:
        if self._progress is None:
            self._progress = _build_progress(self._console or Console(stderr=True))
            self._progress.start()
            self._task = self._progress.add_task(self._description, total=total)
        self._progress.update(self._task, completed=min(completed, total))

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
