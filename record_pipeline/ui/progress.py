"""Rich rendering of submission progress."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.status import Status
from rich.text import Text


@dataclass
class SubmissionTally:
    """Counts shown next to the bar."""

    expected: int
    accepted: int = 0
    rejected: int = 0
    position: str | None = None

    @property
    def handled(self) -> int:
        return self.accepted + self.rejected

    @property
    def percent(self) -> float:
        if self.expected <= 0:
            return 0.0
        return self.handled / self.expected * 100


class ThroughputColumn(ProgressColumn):
    """Records handled per second."""

    def render(self, task: Task) -> Text:
        rate = task.finished_speed or task.speed
        return Text("" if rate is None else f"{rate:.1f} rec/s", style="progress.data.speed")


def _build_bar(console: Console) -> Progress:
    return Progress(
        TextColumn("[bold blue]{task.description:<12}"),
        BarColumn(bar_width=None, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TextColumn("[green]ok {task.fields[accepted]}"),
        TextColumn("[red]ko {task.fields[rejected]}"),
        ThroughputColumn(),
        TimeElapsedColumn(),
        console=console,
        expand=True,
        transient=False,
    )


class ProgressReporter:
    """Show a bar of handled records against the unique record count.

    Skipped records are never reported, so the bar may stop short of 100%.
    """

    def __init__(self, enabled: bool = True, console: Console | None = None, label: str = "submission") -> None:
        self.enabled = enabled
        self.console = console
        self.label = label
        self.tally: SubmissionTally | None = None
        self._bar: Progress | None = None
        self._task: TaskID | None = None

    def start(self, total: int) -> None:
        self.tally = SubmissionTally(expected=total)
        if not self.enabled:
            return
        console = self.console or Console()
        if not console.is_terminal:
            self.enabled = False
            return
        bar = _build_bar(console)
        try:
            bar.start()
        except LiveError:
            # Another live display owns the console.
            self.enabled = False
            return
        self._bar = bar
        self._task = bar.add_task(self.label, total=total, accepted=0, rejected=0)

    def advance(self, success: bool = False, failed: bool = False, current: str | None = None) -> None:
        tally = self.tally
        if tally is None:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        tally.accepted += int(success)
        tally.rejected += int(failed)
        if current:
            tally.position = current
        if self._bar is not None and self._task is not None:
            self._bar.update(
                self._task,
                completed=tally.handled,
                accepted=tally.accepted,
                rejected=tally.rejected,
            )

    def close(self) -> None:
        if self._bar is not None:
            self._bar.stop()
        self._bar = None
        self._task = None

    def summary(self) -> dict[str, int]:
        tally = self.tally or SubmissionTally(expected=0)
        return {"accepted": tally.accepted, "rejected": tally.rejected}


class ProgressActivity:
    """Spinner for steps without a known size, such as the download."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self.console = console or Console()
        self._status: Status | None = None

    def start(self, message: str) -> None:
        if self._status is not None or not self.enabled:
            return
        if not self.console.is_terminal:
            self.enabled = False
            return
        self._status = Status(message, console=self.console, spinner="dots")
        self._status.start()

    def update(self, message: str) -> None:
        if self._status is not None:
            self._status.update(message)

    def close(self) -> None:
        if self._status is None:
            return
        self._status.stop()
        self._status = None

    def __enter__(self) -> "ProgressActivity":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["ProgressActivity", "ProgressReporter", "SubmissionTally", "ThroughputColumn"]
