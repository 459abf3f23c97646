"""Single consumer tallying submission outcomes."""

from __future__ import annotations

import queue
from dataclasses import dataclass
from threading import Event
from typing import Protocol

import structlog

# Marks the end of a queue stream.
CLOSED = object()


class ProgressSink(Protocol):
    def start(self, total: int) -> None: ...

    def advance(self, success: bool = False, failed: bool = False, current: str | None = None) -> None: ...

    def close(self) -> None: ...


@dataclass
class RunStatistics:
    """Counters reported at the end of a run."""

    initial: int = 0
    unique: int = 0
    success: int = 0
    failure: int = 0
    skipped: int = 0

    @property
    def sent(self) -> int:
        return self.success + self.failure

    @property
    def success_rate(self) -> float | None:
        """Percentage of accepted jobs, or None when nothing was sent."""
        if self.sent == 0:
            return None
        return self.success / self.sent * 100

    def format_rate(self) -> str:
        rate = self.success_rate
        return "n/a" if rate is None else f"{rate:.2f}%"

    def summary_line(self) -> str:
        return (
            f"Initial Records: {self.initial} / After processed: {self.unique} / sent: {self.sent}"
            f" / success: {self.success} / fails: {self.failure} / success rate: {self.format_rate()}"
        )

    def as_dict(self) -> dict[str, int | float | None]:
        return {
            "initial": self.initial,
            "unique": self.unique,
            "sent": self.sent,
            "success": self.success,
            "failure": self.failure,
            "skipped": self.skipped,
            "success_rate": self.success_rate,
        }


class ResultAggregator:
    """Consume outcomes, count them, and signal once the stream is closed.

    Counters are only written from the thread running :meth:`consume`.
    Read them after :meth:`wait` returned.
    """

    def __init__(
        self,
        expected: int,
        progress: ProgressSink | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.expected = expected
        self.progress = progress
        self.logger = logger or structlog.get_logger("record_pipeline.aggregator")
        self.success = 0
        self.failure = 0
        self.error: Exception | None = None
        self.log_step = max(1, expected // 10)
        self.done = Event()

    @property
    def consumed(self) -> int:
        return self.success + self.failure

    @property
    def percent(self) -> float:
        if self.expected <= 0:
            return 0.0
        return self.consumed / self.expected * 100

    def consume(self, outcomes: "queue.Queue[object]") -> None:
        """Count outcomes until the close sentinel, then set :attr:`done`.

        A failing progress display is switched off and counting goes on.
        Any other failure is kept in :attr:`error` for the caller to raise.
        """
        if self.done.is_set():
            raise RuntimeError("ResultAggregator.consume may only run once")
        try:
            self._notify("start", self.expected)
            while True:
                outcome = outcomes.get()
                if outcome is CLOSED:
                    break
                if outcome:
                    self.success += 1
                else:
                    self.failure += 1
                self._notify(
                    "advance",
                    success=bool(outcome),
                    failed=not outcome,
                    current=f"{self.consumed}/{self.expected}",
                )
                self._log_progress()
        except Exception as exc:
            self.error = exc
        finally:
            self._notify("close")
            self.done.set()

    def _notify(self, step: str, *args: object, **kwargs: object) -> None:
        if self.progress is None:
            return
        try:
            getattr(self.progress, step)(*args, **kwargs)
        except Exception as exc:
            self.progress = None
            self.logger.warning("progress_display_failed", step=step, error=str(exc))

    def _log_progress(self) -> None:
        # Every tenth of the run reaches the run log; the rest is debug only.
        milestone = self.consumed % self.log_step == 0 or self.consumed == self.expected
        log = self.logger.info if milestone else self.logger.debug
        log(
            "submission_progress",
            consumed=self.consumed,
            expected=self.expected,
            percent=round(self.percent, 2),
        )

    def wait(self, timeout: float | None = None) -> bool:
        return self.done.wait(timeout)


__all__ = ["CLOSED", "ProgressSink", "ResultAggregator", "RunStatistics"]
