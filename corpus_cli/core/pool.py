"""
A bounded-concurrency task pool that draws one progress line per task event.

Every admitted task receives a `TaskLogger` and draws its lifecycle in a
"slot", a column of the bar area printed after the overall `[done/total]`
counter. A slot is claimed on `begin`, shown as a continuing bar while other
tasks print, and released on `end`, after which the lowest free slot is
handed to the next task:

    [0/3]┌  Cloning dart-lang/sdk...
    [0/3]│┌ Cloning flutter/flutter...
    [1/3]└│ Cloned download/apps/dart-lang-sdk
    [1/3]┌│ Cloning flutter/samples...
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from rich.console import Console

from corpus_cli.exceptions import InvariantError, SlotExhaustedError, TaskStateError
from corpus_cli.models.stats import PoolStats

log = logging.getLogger(__name__)

BEGIN_MARKER = "┌"
LOG_MARKER = "├"
END_MARKER = "└"
ACTIVE_BAR = "│"

DEFAULT_CONCURRENCY = 20


class Downloader:
    """
    Runs submitted task bodies with at most `concurrency` of them in flight and
    renders their progress through a shared console.

    All bookkeeping (slot claims, the completed counter, rendering) is
    synchronous, so it is never interleaved under the asyncio scheduler.
    """

    def __init__(
        self,
        total_resources: int,
        concurrency: int = DEFAULT_CONCURRENCY,
        console: Console | None = None,
    ):
        """
        Args:
            total_resources: Number of resources expected; only used for display.
            concurrency: Maximum number of task bodies running at once.
            console: Where progress lines are written (defaults to stdout).
        """
        if total_resources < 0:
            raise ValueError(f"total_resources must be >= 0, got {total_resources}")
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        self._total_resources = total_resources
        self._max_concurrency = concurrency
        self._completed_resources = 0
        self._peak_concurrency = 0
        self._slots: set[int] = set()
        self._semaphore = asyncio.Semaphore(concurrency)
        self._tasks: list[asyncio.Task] = []
        self._console = console or Console(soft_wrap=True)

    @property
    def total_resources(self) -> int:
        return self._total_resources

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def completed_resources(self) -> int:
        return self._completed_resources

    @property
    def peak_concurrency(self) -> int:
        return self._peak_concurrency

    @property
    def active_slots(self) -> frozenset[int]:
        return frozenset(self._slots)

    def snapshot(self) -> PoolStats:
        return PoolStats(
            total_resources=self._total_resources,
            completed_resources=self._completed_resources,
            max_concurrency=self._max_concurrency,
            peak_concurrency=self._peak_concurrency,
            active_slots=tuple(sorted(self._slots)),
        )

    def log(self, message: str) -> None:
        """Prints a line that does not belong to any task."""
        self._render_line(-1, "", message)

    def submit(
        self, task_body: Callable[["TaskLogger"], Awaitable[None]]
    ) -> asyncio.Task:
        """
        Schedules `task_body` to run once the pool has room for it.

        Returns immediately. The body is awaited with a fresh `TaskLogger` once
        admitted; failures inside it are reported on its logger and never
        reach the caller. Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._run(task_body))
        self._tasks.append(task)
        return task

    async def join(self) -> None:
        """Waits for every submitted task, including ones submitted meanwhile."""
        awaited = 0
        while awaited < len(self._tasks):
            batch = self._tasks[awaited:]
            awaited = len(self._tasks)
            await asyncio.gather(*batch)

    async def _run(self, task_body: Callable[["TaskLogger"], Awaitable[None]]) -> None:
        async with self._semaphore:
            logger = TaskLogger(self)
            try:
                await task_body(logger)
            except asyncio.CancelledError:
                if logger.is_active:
                    logger.end("Cancelled.")
                raise
            except InvariantError:
                raise
            except Exception as e:
                log.debug(f"Task body raised {type(e).__name__}: {e}", exc_info=True)
                if logger.is_active:
                    logger.end(f"Error: {e}")
            else:
                # A body that returns without ending still must give its slot back.
                if logger.is_active:
                    logger.end("Done.")

    def _render_line(self, slot: int, marker: str, message: str) -> None:
        width = len(str(self._total_resources))
        parts = [
            f"[{self._completed_resources:>{width}}/{self._total_resources:>{width}}]"
        ]

        for i in range(self._max_concurrency):
            if i == slot:
                parts.append(marker)
            elif i in self._slots:
                parts.append(ACTIVE_BAR)
            else:
                parts.append(" ")

        parts.append(" ")
        parts.append(message)
        self._console.print(
            "".join(parts), markup=False, highlight=False, emoji=False, soft_wrap=True
        )

    def _claim_slot(self) -> int:
        """Claims the lowest free slot."""
        for i in range(self._max_concurrency):
            if i not in self._slots:
                self._slots.add(i)
                self._peak_concurrency = max(self._peak_concurrency, len(self._slots))
                return i

        raise SlotExhaustedError(
            f"All {self._max_concurrency} slots are in use; the pool's gate and "
            "slot bookkeeping are out of sync."
        )

    def _release_slot(self, slot: int) -> None:
        self._slots.discard(slot)

    def _complete_one(self) -> None:
        self._completed_resources += 1


class TaskLogger:
    """
    Per-task handle for reporting progress: one `begin`, any number of `log`
    calls, then one `end`.
    """

    def __init__(self, pool: Downloader):
        self._pool = pool
        self._slot: int | None = None
        self._ended = False

    @property
    def slot(self) -> int | None:
        return self._slot

    @property
    def is_active(self) -> bool:
        return self._slot is not None and not self._ended

    def begin(self, message: str) -> None:
        if self._slot is not None:
            raise TaskStateError("begin() called more than once on the same task.")
        self._slot = self._pool._claim_slot()
        self._pool._render_line(self._slot, BEGIN_MARKER, message)

    def log(self, message: str) -> None:
        self._check_active("log")
        self._pool._render_line(self._slot, LOG_MARKER, message)

    def end(self, message: str) -> None:
        self._check_active("end")
        self._ended = True
        self._pool._complete_one()
        try:
            self._pool._render_line(self._slot, END_MARKER, message)
        finally:
            self._pool._release_slot(self._slot)

    def _check_active(self, method: str) -> None:
        if self._slot is None:
            raise TaskStateError(f"{method}() called before begin().")
        if self._ended:
            raise TaskStateError(f"{method}() called after end().")
