import asyncio

import pytest

from corpus_cli.core.pool import Downloader, TaskLogger
from corpus_cli.exceptions import SlotExhaustedError, TaskStateError


def test_render_layout(captured):
    pool = Downloader(total_resources=3, concurrency=2, console=captured.console)

    async def main():
        async def body(logger: TaskLogger):
            logger.begin("a")
            logger.log("a step")
            logger.end("a done")

        pool.submit(body)
        await pool.join()

    asyncio.run(main())
    assert captured.lines == [
        "[0/3]┌  a",
        "[0/3]├  a step",
        "[1/3]└  a done",
    ]


def test_counter_is_padded_to_total_width(captured):
    pool = Downloader(total_resources=120, concurrency=1, console=captured.console)
    pool.log("hello")
    assert captured.lines == ["[  0/120]  hello"]


def test_pool_log_shows_active_bars(captured):
    pool = Downloader(total_resources=3, concurrency=3, console=captured.console)
    pool._claim_slot()
    pool._claim_slot()
    pool._release_slot(0)
    pool.log("Getting index page 1...")
    assert captured.lines == ["[0/3] │  Getting index page 1..."]


def test_messages_are_printed_verbatim(captured):
    pool = Downloader(total_resources=1, concurrency=1, console=captured.console)
    pool.log("[red]not markup[/red] :smile:")
    assert captured.lines == ["[0/1]  [red]not markup[/red] :smile:"]


def test_concurrent_tasks_draw_continuation_bars(captured):
    pool = Downloader(total_resources=2, concurrency=2, console=captured.console)

    async def main():
        a_started = asyncio.Event()
        b_started = asyncio.Event()

        async def a(logger):
            logger.begin("a")
            a_started.set()
            await b_started.wait()
            logger.end("a done")

        async def b(logger):
            await a_started.wait()
            logger.begin("b")
            b_started.set()
            await asyncio.sleep(0)
            logger.end("b done")

        pool.submit(a)
        pool.submit(b)
        await pool.join()

    asyncio.run(main())
    assert captured.lines == [
        "[0/2]┌  a",
        "[0/2]│┌ b",
        "[1/2]└│ a done",
        "[2/2] └ b done",
    ]


def test_bounded_concurrency():
    pool = Downloader(total_resources=20, concurrency=3)
    running = 0
    peak = 0
    observed: list[tuple[int, frozenset[int]]] = []

    async def main():
        async def body(logger):
            nonlocal running, peak
            logger.begin("start")
            running += 1
            peak = max(peak, running)
            observed.append((logger.slot, pool.active_slots))
            await asyncio.sleep(0.001 * (logger.slot + 1))
            observed.append((logger.slot, pool.active_slots))
            running -= 1
            logger.end("done")

        for _ in range(20):
            pool.submit(body)
        await pool.join()

    asyncio.run(main())
    assert peak == 3
    assert pool.peak_concurrency == 3
    assert pool.completed_resources == 20
    assert pool.active_slots == frozenset()
    assert len(observed) == 40
    for slot, active in observed:
        assert slot in active
        assert len(active) <= 3
        assert active <= {0, 1, 2}


def test_running_tasks_never_share_a_slot():
    pool = Downloader(total_resources=12, concurrency=4)
    holders: dict[int, int] = {}
    clashes: list[tuple[int, int, int]] = []

    async def main():
        def make(task_id):
            async def body(logger):
                logger.begin(f"task {task_id}")
                if logger.slot in holders:
                    clashes.append((logger.slot, holders[logger.slot], task_id))
                holders[logger.slot] = task_id
                await asyncio.sleep(0.001 * (task_id % 3))
                del holders[logger.slot]
                logger.end(f"task {task_id} done")

            return body

        for task_id in range(12):
            pool.submit(make(task_id))
        await pool.join()

    asyncio.run(main())
    assert clashes == []
    assert holders == {}
    assert pool.completed_resources == 12


def test_queued_task_takes_freed_slot():
    pool = Downloader(total_resources=3, concurrency=2)
    claimed: dict[str, int] = {}

    async def main():
        release_b = asyncio.Event()

        def make(name, gate=None):
            async def body(logger):
                logger.begin(name)
                claimed[name] = logger.slot
                if gate is not None:
                    await gate.wait()
                else:
                    await asyncio.sleep(0)
                logger.end(f"{name} done")

            return body

        pool.submit(make("a"))
        pool.submit(make("b", release_b))
        pool.submit(make("c"))
        await asyncio.sleep(0.01)
        # a finished and c reused its slot while b still holds slot 1.
        assert claimed == {"a": 0, "b": 1, "c": 0}
        release_b.set()
        await pool.join()

    asyncio.run(main())
    assert pool.completed_resources == 3


def test_concurrency_one_serializes_tasks(captured):
    pool = Downloader(total_resources=2, concurrency=1, console=captured.console)

    async def main():
        def make(name):
            async def body(logger):
                logger.begin(f"{name} begin")
                await asyncio.sleep(0.001)
                logger.end(f"{name} end")

            return body

        pool.submit(make("A"))
        pool.submit(make("B"))
        await pool.join()

    asyncio.run(main())
    assert captured.lines == [
        "[0/2]┌ A begin",
        "[1/2]└ A end",
        "[1/2]┌ B begin",
        "[2/2]└ B end",
    ]


def test_per_task_lines_are_ordered(captured):
    pool = Downloader(total_resources=5, concurrency=3, console=captured.console)

    async def main():
        def make(name, steps):
            async def body(logger):
                logger.begin(f"{name}:begin")
                for i in range(steps):
                    await asyncio.sleep(0)
                    logger.log(f"{name}:log{i}")
                logger.end(f"{name}:end")

            return body

        for i, name in enumerate("vwxyz"):
            pool.submit(make(name, i))
        await pool.join()

    asyncio.run(main())
    for i, name in enumerate("vwxyz"):
        messages = [
            line.rsplit(" ", 1)[-1]
            for line in captured.lines
            if f"{name}:" in line
        ]
        assert messages == (
            [f"{name}:begin"] + [f"{name}:log{j}" for j in range(i)] + [f"{name}:end"]
        )


def test_failing_task_reports_and_releases(captured):
    pool = Downloader(total_resources=1, concurrency=5, console=captured.console)

    async def main():
        async def body(logger):
            logger.begin("Fetching")
            try:
                raise ConnectionError("connection reset")
            except ConnectionError as e:
                logger.end(f"failed: {e}")

        pool.submit(body)
        await pool.join()

    asyncio.run(main())
    assert captured.lines[0].endswith("Fetching")
    assert captured.lines[-1] == "[1/1]└     failed: connection reset"
    assert pool.completed_resources == 1
    assert pool.active_slots == frozenset()


def test_uncaught_error_still_ends_task(captured):
    pool = Downloader(total_resources=2, concurrency=1, console=captured.console)

    async def main():
        async def broken(logger):
            logger.begin("broken")
            raise RuntimeError("boom")

        async def fine(logger):
            logger.begin("fine")
            logger.end("ok")

        pool.submit(broken)
        pool.submit(fine)
        await pool.join()

    asyncio.run(main())
    assert captured.lines == [
        "[0/2]┌ broken",
        "[1/2]└ Error: boom",
        "[1/2]┌ fine",
        "[2/2]└ ok",
    ]


def test_task_returning_without_end_is_ended():
    pool = Downloader(total_resources=1, concurrency=1)

    async def main():
        async def body(logger):
            logger.begin("forgetful")

        pool.submit(body)
        await pool.join()

    asyncio.run(main())
    assert pool.completed_resources == 1
    assert pool.active_slots == frozenset()


def test_task_that_never_begins_is_not_counted():
    pool = Downloader(total_resources=1, concurrency=1)

    async def main():
        async def body(logger):
            raise ValueError("before begin")

        pool.submit(body)
        await pool.join()

    asyncio.run(main())
    assert pool.completed_resources == 0


def test_state_errors_propagate_from_join():
    pool = Downloader(total_resources=1, concurrency=1)

    async def main():
        async def body(logger):
            logger.log("too early")

        pool.submit(body)
        await pool.join()

    with pytest.raises(TaskStateError):
        asyncio.run(main())


def test_logger_state_machine():
    pool = Downloader(total_resources=1, concurrency=1)
    logger = TaskLogger(pool)
    assert not logger.is_active

    with pytest.raises(TaskStateError):
        logger.log("no")
    with pytest.raises(TaskStateError):
        logger.end("no")

    logger.begin("go")
    assert logger.is_active
    with pytest.raises(TaskStateError):
        logger.begin("again")

    logger.end("done")
    assert not logger.is_active
    with pytest.raises(TaskStateError):
        logger.log("late")
    with pytest.raises(TaskStateError):
        logger.end("twice")
    assert pool.completed_resources == 1


def test_claim_lowest_free_slot():
    pool = Downloader(total_resources=4, concurrency=4)
    assert [pool._claim_slot() for _ in range(3)] == [0, 1, 2]
    pool._release_slot(1)
    assert pool.active_slots == {0, 2}
    assert pool._claim_slot() == 1


def test_claim_with_no_free_slot_is_fatal():
    pool = Downloader(total_resources=2, concurrency=2)
    pool._claim_slot()
    pool._claim_slot()
    with pytest.raises(SlotExhaustedError):
        pool._claim_slot()
    assert pool.active_slots == {0, 1}


def test_release_of_free_slot_is_harmless():
    pool = Downloader(total_resources=3, concurrency=3)
    pool._claim_slot()
    pool._claim_slot()
    pool._release_slot(2)
    pool._release_slot(1)
    pool._release_slot(1)
    assert pool.active_slots == {0}


def test_total_is_display_only():
    pool = Downloader(total_resources=1, concurrency=2)

    async def main():
        async def body(logger):
            logger.begin("x")
            logger.end("y")

        for _ in range(3):
            pool.submit(body)
        await pool.join()

    asyncio.run(main())
    assert pool.completed_resources == 3
    assert pool.snapshot().remaining == 0


@pytest.mark.parametrize(
    ("total", "concurrency"), [(-1, 1), (1, 0), (0, -3)]
)
def test_invalid_construction(total, concurrency):
    with pytest.raises(ValueError):
        Downloader(total_resources=total, concurrency=concurrency)


class FlakyConsole:
    """Records printed lines and fails once on the first line matching `fail_on`."""

    def __init__(self, fail_on: str):
        self.fail_on = fail_on
        self.lines: list[str] = []

    def print(self, text, **kwargs):
        if self.fail_on and self.fail_on in text:
            self.fail_on = ""
            raise OSError("broken pipe")
        self.lines.append(text)


def test_failed_end_line_counts_task_once():
    console = FlakyConsole(fail_on="└")
    pool = Downloader(total_resources=2, concurrency=1, console=console)

    async def main():
        def make(name):
            async def body(logger):
                logger.begin(name)
                logger.end(f"{name} done")

            return body

        pool.submit(make("a"))
        pool.submit(make("b"))
        await pool.join()

    asyncio.run(main())
    assert pool.completed_resources == 2
    assert pool.active_slots == frozenset()
    assert console.lines == ["[0/2]┌ a", "[1/2]┌ b", "[2/2]└ b done"]
