"""Periodic sync task tests."""

import asyncio

import pytest

from preservation.sync import PeriodicTask


class Counter:
    def __init__(self, fail_first=0):
        self.calls = 0
        self._fail_first = fail_first

    async def __call__(self):
        self.calls += 1
        if self.calls <= self._fail_first:
            raise RuntimeError("remote down")


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


class TestPeriodicTask:

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            PeriodicTask(Counter(), interval_seconds=0)
        with pytest.raises(ValueError):
            PeriodicTask(Counter(), interval_seconds=-1)

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self):
        job = Counter()
        task = PeriodicTask(job, interval_seconds=0.01, name="test")

        task.start()
        assert task.running
        await wait_until(lambda: task.runs >= 2)
        await task.stop()

        assert not task.running
        calls = job.calls
        await asyncio.sleep(0.03)
        assert job.calls == calls

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_loop(self):
        task = PeriodicTask(Counter(fail_first=2), interval_seconds=0.01)

        task.start()
        await wait_until(lambda: task.runs >= 1)
        await task.stop()

        assert task.failures == 2

    @pytest.mark.asyncio
    async def test_start_twice_is_single_loop(self):
        task = PeriodicTask(Counter(), interval_seconds=10)
        task.start()
        first = task._task
        task.start()
        assert task._task is first
        await task.stop()

    @pytest.mark.asyncio
    async def test_stop_before_start_is_noop(self):
        task = PeriodicTask(Counter(), interval_seconds=1)
        await task.stop()
        assert not task.running

    @pytest.mark.asyncio
    async def test_run_once_counts(self):
        task = PeriodicTask(Counter(fail_first=1), interval_seconds=1)
        await task.run_once()
        await task.run_once()
        assert (task.runs, task.failures) == (1, 1)
