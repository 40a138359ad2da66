"""Unit tests for the bounded fan-out helpers."""

from __future__ import annotations

import asyncio

import pytest

from src.utils.concurrency import windowed_gather


class _Tracker:
    def __init__(self) -> None:
        self.running = 0
        self.peak = 0
        self.started: list[int] = []

    async def work(self, n: int, fail: bool = False) -> int:
        self.started.append(n)
        self.running += 1
        self.peak = max(self.peak, self.running)
        await asyncio.sleep(0.01)
        self.running -= 1
        if fail:
            raise ValueError(f"item {n} failed")
        return n * 10


class TestWindowedGather:
    @pytest.mark.asyncio
    async def test_results_in_input_order(self) -> None:
        tracker = _Tracker()
        factories = [lambda n=n: tracker.work(n) for n in range(7)]

        results = await windowed_gather(factories, window_size=3)

        assert results == [0, 10, 20, 30, 40, 50, 60]
        assert tracker.peak == 3

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_siblings(self) -> None:
        tracker = _Tracker()
        factories = [lambda n=n: tracker.work(n, fail=(n == 1)) for n in range(4)]

        results = await windowed_gather(factories, window_size=2)

        assert results[0] == 0
        assert isinstance(results[1], ValueError)
        assert results[2:] == [20, 30]

    @pytest.mark.asyncio
    async def test_next_window_waits_for_previous(self) -> None:
        tracker = _Tracker()
        order: list[str] = []

        async def slow() -> None:
            await asyncio.sleep(0.05)
            order.append("slow-done")

        async def later() -> None:
            order.append("later-start")

        await windowed_gather([slow, lambda: tracker.work(1), later], window_size=2)

        assert order == ["slow-done", "later-start"]

    @pytest.mark.asyncio
    async def test_empty_and_invalid_window(self) -> None:
        assert await windowed_gather([], window_size=3) == []
        with pytest.raises(ValueError):
            await windowed_gather([], window_size=0)

