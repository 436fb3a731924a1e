"""PeriodicTask — asyncio Task ベースの周期実行"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable

import structlog

logger = structlog.stdlib.get_logger(__name__)


class PeriodicTask:
    """一定間隔で非同期アクションを実行するタスク。

    アクションは前回の完了を待ってから次を開始するため重複実行されない。
    実行が間隔を超えた場合、取りこぼしたティックは詰めて実行せずスキップする。
    アクションの例外はログに記録し、ループは継続する。
    """

    def __init__(
        self,
        action: Callable[[], Awaitable[object]],
        interval_seconds: float,
        *,
        name: str = "periodic-task",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive: {interval_seconds}")
        self._action = action
        self._interval = interval_seconds
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._stop_requested = False
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> None:
        """ループを開始する。実行中なら何もしない。"""
        if self.running:
            return
        self._stop_requested = False
        self._task = asyncio.create_task(self._run(), name=self._name)

    async def stop(self) -> None:
        """ループを停止する。停止済みなら何もしない。

        タスク自身の中（アクション実行中）から呼ばれた場合は、実行中の
        アクションの完了後にループを抜ける。
        """
        self._stop_requested = True
        task = self._task
        self._task = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval
        while not self._stop_requested:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            try:
                await self._action()
            except Exception as e:
                logger.error("periodic task failed", task=self._name, error=str(e))
            if self._stop_requested:
                break
            next_tick += self._interval
            now = loop.time()
            if next_tick <= now:
                missed = int((now - next_tick) // self._interval) + 1
                next_tick += missed * self._interval
                self.skipped_ticks += missed
                logger.debug("periodic task skipped ticks", task=self._name, skipped=missed)
