from __future__ import annotations

import asyncio
from typing import Awaitable

from PySide6.QtCore import QObject, Signal


class AsyncBridge(QObject):
    """Run a coroutine on the shared loop and report back through a Qt signal."""

    task_completed = Signal(object, object)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        super().__init__()
        self._loop = loop

    def run_coroutine(self, coro: Awaitable[object]) -> asyncio.Future[None]:
        loop = self._loop or asyncio.get_event_loop()
        return asyncio.ensure_future(self._wrap(coro), loop=loop)

    async def _wrap(self, coro: Awaitable[object]) -> None:
        error = None
        result = None
        try:
            result = await coro
        except Exception as exc:  # noqa: BLE001
            error = exc
        self.task_completed.emit(result, error)


__all__ = ["AsyncBridge"]
