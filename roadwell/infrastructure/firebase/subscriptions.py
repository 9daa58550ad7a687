"""Polled live queries.

A Subscription re-runs its query every `interval` seconds in a background
task and pushes the full result set to the callback on first load and on
every change. Callbacks run one at a time, in poll order. A failing query
delivers an empty list once per failure streak.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from roadwell.application.interfaces.gateways import SnapshotCallback

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class Subscription:
    """Handle for a polled live query. Use as an async context manager or call unsubscribe()."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[dict[str, Any]]]],
        on_change: SnapshotCallback,
        *,
        interval: float,
        name: str = "",
        on_close: Callable[[Subscription], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self._on_change = on_change
        self._interval = interval
        self._name = name
        self._on_close = on_close
        self._task: asyncio.Task[None] | None = None
        self._active = False
        self._last: Any = _UNSET
        self._failing = False
        self._closed = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Start polling. Must be called from a running event loop."""
        if self._task is not None:
            return
        self._active = True
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"subscription:{self._name}"
        )

    async def _deliver(self, documents: list[dict[str, Any]]) -> None:
        try:
            result = self._on_change(documents)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Subscription callback failed for %s", self._name)

    async def poll_once(self) -> None:
        """Run one query and deliver the result if it changed."""
        try:
            documents = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Subscription query failed for %s: %s", self._name, e)
            if not self._failing:
                self._failing = True
                self._last = []
                await self._deliver([])
            return
        self._failing = False
        if documents != self._last:
            self._last = documents
            await self._deliver(documents)

    async def _run(self) -> None:
        while self._active:
            await self.poll_once()
            await asyncio.sleep(self._interval)

    def unsubscribe(self) -> None:
        """Stop delivering snapshots. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._active = False
        if self._task is not None:
            self._task.cancel()
        if self._on_close is not None:
            self._on_close(self)

    async def aclose(self) -> None:
        """Unsubscribe and wait for the polling task to finish."""
        task = self._task
        self.unsubscribe()
        self._task = None
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
