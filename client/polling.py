"""
client/polling.py
Fixed-interval polling of a booking's conversation.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Set, Union

import httpx

from client.api import ApiError, MarketplaceClient
from shared.schemas.schemas import MessageWithSender

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3.0  # seconds
DEFAULT_OVERLAP = 5.0   # seconds re-read behind the newest message seen

MessageCallback = Callable[[List[MessageWithSender]], Union[None, Awaitable[None]]]


class MessagePoller:
    """
    Fetch new messages for one booking every ``interval`` seconds and hand
    the unseen ones, oldest first, to ``on_messages``. A failed fetch or a
    failing callback is logged and polling continues on the next tick.

    Usage:
        async with MessagePoller(api, booking.id, show) as poller:
            ...
    """

    def __init__(
        self,
        client: MarketplaceClient,
        booking_id: str,
        on_messages: MessageCallback,
        interval: float = DEFAULT_INTERVAL,
        overlap: float = DEFAULT_OVERLAP,
    ):
        self._client = client
        self._booking_id = booking_id
        self._on_messages = on_messages
        self._interval = interval
        self._overlap = timedelta(seconds=overlap)
        self._since: Optional[datetime] = None
        self._seen: Set[str] = set()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> List[MessageWithSender]:
        # The server filters sentAt >= since. Re-reading a window behind the
        # newest message picks up late commits; ids already seen are dropped.
        since = self._since - self._overlap if self._since else None
        messages = await self._client.messages(self._booking_id, since=since, use_cache=False)
        fresh = [m for m in messages if m.id not in self._seen]
        if not fresh:
            return []

        self._seen.update(m.id for m in fresh)
        newest = max(m.sent_at for m in fresh)
        if self._since is None or newest > self._since:
            self._since = newest
        result = self._on_messages(fresh)
        if inspect.isawaitable(result):
            await result
        return fresh

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except (ApiError, httpx.HTTPError) as exc:
                logger.warning("Polling messages for booking %s failed: %s", self._booking_id, exc)
            except Exception:
                logger.exception("Message callback for booking %s failed", self._booking_id)
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def __aenter__(self) -> "MessagePoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
