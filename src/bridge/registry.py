"""Registry of open push-channel subscribers."""

from __future__ import annotations

import asyncio
import itertools
import threading
from typing import Awaitable, Callable, List, Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketState


class Subscriber(Protocol):
    """Anything that can receive serialised broadcast messages."""

    @property
    def is_open(self) -> bool: ...

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...


class WebSocketSubscriber:
    """Subscriber backed by an accepted FastAPI ``WebSocket``."""

    _ids = itertools.count(1)

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self.id = next(self._ids)
        client = websocket.client
        self.peer = f"{client.host}:{client.port}" if client else "unknown"

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, message: str) -> None:
        await self._websocket.send_text(message)

    async def close(self) -> None:
        if self.is_open:
            await self._websocket.close(code=1001)

    def __repr__(self) -> str:
        return f"WebSocketSubscriber(id={self.id}, peer={self.peer})"


class SubscriberRegistry:
    """Set of currently connected subscribers.

    Membership changes may interleave with a broadcast; :meth:`for_each` walks
    a snapshot of the members and skips any that were removed meanwhile.
    """

    def __init__(self, close_timeout: float = 1.0) -> None:
        """
        :param close_timeout: Seconds allowed for closing one subscriber channel.
        """
        self._members: set = set()
        self._lock = threading.Lock()
        self._close_timeout = close_timeout

    def add(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._members.add(subscriber)

    def remove(self, subscriber: Subscriber) -> bool:
        """Drop ``subscriber``; return whether it was registered."""
        with self._lock:
            if subscriber in self._members:
                self._members.discard(subscriber)
                return True
            return False

    def __contains__(self, subscriber: object) -> bool:
        with self._lock:
            return subscriber in self._members

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    def is_empty(self) -> bool:
        return len(self) == 0

    def snapshot(self) -> List[Subscriber]:
        with self._lock:
            return list(self._members)

    async def for_each(self, send: Callable[[Subscriber], Awaitable[None]]) -> List[Subscriber]:
        """Await ``send`` for every live member.

        A member already closed is removed. A member whose ``send`` raises is
        removed and its channel closed. The walk continues with the others.

        :return: The members pruned during this walk.
        """
        pruned: List[Subscriber] = []
        for subscriber in self.snapshot():
            if subscriber not in self:
                continue
            if not subscriber.is_open:
                if self.remove(subscriber):
                    pruned.append(subscriber)
                continue
            try:
                await send(subscriber)
            except Exception:
                if self.remove(subscriber):
                    pruned.append(subscriber)
                    await self._close_quietly(subscriber)
        return pruned

    async def close_all(self) -> int:
        """Close and forget every member; return how many were registered."""
        with self._lock:
            members = list(self._members)
            self._members.clear()
        for subscriber in members:
            await self._close_quietly(subscriber)
        return len(members)

    async def _close_quietly(self, subscriber: Subscriber) -> None:
        try:
            await asyncio.wait_for(subscriber.close(), timeout=self._close_timeout)
        except Exception:
            # Peer already gone or unresponsive; nothing left to release.
            return
