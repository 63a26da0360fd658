"""Webhook event dispatcher.

Fans server-pushed OpenVidu events out to local subscribers without holding
up the HTTP acknowledgment. Events of one session are delivered strictly in
arrival order by a per-session drain task; events of different sessions are
delivered concurrently. Subscriber failures are logged and dropped, there is
no retry.

Usage:
    dispatcher = WebhookEventDispatcher()
    dispatcher.subscribe(on_left, WebhookEventType.PARTICIPANT_LEFT)
    dispatcher.subscribe(audit)  # every event
    dispatcher.dispatch(payload)  # returns immediately
    await dispatcher.join()  # on shutdown
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from app.schemas.openvidu_enums import WebhookEventType
from app.schemas.openvidu_events import WebhookEvent, parse_webhook_event

EventHandler = Callable[[WebhookEvent], Awaitable[None] | None]

WILDCARD = "*"
# Events without a sessionId share one ordering lane
NO_SESSION = ""


class WebhookEventDispatcher:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._queues: dict[str, deque[WebhookEvent]] = {}
        self._drains: dict[str, asyncio.Task[None]] = {}

    def subscribe(self, handler: EventHandler, *event_types: WebhookEventType | str) -> None:
        """Register ``handler`` for ``event_types``, or for every event when none is given."""
        for event_type in event_types or (WILDCARD,):
            handlers = self._subscribers[str(event_type)]
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        for handlers in self._subscribers.values():
            if handler in handlers:
                handlers.remove(handler)

    @property
    def pending(self) -> int:
        """Events queued but not yet delivered."""
        return sum(len(queue) for queue in self._queues.values())

    def dispatch(self, payload: dict[str, Any] | WebhookEvent) -> WebhookEvent:
        """
        Queue an event for delivery and return at once.

        Must be called from a running event loop.

        Raises:
            ValueError: If the payload has no ``event`` field
            pydantic.ValidationError: If the payload does not match its event model
        """
        event = payload if isinstance(payload, WebhookEvent) else parse_webhook_event(payload)
        key = event.session_id or NO_SESSION

        queue = self._queues.get(key)
        if queue is None:
            queue = self._queues[key] = deque()
        queue.append(event)

        if key not in self._drains:
            self._drains[key] = asyncio.create_task(self._drain(key), name=f"webhook-drain-{key}")

        logger.debug(f"Queued webhook {event.event} for session {key or '<none>'}")
        return event

    async def join(self) -> None:
        """Wait until every queued event has been delivered."""
        while self._drains:
            await asyncio.gather(*list(self._drains.values()), return_exceptions=True)

    async def _drain(self, key: str) -> None:
        queue = self._queues[key]
        try:
            while queue:
                await self._deliver(queue.popleft())
        finally:
            self._drains.pop(key, None)
            if not queue:
                self._queues.pop(key, None)

    async def _deliver(self, event: WebhookEvent) -> None:
        handlers = [*self._subscribers.get(event.event, ()), *self._subscribers.get(WILDCARD, ())]
        if not handlers:
            logger.debug(f"No subscriber for webhook {event.event}")
            return

        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    f"Webhook subscriber {getattr(handler, '__qualname__', handler)!r} "
                    f"failed on {event.event} (session {event.session_id})"
                )
