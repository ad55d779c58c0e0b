"""Result channel: hands finished rolls to chat/display sinks.

Delivery is fire-and-forget. A roll is committed to history before it is
published, and a failing sink is logged and skipped so it can never undo or
corrupt that roll.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from dicebox.config import settings
from dicebox.models import RollResult

logger = logging.getLogger(__name__)


class RollEvent(BaseModel):
    """A committed roll plus the presentation context it was made with."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    result: RollResult
    breakdown: str
    flavor_text: str | None = None
    speaker: dict[str, Any] | None = None
    critical: bool = False
    fumble: bool = False


class RollSink(Protocol):
    """Interface for roll delivery."""

    def deliver(self, event: RollEvent) -> None:
        """Accept an event without blocking the caller."""
        ...


class LoggingSink:
    """Logs each roll at INFO level."""

    def deliver(self, event: RollEvent) -> None:
        speaker = (event.speaker or {}).get("alias", "someone")
        flavor = f" ({event.flavor_text})" if event.flavor_text else ""
        logger.info("%s rolled %s%s", speaker, event.breakdown, flavor)


class QueueSink:
    """Buffers events on an asyncio.Queue for an async consumer to drain.

    Args:
        maxsize: Queue bound; 0 means unbounded. A full queue raises
            ``asyncio.QueueFull``, which the channel logs.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self.queue: asyncio.Queue[RollEvent] = asyncio.Queue(maxsize=maxsize)

    def deliver(self, event: RollEvent) -> None:
        self.queue.put_nowait(event)


class WebhookSink:
    """POSTs each event as JSON using httpx.

    The request runs as a task on the current event loop and is never awaited
    by the roller. With no running loop the event is dropped with a warning.

    Args:
        url: Endpoint receiving the event JSON.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, e.g. a MockTransport in tests.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._tasks: set[asyncio.Task[None]] = set()

    def deliver(self, event: RollEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, dropping webhook delivery to %s", self._url)
            return
        task = loop.create_task(self._post(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every in-flight delivery to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def _post(self, event: RollEvent) -> None:
        payload = event.model_dump(mode="json", by_alias=True)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self._url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Webhook delivery to %s failed: %s", self._url, exc)
            return
        except Exception:
            # Nothing awaits these tasks, so an escaping error would go unreported.
            logger.exception("Webhook delivery to %s crashed", self._url)
            return
        logger.debug("Webhook delivered roll %r to %s", event.result.expression, self._url)


class RollChannel:
    """Fans events out to subscribed sinks."""

    def __init__(self, sinks: list[RollSink] | None = None) -> None:
        self._sinks: list[RollSink] = list(sinks or [])

    @property
    def sinks(self) -> list[RollSink]:
        return list(self._sinks)

    def subscribe(self, sink: RollSink) -> None:
        self._sinks.append(sink)

    def unsubscribe(self, sink: RollSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def publish(self, event: RollEvent) -> None:
        for sink in list(self._sinks):
            try:
                sink.deliver(event)
            except Exception:
                logger.exception("Roll sink %r failed for %r", sink, event.result.expression)


def get_default_channel() -> RollChannel:
    """Return a channel with the logging sink, plus a webhook sink when configured."""
    sinks: list[RollSink] = [LoggingSink()]
    if settings.roll_webhook_url:
        sinks.append(
            WebhookSink(settings.roll_webhook_url, timeout=settings.roll_webhook_timeout_seconds)
        )
    return RollChannel(sinks)
