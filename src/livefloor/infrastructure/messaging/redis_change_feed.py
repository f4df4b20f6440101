from __future__ import annotations

import asyncio
import logging
import os
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any

from redis import asyncio as redis_asyncio

from livefloor.application.mappers.event_envelope import (
    MalformedEventError,
    parse_change_event,
    serialize_change_event,
)
from livefloor.application.metrics.floor_metrics import record_change_event_dropped
from livefloor.application.ports.gateway import ChangeEvent, ChangeHandler, ChangeOperation
from livefloor.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)


def change_channel(entity: str) -> str:
    return f"changes:{entity}"


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisChangePublisher:
    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(
        self,
        entity: str,
        operation: ChangeOperation,
        record: dict[str, Any],
        *,
        trace_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        message = serialize_change_event(
            event=ChangeEvent(entity=entity, operation=operation, record=record),
            occurred_at=datetime.now(timezone.utc),
            trace_id=trace_id,
            request_id=request_id,
        )
        get_redis_client(timeout_seconds=self._timeout_seconds).publish(
            change_channel(entity), message
        )


def dispatch_message(entity: str, payload: str, on_event: ChangeHandler) -> bool:
    try:
        event = parse_change_event(payload)
    except MalformedEventError as exc:
        logger.warning("change_event_dropped", extra={"entity": entity, "reason": str(exc)})
        record_change_event_dropped(entity)
        return False
    if event.entity != entity:
        logger.warning(
            "change_event_dropped",
            extra={"entity": entity, "reason": f"entity mismatch: {event.entity}"},
        )
        record_change_event_dropped(entity)
        return False
    on_event(event)
    return True


async def listen_for_changes(
    entity: str,
    on_event: ChangeHandler,
    redis_url: str | None = None,
) -> None:
    redis_url = redis_url or os.getenv("REDIS_URL")
    if not redis_url:
        logger.warning("change_feed_not_started", extra={"reason": "REDIS_URL missing"})
        return

    channel = change_channel(entity)
    backoff_seconds = 1.0
    while True:
        client: redis_asyncio.Redis | None = None
        pubsub: redis_asyncio.client.PubSub | None = None
        try:
            client = redis_asyncio.from_url(redis_url)
            pubsub = client.pubsub()
            await pubsub.subscribe(channel)
            logger.info("change_feed_subscribed", extra={"channel": channel})
            backoff_seconds = 1.0

            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is None:
                    await asyncio.sleep(0.05)
                    continue

                payload = _decode_value(message.get("data"))
                if not payload:
                    continue
                try:
                    dispatch_message(entity, payload, on_event)
                except Exception:
                    logger.exception("change_handler_failed", extra={"channel": channel})
        except asyncio.CancelledError:
            logger.info("change_feed_cancelled", extra={"channel": channel})
            raise
        except Exception:
            logger.exception(
                "change_feed_error",
                extra={"channel": channel, "backoff_seconds": backoff_seconds},
            )
            await asyncio.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, 5.0)
        finally:
            if pubsub is not None:
                await pubsub.aclose()
            if client is not None:
                await client.aclose()


class RedisChangeSubscription:
    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    async def cancel(self) -> None:
        if self._task.done():
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task


def subscribe_changes(entity: str, on_event: ChangeHandler) -> RedisChangeSubscription:
    task = asyncio.get_running_loop().create_task(listen_for_changes(entity, on_event))
    return RedisChangeSubscription(task)
