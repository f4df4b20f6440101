from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from livefloor.application.dto.responses import LiveFloorResponse
from livefloor.application.ports.gateway import ChangeEvent, ChangeOperation, Entity
from livefloor.application.ports.notifier import Notification

_KNOWN_ENTITIES = {entity.value for entity in Entity}


class MalformedEventError(Exception):
    pass


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    payload: dict[str, Any],
    trace_id: str | None = None,
    request_id: str | None = None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False, default=str)


def serialize_change_event(
    *,
    event: ChangeEvent,
    occurred_at: datetime,
    trace_id: str | None = None,
    request_id: str | None = None,
) -> str:
    return _serialize_event(
        event_type=f"{event.entity}.{event.operation.value}",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload={
            "entity": event.entity,
            "operation": event.operation.value,
            "record": event.record,
        },
    )


def parse_change_event(message: str | bytes) -> ChangeEvent:
    """Decode a change-feed message into a ChangeEvent or raise MalformedEventError."""
    try:
        envelope = json.loads(message)
    except (TypeError, ValueError) as exc:
        raise MalformedEventError("change message is not valid JSON") from exc

    payload = envelope.get("payload") if isinstance(envelope, dict) else None
    if not isinstance(payload, dict):
        raise MalformedEventError("change message has no payload object")

    entity = payload.get("entity")
    if entity not in _KNOWN_ENTITIES:
        raise MalformedEventError(f"unknown entity: {entity!r}")

    try:
        operation = ChangeOperation(str(payload.get("operation", "")).lower())
    except ValueError as exc:
        raise MalformedEventError(f"unknown operation: {payload.get('operation')!r}") from exc

    record = payload.get("record")
    if not isinstance(record, dict):
        raise MalformedEventError("change message record must be an object")

    return ChangeEvent(entity=entity, operation=operation, record=record)


def serialize_floor_snapshot(*, occurred_at: datetime, snapshot: LiveFloorResponse) -> str:
    return _serialize_event(
        event_type="floor.snapshot",
        occurred_at=occurred_at,
        payload=snapshot.model_dump(mode="json"),
    )


def serialize_notification(*, occurred_at: datetime, notification: Notification) -> str:
    return _serialize_event(
        event_type="floor.notification",
        occurred_at=occurred_at,
        payload={
            "entity": notification.entity,
            "recordId": notification.record_id,
            "tableNumber": notification.table_number,
        },
    )
