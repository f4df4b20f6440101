from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import AsyncIterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from livefloor.api.middleware.request_id import get_request_id
from livefloor.application.ports.audit import AuditLog
from livefloor.application.ports.gateway import RemoteDataGateway
from livefloor.application.ports.notifier import Notification, Notifier
from livefloor.application.ports.preferences import PreferenceStore
from livefloor.application.session.display_session import DisplaySession, local_clock
from livefloor.application.use_cases.context import TraceContext
from livefloor.domain.floor.scope import AccessScope
from livefloor.infrastructure.cache.preference_store import (
    InMemoryPreferenceStore,
    RedisPreferenceStore,
)
from livefloor.infrastructure.cache.redis_client import redis_configured
from livefloor.infrastructure.db.repositories.audit_repo import SqlAlchemyAuditLog
from livefloor.infrastructure.gateway.sqlalchemy_gateway import SqlAlchemyGateway
from livefloor.infrastructure.observability.otel import current_trace_id

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 30.0


class FloorUnavailableError(Exception):
    def __init__(self, message: str, scope: str) -> None:
        super().__init__(message)
        self.details = {"scope": scope}


class NullNotifier(Notifier):
    def notify(self, notification: Notification) -> None:
        return None


def current_trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())


def build_gateway() -> RemoteDataGateway:
    return SqlAlchemyGateway()


@lru_cache(maxsize=1)
def _local_preferences() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


def build_preferences() -> PreferenceStore:
    if redis_configured():
        return RedisPreferenceStore()
    return _local_preferences()


def build_audit_log() -> AuditLog | None:
    return SqlAlchemyAuditLog()


@lru_cache(maxsize=1)
def floor_timezone() -> ZoneInfo | None:
    name = os.getenv("FLOOR_TIMEZONE")
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("floor_timezone_unknown", extra={"reason": name})
        return None


def floor_clock() -> datetime:
    tz = floor_timezone()
    if tz is None:
        return local_clock()
    return datetime.now(tz)


def refresh_interval_seconds() -> float:
    raw_value = os.getenv("FLOOR_REFRESH_INTERVAL_SECONDS")
    if not raw_value:
        return DEFAULT_REFRESH_INTERVAL_SECONDS
    try:
        value = float(raw_value)
    except ValueError:
        return DEFAULT_REFRESH_INTERVAL_SECONDS
    return value if value > 0 else DEFAULT_REFRESH_INTERVAL_SECONDS


def build_session(
    *,
    display: str,
    branch_id: str | None,
    notifier: Notifier | None = None,
    refresh_interval: float | None = None,
) -> DisplaySession:
    return DisplaySession(
        build_gateway(),
        notifier or NullNotifier(),
        display=display,
        scope=AccessScope.for_branch(branch_id),
        preferences=build_preferences(),
        audit_log=build_audit_log(),
        clock=floor_clock,
        refresh_interval_seconds=refresh_interval,
    )


@asynccontextmanager
async def loaded_session(display: str, branch_id: str | None) -> AsyncIterator[DisplaySession]:
    """A session loaded once for a single HTTP request, with no subscriptions."""
    session = build_session(display=display, branch_id=branch_id)
    await session.refresh()
    if not (session.orders.loaded and session.requests.loaded):
        raise FloorUnavailableError("floor state could not be loaded", scope=session.scope.label)
    try:
        yield session
    finally:
        session.orders.close()
        session.requests.close()
