from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Generic, TypeVar

from livefloor.application.mappers.record_mapper import MalformedRecordError
from livefloor.application.metrics.floor_metrics import (
    record_change_event,
    record_change_event_dropped,
    record_refresh_failure,
)
from livefloor.application.ports.gateway import ChangeEvent, ChangeOperation, GatewayError
from livefloor.domain.floor.scope import AccessScope, start_of_day

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


class StoreChange(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass(frozen=True)
class Patch(Generic[T]):
    operation: ChangeOperation
    record_id: str
    value: T | None


class RecordStore(Generic[T]):
    """Today's working set of one entity, refreshed from the gateway and patched by push events.

    A refresh replaces the whole set at once. Push events and confirmed local
    writes applied while a refresh is in flight are journaled and replayed on
    top of the fetched set, so a slow fetch never rolls back newer state.
    After `close()` every pending refresh result is discarded.
    """

    entity: str = ""

    def __init__(self, scope: AccessScope, clock: Clock) -> None:
        self._scope = scope
        self._clock = clock
        self._records: dict[str, T] = {}
        self._version = 0
        self._journals: dict[int, list[Patch[T]]] = {}
        self._refresh_seq = 0
        self._committed_seq = 0
        self._closed = False
        self._loaded = False

    @property
    def version(self) -> int:
        return self._version

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def closed(self) -> bool:
        return self._closed

    def values(self) -> list[T]:
        return list(self._records.values())

    def get(self, record_id: str) -> T | None:
        return self._records.get(str(record_id))

    def __len__(self) -> int:
        return len(self._records)

    def close(self) -> None:
        self._closed = True
        self._journals.clear()

    def window_start(self) -> datetime:
        return start_of_day(self._clock())

    async def refresh(self) -> bool:
        if self._closed:
            return False

        self._refresh_seq += 1
        seq = self._refresh_seq
        journal: list[Patch[T]] = []
        self._journals[seq] = journal
        try:
            fetched = await self._fetch(self.window_start())
        except GatewayError:
            logger.warning("store_refresh_failed", exc_info=True, extra={"store": self.entity})
            record_refresh_failure(self.entity)
            return False
        finally:
            self._journals.pop(seq, None)

        if self._closed:
            logger.info("store_refresh_discarded", extra={"store": self.entity, "reason": "closed"})
            return False
        if seq < self._committed_seq:
            logger.info("store_refresh_discarded", extra={"store": self.entity, "reason": "stale"})
            return False

        fresh = {self._id_of(record): record for record in fetched if self._in_window(record)}
        for patch in journal:
            self._patch(fresh, patch)

        self._records = fresh
        self._committed_seq = seq
        self._loaded = True
        self._version += 1
        return True

    def apply_event(self, event: ChangeEvent) -> StoreChange | None:
        if self._closed:
            return None
        if event.entity != self.entity:
            logger.warning(
                "change_event_dropped",
                extra={"store": self.entity, "entity": event.entity, "reason": "wrong entity"},
            )
            record_change_event_dropped(str(event.entity))
            return None

        try:
            patch = self._parse(event)
        except MalformedRecordError as exc:
            logger.warning(
                "change_event_dropped",
                extra={
                    "store": self.entity,
                    "operation": event.operation.value,
                    "record_id": exc.record_id,
                    "reason": str(exc),
                },
            )
            record_change_event_dropped(self.entity)
            return None

        change = self._apply_patch(patch)
        record_change_event(self.entity, event.operation.value)
        return change

    def _apply_patch(self, patch: Patch[T]) -> StoreChange | None:
        """Patch the live set and journal the patch for every refresh in flight."""
        for pending in self._journals.values():
            pending.append(patch)
        change = self._patch(self._records, patch)
        if change is not None:
            self._version += 1
        return change

    def _parse(self, event: ChangeEvent) -> Patch[T]:
        raise NotImplementedError

    def _patch(self, target: dict[str, T], patch: Patch[T]) -> StoreChange | None:
        raise NotImplementedError

    def _in_window(self, record: T) -> bool:
        raise NotImplementedError

    def _id_of(self, record: T) -> str:
        raise NotImplementedError

    async def _fetch(self, since: datetime) -> list[T]:
        raise NotImplementedError
