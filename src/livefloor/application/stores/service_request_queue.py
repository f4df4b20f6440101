from __future__ import annotations

from datetime import datetime

from livefloor.application.mappers.record_mapper import record_id_of, service_request_from_record
from livefloor.application.ports.gateway import (
    ChangeEvent,
    ChangeOperation,
    Entity,
    RemoteDataGateway,
)
from livefloor.application.stores.base import Clock, Patch, RecordStore, StoreChange
from livefloor.domain.common.ids import ServiceRequestId
from livefloor.domain.floor.scope import AccessScope
from livefloor.domain.service_request.entities import ServiceRequest, ServiceRequestStatus


class ServiceRequestQueue(RecordStore[ServiceRequest]):
    entity = Entity.SERVICE_REQUESTS.value

    def __init__(self, gateway: RemoteDataGateway, scope: AccessScope, clock: Clock) -> None:
        super().__init__(scope=scope, clock=clock)
        self._gateway = gateway

    @property
    def requests(self) -> list[ServiceRequest]:
        return sorted(self.values(), key=lambda request: request.created_at)

    def for_table(self, table_number: str) -> list[ServiceRequest]:
        return [request for request in self.requests if request.table_number == table_number]

    def apply_confirmed_completion(self, request_id: ServiceRequestId) -> bool:
        if self.closed or self.get(request_id) is None:
            return False
        patch: Patch[ServiceRequest] = Patch(
            operation=ChangeOperation.DELETE,
            record_id=str(request_id),
            value=None,
        )
        return self._apply_patch(patch) is not None

    async def _fetch(self, since: datetime) -> list[ServiceRequest]:
        return await self._gateway.fetch_service_requests(
            status=ServiceRequestStatus.PENDING,
            since=since,
            scope=self._scope,
        )

    def _parse(self, event: ChangeEvent) -> Patch[ServiceRequest]:
        if event.operation == ChangeOperation.DELETE:
            record_id = record_id_of(event.record)
            return Patch(operation=event.operation, record_id=record_id, value=None)
        request = service_request_from_record(event.record)
        return Patch(operation=event.operation, record_id=str(request.request_id), value=request)

    def _patch(
        self,
        target: dict[str, ServiceRequest],
        patch: Patch[ServiceRequest],
    ) -> StoreChange | None:
        request = patch.value
        if patch.operation == ChangeOperation.DELETE or request is None:
            if target.pop(patch.record_id, None) is None:
                return None
            return StoreChange.REMOVED

        existing = target.get(patch.record_id)
        if patch.operation == ChangeOperation.INSERT:
            if not self._in_window(request):
                return None
            target[patch.record_id] = request
            return StoreChange.UPDATED if existing is not None else StoreChange.INSERTED

        if existing is None:
            return None
        if not self._in_window(request):
            del target[patch.record_id]
            return StoreChange.REMOVED
        target[patch.record_id] = request
        return StoreChange.UPDATED

    def _in_window(self, record: ServiceRequest) -> bool:
        return (
            record.is_pending
            and record.created_at >= self.window_start()
            and self._scope.includes(record.branch_id)
        )

    def _id_of(self, record: ServiceRequest) -> str:
        return str(record.request_id)
