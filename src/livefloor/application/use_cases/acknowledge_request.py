from __future__ import annotations

import logging

from livefloor.application.dto.responses import AcknowledgeRequestResponse
from livefloor.application.metrics.floor_metrics import record_gateway_write_failure
from livefloor.application.ports.audit import AuditAction, AuditEntry, AuditLog
from livefloor.application.ports.gateway import Entity, GatewayError, RemoteDataGateway
from livefloor.application.stores.service_request_queue import ServiceRequestQueue
from livefloor.application.use_cases.context import TraceContext
from livefloor.application.use_cases.order_status import GatewayWriteError, record_audit
from livefloor.domain.common.ids import ServiceRequestId
from livefloor.domain.service_request.entities import ServiceRequestStatus

logger = logging.getLogger(__name__)


class AcknowledgeServiceRequest:
    def __init__(
        self,
        gateway: RemoteDataGateway,
        request_queue: ServiceRequestQueue,
        audit_log: AuditLog | None = None,
    ) -> None:
        self._gateway = gateway
        self._request_queue = request_queue
        self._audit_log = audit_log

    async def execute(
        self,
        request_id: ServiceRequestId,
        trace_ctx: TraceContext | None = None,
    ) -> AcknowledgeRequestResponse:
        request = self._request_queue.get(request_id)
        if request is None or not request.is_pending:
            # not pending today; status is unknown unless the request is still loaded
            return AcknowledgeRequestResponse(
                requestId=str(request_id),
                status=request.status.value if request is not None else None,
                changed=False,
            )

        try:
            await self._gateway.update_service_request_status(
                request.request_id,
                ServiceRequestStatus.COMPLETED,
            )
        except GatewayError as exc:
            record_gateway_write_failure(Entity.SERVICE_REQUESTS.value)
            logger.warning(
                "service_request_write_failed",
                exc_info=True,
                extra={"service_request_id": request.request_id},
            )
            raise GatewayWriteError(
                f"failed to complete service request {request_id}",
                record_id=str(request_id),
            ) from exc

        self._request_queue.apply_confirmed_completion(request.request_id)

        ctx = TraceContext.resolve(trace_ctx)
        await record_audit(
            self._audit_log,
            AuditEntry(
                action=AuditAction.SERVICE_REQUEST_COMPLETED,
                table_name=Entity.SERVICE_REQUESTS.value,
                record_id=str(request.request_id),
                new_data={
                    "request_type": request.request_type.value,
                    "table_number": request.table_number,
                    "status": ServiceRequestStatus.COMPLETED.value,
                },
                trace_id=ctx.trace_id,
                request_id=ctx.request_id,
            ),
        )
        return AcknowledgeRequestResponse(
            requestId=str(request.request_id),
            status=ServiceRequestStatus.COMPLETED.value,
            changed=True,
        )
