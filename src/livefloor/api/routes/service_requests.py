from __future__ import annotations

from fastapi import APIRouter, Query

from livefloor.api import dependencies
from livefloor.application.dto.responses import AcknowledgeRequestResponse
from livefloor.domain.common.ids import ServiceRequestId

router = APIRouter()


@router.post(
    "/v1/service-requests/{request_id}/acknowledge",
    response_model=AcknowledgeRequestResponse,
)
async def acknowledge_service_request(
    request_id: str,
    branch_id: str | None = Query(default=None),
) -> AcknowledgeRequestResponse:
    async with dependencies.loaded_session("waiter", branch_id) as session:
        return await session.transitions.acknowledge_request(
            ServiceRequestId(request_id),
            trace_ctx=dependencies.current_trace_context(),
        )
