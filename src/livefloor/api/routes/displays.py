from __future__ import annotations

from fastapi import APIRouter, Query, Request

from livefloor.api import dependencies
from livefloor.api.ws.manager import ConnectionManager
from livefloor.application.dto.requests import NotificationPreferenceRequest
from livefloor.application.dto.responses import NotificationPreferenceResponse
from livefloor.application.notifications.trigger import (
    NotificationTrigger,
    notifications_preference_key,
)
from livefloor.domain.floor.scope import AccessScope

router = APIRouter()


@router.put(
    "/v1/displays/{display}/notifications",
    response_model=NotificationPreferenceResponse,
)
def set_notifications(
    display: str,
    body: NotificationPreferenceRequest,
    request: Request,
    branch_id: str | None = Query(default=None),
) -> NotificationPreferenceResponse:
    scope = AccessScope.for_branch(branch_id)
    trigger = NotificationTrigger(
        dependencies.NullNotifier(),
        preferences=dependencies.build_preferences(),
        preference_key=notifications_preference_key(display, scope.label),
    )
    trigger.set_enabled(body.enabled)

    manager: ConnectionManager | None = getattr(request.app.state, "ws_manager", None)
    if manager is not None:
        for session in manager.sessions_for(display, scope.label):
            session.notifications.set_enabled(body.enabled)

    return NotificationPreferenceResponse(
        display=display,
        branchId=scope.branch_id,
        enabled=trigger.enabled,
    )
