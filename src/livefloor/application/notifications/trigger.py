from __future__ import annotations

import logging

from livefloor.application.metrics.floor_metrics import record_notification
from livefloor.application.ports.notifier import Notification, Notifier
from livefloor.application.ports.preferences import PreferenceStore
from livefloor.application.stores.base import StoreChange

logger = logging.getLogger(__name__)

_ENABLED = "true"
_DISABLED = "false"


def notifications_preference_key(display: str, scope_label: str) -> str:
    return f"notifications:{display}:{scope_label}"


class NotificationTrigger:
    """Fires the display's alert for newly inserted orders and service requests.

    Only store changes of kind INSERTED fire, at most once each, and only while
    enabled. Notifier failures are logged and never reach the caller.
    """

    def __init__(
        self,
        notifier: Notifier,
        preferences: PreferenceStore | None = None,
        preference_key: str | None = None,
        enabled: bool = True,
    ) -> None:
        self._notifier = notifier
        self._preferences = preferences
        self._preference_key = preference_key
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def load(self) -> bool:
        if self._preferences is None or self._preference_key is None:
            return self._enabled
        try:
            stored = self._preferences.get(self._preference_key)
        except Exception:
            logger.warning(
                "notification_preference_load_failed",
                exc_info=True,
                extra={"preference_key": self._preference_key},
            )
            return self._enabled
        if stored is not None:
            self._enabled = stored != _DISABLED
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        if self._preferences is None or self._preference_key is None:
            return
        try:
            self._preferences.set(self._preference_key, _ENABLED if enabled else _DISABLED)
        except Exception:
            logger.warning(
                "notification_preference_save_failed",
                exc_info=True,
                extra={"preference_key": self._preference_key},
            )

    def on_change(
        self,
        entity: str,
        change: StoreChange | None,
        record_id: str,
        table_number: str | None,
    ) -> bool:
        if change != StoreChange.INSERTED or not self._enabled:
            return False

        notification = Notification(entity=entity, record_id=record_id, table_number=table_number)
        try:
            self._notifier.notify(notification)
        except Exception:
            logger.warning(
                "notification_failed",
                exc_info=True,
                extra={"entity": entity, "record_id": record_id},
            )
            record_notification(entity, delivered=False)
            return True

        record_notification(entity, delivered=True)
        return True
