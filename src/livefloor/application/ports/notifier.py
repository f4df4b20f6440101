from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Notification:
    entity: str
    record_id: str
    table_number: str | None


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...
