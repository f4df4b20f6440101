from __future__ import annotations

import asyncio
from uuid import uuid4

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from livefloor.application.ports.audit import AuditEntry, AuditLog
from livefloor.infrastructure.db.models.audit_log import AuditLogModel
from livefloor.infrastructure.db.session import get_engine


class SqlAlchemyAuditLog(AuditLog):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, entry: AuditEntry) -> str:
        audit_id = f"aud_{uuid4().hex}"
        with Session(self._engine) as session:
            session.add(
                AuditLogModel(
                    id=audit_id,
                    action=entry.action.value,
                    table_name=entry.table_name,
                    record_id=entry.record_id,
                    old_data=entry.old_data,
                    new_data=entry.new_data,
                    trace_id=entry.trace_id,
                    request_id=entry.request_id,
                )
            )
            session.commit()
        return audit_id

    async def record(self, entry: AuditEntry) -> None:
        await asyncio.to_thread(self.add, entry)
