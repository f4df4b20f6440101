from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from livefloor.infrastructure.db.models.base import Base


class ServiceRequestModel(Base):
    __tablename__ = "service_requests"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    branch_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    order_id: Mapped[str | None] = mapped_column(
        String(50),
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
    )
    table_number: Mapped[str] = mapped_column(String(20), nullable=False)
    request_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (Index("ix_service_requests_status_created_at", "status", "created_at"),)
