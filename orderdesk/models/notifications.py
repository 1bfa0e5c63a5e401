"""Database models for notification delivery tracking."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Text, DateTime, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.database import Base
from orderdesk.db_types import UUIDType


class NotificationLog(Base):
    """One row per notification attempt, successful or not."""
    __tablename__ = "notification_logs"
    __table_args__ = (
        Index('ix_notification_logs_order', 'order_id', 'created_at'),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)

    template: Mapped[str] = mapped_column(String(50), nullable=False)
    recipient: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<NotificationLog(template='{self.template}', success={self.success})>"
