"""Notification outbox rows, drained by an external delivery worker."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base, generate_uuid

NOTIFICATION_STATUSES = ("pending", "processing", "sent", "failed")


class NotificationQueueItem(Base):
    __tablename__ = "notification_queue"
    __table_args__ = (Index("ix_notification_queue_status_created", "status", "created_at"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    event_type = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    retry_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    processed_at = Column(DateTime(timezone=True), nullable=True)
