"""SQLAlchemy models for business activity events."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from leadcost_engine.common.models import Base, TimestampMixin, generate_uuid, utc_now


class ActivityType(str, Enum):
    EMAIL_SENT = "email_sent"
    MEETING_BOOKED = "meeting_booked"


class ActivityRecordModel(Base, TimestampMixin):
    __tablename__ = "activity_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    campaign_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
