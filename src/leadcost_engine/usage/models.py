"""SQLAlchemy models for metered AI usage."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Integer, JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from leadcost_engine.common.models import Base, TimestampMixin, generate_uuid


class UsagePurpose(str, Enum):
    EMAIL_GENERATION = "email_generation"
    SUBJECT_LINE = "subject_line"
    PERSONALIZATION = "personalization"
    ANALYSIS = "analysis"
    OTHER = "other"


class UsageRecordModel(Base, TimestampMixin):
    __tablename__ = "openrouter_usage"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    generation_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    campaign_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    email_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    prompt_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_usd: Mapped[Decimal] = mapped_column(Numeric(12, 6), nullable=False, default=Decimal("0"))
    purpose: Mapped[str] = mapped_column(
        String(50), nullable=False, default=UsagePurpose.OTHER.value, index=True
    )
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
