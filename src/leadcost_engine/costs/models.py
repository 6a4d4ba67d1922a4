"""SQLAlchemy models for monthly cost summaries and budget alerts."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from leadcost_engine.common.models import Base, TimestampMixin, generate_uuid


class MonthlySummaryModel(Base, TimestampMixin):
    """Materialized per-month totals. Always recomputable from raw records."""

    __tablename__ = "monthly_costs"
    __table_args__ = (UniqueConstraint("year", "month", name="unique_year_month"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    instantly_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    google_workspace_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    openrouter_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    openrouter_cost_usd: Mapped[Decimal] = mapped_column(Numeric(12, 6), nullable=False, default=Decimal("0"))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    emails_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meetings_booked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_per_email: Mapped[Decimal] = mapped_column(Numeric(14, 6), nullable=False, default=Decimal("0"))
    cost_per_meeting: Mapped[Decimal] = mapped_column(Numeric(14, 6), nullable=False, default=Decimal("0"))
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(10, 6), nullable=False)

    @property
    def period(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def fixed_cost(self) -> Decimal:
        return self.instantly_cost + self.google_workspace_cost


class CostAlertModel(Base, TimestampMixin):
    __tablename__ = "cost_alerts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    alert_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    threshold_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_triggered: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    triggered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
