"""Lead model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadflow.models.base import AuditMixin, Base
from leadflow.models.enums import LeadStatus, LeadUrgency


class Lead(Base, AuditMixin):
    __tablename__ = "leads"
    __table_args__ = (
        Index("idx_leads_converted_score", "converted_to_client", "lead_score"),
        Index("idx_leads_assigned_to", "assigned_to"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(120))
    last_name: Mapped[str | None] = mapped_column(String(120))
    email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(40))
    state: Mapped[str | None] = mapped_column(String(40))
    filing_status: Mapped[str | None] = mapped_column(String(60))
    source: Mapped[str | None] = mapped_column(String(120))
    estimated_income: Mapped[int | None] = mapped_column(Integer)
    previous_year_agi: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[LeadStatus] = mapped_column(Enum(LeadStatus), default=LeadStatus.NEW, nullable=False)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))
    lead_score: Mapped[int | None] = mapped_column(Integer)
    lead_score_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    urgency: Mapped[LeadUrgency] = mapped_column(Enum(LeadUrgency), default=LeadUrgency.NORMAL, nullable=False)
    email_opens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    email_clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_viewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    converted_to_client: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    assignee = relationship("Profile")
    activities = relationship(
        "LeadActivity",
        back_populates="lead",
        order_by="LeadActivity.created_at.desc()",
        lazy="dynamic",
    )
    tasks = relationship("LeadTask", back_populates="lead", lazy="dynamic")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
