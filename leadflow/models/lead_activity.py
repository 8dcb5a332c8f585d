"""Lead activity model module (append-only lead timeline)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadflow.models.base import Base, utcnow
from leadflow.models.enums import ActivityType


class LeadActivity(Base):
    __tablename__ = "lead_activities"
    __table_args__ = (
        Index("idx_lead_activities_lead_created", "lead_id", "created_at"),
        Index("idx_lead_activities_type", "activity_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lead_id: Mapped[int] = mapped_column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    activity_type: Mapped[ActivityType] = mapped_column(Enum(ActivityType), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    activity_metadata: Mapped[dict | None] = mapped_column("metadata", JSON)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))
    created_by_name: Mapped[str | None] = mapped_column(String(255))
    automated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    lead = relationship("Lead", back_populates="activities")
