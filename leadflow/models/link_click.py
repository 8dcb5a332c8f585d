"""Link click model module (per-click journey record)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadflow.models.base import Base, utcnow


class LinkClick(Base):
    __tablename__ = "link_clicks"
    __table_args__ = (
        Index("idx_link_clicks_tracking_code_clicked", "tracking_code", "clicked_at"),
        Index("idx_link_clicks_link", "link_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    link_id: Mapped[int] = mapped_column(ForeignKey("marketing_links.id", ondelete="CASCADE"), nullable=False)
    tracking_code: Mapped[str | None] = mapped_column(String(120))
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(512))
    referrer: Mapped[str | None] = mapped_column(String(2048))
    utm_source: Mapped[str | None] = mapped_column(String(120))
    utm_medium: Mapped[str | None] = mapped_column(String(120))
    utm_campaign: Mapped[str | None] = mapped_column(String(255))
    utm_content: Mapped[str | None] = mapped_column(String(255))
    utm_term: Mapped[str | None] = mapped_column(String(255))

    clicked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    intake_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    intake_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    tax_return_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    converted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))

    link = relationship("MarketingLink", back_populates="link_clicks")
