"""Marketing link model module (attribution aggregate)."""

from __future__ import annotations

from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leadflow.models.base import AuditMixin, Base


class MarketingLink(Base, AuditMixin):
    __tablename__ = "marketing_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    creator_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))
    link_type: Mapped[str] = mapped_column(String(60), default="generic", nullable=False)
    code: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    url: Mapped[str | None] = mapped_column(String(2048))
    title: Mapped[str | None] = mapped_column(String(255))

    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    intake_starts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    intake_completes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    returns_filed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    returns: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    conversions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    intake_conversion_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    complete_conversion_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    filed_conversion_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    link_clicks = relationship("LinkClick", back_populates="link", lazy="dynamic")
