"""Attribution payload schemas for marketing-link clicks."""

from __future__ import annotations

from pydantic import BaseModel, Field


class UTMAttribution(BaseModel):
    tracking_code: str = Field(min_length=1, max_length=120)
    source: str | None = Field(default=None, max_length=120)
    medium: str | None = Field(default=None, max_length=120)
    campaign: str | None = Field(default=None, max_length=255)
    content: str | None = Field(default=None, max_length=255)
    term: str | None = Field(default=None, max_length=255)
