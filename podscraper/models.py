"""
PodScraper Data Models
=====================

Pydantic models shared by the fetch, extraction, selection and rendering
stages. Models are frozen: every stage builds new collections instead of
editing records in place.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .utils.validators import URLValidator


UNKNOWN_TITLE = "Unknown"


class Source(BaseModel):
    """One feed named in the source list."""
    name: str = Field(..., min_length=1, description="Display name of the feed")
    address: str = Field(..., description="Fetchable feed URL")

    model_config = {"frozen": True}

    @field_validator('address')
    @classmethod
    def validate_address(cls, v):
        """Feed addresses must be absolute http(s) URLs."""
        if not URLValidator.is_absolute_http_url(v):
            raise ValueError(f"Feed address must be an absolute http(s) URL: {v!r}")
        return v

    def __str__(self) -> str:
        return f"Source({self.name})"


class Episode(BaseModel):
    """One media item discovered in a feed."""
    source_name: str = Field(..., min_length=1, description="Display name of the owning feed")
    title: str = Field(default=UNKNOWN_TITLE, description="Episode title")
    published_at: Optional[datetime] = Field(default=None, description="Publication time in UTC")
    media_address: str = Field(..., min_length=1, description="Absolute URL of the media file")

    model_config = {"frozen": True}

    @field_validator('title', mode='before')
    @classmethod
    def default_title(cls, v):
        """Blank or missing titles become the placeholder."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_TITLE
        return v

    @field_validator('published_at')
    @classmethod
    def normalize_to_utc(cls, v):
        """Store every timestamp in UTC; naive values are taken as UTC."""
        if v is None:
            return v
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator('media_address')
    @classmethod
    def validate_media_address(cls, v):
        """Media addresses must be absolute http(s) URLs."""
        if not URLValidator.is_absolute_http_url(v):
            raise ValueError(f"Media address must be an absolute http(s) URL: {v!r}")
        return v

    @property
    def date_label(self) -> str:
        """Publication date as YYYY-MM-DD, or a placeholder when undated."""
        if self.published_at is None:
            return "Unknown date"
        return self.published_at.strftime("%Y-%m-%d")

    def __str__(self) -> str:
        return f"Episode({self.source_name}: {self.title[:50]})"
