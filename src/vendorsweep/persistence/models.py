"""
SQLAlchemy ORM models for vendorsweep.

Mirrors the shared cache table so a local database can stand in for the
hosted one:
- GlobalCacheEntry: one extraction result per source URL
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Base Class
# =============================================================================


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    type_annotation_map = {
        dict[str, Any]: JSON,
        list[str]: JSON,
    }


# =============================================================================
# Mixins
# =============================================================================


class TimestampMixin:
    """Mixin providing created_at and updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


# =============================================================================
# Cache Entry Model
# =============================================================================


class GlobalCacheEntry(Base, TimestampMixin):
    """Cached extraction result for one product page."""

    __tablename__ = "global_plant_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_url: Mapped[str] = mapped_column(Text, unique=True, nullable=False, index=True)
    identity_key: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    vendor: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)

    extract_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    original_hero_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    scraped_fields: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    scrape_quality: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<GlobalCacheEntry(id={self.id}, source_url='{self.source_url}', quality={self.scrape_quality})>"
