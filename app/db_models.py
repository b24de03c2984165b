"""SQLAlchemy ORM models backing the persistent state."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .constants import MediaStatus
from .database import Base


class Actor(Base):
    """An account able to own lists and add items to them."""

    __tablename__ = "actors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String(120), unique=True)
    permissions: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Media(Base):
    """Deduplicated record for a movie or show keyed by catalog identifiers."""

    __tablename__ = "media"
    __table_args__ = (
        UniqueConstraint("tmdb_id", "media_type", name="uq_media_tmdb_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tmdb_id: Mapped[int] = mapped_column(Integer, index=True)
    tvdb_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    imdb_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    media_type: Mapped[str] = mapped_column(String(16))
    status: Mapped[int] = mapped_column(Integer, default=int(MediaStatus.UNKNOWN))
    status_4k: Mapped[int] = mapped_column(Integer, default=int(MediaStatus.UNKNOWN))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Medialist(Base):
    """A named, owned collection of media references."""

    __tablename__ = "medialists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    created_by_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("actors.id", ondelete="CASCADE")
    )
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)
    backdrop_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    poster_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    source: Mapped[str | None] = mapped_column(String(16), nullable=True)
    source_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    source_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    auto_update: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    created_by: Mapped[Actor] = relationship(lazy="joined")
    items: Mapped[list["MedialistItem"]] = relationship(
        back_populates="medialist",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MedialistItem.id",
    )


class MedialistItem(Base):
    """One entry of a list, pointing at canonical media or a bare name."""

    __tablename__ = "medialist_items"
    __table_args__ = (
        CheckConstraint(
            "media_id IS NOT NULL OR name IS NOT NULL",
            name="ck_medialist_items_identifiable",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    medialist_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("medialists.id", ondelete="CASCADE"), index=True
    )
    added_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("actors.id", ondelete="SET NULL"), nullable=True
    )
    media_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("media.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[str | None] = mapped_column(String(8), nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    tmdb_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tvdb_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    imdb_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    season_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    episode_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    medialist: Mapped[Medialist] = relationship(back_populates="items")
    media: Mapped[Media | None] = relationship(lazy="joined")
