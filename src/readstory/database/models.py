"""
Database models for ReadStory
Stories and their chapters; a chapter is identified by (story_id, key).
"""
from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceSite(str, enum.Enum):
    """Known source sites. Anything unrecognised falls back to ``TRUYEN_FULL``."""

    TRUYEN_FULL = "TRUYEN_FULL"
    MTC = "MTC"

    @classmethod
    def default(cls) -> SourceSite:
        return cls.TRUYEN_FULL

    @classmethod
    def from_value(cls, value: SourceSite | str | None) -> SourceSite:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.default()


class Story(Base):
    """One crawled story; ``slug`` is its identity on the source site."""
    __tablename__ = 'stories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(191), unique=True, nullable=False, index=True)
    title = Column(String(500))
    source = Column(
        Enum(SourceSite, native_enum=False, length=32),
        nullable=False,
        default=SourceSite.TRUYEN_FULL,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    chapters = relationship("Chapter", back_populates="story", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"Story(id={self.id!r}, slug={self.slug!r}, source={self.source!r})"


class Chapter(Base):
    """A chapter body; ``key`` is the site's numeric ordering key."""
    __tablename__ = 'chapters'

    id = Column(Integer, primary_key=True, autoincrement=True)
    story_id = Column(Integer, ForeignKey('stories.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(500))
    key = Column(Integer, nullable=False)
    content = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    story = relationship("Story", back_populates="chapters")

    __table_args__ = (
        UniqueConstraint('story_id', 'key', name='uq_story_chapter_key'),
        Index('idx_story_chapter_key', 'story_id', 'key'),
    )

    def __repr__(self) -> str:
        return f"Chapter(id={self.id!r}, story_id={self.story_id!r}, key={self.key!r})"
