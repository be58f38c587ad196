"""SQLAlchemy models for thoughts, tags, share posts, and API usage."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.ext.asyncio import AsyncAttrs, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from thouthy.config import get_settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (SQLite stores no offset)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_thought_id() -> str:
    return str(uuid.uuid4())


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all models."""

    pass


class Thought(Base):
    """A captured free-text thought."""

    __tablename__ = "thoughts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_thought_id)
    original_text: Mapped[str] = mapped_column(Text)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Flags
    is_spark: Mapped[bool] = mapped_column(Boolean, default=False)
    is_parked: Mapped[bool] = mapped_column(Boolean, default=False)
    is_powerful: Mapped[bool] = mapped_column(Boolean, default=False)  # manual pin

    # Share / To-Do / Insight / Just a thought
    potential: Mapped[str | None] = mapped_column(String(20), nullable=True)  # user choice
    best_potential: Mapped[str | None] = mapped_column(String(20), nullable=True)  # AI suggestion
    todo_completed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # Cached powerful score (0-100)
    powerful_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scored_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Timestamps (naive UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    tags: Mapped[list["ThoughtTag"]] = relationship(
        back_populates="thought", cascade="all, delete-orphan", lazy="selectin"
    )
    posts: Mapped[list["SharePost"]] = relationship(
        back_populates="thought", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        Index("idx_thoughts_created", "created_at"),
        Index("idx_thoughts_parked", "is_parked"),
        Index("idx_thoughts_score", "powerful_score"),
    )

    @property
    def tag_names(self) -> list[str]:
        return sorted({t.tag for t in self.tags})

    def __repr__(self) -> str:
        return f"<Thought(id={self.id}, spark={self.is_spark}, parked={self.is_parked})>"


class ThoughtTag(Base):
    """A category label attached to a thought."""

    __tablename__ = "thought_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    thought_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("thoughts.id", ondelete="CASCADE")
    )
    tag: Mapped[str] = mapped_column(String(50))
    tagged_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    thought: Mapped["Thought"] = relationship(back_populates="tags")

    __table_args__ = (
        UniqueConstraint("thought_id", "tag", name="uq_thought_tag"),
        Index("idx_thought_tags_tag", "tag"),
    )


class SharePost(Base):
    """A drafted social post for a thought on one platform."""

    __tablename__ = "share_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    thought_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("thoughts.id", ondelete="CASCADE")
    )
    platform: Mapped[str] = mapped_column(String(20))  # linkedin, twitter, instagram
    draft: Mapped[str | None] = mapped_column(Text, nullable=True)
    shared: Mapped[bool] = mapped_column(Boolean, default=False)
    shared_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    # Relationships
    thought: Mapped["Thought"] = relationship(back_populates="posts")

    __table_args__ = (UniqueConstraint("thought_id", "platform", name="uq_share_post_platform"),)


class ApiUsageLog(Base):
    """Log of Anthropic API usage for cost tracking."""

    __tablename__ = "api_usage_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    service: Mapped[str] = mapped_column(String(30))  # classifier, posts
    model: Mapped[str] = mapped_column(String(50))
    input_tokens: Mapped[int] = mapped_column(Integer, default=0)
    output_tokens: Mapped[int] = mapped_column(Integer, default=0)
    cost_usd: Mapped[float] = mapped_column(Float, default=0.0)
    thought_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    __table_args__ = (
        Index("idx_usage_timestamp", "timestamp"),
        Index("idx_usage_service", "service"),
    )


# Database engine and session factory
_engine = None
_session_factory = None


async def get_engine():
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url, echo=False, connect_args={"timeout": 30}
        )

        # Instrument for OTel tracing
        try:
            from thouthy.tracing import instrument_engine

            instrument_engine(_engine)
        except Exception:
            logger.debug("SQLAlchemy tracing not enabled", exc_info=True)
    return _engine


async def get_session_factory():
    """Get or create the async session factory."""
    global _session_factory
    if _session_factory is None:
        engine = await get_engine()
        _session_factory = async_sessionmaker(engine, expire_on_commit=False)
    return _session_factory


async def init_db():
    """Initialize the database, creating all tables."""
    engine = await get_engine()

    # Enable WAL mode for better concurrent read/write performance
    async with engine.begin() as conn:
        await conn.execute(text("PRAGMA journal_mode=WAL"))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
