"""SQLAlchemy database models for the content repository and scores."""

from datetime import datetime
from typing import AsyncGenerator

from sqlalchemy import DateTime, Integer, LargeBinary, String, UniqueConstraint, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ugcmigrate.config import get_settings

FOLDER_TYPE = "sling:Folder"
FILE_TYPE = "nt:file"
RESOURCE_TYPE = "nt:resource"
CONTENT_NODE = "jcr:content"


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class RepositoryNode(Base):
    """A path-addressable node in the hierarchical content repository."""

    __tablename__ = "repository_nodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String(1000), nullable=False, unique=True, index=True)
    parent_path: Mapped[str | None] = mapped_column(String(1000), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    primary_type: Mapped[str] = mapped_column(String(50), nullable=False)
    uuid: Mapped[str | None] = mapped_column(String(36), nullable=True, unique=True)  # mix:referenceable
    mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    data: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    last_modified: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=func.now())


class Score(Base):
    """A user's score for a community resource under a scoring rule."""

    __tablename__ = "scores"
    __table_args__ = (UniqueConstraint("user_id", "resource_path", "rule_path"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    resource_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    rule_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=func.now(), onupdate=func.now()
    )


# Database engine and session factory
_engine = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(database_url: str | None = None) -> None:
    """Initialize the database and create tables."""
    global _engine, _session_factory

    settings = get_settings()

    _engine = create_async_engine(
        database_url or settings.database_url,
        echo=settings.debug,
    )

    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Create tables
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close the database connection."""
    global _engine, _session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session."""
    if _session_factory is None:
        await init_db()

    assert _session_factory is not None

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
