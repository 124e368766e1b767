"""SQLAlchemy async engine + session factory."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from confvault.config import settings
from confvault.errors import ConflictError

engine = create_async_engine(settings.database_url, echo=(settings.env == "development"))
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    async with async_session() as session:
        yield session


async def init_db() -> None:
    """Create all tables (dev convenience — use Alembic in production)."""
    import confvault.models  # noqa: F401  register mappers on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping_db() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


_UNIQUE_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == _UNIQUE_SQLSTATE:
        return True
    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


@asynccontextmanager
async def translate_integrity_error(db: AsyncSession, duplicate: Exception) -> AsyncIterator[None]:
    """Roll back on a constraint violation.

    Unique violations raise ``duplicate``; anything else (e.g. a foreign key to a
    row deleted concurrently) raises a generic ConflictError.
    """
    try:
        yield
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc):
            raise duplicate from exc
        raise ConflictError("A referenced resource changed concurrently; retry the request") from exc
