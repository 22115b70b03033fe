"""
Database engine and session management.

MeetingRepository commits each of its writes itself, so sessions handed out
here are never committed on the caller's behalf. The HTTP handlers and the
reminder scheduler write through separate sessions at the same time; on
SQLite those connections wait on each other's locks instead of failing at once.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from meetdesk.config import get_settings

settings = get_settings()


def _get_async_url(url: str) -> str:
    """Convert database URL to async variant"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return url


def configure_sqlite(engine: AsyncEngine, busy_timeout: int) -> None:
    """Turn on WAL and a busy timeout for every new SQLite connection"""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={busy_timeout * 1000}")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    database_url = _get_async_url(url)

    if database_url.startswith("sqlite"):
        new_engine = create_async_engine(
            database_url,
            echo=echo,
            connect_args={"timeout": settings.DATABASE_BUSY_TIMEOUT_SECONDS},
        )
        configure_sqlite(new_engine, settings.DATABASE_BUSY_TIMEOUT_SECONDS)
        return new_engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
    )


engine = create_engine_for(settings.DATABASE_URL, echo=settings.DEBUG)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency for getting a database session; uncommitted work is rolled back on errors"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
