"""
Database Configuration.

SQLAlchemy async engine and session management.
Uses lazy initialization to prevent import-time failures when .env is not configured.

The schema is created at startup by init_database(), which retries
connectivity with a bounded policy and then installs full-text search
support on a best-effort basis.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from notesphere.backend.core.logging import get_logger

logger = get_logger(__name__)

# Module-level state for lazy initialization
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _create_engine() -> AsyncEngine:
    """Create async SQLAlchemy engine."""
    from notesphere.backend.core.config import get_app_config, get_database_url

    db_config = get_app_config().database
    url = get_database_url()

    kwargs: dict[str, Any] = {"echo": db_config.echo}
    if not db_config.is_sqlite:
        kwargs.update(
            pool_size=db_config.pool_size,
            max_overflow=db_config.max_overflow,
            pool_timeout=db_config.pool_timeout,
            pool_recycle=db_config.pool_recycle,
            pool_pre_ping=True,
        )

    engine = create_async_engine(url, **kwargs)
    if db_config.is_sqlite:
        enable_sqlite_savepoints(engine)
    logger.debug(
        "Database engine created",
        extra={"driver": db_config.driver, "host": db_config.host, "database": db_config.name},
    )
    return engine


def enable_sqlite_savepoints(engine: AsyncEngine, begin: str = "BEGIN") -> AsyncEngine:
    """
    Let SQLAlchemy control SQLite transactions so SAVEPOINT works.

    The sqlite3 driver otherwise defers BEGIN until the first DML statement.
    Pass begin="BEGIN IMMEDIATE" to take the write lock when the transaction
    starts, which serializes concurrent writers instead of failing one of them.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql(begin)

    return engine


def get_engine() -> AsyncEngine:
    """
    Get the database engine, creating it on first use.

    Returns:
        SQLAlchemy async engine instance

    Raises:
        RuntimeError: If database configuration is invalid
    """
    global _engine
    if _engine is None:
        _engine = _create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the session factory, creating it on first use.

    Returns:
        SQLAlchemy async session factory
    """
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Usage in endpoints:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_database(engine: AsyncEngine | None = None) -> None:
    """Run a trivial round-trip against the database. Raises on failure."""
    engine = engine or get_engine()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_schema(engine: AsyncEngine, fulltext_enabled: bool = True) -> None:
    """
    Create all tables and, when enabled, the full-text search structures.

    Table creation is idempotent. Full-text installation never fails the
    caller; when it cannot be installed, search uses the substring tier.
    """
    # Model modules must be imported so their tables register on the metadata
    from notesphere.backend.models import audit, note, user  # noqa: F401
    from notesphere.backend.models.base import Base
    from notesphere.backend.repositories.fulltext import install_fulltext

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if fulltext_enabled:
        await install_fulltext(engine)


async def init_database(engine: AsyncEngine | None = None, sleep: Any = None) -> None:
    """
    Ensure the database is reachable and the schema exists.

    Connectivity is retried with the bounded policy from database.yaml
    (init_retry.attempts, init_retry.wait_seconds). Each failed attempt is
    logged; exhausting the attempts logs a fatal event and re-raises the
    last error so the process does not start serving traffic.

    Args:
        engine: Engine to initialize (defaults to the application engine)
        sleep: Optional async sleep override for the retry policy
    """
    from notesphere.backend.core.config import get_app_config
    from notesphere.backend.core.resilience import startup_retrying

    config = get_app_config()
    engine = engine or get_engine()
    retry = config.database.init_retry

    try:
        async for attempt in startup_retrying(
            attempts=retry.attempts,
            wait_seconds=retry.wait_seconds,
            sleep=sleep,
        ):
            with attempt:
                await check_database(engine)
    except Exception as e:
        logger.critical(
            "Database unreachable, giving up",
            extra={"attempts": retry.attempts, "error": str(e)},
        )
        raise

    await create_schema(engine, fulltext_enabled=config.features.fulltext_search_enabled)
    logger.info("Database initialized", extra={"driver": engine.dialect.name})


async def dispose_engine() -> None:
    """Dispose the engine and reset lazy state."""
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.debug("Database engine disposed")
    _engine = None
    _async_session_factory = None
