"""Database engine, session factory, and startup migration helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any

from alembic.config import Config
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from tasktrail import models as _models
from tasktrail.core.config import settings
from tasktrail.core.logging import get_logger
from tasktrail.services.repository import WRITE_TRANSACTION_OPTION, TaskRepository

if TYPE_CHECKING:
    from sqlalchemy.engine.interfaces import DBAPIConnection
    from sqlalchemy.pool import ConnectionPoolEntry

# Import model modules so SQLModel metadata is fully registered at startup.
_MODEL_REGISTRY = _models
PROJECT_ROOT = Path(__file__).resolve().parents[2]
logger = get_logger(__name__)


def _normalize_database_url(database_url: str) -> str:
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme == "sqlite":
        return f"sqlite+aiosqlite://{rest}"
    return database_url


def configure_sqlite(engine: AsyncEngine) -> None:
    """Enforce foreign keys and emit real BEGINs on SQLite connections.

    The sqlite3 driver defers BEGIN until the first write, which would leave
    multi-statement reads outside a transaction; taking over transaction
    control makes every `session.begin()` one SQLite transaction. Connections
    carrying the `WRITE_TRANSACTION_OPTION` execution option begin with
    `BEGIN IMMEDIATE` so concurrent writers queue on the busy timeout instead
    of failing a SHARED to RESERVED lock upgrade.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: DBAPIConnection, _record: ConnectionPoolEntry) -> None:
        dbapi_connection.isolation_level = None  # type: ignore[attr-defined]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        if conn.get_execution_options().get(WRITE_TRANSACTION_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine with dialect-specific connection setup applied."""
    engine = create_async_engine(_normalize_database_url(database_url), **kwargs)
    configure_sqlite(engine)
    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async_engine: AsyncEngine = build_engine(settings.database_url, pool_pre_ping=True)
async_session_maker = build_session_maker(async_engine)


def _alembic_config() -> Config:
    alembic_ini = PROJECT_ROOT / "alembic.ini"

    alembic_cfg = Config(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations() -> None:
    """Apply Alembic migrations to the latest revision."""
    from alembic import command

    logger.info("db.migrations.starting")
    command.upgrade(_alembic_config(), "head")
    logger.info("db.migrations.complete")


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables directly from model metadata."""
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Initialize database schema, running migrations when configured."""
    engine = engine or async_engine
    if settings.db_auto_migrate and engine is async_engine:
        versions_dir = PROJECT_ROOT / "migrations" / "versions"
        if any(versions_dir.glob("*.py")):
            logger.info("db.init.migrating")
            await asyncio.to_thread(run_migrations)
            return
        logger.warning("db.init.no_revisions falling back to create_all")

    await create_schema(engine)


def get_repository() -> TaskRepository:
    """Dependency provider for the process-wide task repository."""
    return TaskRepository(async_session_maker)
