"""
Async SQLAlchemy database manager.
Handles the engine lifecycle, session creation and schema management.
"""

from typing import Dict, Optional

import structlog
from sqlalchemy import event, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from .models import Base

logger = structlog.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores foreign keys unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Async database manager shared by every request.
    Owns the connection pool; sessions are handed out per unit of work.
    """

    def __init__(self, database_url: str, echo: bool = False):
        """
        Initialize database manager.

        Args:
            database_url: SQLAlchemy async connection URL
            echo: Log every emitted SQL statement
        """
        self.database_url = database_url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    async def connect(self) -> None:
        """Create the engine and verify the connection."""
        engine_kwargs = {"echo": self.echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.database_url:
                # A private in-memory database lives only as long as its connection
                engine_kwargs["poolclass"] = StaticPool

        try:
            self.engine = create_async_engine(self.database_url, **engine_kwargs)
            if self.is_sqlite:
                event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))

            logger.info("Successfully connected to database", url=self.engine.url.render_as_string())

        except SQLAlchemyError as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Dispose of the connection pool."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Disconnected from database")

    def session(self) -> AsyncSession:
        """Open a new session bound to the shared engine."""
        if self.session_factory is None:
            raise RuntimeError("Database is not connected")
        return self.session_factory()

    async def create_tables(self) -> None:
        """Create every table of the schema that does not exist yet."""
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", tables=len(Base.metadata.tables))

    async def drop_tables(self) -> None:
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.drop_all)
        logger.warning("Database schema dropped", tables=len(Base.metadata.tables))

    async def health_check(self) -> Dict[str, str]:
        """
        Check that the database answers queries.

        Returns:
            Dictionary with status and optional error message
        """
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
            return {"status": "healthy"}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

    async def get_table_counts(self) -> Dict[str, int]:
        """Count rows of every table in the schema."""
        counts = {}
        async with self.session() as session:
            for name, table in Base.metadata.tables.items():
                result = await session.execute(select(func.count()).select_from(table))
                counts[name] = result.scalar_one()
        return counts
