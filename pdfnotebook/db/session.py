"""
Async database engine and session management
"""
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from pdfnotebook.db import models
from pdfnotebook.logger import logger


class Database:
    """Owns the engine and session factory; built once per process"""

    def __init__(self, db_url: str, echo: bool = False):
        self.db_url = db_url
        self.is_postgres = "postgresql" in db_url

        # Configure engine based on database type
        if self.is_postgres:
            self.engine = create_async_engine(
                db_url,
                echo=echo,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,  # Verify connections before using
            )
        else:
            self.engine = create_async_engine(
                db_url,
                echo=echo,
                poolclass=NullPool,
                connect_args={"check_same_thread": False},
            )
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init_models(self, drop_existing: bool = False):
        """Create tables (optionally dropping them first)"""
        try:
            async with self.engine.begin() as conn:
                if drop_existing:
                    await conn.run_sync(models.metadata.drop_all)
                await conn.run_sync(models.metadata.create_all)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def close(self):
        """Close database connections"""
        try:
            await self.engine.dispose()
            logger.info("Database connections closed")
        except Exception as e:
            logger.error(f"Error closing database: {str(e)}")

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session; used as a FastAPI dependency"""
        async with self.session_factory() as session:
            yield session


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
