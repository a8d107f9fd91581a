"""
Database Manager
asyncpg Pool für Dokumentzugriffe, SQLAlchemy (async Engine) für DDL
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..core.config import settings
from .schema import Base


async def _init_connection(conn: asyncpg.Connection) -> None:
    # jsonb <-> dict ohne manuelles json.dumps an jeder Stelle
    await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


def _dsn(url: str) -> str:
    """asyncpg erwartet postgresql:// ohne +asyncpg"""
    return url.replace("+asyncpg", "")


def _sqlalchemy_url(url: str) -> str:
    if "+asyncpg" in url:
        return url
    return url.replace("postgresql://", "postgresql+asyncpg://", 1)


class DatabaseManager:
    """Datenbankverwaltung mit SQLAlchemy und AsyncPG"""

    def __init__(self, database_url: str | None = None):
        self.database_url = database_url or settings.database_url
        self.engine: AsyncEngine | None = None
        self.pool = None  # AsyncPG Pool
        self.logger = logging.getLogger(__name__)

    async def initialize(self):
        """Initialisiert asynchronen asyncpg Pool und die SQLAlchemy Engine"""
        try:
            self.pool = await asyncpg.create_pool(
                dsn=_dsn(self.database_url),
                min_size=settings.database_pool_min_size,
                max_size=settings.database_pool_max_size,
                command_timeout=60,
                init=_init_connection,
            )
            # Leichter Pool-Check
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            self.engine = create_async_engine(_sqlalchemy_url(self.database_url), future=True)
            self.logger.info("Database initialized (asyncpg pool + SQLAlchemy engine)")
        except Exception as e:
            self.logger.error(f"Failed to initialize database: {e}")
            self.pool = None
            self.engine = None
            raise

    @asynccontextmanager
    async def get_async_connection(self):
        """Context Manager für AsyncPG Verbindungen"""
        if not self.pool:
            raise RuntimeError("Async database pool not initialized")

        async with self.pool.acquire() as connection:
            yield connection

    async def create_tables(self):
        """Erstellt alle Tabellen"""
        if not self.engine:
            raise RuntimeError("Database not initialized")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.logger.info("Database tables created")

    async def drop_tables(self):
        """Löscht alle Tabellen (Vorsicht!)"""
        if not self.engine:
            raise RuntimeError("Database not initialized")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        self.logger.warning("All database tables dropped")

    async def health_check(self) -> dict[str, Any]:
        """Führt einen Gesundheitscheck der Datenbank durch"""
        try:
            async with self.get_async_connection() as conn:
                result = await conn.fetchval("SELECT 1")
            return {
                "async_pool": "healthy" if result == 1 else "unhealthy",
                "pool_size": self.pool.get_size() if self.pool else 0,
                "pool_idle": self.pool.get_idle_size() if self.pool else 0,
            }
        except Exception as e:
            self.logger.error(f"Database health check failed: {e}")
            return {"async_pool": "unhealthy", "error": str(e)}

    async def close(self):
        """Schließt alle Datenbankverbindungen"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("Async database pool closed")

        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.logger.info("Database engine disposed")
