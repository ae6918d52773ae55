"""
Database session management and configuration.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Any, Dict
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine
)
from sqlalchemy.pool import Pool, NullPool, StaticPool

from vtype.db.base_class import EntityBase

# --- Helper Functions ---
def _get_settings():
    from vtype.core.config import settings
    return settings

def _get_logger():
    from vtype.core.logging import logger
    return logger

class DatabaseSessionManager:
    _instance: Optional['DatabaseSessionManager'] = None

    def __init__(self):
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None
        self._initialized = False
        self._init_call_count = 0
        self.settings = _get_settings()

    @classmethod
    def get_instance(cls) -> 'DatabaseSessionManager':
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def init(
        self,
        db_url: str,
        *,
        poolclass: Optional[type[Pool]] = None,
        engine_kwargs: Optional[Dict[str, Any]] = None,
        session_kwargs: Optional[Dict[str, Any]] = None,
        force: bool = False
    ) -> None:
        logger = _get_logger()
        self._init_call_count += 1
        logger.info(
            "DatabaseSessionManager.init called",
            extra={"call_count": self._init_call_count, "force": force}
        )

        if self._initialized and not force:
            logger.warning("DatabaseSessionManager already initialized.")
            return

        db_url = str(db_url)
        if db_url.startswith("postgresql://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)

        default_engine_kwargs: Dict[str, Any] = {
            "echo": self.settings.DEBUG
        }
        is_sqlite = db_url.startswith("sqlite")
        if not is_sqlite:
            default_engine_kwargs["pool_pre_ping"] = True
            if poolclass is None:
                default_engine_kwargs.update({
                    "pool_size": 5,
                    "max_overflow": 10,
                    "pool_timeout": 30,
                })
        elif poolclass is None and ":memory:" in db_url:
            # every connection to an in-memory SQLite database is a new database
            poolclass = StaticPool
            default_engine_kwargs["connect_args"] = {"check_same_thread": False}
        if poolclass:
            default_engine_kwargs["poolclass"] = poolclass
        if engine_kwargs:
            default_engine_kwargs.update(engine_kwargs)

        self._engine = create_async_engine(db_url, **default_engine_kwargs)

        default_session_kwargs = {
            "class_": AsyncSession,
            "expire_on_commit": False,
            "autoflush": False
        }
        if session_kwargs:
            default_session_kwargs.update(session_kwargs)

        self._sessionmaker = async_sessionmaker(
            self._engine,
            **default_session_kwargs
        )
        self._initialized = True
        logger.info("DatabaseSessionManager initialized", extra={"dialect": self._engine.dialect.name})

    async def close(self) -> None:
        logger = _get_logger()
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            self._initialized = False
            logger.info("Closed all database connections")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if not self._initialized or self._sessionmaker is None:
            raise RuntimeError("DatabaseSessionManager not initialized.")
        session: AsyncSession = self._sessionmaker()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @property
    def engine(self) -> AsyncEngine:
        if not self._initialized or self._engine is None:
            raise RuntimeError("DatabaseSessionManager not initialized.")
        return self._engine

    @property
    def initialized(self) -> bool:
        return self._initialized

# Global instance
sessionmanager = DatabaseSessionManager.get_instance()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields a database session scoped to the request.
    """
    async with sessionmanager.session() as session:
        yield session

async def create_all() -> None:
    async with sessionmanager.engine.begin() as conn:
        await conn.run_sync(EntityBase.metadata.create_all)

async def drop_all() -> None:
    async with sessionmanager.engine.begin() as conn:
        await conn.run_sync(EntityBase.metadata.drop_all)
