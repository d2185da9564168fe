from typing import Dict, AsyncGenerator
from contextlib import asynccontextmanager
import urllib.parse
import asyncio
from pkg.db_util.types import PostgresConfig
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from pkg.log.logger import get_logger


# Module-level cache: one engine/sessionmaker per database URL
_engine_cache: Dict[str, AsyncEngine] = {}
_sessionmaker_cache: Dict[str, async_sessionmaker] = {}


class PostgresConnection:
    """Lazily creates a pooled asyncpg engine and hands out AsyncSessions."""

    def __init__(self, db_config: PostgresConfig, logger=None):
        if not db_config.host:
            raise ValueError("Database host configuration is missing.")
        self.db_config = db_config
        self.logger = logger or get_logger(__name__)
        self._db_url = self._generate_db_url()

    def _generate_db_url(self) -> str:
        cfg = self.db_config
        encoded_password = urllib.parse.quote_plus(cfg.password) if cfg.password else ''
        return f"postgresql+asyncpg://{cfg.username}:{encoded_password}@{cfg.host}:{cfg.port}/{cfg.database}"

    async def get_engine(self, max_retries: int = 3, initial_delay: float = 2.0) -> AsyncEngine:
        """Get or create the engine, retrying the first connection with exponential backoff."""
        if self._db_url in _engine_cache:
            return _engine_cache[self._db_url]

        pool_opts = {
            "pool_size": self.db_config.pool_size,
            "max_overflow": self.db_config.max_overflow,
            "pool_timeout": self.db_config.pool_timeout,
            "pool_recycle": self.db_config.pool_recycle,
            "pool_pre_ping": True,
        }
        self.logger.info(f"Creating async engine with pool options: {pool_opts}")

        last_error = None
        for attempt in range(max_retries):
            try:
                engine = create_async_engine(
                    self._db_url,
                    echo=False,
                    connect_args={
                        "timeout": 15,
                        "command_timeout": 15,
                        "server_settings": {"application_name": "wingman"},
                    },
                    **pool_opts
                )

                self.logger.info(f"Testing database connection (attempt {attempt + 1}/{max_retries})...")
                async with engine.connect() as conn:
                    await conn.exec_driver_sql("SELECT 1")

                _engine_cache[self._db_url] = engine
                _sessionmaker_cache[self._db_url] = async_sessionmaker(
                    bind=engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )
                self.logger.info("Async engine and sessionmaker created and cached.")
                return engine

            except (SQLAlchemyError, OSError, ConnectionError) as e:
                last_error = e
                delay = initial_delay * (2 ** attempt)
                if attempt < max_retries - 1:
                    self.logger.warning(
                        f"Database connection attempt {attempt + 1}/{max_retries} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    self.logger.error(f"Failed to create database engine after {max_retries} attempts: {e}", exc_info=True)

        raise ConnectionError(f"Could not create database engine after {max_retries} attempts: {last_error}") from last_error

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session; commits on success, rolls back on any error."""
        await self.get_engine()
        sessionmaker = _sessionmaker_cache.get(self._db_url)
        if sessionmaker is None:
            raise ConnectionError("Database engine/sessionmaker not initialized.")

        session: AsyncSession = sessionmaker()
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception as e:
            self.logger.error(f"Error in session {id(session)}: {e}. Rolling back.")
            if session.in_transaction():
                await session.rollback()
            raise
        finally:
            await session.close()

    async def close_engine(self):
        engine = _engine_cache.pop(self._db_url, None)
        _sessionmaker_cache.pop(self._db_url, None)
        if engine is not None:
            self.logger.info("Closing database engine and connection pool...")
            await engine.dispose()
