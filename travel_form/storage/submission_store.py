"""
Document store client for travel form submissions.

One ``SubmissionStore`` is built per process and shared by every request.
It connects lazily: the first caller creates the engine, verifies the
server answers within the configured timeout and bootstraps the collection.
Concurrent first callers wait for that attempt and then reuse its engine.
A failed attempt is not cached.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from travel_form.config.settings import Settings
from travel_form.core.exceptions import StoreConnectionError, StoreWriteError
from travel_form.models.base import Base
from travel_form.models.travel_form_orm import TravelFormORM

logger = logging.getLogger(__name__)


class SubmissionStore:
    """Lazily connected, process-wide handle on the submissions collection."""

    def __init__(
        self,
        database_url: Optional[str],
        connect_timeout: float = 5.0,
        create_schema: bool = True,
        echo: bool = False,
    ):
        self.database_url = database_url
        self.connect_timeout = connect_timeout
        self.create_schema = create_schema
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._connect_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SubmissionStore":
        return cls(
            database_url=settings.DATABASE_URL,
            connect_timeout=settings.DB_CONNECT_TIMEOUT_SECONDS,
            create_schema=settings.DB_CREATE_SCHEMA,
            echo=settings.DEBUG,
        )

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def _create_engine(self) -> AsyncEngine:
        connect_args = {}
        if make_url(self.database_url).get_driver_name() == "asyncpg":
            connect_args["timeout"] = self.connect_timeout
        return create_async_engine(
            self.database_url,
            echo=self.echo,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args=connect_args,
        )

    async def _prepare(self, engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if self.create_schema:
                await conn.run_sync(Base.metadata.create_all)

    async def connect(self) -> AsyncEngine:
        """
        Return the shared engine, establishing it on first use.

        Callers arriving while the first attempt is in flight wait for it, so
        the collection is bootstrapped once per process.

        Raises:
            StoreConnectionError: If no URL is configured, the server cannot be
                reached, or it does not answer within ``connect_timeout`` seconds.
        """
        if self._engine is not None:
            logger.debug("Using cached database connection")
            return self._engine

        if not self.database_url:
            logger.error("DATABASE_URL is not defined in environment variables")
            raise StoreConnectionError("DATABASE_URL is not defined in environment variables")

        async with self._connect_lock:
            if self._engine is not None:
                logger.debug("Using database connection established by a concurrent request")
                return self._engine
            return await self._establish()

    async def _establish(self) -> AsyncEngine:
        logger.info("Connecting to submission store...")
        try:
            engine = self._create_engine()
        except (SQLAlchemyError, ImportError, ValueError) as e:
            logger.error(f"Invalid submission store configuration: {e}", exc_info=True)
            raise StoreConnectionError(str(e), cause=e) from e

        try:
            await asyncio.wait_for(self._prepare(engine), timeout=self.connect_timeout)
        except asyncio.TimeoutError as e:
            await engine.dispose()
            detail = f"No response from the submission store within {self.connect_timeout}s"
            logger.error(detail)
            raise StoreConnectionError(detail, cause=e) from e
        except Exception as e:
            await engine.dispose()
            logger.error(f"Submission store connection error: {e}", exc_info=True)
            raise StoreConnectionError(str(e), cause=e) from e

        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
            class_=AsyncSession,
        )
        logger.info("Successfully connected to submission store")
        return engine

    async def insert(self, record: TravelFormORM) -> TravelFormORM:
        """
        Persist a new record in a single transaction.

        Failures to obtain or keep a connection are reported separately from
        the store refusing the record itself.

        Raises:
            StoreConnectionError: If the store is not reachable.
            StoreWriteError: If the store rejects the record.
        """
        await self.connect()
        async with self._session_factory() as session:
            try:
                await session.connection()
            except (SQLAlchemyError, OSError) as e:
                logger.error(f"Lost connection to submission store: {e}", exc_info=True)
                raise StoreConnectionError(_describe(e), cause=e) from e

            session.add(record)
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                if isinstance(e, DBAPIError) and e.connection_invalidated:
                    logger.error(f"Connection dropped while saving submission: {e}", exc_info=True)
                    raise StoreConnectionError(_describe(e), cause=e) from e
                logger.error(f"Error saving to database: {e}", exc_info=True)
                raise StoreWriteError(_describe(e), cause=e) from e
        logger.info(f"Successfully saved submission {record.id}")
        return record

    async def get(self, submission_id: str) -> Optional[TravelFormORM]:
        """Fetch a stored record by id, or None if it does not exist."""
        await self.connect()
        async with self._session_factory() as session:
            return await session.get(TravelFormORM, submission_id)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Submission store connection closed")


def _describe(error: Exception) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig else str(error)
