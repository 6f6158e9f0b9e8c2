import asyncio
import contextlib
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.config.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Serialization failure and deadlock detected
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})


def create_engine(url: str):
    url = str(url)
    use_echo = settings.LOG_DB
    connect_args = {}
    poolclass = None
    if "sqlite" in url:
        # busy timeout in seconds, writers queue up on the database lock
        connect_args = {"timeout": 15}
        poolclass = NullPool
    kwargs = {"poolclass": poolclass} if poolclass else {}
    return create_async_engine(
        url,
        echo=use_echo,
        future=True,  # use the sqlalchemy 2.0 classes
        connect_args=connect_args,
        **kwargs,
    )


def generate_test_db_dsn(dsn: str) -> str:
    part_dsn, db_name = str(dsn).rsplit("/", 1)
    return f"{part_dsn}/test_{db_name}"


engine = create_engine(settings.DB_DSN)
if "pytest" in sys.modules:
    # point the engine at the testing database
    engine = create_engine(generate_test_db_dsn(settings.DB_DSN))


async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


@contextlib.asynccontextmanager
async def async_session_manager(
    auto_commit=True, session_overwrite: AsyncSession | None = None
) -> AsyncIterator[AsyncSession]:
    if session_overwrite:
        yield session_overwrite
    else:
        async with async_session_maker() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                raise e
            else:
                if auto_commit:
                    await session.commit()


def is_transient_error(exc: BaseException) -> bool:
    """True for lock contention the storage layer may retry transparently."""
    if not isinstance(exc, DBAPIError):
        return False
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True
    return "database is locked" in str(exc.orig)


async def retry_on_contention(
    operation: Callable[[], Awaitable[T]],
    attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """Run a whole unit of work again when the database reports contention.

    ``operation`` must open its own session so every attempt starts a fresh
    transaction.
    """
    attempts = attempts or settings.DB_RETRY_ATTEMPTS
    backoff_seconds = settings.DB_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except DBAPIError as exc:
            if attempt == attempts or not is_transient_error(exc):
                raise
            logger.warning(
                "Transient database contention (attempt %s/%s): %s", attempt, attempts, exc.orig
            )
            await asyncio.sleep(backoff_seconds * attempt)
    raise RuntimeError("retry_on_contention needs at least one attempt")
