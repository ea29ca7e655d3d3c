# db/session.py
# Configures the database connection, session management and the
# background monitor that keeps retrying until the database is reachable.

import asyncio
import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from starlette.concurrency import run_in_threadpool

from recipe_share.core.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # Each driver spells its connect timeout differently.
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}
    if url.startswith("postgresql"):
        return {"connect_timeout": settings.DB_TIMEOUT_SECONDS}
    return {}


def _ensure_sqlite_dir(url: str):
    database = make_url(url).database
    if url.startswith("sqlite") and database and database != ":memory:":
        directory = os.path.dirname(database)
        if directory:
            os.makedirs(directory, exist_ok=True)


_ensure_sqlite_dir(settings.DATABASE_URL)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    pool_pre_ping=True,
    pool_timeout=settings.DB_TIMEOUT_SECONDS,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Dependency to get a database session.
# This will be used in our API endpoints to get a session for database operations.
def get_db():
    """
    SQLAlchemy session generator.
    Yields a session and ensures it's closed afterward.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(bind=None) -> bool:
    """Run a trivial query; True when the database answered."""
    bind = bind or engine
    try:
        with bind.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Database ping failed: {exc}")
        return False


class DatabaseMonitor:
    """
    Owns the connection lifecycle for the application.

    start() launches a background task that pings the database until it
    answers, sleeping retry_seconds between attempts, then creates any missing
    tables. The application keeps serving while the task retries; routes
    simply fail with 500 until the database comes up. stop() cancels the task
    and disposes of the engine's pool.
    """

    def __init__(self, bind=None, retry_seconds: float = None):
        self.bind = bind or engine
        self.retry_seconds = settings.DB_RETRY_SECONDS if retry_seconds is None else retry_seconds
        self.connected = False
        self._task = None
        self._ready = asyncio.Event()

    async def start(self):
        self._task = asyncio.create_task(self._connect_forever())

    async def wait_until_connected(self, timeout: float = None):
        await asyncio.wait_for(self._ready.wait(), timeout)

    async def _connect_forever(self):
        attempt = 0
        while True:
            attempt += 1
            try:
                initialized = await run_in_threadpool(self._initialize)
            except Exception as exc:
                logger.exception(f"Database initialization attempt {attempt} failed: {exc}")
                initialized = False
            if initialized:
                self.connected = True
                self._ready.set()
                logger.info(f"Database connected after {attempt} attempt(s)")
                return
            logger.warning(f"Database unavailable, retrying in {self.retry_seconds}s")
            await asyncio.sleep(self.retry_seconds)

    def _initialize(self) -> bool:
        if not ping(self.bind):
            return False
        try:
            Base.metadata.create_all(bind=self.bind)
        except SQLAlchemyError as exc:
            logger.error(f"Creating tables failed: {exc}")
            return False
        return True

    async def check(self) -> bool:
        self.connected = await run_in_threadpool(ping, self.bind)
        return self.connected

    async def stop(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self.bind.dispose()
        self.connected = False
