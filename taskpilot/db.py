from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from taskpilot.models import Base

logger = logging.getLogger("taskpilot.db")


@dataclass(frozen=True)
class DatabaseHandle:
  engine: AsyncEngine
  sessionmaker: async_sessionmaker[AsyncSession]


class Database:
  """
  Lazily connected, process-wide database handle.

  The first ensure_connection() call starts establishing the engine; callers
  arriving while that attempt is in flight await the same attempt. Once it
  succeeds the handle is cached for the life of the object. A failed attempt
  is reported to every waiter and cleared, so the next call starts over.
  """

  def __init__(self, url: str | None, *, echo: bool = False) -> None:
    if not url or not url.strip():
      raise RuntimeError("DATABASE_URL is required")
    self._url = url.strip()
    self._echo = echo
    self._handle: DatabaseHandle | None = None
    self._pending: asyncio.Future[DatabaseHandle] | None = None
    self.establish_attempts = 0

  @property
  def connected(self) -> bool:
    return self._handle is not None

  async def ensure_connection(self) -> DatabaseHandle:
    if self._handle is not None:
      return self._handle

    if self._pending is None:
      self._pending = asyncio.ensure_future(self._establish())
    pending = self._pending
    try:
      # shield: one abandoned request must not cancel the attempt other waiters share
      handle = await asyncio.shield(pending)
    except BaseException:
      if self._pending is pending and pending.done():
        self._pending = None
      raise

    self._handle = handle
    if self._pending is pending:
      self._pending = None
    return handle

  async def _establish(self) -> DatabaseHandle:
    self.establish_attempts += 1
    safe_url = make_url(self._url).render_as_string(hide_password=True)
    logger.info("Creating new database connection to %s", safe_url)
    engine = create_async_engine(self._url, echo=self._echo)
    try:
      async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    except Exception:
      logger.exception("Database connection to %s failed", safe_url)
      await engine.dispose()
      raise
    logger.info("Database connection established")
    return DatabaseHandle(engine=engine, sessionmaker=async_sessionmaker(engine, expire_on_commit=False))

  async def dispose(self) -> None:
    handle, self._handle = self._handle, None
    if handle is not None:
      await handle.engine.dispose()
      logger.info("Database connection closed")
