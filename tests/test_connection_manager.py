from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from sqlalchemy import text

from conftest import make_settings
from taskpilot.db import Database
from taskpilot.main import create_app


def test_database_url_is_required() -> None:
  with pytest.raises(RuntimeError, match="DATABASE_URL"):
    Database(None)
  with pytest.raises(RuntimeError, match="DATABASE_URL"):
    Database("   ")


def test_create_app_without_database_url_fails_at_startup(tmp_path: Path) -> None:
  with pytest.raises(RuntimeError, match="DATABASE_URL"):
    create_app(make_settings(tmp_path, database_url=None))


@pytest.mark.anyio
async def test_concurrent_first_calls_share_one_connection_attempt(tmp_path: Path) -> None:
  database = Database(f"sqlite+aiosqlite:///{tmp_path / 'single_flight.db'}")
  try:
    handles = await asyncio.gather(*(database.ensure_connection() for _ in range(10)))
    assert database.establish_attempts == 1
    assert all(h is handles[0] for h in handles)

    again = await database.ensure_connection()
    assert again is handles[0]
    assert database.establish_attempts == 1

    async with again.sessionmaker() as session:
      res = await session.execute(text("SELECT 1"))
      assert res.scalar_one() == 1
  finally:
    await database.dispose()


@pytest.mark.anyio
async def test_failed_attempt_reaches_every_waiter_and_is_retried(tmp_path: Path) -> None:
  database = Database(f"sqlite+aiosqlite:///{tmp_path / 'no_such_dir' / 'x.db'}")

  results = await asyncio.gather(*(database.ensure_connection() for _ in range(5)), return_exceptions=True)
  assert all(isinstance(r, Exception) for r in results)
  assert database.establish_attempts == 1
  assert not database.connected

  with pytest.raises(Exception):
    await database.ensure_connection()
  assert database.establish_attempts == 2

  (tmp_path / "no_such_dir").mkdir()
  handle = await database.ensure_connection()
  assert database.establish_attempts == 3
  assert database.connected
  assert await database.ensure_connection() is handle
  await database.dispose()
  assert not database.connected
