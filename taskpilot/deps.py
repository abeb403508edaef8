from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskpilot.ai.suggestions import SuggestionGenerator
from taskpilot.db import Database
from taskpilot.rate_limit import RateLimiter
from taskpilot.security import IdentityVerifier


def get_database(request: Request) -> Database:
  return request.app.state.database


def get_identity(request: Request) -> IdentityVerifier:
  return request.app.state.identity


def get_suggestion_generator(request: Request) -> SuggestionGenerator:
  return request.app.state.suggestions


def get_rate_limiter(request: Request) -> RateLimiter:
  return request.app.state.rate_limiter


def get_current_subject(request: Request, identity: IdentityVerifier = Depends(get_identity)) -> str:
  return identity.verify(request.headers.get("authorization"))


async def get_db(database: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
  handle = await database.ensure_connection()
  async with handle.sessionmaker() as session:
    yield session


def client_ip(request: Request) -> str:
  return request.client.host if request.client else "unknown"
