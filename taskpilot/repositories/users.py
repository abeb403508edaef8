from __future__ import annotations

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskpilot.errors import InvalidInput
from taskpilot.models import User
from taskpilot.security import hash_password, verify_password


def normalize_email(email: str | None) -> str:
  return (email or "").strip().lower()


class UserRepository:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def by_email(self, email: str) -> User | None:
    res = await self.db.execute(select(User).where(User.email == normalize_email(email)))
    return res.scalar_one_or_none()

  async def create(self, *, email: str, password: str, username: str) -> User:
    normalized = normalize_email(email)
    if await self.by_email(normalized) is not None:
      raise InvalidInput("Email already registered")
    # hashing runs in the threadpool
    password_hash = await run_in_threadpool(hash_password, password)
    u = User(email=normalized, username=username.strip(), password_hash=password_hash)
    self.db.add(u)
    try:
      await self.db.flush()
    except IntegrityError:
      # lost a race with a concurrent registration for the same email
      raise InvalidInput("Email already registered") from None
    return u

  async def authenticate(self, email: str, password: str) -> User | None:
    u = await self.by_email(email)
    if u is None or not await run_in_threadpool(verify_password, password, u.password_hash):
      return None
    return u
