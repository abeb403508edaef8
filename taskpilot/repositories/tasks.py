"""Ownership-scoped task storage.

Every read and write filters on both the task id and the caller's user id, so a
task owned by someone else behaves exactly like one that does not exist.
"""
from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskpilot.errors import InvalidInput, NotFoundOrForbidden
from taskpilot.models import Task, utcnow


def _require_text(value: str | None, field: str) -> str:
  text = (value or "").strip()
  if not text:
    raise InvalidInput(f"{field} is required")
  return text


def parse_task_id(task_id: str | None) -> str:
  """Reject ids that could never name a task; returns the canonical form."""
  try:
    return str(uuid.UUID(str(task_id or "").strip()))
  except ValueError:
    raise InvalidInput("Invalid task id") from None


class TaskRepository:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def create(self, owner_id: str, title: str | None, description: str | None) -> Task:
    t = Task(
      title=_require_text(title, "Title"),
      description=_require_text(description, "Description"),
      owner_id=owner_id,
    )
    self.db.add(t)
    await self.db.flush()
    return t

  async def list(self, owner_id: str) -> list[Task]:
    res = await self.db.execute(
      select(Task).where(Task.owner_id == owner_id).order_by(Task.created_at.asc(), Task.seq.asc())
    )
    return list(res.scalars().all())

  async def get(self, owner_id: str, task_id: str) -> Task:
    tid = parse_task_id(task_id)
    res = await self.db.execute(select(Task).where(Task.id == tid, Task.owner_id == owner_id))
    t = res.scalar_one_or_none()
    if t is None:
      raise NotFoundOrForbidden()
    return t

  async def update(self, owner_id: str, task_id: str, title: str | None, description: str | None) -> Task:
    tid = parse_task_id(task_id)
    new_title = _require_text(title, "Title")
    new_description = _require_text(description, "Description")
    t = await self.get(owner_id, tid)
    t.title = new_title
    t.description = new_description
    t.updated_at = utcnow()
    await self.db.flush()
    return t

  async def delete(self, owner_id: str, task_id: str) -> Task:
    t = await self.get(owner_id, task_id)
    await self.db.execute(delete(Task).where(Task.id == t.id, Task.owner_id == owner_id))
    return t
