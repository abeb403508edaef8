from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskpilot.ai.suggestions import SuggestionGenerator
from taskpilot.audit import write_audit
from taskpilot.deps import get_current_subject, get_db, get_suggestion_generator
from taskpilot.errors import InvalidInput
from taskpilot.models import Task
from taskpilot.repositories.tasks import TaskRepository
from taskpilot.schemas import MessageOut, SuggestionsOut, TaskIn, TaskOut

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _task_out(t: Task) -> TaskOut:
  return TaskOut(
    id=t.id,
    title=t.title,
    description=t.description,
    owner=t.owner_id,
    createdAt=t.created_at,
    updatedAt=t.updated_at,
  )


@router.get("", response_model=list[TaskOut])
async def list_tasks(subject: str = Depends(get_current_subject), db: AsyncSession = Depends(get_db)) -> list[TaskOut]:
  tasks = await TaskRepository(db).list(subject)
  return [_task_out(t) for t in tasks]


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskIn, subject: str = Depends(get_current_subject), db: AsyncSession = Depends(get_db)) -> TaskOut:
  t = await TaskRepository(db).create(subject, payload.title, payload.description)
  await write_audit(db, event_type="task.created", entity_type="Task", entity_id=t.id, actor_id=subject, payload={"title": t.title})
  await db.commit()
  return _task_out(t)


@router.post("/suggest", response_model=SuggestionsOut)
async def suggest_for_task(
  payload: TaskIn,
  subject: str = Depends(get_current_subject),
  generator: SuggestionGenerator = Depends(get_suggestion_generator),
) -> SuggestionsOut:
  if not (payload.title or "").strip() or not (payload.description or "").strip():
    raise InvalidInput("Title and description required")
  suggestions = await generator.suggest(payload.title, payload.description)
  return SuggestionsOut(suggestions=suggestions)


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(task_id: str, subject: str = Depends(get_current_subject), db: AsyncSession = Depends(get_db)) -> TaskOut:
  t = await TaskRepository(db).get(subject, task_id)
  return _task_out(t)


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
  task_id: str,
  payload: TaskIn,
  subject: str = Depends(get_current_subject),
  db: AsyncSession = Depends(get_db),
) -> TaskOut:
  t = await TaskRepository(db).update(subject, task_id, payload.title, payload.description)
  await write_audit(
    db,
    event_type="task.updated",
    entity_type="Task",
    entity_id=t.id,
    actor_id=subject,
    payload={"title": t.title, "description": t.description[:500]},
  )
  await db.commit()
  return _task_out(t)


@router.delete("/{task_id}", response_model=MessageOut)
async def delete_task(task_id: str, subject: str = Depends(get_current_subject), db: AsyncSession = Depends(get_db)) -> MessageOut:
  t = await TaskRepository(db).delete(subject, task_id)
  await write_audit(db, event_type="task.deleted", entity_type="Task", entity_id=t.id, actor_id=subject, payload={"title": t.title})
  await db.commit()
  return MessageOut(message="Task deleted successfully")
