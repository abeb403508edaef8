from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import auth_headers, login, register


@pytest.mark.anyio
async def test_alice_task_lifecycle_with_offline_suggestions(client: AsyncClient) -> None:
  alice = await register(client, "alice@example.com", username="alice")
  token = await login(client, "alice@example.com")
  h = auth_headers(token)

  created = await client.post("/tasks", json={"title": "Write spec", "description": "draft v1"}, headers=h)
  assert created.status_code == 201, created.text
  task = created.json()

  listed = (await client.get("/tasks", headers=h)).json()
  assert len(listed) == 1
  assert listed[0]["id"] == task["id"]
  assert listed[0]["owner"] == alice["user"]["id"]

  updated = await client.put(f"/tasks/{task['id']}", json={"title": "Write spec", "description": "draft v2"}, headers=h)
  assert updated.status_code == 200, updated.text
  assert updated.json()["description"] == "draft v2"
  assert updated.json()["id"] == task["id"]
  assert updated.json()["owner"] == alice["user"]["id"]

  sug = await client.post("/tasks/suggest", json={"title": "Write spec", "description": "draft v2"}, headers=h)
  assert sug.status_code == 200, sug.text
  suggestions = sug.json()["suggestions"]
  assert 1 <= len(suggestions) <= 5
  assert suggestions[0] == 'Consider breaking "Write spec" into smaller subtasks.'

  deleted = await client.delete(f"/tasks/{task['id']}", headers=h)
  assert deleted.status_code == 200
  assert (await client.get("/tasks", headers=h)).json() == []
