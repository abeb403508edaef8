from __future__ import annotations

import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from taskpilot.config import Settings
from taskpilot.main import create_app


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


def make_settings(tmp_path: Path, **overrides) -> Settings:
  values = {
    "database_url": f"sqlite+aiosqlite:///{tmp_path / 'taskpilot_test.db'}",
    "jwt_secret": "test-secret-not-for-production-use",
    "ai_provider": "gemini",
    "gemini_api_key": None,
    "openai_api_key": None,
    "redis_url": None,
  }
  values.update(overrides)
  return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
  return make_settings(tmp_path)


@pytest.fixture
async def app(settings: Settings):
  application = create_app(settings)
  yield application
  await application.state.database.dispose()
  application.state.rate_limiter.reset_prefix("auth:")


@pytest.fixture
async def client(app) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


def auth_headers(token: str) -> dict[str, str]:
  return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, email: str, password: str = "secret-pw-1", username: str | None = None) -> dict:
  res = await client.post(
    "/auth/register",
    json={"email": email, "password": password, "username": username or email.split("@", 1)[0]},
  )
  assert res.status_code == 201, res.text
  return res.json()


async def login(client: AsyncClient, email: str, password: str = "secret-pw-1") -> str:
  res = await client.post("/auth/login", json={"email": email, "password": password})
  assert res.status_code == 200, res.text
  return res.json()["token"]


async def create_task(client: AsyncClient, token: str, title: str, description: str) -> dict:
  res = await client.post("/tasks", json={"title": title, "description": description}, headers=auth_headers(token))
  assert res.status_code == 201, res.text
  return res.json()
