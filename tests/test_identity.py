from __future__ import annotations

from datetime import timedelta

import pytest
from httpx import AsyncClient

from conftest import auth_headers, register
from taskpilot.errors import Unauthenticated
from taskpilot.security import IdentityVerifier, TokenStatus, bearer_token


def test_token_round_trip_yields_subject() -> None:
  verifier = IdentityVerifier("k1")
  token = verifier.sign("user-123")
  check = verifier.check(token)
  assert check.status is TokenStatus.OK
  assert check.subject == "user-123"
  assert check.expires_at is not None
  assert verifier.verify(f"Bearer {token}") == "user-123"


def test_expired_token_is_rejected() -> None:
  verifier = IdentityVerifier("k1")
  token = verifier.sign("user-123", expires_in=timedelta(seconds=-5))
  assert verifier.check(token).status is TokenStatus.EXPIRED
  with pytest.raises(Unauthenticated):
    verifier.verify(f"Bearer {token}")


def test_token_signed_with_other_key_is_invalid() -> None:
  token = IdentityVerifier("k1").sign("user-123")
  other = IdentityVerifier("k2")
  assert other.check(token).status is TokenStatus.INVALID
  with pytest.raises(Unauthenticated):
    other.verify(f"Bearer {token}")


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Token abc", "Basic dXNlcjpwdw==", "Bearer not.a.jwt"])
def test_missing_or_malformed_header_fails_closed(header: str | None) -> None:
  with pytest.raises(Unauthenticated):
    IdentityVerifier("k1").verify(header)


def test_bearer_token_extraction() -> None:
  assert bearer_token("Bearer abc.def") == "abc.def"
  assert bearer_token("bearer abc.def") == "abc.def"
  assert bearer_token("abc.def") is None


def test_missing_secret_is_a_configuration_error() -> None:
  with pytest.raises(RuntimeError, match="JWT_SECRET"):
    IdentityVerifier(None).sign("user-123")
  with pytest.raises(RuntimeError, match="JWT_SECRET"):
    IdentityVerifier("").verify("Bearer abc")


@pytest.mark.anyio
async def test_expired_and_forged_tokens_get_identical_responses(app, client: AsyncClient) -> None:
  body = await register(client, "tokens@example.com")
  user_id = body["user"]["id"]

  expired = app.state.identity.sign(user_id, expires_in=timedelta(seconds=-5))
  forged = IdentityVerifier("someone-elses-secret").sign(user_id)

  r_expired = await client.get("/tasks", headers=auth_headers(expired))
  r_forged = await client.get("/tasks", headers=auth_headers(forged))
  r_missing = await client.get("/tasks")
  assert r_expired.status_code == r_forged.status_code == r_missing.status_code == 401
  assert r_expired.json() == r_forged.json() == r_missing.json() == {"detail": "Unauthorized"}

  ok = await client.get("/tasks", headers=auth_headers(body["token"]))
  assert ok.status_code == 200
