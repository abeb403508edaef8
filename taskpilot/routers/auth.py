from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from taskpilot.audit import write_audit
from taskpilot.config import Settings
from taskpilot.deps import client_ip, get_db, get_identity, get_rate_limiter
from taskpilot.errors import InvalidInput, Unauthenticated
from taskpilot.models import User
from taskpilot.rate_limit import RateLimiter
from taskpilot.repositories.users import UserRepository, normalize_email
from taskpilot.schemas import AuthOut, LoginIn, RegisterIn, UserOut
from taskpilot.security import IdentityVerifier

logger = logging.getLogger("taskpilot.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_out(u: User) -> UserOut:
  return UserOut(id=u.id, email=u.email, username=u.username, createdAt=u.created_at)


async def _rate_limit_or_429(limiter: RateLimiter, *, key: str, limit: int, window_seconds: int) -> None:
  # the Redis client is blocking
  allowed, retry_after = await run_in_threadpool(limiter.hit, key, limit=limit, window_seconds=window_seconds)
  if allowed:
    return
  raise HTTPException(
    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    detail={"code": "rate_limited", "message": "Too many requests", "retryAfterSeconds": retry_after},
    headers={"Retry-After": str(retry_after)},
  )


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(
  payload: RegisterIn,
  identity: IdentityVerifier = Depends(get_identity),
  db: AsyncSession = Depends(get_db),
) -> AuthOut:
  email = normalize_email(payload.email)
  username = (payload.username or "").strip()
  if not email or not payload.password or not username:
    raise InvalidInput("Email, password and username are required")

  u = await UserRepository(db).create(email=email, password=payload.password, username=username)
  await write_audit(db, event_type="auth.registered", entity_type="User", entity_id=u.id, actor_id=u.id, payload={"email": email})
  token = identity.sign(u.id)
  await db.commit()
  return AuthOut(message="Registration successful", user=_user_out(u), token=token)


@router.post("/login", response_model=AuthOut)
async def login(
  payload: LoginIn,
  request: Request,
  identity: IdentityVerifier = Depends(get_identity),
  limiter: RateLimiter = Depends(get_rate_limiter),
  db: AsyncSession = Depends(get_db),
) -> AuthOut:
  settings: Settings = request.app.state.settings
  ip = client_ip(request)
  email = normalize_email(payload.email)
  if not email or not payload.password:
    raise InvalidInput("Email and password are required")

  await _rate_limit_or_429(limiter, key=f"auth:login:ip:{ip}", limit=int(settings.rate_limit_login_ip_per_minute), window_seconds=60)
  await _rate_limit_or_429(limiter, key=f"auth:login:email:{email}", limit=int(settings.rate_limit_login_email_per_minute), window_seconds=60)

  u = await UserRepository(db).authenticate(email, payload.password)
  if u is None:
    # same answer for unknown email and wrong password
    logger.info("Rejected login for %s from %s", email, ip)
    await write_audit(db, event_type="auth.login.failed", entity_type="Auth", entity_id=None, payload={"email": email, "ip": ip})
    await db.commit()
    raise Unauthenticated("Invalid email or password")

  token = identity.sign(u.id)
  return AuthOut(message="Login successful", user=_user_out(u), token=token)
