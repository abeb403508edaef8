from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from taskpilot.errors import Unauthenticated

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BEARER_PREFIX = "bearer "


def hash_password(password: str) -> str:
  return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
  return pwd_context.verify(password, password_hash)


class TokenStatus(str, enum.Enum):
  OK = "ok"
  EXPIRED = "expired"
  INVALID = "invalid"


@dataclass(frozen=True)
class TokenCheck:
  status: TokenStatus
  subject: str | None = None
  expires_at: datetime | None = None

  @property
  def ok(self) -> bool:
    return self.status is TokenStatus.OK


def bearer_token(authorization: str | None) -> str | None:
  """Extract the token from an `Authorization: Bearer <token>` header value."""
  raw = (authorization or "").strip()
  if not raw.lower().startswith(BEARER_PREFIX):
    return None
  token = raw[len(BEARER_PREFIX):].strip()
  return token or None


class IdentityVerifier:
  """
  Signs and verifies HS256 bearer tokens whose `sub` claim is a user id.

  Verification trusts signature and expiry only; it never looks the user up.
  """

  def __init__(self, secret: str | None, *, algorithm: str = "HS256", ttl: timedelta = timedelta(days=1)) -> None:
    self._secret = secret
    self._algorithm = algorithm
    self._ttl = ttl

  def _key(self) -> str:
    if not self._secret:
      raise RuntimeError("JWT_SECRET is required")
    return self._secret

  def sign(self, subject: str, *, expires_in: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    claims = {"sub": str(subject), "iat": now, "exp": now + (expires_in if expires_in is not None else self._ttl)}
    return jwt.encode(claims, self._key(), algorithm=self._algorithm)

  def check(self, token: str) -> TokenCheck:
    key = self._key()
    try:
      claims = jwt.decode(token, key, algorithms=[self._algorithm], options={"require": ["sub", "exp"]})
    except jwt.ExpiredSignatureError:
      return TokenCheck(TokenStatus.EXPIRED)
    except jwt.InvalidTokenError:
      return TokenCheck(TokenStatus.INVALID)

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
      return TokenCheck(TokenStatus.INVALID)
    return TokenCheck(TokenStatus.OK, subject=subject, expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc))

  def verify(self, authorization: str | None) -> str:
    token = bearer_token(authorization)
    if token is None:
      raise Unauthenticated()
    result = self.check(token)
    # expired and invalid tokens look the same to the caller
    if not result.ok:
      raise Unauthenticated()
    return result.subject
