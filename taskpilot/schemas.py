from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class UserOut(BaseModel):
  id: str
  email: str
  username: str
  createdAt: datetime


class RegisterIn(BaseModel):
  email: str | None = None
  password: str | None = None
  username: str | None = None


class LoginIn(BaseModel):
  email: str | None = None
  password: str | None = None


class AuthOut(BaseModel):
  message: str
  user: UserOut
  token: str


# Fields stay optional so blank and missing values reach the same 400 path.
class TaskIn(BaseModel):
  title: str | None = None
  description: str | None = None


class TaskOut(BaseModel):
  id: str
  title: str
  description: str
  owner: str
  createdAt: datetime
  updatedAt: datetime


class MessageOut(BaseModel):
  message: str


class SuggestionsOut(BaseModel):
  suggestions: list[str]
