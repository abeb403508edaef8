from __future__ import annotations


class ServiceError(Exception):
  """Base for failures a handler can report to the caller as-is."""

  status_code = 500

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class InvalidInput(ServiceError):
  status_code = 400


class Unauthenticated(ServiceError):
  status_code = 401

  def __init__(self, message: str = "Unauthorized") -> None:
    super().__init__(message)


class NotFoundOrForbidden(ServiceError):
  # Absent and foreign records share this outcome so callers cannot probe for ids.
  status_code = 404

  def __init__(self, message: str = "Task not found or unauthorized access") -> None:
    super().__init__(message)
