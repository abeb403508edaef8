from __future__ import annotations

import logging
from datetime import timedelta
from time import monotonic

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskpilot.ai.providers import get_ai_provider
from taskpilot.ai.suggestions import SuggestionGenerator
from taskpilot.config import Settings, settings as default_settings
from taskpilot.db import Database
from taskpilot.errors import ServiceError
from taskpilot.logging_setup import setup_logging
from taskpilot.metrics import RuntimeMetrics
from taskpilot.rate_limit import RateLimiter
from taskpilot.routers.auth import router as auth_router
from taskpilot.routers.system import router as system_router
from taskpilot.routers.tasks import router as tasks_router
from taskpilot.security import IdentityVerifier

logger = logging.getLogger("taskpilot.app")

INTERNAL_ERROR = {"detail": "Internal server error"}


async def _service_error_handler(_: Request, exc: ServiceError) -> JSONResponse:
  return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
  return JSONResponse(status_code=400, content={"detail": "Invalid request body"})


async def _storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
  logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
  return JSONResponse(status_code=500, content=INTERNAL_ERROR)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
  logger.exception("Unhandled error on %s %s", request.method, request.url.path)
  return JSONResponse(status_code=500, content=INTERNAL_ERROR)


def create_app(config: Settings | None = None) -> FastAPI:
  """Build the API. Raises RuntimeError when DATABASE_URL is not configured."""
  config = config or default_settings
  setup_logging(config.log_level)

  app = FastAPI(title="TaskPilot API", version=config.app_version)
  app.state.settings = config
  app.state.database = Database(config.database_url, echo=config.database_echo)
  app.state.identity = IdentityVerifier(
    config.jwt_secret,
    algorithm=config.jwt_algorithm,
    ttl=timedelta(hours=config.jwt_ttl_hours),
  )
  app.state.suggestions = SuggestionGenerator(get_ai_provider(config), credential_env=config.ai_credential_env())
  app.state.metrics = RuntimeMetrics()
  app.state.rate_limiter = RateLimiter(config.redis_url)

  app.add_exception_handler(ServiceError, _service_error_handler)
  app.add_exception_handler(RequestValidationError, _validation_error_handler)
  app.add_exception_handler(SQLAlchemyError, _storage_error_handler)
  app.add_exception_handler(Exception, _unexpected_error_handler)

  app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origin_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )

  app.include_router(system_router)
  app.include_router(auth_router)
  app.include_router(tasks_router)

  @app.middleware("http")
  async def _request_metrics_middleware(request, call_next):
    start = monotonic()
    response = await call_next(request)
    elapsed_ms = (monotonic() - start) * 1000.0
    app.state.metrics.observe_request(response.status_code, elapsed_ms)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    return response

  @app.on_event("shutdown")
  async def _shutdown() -> None:
    await app.state.database.dispose()

  return app
