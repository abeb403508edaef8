from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from taskpilot.deps import get_current_subject

router = APIRouter(tags=["system"])


@router.get("/health")
async def health() -> dict:
  return {"ok": True}


@router.get("/system/metrics")
async def system_metrics(request: Request, subject: str = Depends(get_current_subject)) -> dict:
  out = request.app.state.metrics.snapshot()
  out["version"] = request.app.state.settings.app_version
  out["databaseConnected"] = request.app.state.database.connected
  return out
