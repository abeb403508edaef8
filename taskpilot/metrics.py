from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from time import monotonic

RETENTION = timedelta(hours=24)


@dataclass
class RequestSample:
  ts: datetime
  status_code: int
  latency_ms: float


def _p95(latencies: list[float]) -> float:
  if not latencies:
    return 0.0
  ordered = sorted(latencies)
  idx = max(0, int(len(ordered) * 0.95) - 1)
  return round(ordered[idx], 2)


class RuntimeMetrics:
  """Rolling in-process request counters, kept for the last 24 hours."""

  def __init__(self) -> None:
    self._started_monotonic = monotonic()
    self._samples: deque[RequestSample] = deque()
    self._lock = Lock()

  def uptime_seconds(self) -> int:
    return max(0, int(monotonic() - self._started_monotonic))

  def observe_request(self, status_code: int, latency_ms: float) -> None:
    now = datetime.now(timezone.utc)
    with self._lock:
      self._samples.append(RequestSample(ts=now, status_code=status_code, latency_ms=latency_ms))
      self._prune_locked(now)

  def _prune_locked(self, now: datetime) -> None:
    cutoff = now - RETENTION
    while self._samples and self._samples[0].ts < cutoff:
      self._samples.popleft()

  def snapshot(self) -> dict:
    now = datetime.now(timezone.utc)
    with self._lock:
      self._prune_locked(now)
      samples = list(self._samples)

    recent = [s for s in samples if s.ts >= now - timedelta(minutes=15)]
    out: dict = {"uptimeSeconds": self.uptime_seconds()}
    for suffix, window in (("15m", recent), ("24h", samples)):
      total = len(window)
      server_errors = sum(1 for s in window if s.status_code >= 500)
      out[f"requestCount{suffix}"] = total
      out[f"clientErrorCount{suffix}"] = sum(1 for s in window if 400 <= s.status_code < 500)
      out[f"errorCount{suffix}"] = server_errors
      out[f"errorRate{suffix}"] = round((server_errors / total) * 100, 2) if total else 0.0
    out["p95LatencyMs24h"] = _p95([s.latency_ms for s in samples])
    return out
