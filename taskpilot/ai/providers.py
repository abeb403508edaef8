from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx

from taskpilot.config import Settings


class AIProvider(Protocol):
  async def generate(self, *, system: str, prompt: str, max_output_tokens: int, temperature: float) -> str: ...


@dataclass
class GeminiProvider:
  api_key: str
  model: str = "gemini-2.5-flash"
  base_url: str = "https://generativelanguage.googleapis.com/v1beta"
  timeout: float = 20.0
  transport: httpx.AsyncBaseTransport | None = None

  async def generate(self, *, system: str, prompt: str, max_output_tokens: int, temperature: float) -> str:
    headers = {"x-goog-api-key": self.api_key}
    async with httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=self.timeout, transport=self.transport) as client:
      r = await client.post(
        f"/models/{self.model}:generateContent",
        json={
          "systemInstruction": {"parts": [{"text": system}]},
          "contents": [{"role": "user", "parts": [{"text": prompt}]}],
          "generationConfig": {"temperature": temperature, "maxOutputTokens": max_output_tokens},
        },
      )
      r.raise_for_status()
      data = r.json()
      candidates = data.get("candidates") or []
      if not candidates:
        return ""
      parts = (candidates[0].get("content") or {}).get("parts") or []
      return "".join(str(p.get("text") or "") for p in parts)


@dataclass
class OpenAICompatibleProvider:
  api_key: str
  base_url: str = "https://api.openai.com/v1"
  model: str = "gpt-4o-mini"
  timeout: float = 20.0
  transport: httpx.AsyncBaseTransport | None = None

  async def generate(self, *, system: str, prompt: str, max_output_tokens: int, temperature: float) -> str:
    headers = {"Authorization": f"Bearer {self.api_key}"}
    async with httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=self.timeout, transport=self.transport) as client:
      # OpenAI-compatible chat completions API.
      r = await client.post(
        "/chat/completions",
        json={
          "model": self.model,
          "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
          ],
          "temperature": temperature,
          "max_tokens": max_output_tokens,
        },
      )
      r.raise_for_status()
      data = r.json()
      return data["choices"][0]["message"]["content"] or ""


def get_ai_provider(settings: Settings) -> AIProvider | None:
  """Provider for the configured backend, or None when its API key is unset."""
  if settings.ai_provider.lower() == "openai":
    if not settings.openai_api_key:
      return None
    return OpenAICompatibleProvider(
      api_key=settings.openai_api_key,
      base_url=settings.openai_base_url,
      model=settings.openai_model,
      timeout=settings.ai_timeout_seconds,
    )
  if not settings.gemini_api_key:
    return None
  return GeminiProvider(
    api_key=settings.gemini_api_key,
    model=settings.gemini_model,
    base_url=settings.gemini_base_url,
    timeout=settings.ai_timeout_seconds,
  )
