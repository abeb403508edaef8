from __future__ import annotations

import logging
import re

from taskpilot.ai.providers import AIProvider

logger = logging.getLogger("taskpilot.ai")

MAX_TITLE_CHARS = 300
MAX_DESCRIPTION_CHARS = 1200
MAX_SUGGESTIONS = 5
MAX_OUTPUT_TOKENS = 200
TEMPERATURE = 0.6

SYSTEM_INSTRUCTION = (
  "You are a helpful task assistant. Given a task title and description, return 3 concise, "
  "actionable suggestions (one per line) to improve, clarify, or expand the task. Keep each "
  "suggestion short (max 100 characters). Return ONLY the bulleted suggestions, nothing else."
)

_BULLET_RE = re.compile(r"^[\-\*\d\.\)\s]+")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


def no_credential_fallback(title: str, credential_env: str = "GEMINI_API_KEY") -> list[str]:
  return [
    f'Consider breaking "{title}" into smaller subtasks.',
    f'Add a deadline for "{title}" to improve tracking.',
    f'Clarify prerequisites or dependencies for "{title}".',
    f"Set {credential_env} to enable live AI suggestions.",
  ]


def empty_response_fallback(title: str) -> list[str]:
  return [
    f'Add a deadline to "{title}".',
    "Break it into smaller subtasks.",
    "Specify acceptance criteria.",
  ]


def provider_error_fallback() -> list[str]:
  return [
    "Error fetching live suggestions. Review dependencies.",
    "Ensure the AI provider API key is valid and deployed.",
  ]


def parse_suggestions(raw: str | None, *, limit: int = MAX_SUGGESTIONS) -> list[str]:
  """
  Turn free-form model output into clean suggestion lines.

  Leading bullets and numbering ("-", "*", "1.", "2)") are stripped, blank
  lines dropped, and at most `limit` lines kept.
  """
  lines: list[str] = []
  for line in _LINE_SPLIT_RE.split(raw or ""):
    cleaned = _BULLET_RE.sub("", line).strip()
    if cleaned:
      lines.append(cleaned)
  return lines[:limit]


class SuggestionGenerator:
  """
  Advisory suggestions for a task.

  suggest() never raises: without a provider it returns a fixed set built from
  the title, and any provider failure or unusable answer degrades to a
  different fixed set.
  """

  def __init__(self, provider: AIProvider | None, *, credential_env: str = "GEMINI_API_KEY") -> None:
    self.provider = provider
    self.credential_env = credential_env

  async def suggest(self, title: str | None, description: str | None) -> list[str]:
    safe_title = (title or "").strip()[:MAX_TITLE_CHARS]
    safe_desc = (description or "").strip()[:MAX_DESCRIPTION_CHARS]

    if self.provider is None:
      return no_credential_fallback(safe_title, self.credential_env)

    prompt = f"Title: {safe_title}\nDescription: {safe_desc}"
    try:
      raw = await self.provider.generate(
        system=SYSTEM_INSTRUCTION,
        prompt=prompt,
        max_output_tokens=MAX_OUTPUT_TOKENS,
        temperature=TEMPERATURE,
      )
    except Exception:
      logger.warning("AI suggestion request failed; returning fallback", exc_info=True)
      return provider_error_fallback()

    lines = parse_suggestions(raw)
    if not lines:
      logger.info("AI suggestion response had no usable lines; returning fallback")
      return empty_response_fallback(safe_title)
    return lines
