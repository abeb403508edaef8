from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  app_version: str = "0.1.0"
  log_level: str = "INFO"

  database_url: str | None = None
  database_echo: bool = False

  jwt_secret: str | None = None
  jwt_algorithm: str = "HS256"
  jwt_ttl_hours: int = 24

  rate_limit_login_ip_per_minute: int = 60
  rate_limit_login_email_per_minute: int = 20
  redis_url: str | None = None

  cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

  ai_provider: str = "gemini"  # gemini | openai
  gemini_api_key: str | None = None
  gemini_model: str = "gemini-2.5-flash"
  gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
  openai_api_key: str | None = None
  openai_base_url: str = "https://api.openai.com/v1"
  openai_model: str = "gpt-4o-mini"
  ai_timeout_seconds: float = 20.0

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def ai_credential_env(self) -> str:
    return "OPENAI_API_KEY" if self.ai_provider.lower() == "openai" else "GEMINI_API_KEY"


settings = Settings()
