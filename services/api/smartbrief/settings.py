"""Application configuration loaded from environment variables."""

from pydantic import BaseModel
import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Typed settings with defaults for local development."""

    app_env: str = os.getenv("APP_ENV", "dev")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    gemini_api_base: str = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
    gemini_timeout_seconds: float = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30"))
    gemini_max_retries: int = int(os.getenv("GEMINI_MAX_RETRIES", "0"))
    gemini_retry_backoff: float = float(os.getenv("GEMINI_RETRY_BACKOFF", "0.5"))

    fetch_timeout_seconds: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))
    fetch_max_bytes: int = int(os.getenv("FETCH_MAX_BYTES", "2000000"))
    max_normalized_chars: int = int(os.getenv("MAX_NORMALIZED_CHARS", "50000"))
    max_upload_chars: int = int(os.getenv("MAX_UPLOAD_CHARS", "30000"))
    min_upload_chars: int = int(os.getenv("MIN_UPLOAD_CHARS", "100"))
    strict_validation: bool = _env_bool("STRICT_VALIDATION", "true")

    output_style: str = os.getenv("OUTPUT_STYLE", "structured")
    stream_chunk_delay_ms: int = int(os.getenv("STREAM_CHUNK_DELAY_MS", "50"))
    transcript_provider: str = os.getenv("TRANSCRIPT_PROVIDER", "youtube")

    rate_limit_per_day: int = int(os.getenv("RATE_LIMIT_PER_DAY", "50"))
    rate_limit_max_clients: int = int(os.getenv("RATE_LIMIT_MAX_CLIENTS", "10000"))

    @property
    def cors_origins_list(self) -> list[str]:
        """Return CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in {"prod", "production"}


settings = Settings()
