"""Application settings and environment loading utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from app.utils.time import seconds_to_millis

PRODUCTION_ORIGINS = (
    "https://deepfold-waitlist.vercel.app",
    "https://deepfold.com",
)
DEVELOPMENT_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


def _load_dotenv() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip().strip("\"'"))


_load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration derived from environment variables."""

    brevo_api_key: str = ""
    brevo_list_id: int = 4
    brevo_base_url: str = "https://api.brevo.com/v3"
    request_timeout_seconds: float = 10.0
    sender_email: str = "deepfold.025@gmail.com"
    sender_name: str = "Deepfold"
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    static_dir: str = "static"
    rate_limit_requests: int = 3
    rate_limit_window_seconds: int = 60
    rate_limit_sweep_probability: float = 0.01

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def allowed_origins(self) -> Tuple[str, ...]:
        return PRODUCTION_ORIGINS if self.is_production else DEVELOPMENT_ORIGINS

    @property
    def rate_limit_window_ms(self) -> int:
        return seconds_to_millis(self.rate_limit_window_seconds)

    @classmethod
    def from_env(cls) -> "Settings":
        environment = os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development"

        return cls(
            brevo_api_key=os.getenv("BREVO_API_KEY", ""),
            brevo_list_id=_env_int("BREVO_LIST_ID", 4),
            brevo_base_url=os.getenv("BREVO_BASE_URL", "https://api.brevo.com/v3").rstrip("/"),
            request_timeout_seconds=_env_float("BREVO_TIMEOUT_SECONDS", 10.0),
            sender_email=os.getenv("SENDER_EMAIL") or "deepfold.025@gmail.com",
            sender_name=os.getenv("SENDER_NAME") or "Deepfold",
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
            environment=environment,
            static_dir=os.getenv("STATIC_DIR", "static"),
            rate_limit_requests=_env_int("WAITLIST_RATE_LIMIT_REQUESTS", 3),
            rate_limit_window_seconds=_env_int("WAITLIST_RATE_LIMIT_WINDOW_SECONDS", 60),
            rate_limit_sweep_probability=_env_float("WAITLIST_SWEEP_PROBABILITY", 0.01),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings.from_env()
