from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_DB_URL = "sqlite:///./dev.db"
# Roughly one day of bitcoin blocks.
DEFAULT_DURATION = 144


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable '{name}' must be an integer, got {raw!r}") from e
    if value < 0:
        raise ValueError(f"Environment variable '{name}' must not be negative")
    return value


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    db_url: str = DEFAULT_DB_URL
    duration: int = DEFAULT_DURATION
    lnd_rest_host: Optional[str] = None
    lnd_macaroon_path: Optional[str] = None
    lnd_tls_cert_path: Optional[str] = None
    telegram_bot_token: Optional[str] = None
    notification_ttl_days: int = 30
    payout_queue_size: int = 16
    payout_timeout: float = 30.0
    log_level: str = "INFO"

    @staticmethod
    def from_env(
        db_url_override: Optional[str] = None,
        duration_override: Optional[int] = None,
    ) -> "Settings":
        load_dotenv()

        settings = Settings(
            db_url=resolve_sqlite_url(os.getenv("DB_URL", DEFAULT_DB_URL), ROOT_DIR),
            duration=_env_int("LOTTERY_DURATION", DEFAULT_DURATION),
            lnd_rest_host=_env_str("LND_REST_HOST"),
            lnd_macaroon_path=_env_str("LND_MACAROON_PATH"),
            lnd_tls_cert_path=_env_str("LND_TLS_CERT_PATH"),
            telegram_bot_token=_env_str("TELEGRAM_BOT_TOKEN"),
            notification_ttl_days=_env_int("NOTIFICATION_TTL_DAYS", 30),
            payout_queue_size=_env_int("PAYOUT_QUEUE_SIZE", 16),
            payout_timeout=float(_env_int("PAYOUT_TIMEOUT", 30)),
            log_level=(_env_str("LOG_LEVEL") or "INFO").upper(),
        )

        # Command line flags win over the environment.
        if db_url_override:
            settings = replace(settings, db_url=resolve_sqlite_url(db_url_override, ROOT_DIR))
        if duration_override is not None:
            settings = replace(settings, duration=duration_override)

        if settings.duration <= 0:
            raise ValueError("The lottery duration must be a positive number of blocks")
        return settings
