import os
from dataclasses import dataclass

from dotenv import load_dotenv


def load_env() -> str:
    """
    Load the .env that lives in apps/api/.env deterministically.
    Returns the absolute env path used (useful for debug).
    """
    # fanline/core/config.py -> fanline/core -> fanline -> apps/api
    api_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    env_path = os.path.join(api_root, ".env")
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def getenv_required(key: str) -> str:
    val = os.getenv(key)
    if not val:
        raise RuntimeError(f"{key} missing. Put it in apps/api/.env")
    return val


def getenv_default(key: str, default: str) -> str:
    return os.getenv(key, default)


def _getenv_float(key: str, default: float) -> float:
    raw = getenv_default(key, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _getenv_int(key: str, default: int) -> int:
    raw = getenv_default(key, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    meter_interval_sec: float = 1.0
    supabase_url: str = ""
    supabase_service_key: str = ""
    media_bucket: str = "content-media"
    media_upload_timeout_s: float = 30.0
    subscription_period_days: int = 30

    @property
    def media_storage_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def load_settings() -> Settings:
    return Settings(
        database_url=getenv_required("DATABASE_URL"),
        log_level=getenv_default("LOG_LEVEL", "INFO").upper(),
        meter_interval_sec=max(0.01, _getenv_float("METER_INTERVAL_SEC", 1.0)),
        supabase_url=getenv_default("SUPABASE_URL", "").strip().rstrip("/"),
        supabase_service_key=getenv_default("SUPABASE_SERVICE_KEY", "").strip(),
        media_bucket=getenv_default("MEDIA_BUCKET", "content-media").strip() or "content-media",
        media_upload_timeout_s=max(1.0, _getenv_float("MEDIA_UPLOAD_TIMEOUT_S", 30.0)),
        subscription_period_days=max(1, _getenv_int("SUBSCRIPTION_PERIOD_DAYS", 30)),
    )
