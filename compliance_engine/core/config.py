from pydantic import BaseModel
from dotenv import load_dotenv
import os
from typing import Optional

load_dotenv()


def _csv(v: str) -> list[str]:
    return [x.strip() for x in v.split(",") if x.strip()]


def _opt_int(v: Optional[str]) -> Optional[int]:
    return int(v) if v else None


class Settings(BaseModel):
    # Supabase
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Rulebook (document type catalog + global compliance rules)
    RULEBOOK_PATH: str = os.getenv("RULEBOOK_PATH", "")

    # Compliance defaults (unset -> rulebook meta)
    DEFAULT_CURRENCY: Optional[str] = os.getenv("DEFAULT_CURRENCY") or None
    EXPIRING_SOON_DAYS: Optional[int] = _opt_int(os.getenv("EXPIRING_SOON_DAYS"))

    # Alert worker
    ALERT_POLL_SECONDS: int = int(os.getenv("ALERT_POLL_SECONDS", "3600"))
    ALERT_BATCH_CONCURRENCY: int = int(os.getenv("ALERT_BATCH_CONCURRENCY", "8"))

    CORS_ORIGINS: list[str] = _csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    )

settings = Settings()
