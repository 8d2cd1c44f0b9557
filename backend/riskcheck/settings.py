import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# .env があれば先に読み込む (OPENAI_API_KEY, OPENAI_MODEL など)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Settings(BaseModel):
    """環境変数から読み込むアプリ設定"""
    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    narrative_timeout_seconds: float = _env_float("NARRATIVE_TIMEOUT_SECONDS", 30.0)
    narrative_max_tokens: int = _env_int("NARRATIVE_MAX_TOKENS", 2000)
    narrative_temperature: float = _env_float("NARRATIVE_TEMPERATURE", 0.7)

    session_ttl_seconds: int = _env_int("SESSION_TTL_SECONDS", 60 * 60)

    rate_limit: str = os.getenv("RATE_LIMIT", "100/minute")
    testing: bool = os.getenv("TESTING", "").lower() == "true"

    report_font_path: Optional[str] = os.getenv("REPORT_FONT_PATH") or None
    redis_url: Optional[str] = os.getenv("REDIS_URL") or None

    cors_origins: List[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]


settings = Settings()
