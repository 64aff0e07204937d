import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass
class Settings:
    database_url: str = "sqlite:///./api_tester.db"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )
    send_timeout: float = 30.0
    send_max_redirects: int = 5
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3001

    @classmethod
    def from_env(cls) -> "Settings":
        s = cls()
        s.database_url = os.getenv("DATABASE_URL", s.database_url)
        if os.getenv("CORS_ORIGINS"):
            s.cors_origins = _split(os.environ["CORS_ORIGINS"])
        s.send_timeout = float(os.getenv("SEND_TIMEOUT", s.send_timeout))
        s.send_max_redirects = int(os.getenv("SEND_MAX_REDIRECTS", s.send_max_redirects))
        s.log_level = os.getenv("LOG_LEVEL", s.log_level).upper()
        s.host = os.getenv("HOST", s.host)
        s.port = int(os.getenv("PORT", s.port))
        return s


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
