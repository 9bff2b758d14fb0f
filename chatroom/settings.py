from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keyword arguments override the environment, which is how tests build one.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        database_name: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        sweep_interval: Optional[float] = None,
        stale_after: Optional[float] = None,
        cors_origins: Optional[List[str]] = None,
        log_level: Optional[str] = None,
    ) -> None:
        self.database_url = database_url or os.getenv(
            "DATABASE_URL", os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        )
        self.database_name = database_name or os.getenv("DATABASE_NAME", "chatroom")
        self.host = host or os.getenv("HOST", "0.0.0.0")
        self.port = int(port if port is not None else os.getenv("PORT", "5000"))
        self.sweep_interval = float(
            sweep_interval if sweep_interval is not None else os.getenv("SWEEP_INTERVAL", "15")
        )
        self.stale_after = float(
            stale_after if stale_after is not None else os.getenv("STALE_AFTER", "10")
        )
        if cors_origins is None:
            cors_origins = [
                o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
            ]
        self.cors_origins = cors_origins
        self.log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

        if self.sweep_interval <= 0:
            raise ValueError("SWEEP_INTERVAL must be greater than zero")
        if self.stale_after <= 0:
            raise ValueError("STALE_AFTER must be greater than zero")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
