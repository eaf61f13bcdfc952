# intercom/settings.py
from __future__ import annotations

from pydantic import BaseModel
import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y", "on")


class Settings(BaseModel):
    APP_NAME: str = "housemaster-intercom"

    # Redis (likes store)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Dev
    LOG_LEVEL: str = "INFO"

    # WebSocket origin policy (comma-separated)
    WS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173,null"
    # Dev helper: allow any private LAN IP on port 5173
    WS_ALLOW_LAN_ORIGINS: bool = True

    # Shared admin password; empty disables /admin
    ADMIN_PASSWORD: str = ""

    # Mini-game pacing (seconds)
    ROUND_BREAK_SEC: float = 5.0
    GAME_END_DELAY_SEC: float = 5.0


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "housemaster-intercom"),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "3001")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        WS_ALLOWED_ORIGINS=os.getenv(
            "WS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,null",
        ),
        WS_ALLOW_LAN_ORIGINS=_flag("WS_ALLOW_LAN_ORIGINS", "true"),
        ADMIN_PASSWORD=os.getenv("ADMIN_PASSWORD", ""),
        ROUND_BREAK_SEC=float(os.getenv("ROUND_BREAK_SEC", "5")),
        GAME_END_DELAY_SEC=float(os.getenv("GAME_END_DELAY_SEC", "5")),
    )
