from __future__ import annotations
import os
from dataclasses import dataclass
from typing import List
from dotenv import load_dotenv

load_dotenv()

def _split_csv_ints(s: str) -> List[int]:
    out = []
    for part in (s or "").split(","):
        part = part.strip()
        if part:
            out.append(int(part))
    return out

@dataclass(frozen=True)
class Settings:
    bot_token: str
    admin_ids: List[int]
    database_url: str
    media_base_url: str = ""
    ui_default_lang: str = "en"  # en/es
    log_level: str = "INFO"

def load_settings() -> Settings:
    load_dotenv()
    bot_token = os.getenv("BOT_TOKEN")
    if not bot_token:
        raise RuntimeError("BOT_TOKEN is required")

    admin_ids = _split_csv_ints(os.getenv("ADMIN_IDS", ""))
    if not admin_ids:
        raise RuntimeError("ADMIN_IDS is required (comma-separated Telegram user ids)")

    database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/app.db")
    media_base_url = os.getenv("MEDIA_BASE_URL", "").strip()
    ui_default_lang = os.getenv("UI_DEFAULT_LANG", "en").strip().lower()
    if ui_default_lang not in {"en", "es"}:
        raise RuntimeError("UI_DEFAULT_LANG must be en or es")

    return Settings(
        bot_token=bot_token,
        admin_ids=admin_ids,
        database_url=database_url,
        media_base_url=media_base_url,
        ui_default_lang=ui_default_lang,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
