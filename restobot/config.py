# restobot/config.py
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env locally (safe in prod too)
load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


# -------------------
# Config (env-driven)
# -------------------
class Settings(BaseModel):
    paystack_secret_key: str = os.getenv("PAYSTACK_SECRET_KEY", "").strip()
    paystack_base_url: str = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co").rstrip("/")
    paystack_callback_url: str = os.getenv("PAYSTACK_CALLBACK_URL", "").strip()
    payment_timeout_seconds: float = float(_env_int("PAYMENT_TIMEOUT_SECONDS", 10))

    session_secret: str = os.getenv("SESSION_SECRET", "restaurant-chatbot-secret-key")
    session_max_age_seconds: int = _env_int("SESSION_MAX_AGE_SECONDS", 60 * 60 * 24)

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./restobot.db")

    menus_dir: str = os.getenv("MENUS_DIR", str(PROJECT_ROOT / "data"))
    menu_key: str = os.getenv("MENU_KEY", "naija")

    default_customer_email: str = os.getenv("DEFAULT_CUSTOMER_EMAIL", "customer@restaurant.com")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
