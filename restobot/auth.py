# restobot/auth.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from jose import JWTError, jwt

from .config import Settings, settings as default_settings

SESSION_COOKIE = "restobot_session"
JWT_ALG = "HS256"


def new_session_id() -> str:
    return uuid4().hex


def create_session_token(session_id: str, config: Optional[Settings] = None) -> str:
    cfg = config or default_settings
    exp = datetime.now(timezone.utc) + timedelta(seconds=cfg.session_max_age_seconds)
    payload = {"sub": session_id, "exp": exp}
    return jwt.encode(payload, cfg.session_secret, algorithm=JWT_ALG)


def decode_session_token(token: Optional[str], config: Optional[Settings] = None) -> Optional[str]:
    """Return the session id, or None for a missing, expired or tampered token."""
    if not token:
        return None
    cfg = config or default_settings
    try:
        data = jwt.decode(token, cfg.session_secret, algorithms=[JWT_ALG])
    except JWTError:
        return None
    sid = data.get("sub")
    return str(sid) if sid else None
