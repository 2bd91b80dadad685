# restobot/main.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Cookie, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from .auth import SESSION_COOKIE, create_session_token, decode_session_token, new_session_id
from .config import settings
from .db import Base, engine, get_db
from .logging_config import setup_logging
from .ordering import render
from .ordering.catalog import Catalog, load_catalog
from .ordering.engine import handle_input, initialize_payment, verify_payment
from .ordering.state import ConversationState
from .payment import NOT_CONFIGURED, PaymentGateway, PaystackGateway
from .sessions import SessionLocks, SessionStore, SqlSessionStore

setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Restaurant Chatbot API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

Base.metadata.create_all(bind=engine)

session_locks = SessionLocks()
_gateway: PaymentGateway = PaystackGateway(settings)


# -------------------
# Schemas
# -------------------
class ChatIn(BaseModel):
    message: Optional[str] = None


class PaymentInitIn(BaseModel):
    amount: Optional[int] = None
    email: Optional[EmailStr] = None


class PaymentVerifyIn(BaseModel):
    reference: Optional[str] = None


# -------------------
# Dependencies
# -------------------
def get_catalog() -> Catalog:
    return load_catalog()


def get_gateway() -> PaymentGateway:
    return _gateway


def get_session_store(db: Session = Depends(get_db)) -> SessionStore:
    return SqlSessionStore(db)


def _set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=create_session_token(session_id),
        httponly=True,
        samesite="lax",
        max_age=settings.session_max_age_seconds,
    )


def require_session_id(
    response: Response,
    token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
) -> str:
    """
    Opaque per-device session handle:
      - valid signed cookie -> reuse its session id
      - missing/expired/tampered -> start a new session
    """
    session_id = decode_session_token(token)
    if not session_id:
        session_id = new_session_id()

    # Refresh cookie on every request
    _set_session_cookie(response, session_id)
    return session_id


# -------------------
# Helpers
# -------------------
def _snapshot(state: ConversationState) -> Dict[str, Any]:
    return {
        "currentOrder": [line.model_dump(mode="json") for line in state.current_order],
        "orderHistory": [placed.model_dump(mode="json") for placed in state.order_history],
    }


def _failure(status_code: int, message: str, session_id: str) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content={"success": False, "message": message})
    _set_session_cookie(resp, session_id)
    return resp


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "An error occurred. Please try again later."},
    )


# -------------------
# Health
# -------------------
@app.get("/")
def root():
    return {"ok": True, "service": "restobot"}


@app.get("/api/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# -------------------
# Menu
# -------------------
@app.get("/menu")
def menu(catalog: Catalog = Depends(get_catalog)):
    return {
        "currency": catalog.currency,
        "items": [{"id": it.id, "name": it.name, "price": it.price} for it in catalog.list()],
    }


# -------------------
# Chat
# -------------------
@app.get("/api/chat/init")
def chat_init(
    session_id: str = Depends(require_session_id),
    store: SessionStore = Depends(get_session_store),
):
    store.put(session_id, store.get(session_id))
    return {"reply": render.welcome_message(), "showOptions": True}


@app.post("/api/chat")
async def chat(
    payload: ChatIn,
    session_id: str = Depends(require_session_id),
    store: SessionStore = Depends(get_session_store),
    catalog: Catalog = Depends(get_catalog),
    gateway: PaymentGateway = Depends(get_gateway),
):
    async with session_locks.get(session_id):
        state = store.get(session_id)
        was_ordering = state.is_ordering

        result = await handle_input(
            payload.message,
            state,
            catalog,
            gateway,
            customer_email=settings.default_customer_email,
        )
        store.put(session_id, state)

    # Item picks keep the number pad; everything else shows the main options
    show_options = not (was_ordering and state.is_ordering) and not result.redirect_url

    return {
        "reply": result.reply,
        "paymentUrl": result.redirect_url,
        "showOptions": show_options,
        **_snapshot(state),
    }


# -------------------
# Payments
# -------------------
@app.post("/api/chat/payment/initialize")
async def payment_initialize(
    payload: PaymentInitIn,
    session_id: str = Depends(require_session_id),
    store: SessionStore = Depends(get_session_store),
    gateway: PaymentGateway = Depends(get_gateway),
):
    async with session_locks.get(session_id):
        state = store.get(session_id)
        outcome = await initialize_payment(
            state,
            gateway,
            amount=payload.amount,
            email=payload.email or settings.default_customer_email,
        )
        if outcome.success:
            store.put(session_id, state)

    if not outcome.success:
        status_code = 503 if outcome.reason == NOT_CONFIGURED else 400
        return _failure(status_code, outcome.message, session_id)

    return {"success": True, "paymentUrl": outcome.redirect_url, "message": outcome.message}


@app.post("/api/chat/payment/verify")
async def payment_verify(
    payload: PaymentVerifyIn,
    session_id: str = Depends(require_session_id),
    store: SessionStore = Depends(get_session_store),
    gateway: PaymentGateway = Depends(get_gateway),
):
    reference = (payload.reference or "").strip()
    if not reference:
        return _failure(400, "No reference provided", session_id)

    async with session_locks.get(session_id):
        state = store.get(session_id)
        outcome = await verify_payment(state, gateway, reference)
        store.put(session_id, state)

    if not outcome.success:
        return _failure(400, outcome.message, session_id)

    return {"success": True, "message": outcome.message}
