# restobot/sessions.py
from __future__ import annotations

import asyncio
import weakref
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict

from sqlalchemy.orm import Session

from .models import ChatSession
from .ordering.state import ConversationState, dump_state, load_state


class SessionStore(ABC):
    """Load/save of a ConversationState keyed by an opaque session id."""

    @abstractmethod
    def get(self, session_id: str) -> ConversationState:
        """Return the stored state, or a fresh default one for unknown ids."""

    @abstractmethod
    def put(self, session_id: str, state: ConversationState) -> None:
        ...


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._states: Dict[str, str] = {}

    def get(self, session_id: str) -> ConversationState:
        return load_state(self._states.get(session_id))

    def put(self, session_id: str, state: ConversationState) -> None:
        self._states[session_id] = dump_state(state)


class SqlSessionStore(SessionStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, session_id: str) -> ConversationState:
        row = self.db.get(ChatSession, session_id)
        return load_state(row.state_json if row else None)

    def put(self, session_id: str, state: ConversationState) -> None:
        row = self.db.get(ChatSession, session_id)
        if not row:
            row = ChatSession(session_id=session_id)
        row.state_json = dump_state(state)
        row.updated_at = datetime.utcnow()

        self.db.add(row)
        self.db.commit()


class SessionLocks:
    """One asyncio.Lock per live session id; dropped once nobody holds it."""

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock
