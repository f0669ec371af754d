"""Sessões do lado do servidor.

O cookie (assinado pelo `SessionMiddleware`) carrega apenas o id aleatório
da sessão; quem está logado, e com qual papel, fica guardado aqui.
"""
import json
import logging
import secrets
from abc import ABC, abstractmethod
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from fastapi import Request
from pydantic import BaseModel

from kiteadmin.database import Database

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class SessionData(BaseModel):
    user_id: int
    username: str
    role: str = "user"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """Guarda as sessões abertas, indexadas pelo id aleatório do cookie."""

    @abstractmethod
    def create(self, data: SessionData, max_age: int) -> str:
        raise NotImplementedError

    @abstractmethod
    def get(self, sid: str) -> Optional[SessionData]:
        raise NotImplementedError

    @abstractmethod
    def touch(self, sid: str, max_age: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def destroy(self, sid: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Sessões em memória, apenas para desenvolvimento local."""

    def __init__(self):
        self._sessions: Dict[str, Tuple[SessionData, datetime]] = {}
        self._lock = threading.Lock()

    def create(self, data: SessionData, max_age: int) -> str:
        sid = new_session_id()
        now = _utcnow()
        with self._lock:
            # descarta sessões abandonadas sem logout
            expired = [key for key, (_, expire) in self._sessions.items() if expire <= now]
            for key in expired:
                del self._sessions[key]
            self._sessions[sid] = (data, now + timedelta(seconds=max_age))
        return sid

    def get(self, sid: str) -> Optional[SessionData]:
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            data, expire = entry
            if expire <= _utcnow():
                del self._sessions[sid]
                return None
            return data

    def touch(self, sid: str, max_age: int) -> None:
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is not None:
                self._sessions[sid] = (entry[0], _utcnow() + timedelta(seconds=max_age))

    def destroy(self, sid: str) -> None:
        with self._lock:
            self._sessions.pop(sid, None)


class DatabaseSessionStore(SessionStore):
    """Sessões na tabela `user_sessions`, sobrevivem a reinícios e a vários workers."""

    def __init__(self, db: Database):
        self.db = db

    def ensure_schema(self) -> None:
        self.db.execute(
            "CREATE TABLE IF NOT EXISTS user_sessions ("
            " sid VARCHAR(255) NOT NULL PRIMARY KEY,"
            " sess TEXT NOT NULL,"
            " expire TIMESTAMP NOT NULL)"
        )
        self.db.execute(
            "CREATE INDEX IF NOT EXISTS idx_user_sessions_expire ON user_sessions (expire)"
        )

    def _expire_at(self, max_age: int) -> str:
        return (_utcnow() + timedelta(seconds=max_age)).strftime(TIMESTAMP_FORMAT)

    def create(self, data: SessionData, max_age: int) -> str:
        now = _utcnow().strftime(TIMESTAMP_FORMAT)
        self.db.execute("DELETE FROM user_sessions WHERE expire <= ?", (now,))
        sid = new_session_id()
        self.db.execute(
            "INSERT INTO user_sessions (sid, sess, expire) VALUES (?, ?, ?) RETURNING sid",
            (sid, data.model_dump_json(), self._expire_at(max_age)),
        )
        return sid

    def get(self, sid: str) -> Optional[SessionData]:
        now = _utcnow().strftime(TIMESTAMP_FORMAT)
        row = self.db.query_one(
            "SELECT sess FROM user_sessions WHERE sid = ? AND expire > ?", (sid, now)
        )
        if row is None:
            return None
        return SessionData(**json.loads(row["sess"]))

    def touch(self, sid: str, max_age: int) -> None:
        self.db.execute(
            "UPDATE user_sessions SET expire = ? WHERE sid = ?", (self._expire_at(max_age), sid)
        )

    def destroy(self, sid: str) -> None:
        self.db.execute("DELETE FROM user_sessions WHERE sid = ?", (sid,))


def open_session_store(db: Database) -> SessionStore:
    """Postgres guarda as sessões em tabela; no SQLite local ficam em memória."""
    if db.kind == "postgres":
        store = DatabaseSessionStore(db)
        store.ensure_schema()
        logger.info("Usando tabela user_sessions para as sessões")
        return store
    logger.info("Usando sessões em memória (apenas desenvolvimento)")
    return MemorySessionStore()


# --- Dependency do FastAPI ---
def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions
