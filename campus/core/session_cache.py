import secrets
import time
from threading import Lock
from typing import Dict, Optional, Tuple

from campus.core.config import settings


class SessionStore:
    """
    Login tokens mapped to profile ids, held in process memory.

    Tokens expire after ``SESSION_TTL_SECONDS`` and do not survive a
    restart; clients log in again.
    """

    def __init__(self, default_ttl: int):
        self.default_ttl = default_ttl
        self._lock = Lock()
        self._sessions: Dict[str, Tuple[str, float]] = {}

    def issue(self, user_id: str, ttl: Optional[int] = None) -> str:
        token = secrets.token_urlsafe(32)
        lifetime = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._sessions[token] = (user_id, time.time() + lifetime)
        return token

    def resolve(self, token: str) -> Optional[str]:
        with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return None
            user_id, expires_at = entry
            if expires_at < time.time():
                del self._sessions[token]
                return None
            return user_id

    def revoke(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        now = time.time()
        with self._lock:
            expired = [token for token, (_, expires_at) in self._sessions.items() if expires_at < now]
            for token in expired:
                del self._sessions[token]
        return len(expired)


_store = SessionStore(settings.SESSION_TTL_SECONDS)


def create_session(user_id: str, ttl: Optional[int] = None) -> str:
    """Issue a new token for user_id, valid for ttl seconds."""
    return _store.issue(user_id, ttl)


def get_user_id_for_token(token: str) -> Optional[str]:
    """Resolve a token to its user id, or None if unknown or expired."""
    return _store.resolve(token)


def invalidate_session(token: str) -> None:
    _store.revoke(token)


def clear_expired() -> int:
    """Drop expired tokens and return how many were removed."""
    return _store.purge_expired()
