from datetime import datetime, timezone
from threading import Lock
from time import time

from app.core.security import new_token


class SessionTokenCache:
    """In-process store of opaque bearer tokens -> expert id, with a TTL.

    Expired tokens are dropped when looked up and swept on every ``issue``.
    """

    def __init__(self, ttl_seconds: int = 86400):
        self.ttl_seconds = ttl_seconds
        self._lock = Lock()
        self._tokens: dict[str, tuple[float, str]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

    def _purge(self, now: float) -> int:
        expired = [token for token, (expires_at, _) in self._tokens.items() if expires_at < now]
        for token in expired:
            del self._tokens[token]
        return len(expired)

    def issue(self, expert_id: str) -> tuple[str, datetime]:
        token = new_token()
        now = time()
        expires_at = now + self.ttl_seconds
        with self._lock:
            self._purge(now)
            self._tokens[token] = (expires_at, expert_id)
        return token, datetime.fromtimestamp(expires_at, tz=timezone.utc)

    def resolve(self, token: str) -> str | None:
        with self._lock:
            item = self._tokens.get(token)
            if not item:
                return None
            expires_at, expert_id = item
            if expires_at < time():
                del self._tokens[token]
                return None
            return expert_id

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._tokens.pop(token, None) is not None
