"""
Magazyn sesji przeglądarki — klucz/wartość per sesja.
Ciasteczko niesie tylko podpisany identyfikator sesji; sekrety aplikacji
i tokeny zostają po stronie serwera.
"""

import secrets
from typing import Protocol

import structlog

logger = structlog.get_logger()

SESSION_ID_KEY = "sid"


class SessionStorage(Protocol):
    """Port magazynu sesji: get/set/delete po kluczu tekstowym."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemorySessionStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class SessionRegistry:
    """Jeden magazyn na identyfikator sesji przeglądarki."""

    def __init__(self):
        self._sessions: dict[str, InMemorySessionStorage] = {}

    def resolve(self, cookie_session: dict) -> InMemorySessionStorage:
        """
        Zwraca magazyn dla sesji z ciasteczka.
        Brakujący identyfikator jest generowany i zapisywany w ciasteczku.
        """
        session_id = cookie_session.get(SESSION_ID_KEY)
        if not session_id:
            session_id = secrets.token_urlsafe(24)
            cookie_session[SESSION_ID_KEY] = session_id
            logger.debug("Nowa sesja przeglądarki")

        storage = self._sessions.get(session_id)
        if storage is None:
            storage = InMemorySessionStorage()
            self._sessions[session_id] = storage
        return storage

    def clear(self) -> None:
        self._sessions.clear()


session_registry = SessionRegistry()
