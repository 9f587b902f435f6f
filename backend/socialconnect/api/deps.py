"""
Zależności API — sesja przeglądarki, klienci zewnętrzni, menedżer połączeń.
Klienci są osobnymi zależnościami, żeby testy mogły je podmienić (dependency_overrides).
"""

from fastapi import Depends, HTTPException, Request, status

from socialconnect.core.session import SessionStorage, session_registry
from socialconnect.services.backend.webhook_client import WebhookClient
from socialconnect.services.oauth.connection_manager import USER_ID_KEY, ConnectionManager
from socialconnect.services.oauth.graph_client import MetaGraphClient


def get_session_storage(request: Request) -> SessionStorage:
    return session_registry.resolve(request.session)


def get_graph_client() -> MetaGraphClient:
    return MetaGraphClient()


def get_webhook_client() -> WebhookClient:
    return WebhookClient()


def get_connection_manager(
    storage: SessionStorage = Depends(get_session_storage),
    graph: MetaGraphClient = Depends(get_graph_client),
    backend: WebhookClient = Depends(get_webhook_client),
) -> ConnectionManager:
    return ConnectionManager(storage=storage, graph=graph, backend=backend)


def get_current_user_id(storage: SessionStorage = Depends(get_session_storage)) -> int:
    """Identyfikator sprzedawcy zapisany razem z danymi aplikacji."""
    user_id = storage.get(USER_ID_KEY)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Brak identyfikatora użytkownika — zapisz najpierw dane aplikacji",
        )
    try:
        return int(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Nieprawidłowy identyfikator użytkownika",
        )
