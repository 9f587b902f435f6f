"""Endpointy danych aplikacji Meta (App ID / App Secret) i identyfikatora sprzedawcy."""

import structlog
from fastapi import APIRouter, Depends

from socialconnect.api.deps import get_connection_manager, get_session_storage
from socialconnect.core.session import SessionStorage
from socialconnect.schemas.connection import CredentialsRequest, CredentialsStatus
from socialconnect.services.oauth.connection_manager import (
    APP_ID_KEY,
    APP_SECRET_KEY,
    USER_ID_KEY,
    ConnectionManager,
)

router = APIRouter()
logger = structlog.get_logger()


@router.post("", response_model=CredentialsStatus)
async def save_credentials(
    body: CredentialsRequest,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Zapis danych aplikacji w sesji (sekret nie wraca w odpowiedzi)."""
    manager.save_credentials(body.app_id, body.app_secret, body.user_id)
    logger.info("Zapisano dane aplikacji", app_id=body.app_id, user_id=body.user_id)
    return CredentialsStatus(configured=True, app_id=body.app_id, user_id=body.user_id)


@router.get("", response_model=CredentialsStatus)
async def get_credentials(storage: SessionStorage = Depends(get_session_storage)):
    app_id = storage.get(APP_ID_KEY)
    user_id = storage.get(USER_ID_KEY)
    configured = bool(app_id and storage.get(APP_SECRET_KEY) and user_id)
    return CredentialsStatus(
        configured=configured,
        app_id=app_id,
        user_id=int(user_id) if user_id and user_id.isdigit() else None,
    )
