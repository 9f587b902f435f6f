"""Endpointy zapisanych połączeń z platformami."""

from fastapi import APIRouter, Depends, status

from socialconnect.api.deps import get_connection_manager, get_current_user_id, get_webhook_client
from socialconnect.schemas.connection import ConnectionSummary, Platform
from socialconnect.services.backend.webhook_client import WebhookClient
from socialconnect.services.oauth.connection_manager import ConnectionManager

router = APIRouter()


@router.get("", response_model=list[ConnectionSummary])
async def list_connections(
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    """Lista połączeń użytkownika (aktywne i odłączone)."""
    rows = await backend.search_connections(user_id)
    return [ConnectionSummary(**row) for row in rows if row.get("platform")]


@router.delete("/{platform}/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def disconnect(
    platform: Platform,
    account_id: str,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Odłączenie konta — status=0 w backendzie."""
    await manager.disconnect(platform, account_id)
