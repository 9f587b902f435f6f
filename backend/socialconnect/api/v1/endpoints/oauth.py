"""
Endpointy przepływu OAuth — przekierowanie do dialogu, callback, wybór celu.
Montowane bez prefiksu API: redirect_uri musi wskazywać /oauth-callback/{platform}.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from socialconnect.api.deps import get_connection_manager
from socialconnect.schemas.connection import ConnectionOutcomeOut, Platform, SelectTargetRequest
from socialconnect.services.oauth.connection_manager import ConnectionManager

router = APIRouter()


@router.get("/connect/{platform}")
async def initiate_connection(
    platform: Platform,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Przekierowanie całej strony do dialogu autoryzacji Meta."""
    url = manager.initiate_connection(platform)
    return RedirectResponse(url)


@router.get("/oauth-callback/{platform}", response_model=ConnectionOutcomeOut)
async def oauth_callback(
    platform: Platform,
    request: Request,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Powrót z dialogu: ?code&state albo ?error."""
    outcome = await manager.complete_connection(platform, dict(request.query_params))
    return ConnectionOutcomeOut.from_outcome(outcome)


@router.post("/oauth-callback/{platform}/select", response_model=ConnectionOutcomeOut)
async def select_target(
    platform: Platform,
    body: SelectTargetRequest,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Wybór (lub zmiana) strony / konta spośród odkrytych."""
    outcome = await manager.select_target(platform, body.account_id)
    return ConnectionOutcomeOut.from_outcome(outcome)
