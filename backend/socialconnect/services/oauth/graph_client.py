"""
Klient Meta Graph API — wymiana kodu, tokeny długoterminowe, strony i konta IG.
Ulepszenie: wstrzykiwalny transport httpx (testy bez sieci) + jednolity błąd GraphAPIError.
"""

import httpx
import structlog

from socialconnect.core.config import get_settings

settings = get_settings()
logger = structlog.get_logger()


class GraphAPIError(Exception):
    def __init__(self, message: str, status_code: int | None = None, payload: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class MetaGraphClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.graph_api_base
        self.timeout = timeout or settings.META_HTTP_TIMEOUT
        self._transport = transport

    async def _get(self, path: str, params: dict) -> dict:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                resp = await client.get(path, params=params)
            except httpx.HTTPError as exc:
                raise GraphAPIError(f"Graph API niedostępne: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.is_error or (isinstance(data, dict) and "error" in data):
            error = data.get("error") if isinstance(data, dict) else None
            message = error.get("message", str(error)) if isinstance(error, dict) else resp.reason_phrase
            raise GraphAPIError(
                f"Graph API {path}: {message}", status_code=resp.status_code, payload=data
            )
        return data

    async def exchange_code(
        self, code: str, app_id: str, app_secret: str, redirect_uri: str
    ) -> str:
        """Wymienia authorization code na krótkotrwały token użytkownika."""
        data = await self._get(
            "/oauth/access_token",
            {
                "client_id": app_id,
                "redirect_uri": redirect_uri,
                "client_secret": app_secret,
                "code": code,
            },
        )
        if not data.get("access_token"):
            raise GraphAPIError("Brak access_token w odpowiedzi", payload=data)
        return data["access_token"]

    async def exchange_long_lived(self, token: str, app_id: str, app_secret: str) -> str:
        data = await self._get(
            "/oauth/access_token",
            {
                "grant_type": "fb_exchange_token",
                "client_id": app_id,
                "client_secret": app_secret,
                "fb_exchange_token": token,
            },
        )
        if not data.get("access_token"):
            raise GraphAPIError("Brak access_token w odpowiedzi", payload=data)
        return data["access_token"]

    async def list_pages(self, user_token: str) -> list[dict]:
        """Strony, którymi administruje użytkownik: [{id, name, access_token}]."""
        data = await self._get("/me/accounts", {"access_token": user_token})
        return list(data.get("data") or [])

    async def get_linked_instagram_account(self, page_id: str, page_token: str) -> str | None:
        """ID konta Instagram Business podpiętego do strony (lub None)."""
        data = await self._get(
            f"/{page_id}",
            {"fields": "instagram_business_account", "access_token": page_token},
        )
        account = data.get("instagram_business_account")
        if not account:
            return None
        return str(account["id"])

    async def get_instagram_profile(self, ig_account_id: str, page_token: str) -> dict:
        return await self._get(
            f"/{ig_account_id}",
            {"fields": "name,username", "access_token": page_token},
        )
