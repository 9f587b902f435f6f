"""
Klient backendu webhookowego (workflow no-code) — połączenia, posty, profil marki.
Ulepszenie: retry tylko dla odczytów (idempotentne) + jednolity WebhookError.
"""

from typing import Any

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from socialconnect.core.config import get_settings
from socialconnect.schemas.connection import ConnectionRecord

settings = get_settings()
logger = structlog.get_logger()


class WebhookError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class WebhookClient:
    UPSERT_CONNECTION = "insert-update"
    UPDATE_CONNECTION_STATUS = "update-status"
    SEARCH_CONNECTIONS = "search"
    SELLER_PACKAGE = "seller-package"
    GET_SOCIAL_POSTS = "get-social-posts"
    UPDATE_SOCIAL_POST = "update-social-post"
    SEARCH_BRAND_PROFILE = "search-brand-profile"
    INSERT_BRAND_PROFILE = "insert-brand-profile"
    UPDATE_BRAND_PROFILE = "update-brand-profile"
    SEARCH_POST_PREFERENCE = "search-post-preference"
    INSERT_POST_PREFERENCE = "insert-post-preference"
    UPDATE_POST_PREFERENCE = "update-post-preference"

    def __init__(
        self,
        base_url: str | None = None,
        auth_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        read_retries: int | None = None,
    ):
        self.base_url = base_url or settings.WEBHOOK_BASE_URL
        self.auth_token = settings.WEBHOOK_AUTH_TOKEN if auth_token is None else auth_token
        self.read_retries = read_retries or settings.WEBHOOK_READ_RETRIES
        self._transport = transport

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        headers = {settings.WEBHOOK_AUTH_HEADER: self.auth_token}
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=settings.WEBHOOK_TIMEOUT, transport=self._transport
        ) as client:
            try:
                resp = await client.post(f"/{path}", json=payload, headers=headers)
            except httpx.HTTPError as exc:
                raise WebhookError(f"Webhook {path} niedostępny: {exc}") from exc

        if resp.is_error:
            raise WebhookError(f"Webhook {path}: HTTP {resp.status_code}", status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    async def _search(self, path: str, payload: dict[str, Any]) -> list[dict]:
        """Odczyt z ponowieniami. Odpowiedź normalizowana do listy słowników."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.read_retries),
            wait=wait_exponential(min=1, max=8),
            retry=retry_if_exception_type(WebhookError),
            reraise=True,
        ):
            with attempt:
                result = await self._post(path, payload)

        if isinstance(result, dict):
            return [result]
        if isinstance(result, list):
            return [item for item in result if isinstance(item, dict)]
        return []

    # ── Połączenia ──

    async def upsert_connection(self, record: ConnectionRecord) -> Any:
        logger.info(
            "Zapis połączenia",
            user_id=record.user_id,
            platform=record.platform.value,
            account_id=record.account_id,
        )
        return await self._post(self.UPSERT_CONNECTION, record.model_dump(mode="json"))

    async def deactivate_connection(self, user_id: int, platform: str, account_id: str) -> Any:
        logger.info("Dezaktywacja połączenia", user_id=user_id, platform=platform, account_id=account_id)
        return await self._post(
            self.UPDATE_CONNECTION_STATUS,
            {"user_id": user_id, "platform": platform, "account_id": account_id, "status": 0},
        )

    async def search_connections(self, user_id: int) -> list[dict]:
        return await self._search(self.SEARCH_CONNECTIONS, {"user_id": user_id})

    # ── Pakiet sprzedawcy ──

    async def get_seller_packages(self, user_id: int) -> list[dict]:
        return await self._search(self.SELLER_PACKAGE, {"user_id": user_id})

    # ── Posty ──

    async def get_social_posts(self, user_id: int) -> list[dict]:
        return await self._search(self.GET_SOCIAL_POSTS, {"user_id": user_id})

    async def update_social_post(self, post_id: int, caption: str, image: str, status: str) -> Any:
        return await self._post(
            self.UPDATE_SOCIAL_POST,
            {"id": post_id, "caption": caption, "image": image, "status": status},
        )

    # ── Profil marki ──

    async def search_brand_profile(self, user_id: int) -> list[dict]:
        return await self._search(self.SEARCH_BRAND_PROFILE, {"user_id": user_id})

    async def save_brand_profile(self, payload: dict[str, Any], exists: bool) -> Any:
        path = self.UPDATE_BRAND_PROFILE if exists else self.INSERT_BRAND_PROFILE
        return await self._post(path, payload)

    # ── Preferencje publikacji ──

    async def search_post_preference(self, user_id: int) -> list[dict]:
        return await self._search(self.SEARCH_POST_PREFERENCE, {"user_id": user_id})

    async def save_post_preference(self, payload: dict[str, Any], exists: bool) -> Any:
        path = self.UPDATE_POST_PREFERENCE if exists else self.INSERT_POST_PREFERENCE
        return await self._post(path, payload)
