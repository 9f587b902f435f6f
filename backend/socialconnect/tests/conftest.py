"""
Fixtures testowe — atrapy Graph API i backendu webhookowego (httpx.MockTransport)
+ testowy klient HTTP.
"""

import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from socialconnect.api.deps import get_graph_client, get_session_storage, get_webhook_client
from socialconnect.core.session import InMemorySessionStorage, session_registry
from socialconnect.main import app
from socialconnect.services.backend.webhook_client import WebhookClient
from socialconnect.services.oauth.connection_manager import ConnectionManager
from socialconnect.services.oauth.graph_client import MetaGraphClient

GRAPH_BASE = "https://graph.test/v21.0"
WEBHOOK_BASE = "https://hooks.test/webhook"


class GraphStub:
    """Atrapa Meta Graph API. Zapisuje każde żądanie."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.pages: list[dict] = []
        self.ig_links: dict[str, str] = {}
        self.ig_profiles: dict[str, dict] = {}
        self.failing_upgrades: set[str] = set()
        self.broken_pages: set[str] = set()
        self.code_exchange_status = 200
        self.pages_status = 200

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = "/" + request.url.path.split("/", 2)[2]
        params = request.url.params

        if path == "/oauth/access_token":
            if params.get("grant_type") == "fb_exchange_token":
                token = params["fb_exchange_token"]
                if token in self.failing_upgrades:
                    return httpx.Response(400, json={"error": {"message": "Invalid OAuth access token"}})
                return httpx.Response(200, json={"access_token": f"long-{token}"})
            if self.code_exchange_status != 200:
                return httpx.Response(
                    self.code_exchange_status, json={"error": {"message": "Invalid verification code"}}
                )
            return httpx.Response(200, json={"access_token": "short-user"})

        if path == "/me/accounts":
            if self.pages_status != 200:
                return httpx.Response(self.pages_status, json={"error": {"message": "boom"}})
            return httpx.Response(200, json={"data": self.pages})

        object_id = path.lstrip("/")
        if params.get("fields") == "instagram_business_account":
            if object_id in self.broken_pages:
                return httpx.Response(500, json={"error": {"message": "Internal error"}})
            body = {"id": object_id}
            if object_id in self.ig_links:
                body["instagram_business_account"] = {"id": self.ig_links[object_id]}
            return httpx.Response(200, json=body)

        if params.get("fields") == "name,username":
            return httpx.Response(200, json=self.ig_profiles.get(object_id, {"id": object_id}))

        return httpx.Response(404, json={"error": {"message": f"Unknown path {path}"}})

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path)]

    def upgrade_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.params.get("grant_type") == "fb_exchange_token"]


class WebhookStub:
    """Atrapa backendu webhookowego. responses: ścieżka -> JSON, failing: ścieżki z HTTP 500."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.responses: dict[str, object] = {}
        self.failing: set[str] = set()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.rsplit("/", 1)[-1]
        self.calls.append((path, json.loads(request.content or b"{}")))
        if path in self.failing:
            return httpx.Response(500, text="workflow error")
        return httpx.Response(200, json=self.responses.get(path, {"ok": True}))

    def payloads(self, path: str) -> list[dict]:
        return [payload for p, payload in self.calls if p == path]


@pytest.fixture
def graph_stub() -> GraphStub:
    return GraphStub()


@pytest.fixture
def webhook_stub() -> WebhookStub:
    return WebhookStub()


@pytest.fixture
def graph_client(graph_stub) -> MetaGraphClient:
    return MetaGraphClient(base_url=GRAPH_BASE, transport=graph_stub.transport)


@pytest.fixture
def webhook_client(webhook_stub) -> WebhookClient:
    return WebhookClient(
        base_url=WEBHOOK_BASE, auth_token="test-token", transport=webhook_stub.transport, read_retries=1
    )


@pytest.fixture
def storage() -> InMemorySessionStorage:
    return InMemorySessionStorage(
        {"app_id": "app-123", "app_secret": "secret-xyz", "user_id": "42"}
    )


@pytest.fixture
def manager(storage, graph_client, webhook_client) -> ConnectionManager:
    return ConnectionManager(storage=storage, graph=graph_client, backend=webhook_client)


@pytest_asyncio.fixture
async def client(storage, graph_client, webhook_client):
    app.dependency_overrides[get_session_storage] = lambda: storage
    app.dependency_overrides[get_graph_client] = lambda: graph_client
    app.dependency_overrides[get_webhook_client] = lambda: webhook_client
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    session_registry.clear()
