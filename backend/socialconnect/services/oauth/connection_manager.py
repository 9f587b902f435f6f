"""
Menedżer połączeń OAuth — od kliknięcia "Połącz" do zapisanego rekordu połączenia.
Jeden sparametryzowany przepływ dla Facebooka i Instagrama (deskryptor platformy).

Kolejność: weryfikacja state -> wymiana kodu -> token długoterminowy ->
odkrywanie celów -> wybór -> zapis w backendzie.
"""

import hmac
import json
import secrets
from urllib.parse import urlencode

import structlog

from socialconnect.core.config import get_settings
from socialconnect.core.session import SessionStorage
from socialconnect.schemas.connection import (
    ConnectableTarget,
    ConnectionOutcome,
    ConnectionRecord,
    ConnectionState,
    ConnectionWarning,
    OAuthSession,
    Platform,
)
from socialconnect.services.backend.webhook_client import WebhookClient, WebhookError
from socialconnect.services.oauth.errors import (
    ConnectionFlowError,
    MissingAuthorizationCode,
    MissingCredentials,
    NoConnectableTargets,
    OAuthDenied,
    PersistenceFailed,
    StateMismatch,
    TokenExchangeFailed,
    UnknownTarget,
)
from socialconnect.services.oauth.graph_client import GraphAPIError, MetaGraphClient
from socialconnect.services.oauth.platforms import LongLivedUpgrader, get_descriptor
from socialconnect.services.oauth.state_machine import ConnectionAttempt

settings = get_settings()
logger = structlog.get_logger()

S = ConnectionState

# Klucze magazynu sesji
APP_ID_KEY = "app_id"
APP_SECRET_KEY = "app_secret"
USER_ID_KEY = "user_id"


def state_key(platform: Platform) -> str:
    return f"{platform.value}_oauth_state"


def targets_key(platform: Platform) -> str:
    return f"{platform.value}_targets"


def selected_keys(platform: Platform) -> dict[str, str]:
    prefix = platform.value
    return {
        "account_id": f"{prefix}_account_id",
        "account_name": f"{prefix}_account_name",
        "username": f"{prefix}_username",
        "access_token": f"{prefix}_access_token",
        "long_lived_token": f"{prefix}_long_lived_token",
    }


class ConnectionManager:
    def __init__(
        self,
        storage: SessionStorage,
        graph: MetaGraphClient | None = None,
        backend: WebhookClient | None = None,
    ):
        self.storage = storage
        self.graph = graph or MetaGraphClient()
        self.backend = backend or WebhookClient()

    # ── Dane uwierzytelniające aplikacji ──

    def save_credentials(self, app_id: str, app_secret: str, user_id: int) -> None:
        self.storage.set(APP_ID_KEY, app_id)
        self.storage.set(APP_SECRET_KEY, app_secret)
        self.storage.set(USER_ID_KEY, str(user_id))

    def load_user_id(self, platform: Platform) -> int:
        user_id = self.storage.get(USER_ID_KEY)
        if not user_id:
            raise MissingCredentials("Najpierw podaj identyfikator użytkownika", platform=platform.value)
        try:
            return int(user_id)
        except ValueError as exc:
            raise MissingCredentials("Nieprawidłowy identyfikator użytkownika", platform=platform.value) from exc

    def load_session(self, platform: Platform, state: str = "") -> OAuthSession:
        """Buduje OAuthSession z magazynu. Brak któregokolwiek pola -> MissingCredentials."""
        app_id = self.storage.get(APP_ID_KEY)
        app_secret = self.storage.get(APP_SECRET_KEY)
        if not app_id or not app_secret or not self.storage.get(USER_ID_KEY):
            raise MissingCredentials(
                "Brak danych aplikacji (App ID / App Secret) lub identyfikatora użytkownika",
                platform=platform.value,
            )
        uid = self.load_user_id(platform)
        return OAuthSession(platform=platform, state=state, app_id=app_id, app_secret=app_secret, user_id=uid)

    # ── Inicjacja ──

    def initiate_connection(
        self, platform: Platform | str, user_id: int | None = None, app_id: str | None = None
    ) -> str:
        """
        Generuje state, zapisuje go w sesji i zwraca URL dialogu autoryzacji.
        Brak App ID / user ID -> MissingCredentials (bez przekierowania).
        """
        platform = Platform(platform)
        descriptor = get_descriptor(platform)

        app_id = app_id or self.storage.get(APP_ID_KEY)
        user_id = user_id or self.storage.get(USER_ID_KEY)
        if not app_id or not self.storage.get(APP_SECRET_KEY):
            raise MissingCredentials("Najpierw skonfiguruj dane aplikacji Facebook", platform=platform.value)
        if not user_id:
            raise MissingCredentials("Najpierw podaj identyfikator użytkownika", platform=platform.value)

        state = secrets.token_urlsafe(16)
        self.storage.set(state_key(platform), state)

        query = urlencode(
            {
                "client_id": app_id,
                "redirect_uri": settings.oauth_redirect_uri(platform.value),
                "scope": descriptor.scope,
                "response_type": "code",
                "state": state,
            }
        )
        logger.info("Start OAuth", platform=platform.value, user_id=str(user_id))
        return f"{settings.META_DIALOG_URL}/{settings.META_API_VERSION}/dialog/oauth?{query}"

    # ── Callback ──

    async def complete_connection(self, platform: Platform | str, query: dict[str, str]) -> ConnectionOutcome:
        """Obsługa powrotu z dialogu autoryzacji (kroki 1–9)."""
        platform = Platform(platform)
        attempt = ConnectionAttempt(platform.value)
        attempt.advance(S.VERIFYING)
        try:
            return await self._complete(platform, query, attempt)
        except ConnectionFlowError as exc:
            exc.platform = platform.value
            attempt.fail(exc.reason)
            logger.warning("Połączenie nieudane", platform=platform.value, reason=exc.reason, error=exc.message)
            raise

    async def _complete(
        self, platform: Platform, query: dict[str, str], attempt: ConnectionAttempt
    ) -> ConnectionOutcome:
        if query.get("error"):
            raise OAuthDenied(f"Błąd OAuth: {query['error']}")

        code = query.get("code")
        if not code:
            raise MissingAuthorizationCode("Nie otrzymano kodu autoryzacji")

        self._verify_state(platform, query.get("state"))

        session = self.load_session(platform, state=query.get("state", ""))

        attempt.advance(S.EXCHANGING)
        try:
            short_token = await self.graph.exchange_code(
                code,
                session.app_id,
                session.app_secret,
                settings.oauth_redirect_uri(platform.value),
            )
        except GraphAPIError as exc:
            raise TokenExchangeFailed(f"Nie udało się wymienić kodu na token: {exc}") from exc

        attempt.advance(S.UPGRADING)
        upgrader = LongLivedUpgrader(self.graph, session.app_id, session.app_secret)
        user_token, warning = await upgrader.upgrade(short_token, subject="user")
        warnings: list[ConnectionWarning] = [warning] if warning else []

        attempt.advance(S.DISCOVERING)
        descriptor = get_descriptor(platform)
        discovery = await descriptor.discover(self.graph, upgrader, user_token)
        warnings.extend(discovery.warnings)
        targets = discovery.targets
        if not targets:
            raise NoConnectableTargets(descriptor.empty_message)

        self.storage.set(
            targets_key(platform), json.dumps([t.model_dump() for t in targets])
        )
        logger.info("Odkryto cele połączenia", platform=platform.value, count=len(targets))

        attempt.advance(S.SELECTING)
        outcome = ConnectionOutcome(
            platform=platform,
            state=attempt.state,
            targets=targets,
            selected=targets[0],
            warnings=warnings,
        )
        if len(targets) > 1:
            # Wybór odroczony, pierwszy cel jest tylko domyślny
            return outcome

        return await self._persist(session, targets[0], attempt, outcome)

    def _verify_state(self, platform: Platform, received: str | None) -> None:
        stored = self.storage.get(state_key(platform))
        if not stored or not received or not hmac.compare_digest(stored, received):
            raise StateMismatch(
                "Nieprawidłowy parametr state — spróbuj połączyć się ponownie"
            )
        self.storage.delete(state_key(platform))

    # ── Wybór celu ──

    def discovered_targets(self, platform: Platform | str) -> list[ConnectableTarget]:
        raw = self.storage.get(targets_key(Platform(platform)))
        if not raw:
            return []
        return [ConnectableTarget(**item) for item in json.loads(raw)]

    async def select_target(self, platform: Platform | str, account_id: str) -> ConnectionOutcome:
        """
        Ponowny wybór celu spośród odkrytych (wielokrotnie wywoływalny).
        Tokeny nie są ponownie wymieniane.
        """
        platform = Platform(platform)
        attempt = ConnectionAttempt(platform.value)
        try:
            targets = self.discovered_targets(platform)
            target = next((t for t in targets if t.external_id == account_id), None)
            if target is None:
                raise UnknownTarget(f"Nieznany cel połączenia: {account_id}")
            session = self.load_session(platform)
        except ConnectionFlowError as exc:
            exc.platform = platform.value
            attempt.fail(exc.reason)
            raise

        attempt.advance(S.SELECTING)
        outcome = ConnectionOutcome(
            platform=platform, state=attempt.state, targets=targets, selected=target
        )
        return await self._persist(session, target, attempt, outcome)

    # ── Zapis ──

    def build_record(self, session: OAuthSession, target: ConnectableTarget) -> ConnectionRecord:
        return ConnectionRecord(
            user_id=session.user_id,
            platform=session.platform,
            account_id=target.external_id,
            account_name=target.display_name,
            username=target.username,
            access_token=target.short_lived_token,
            long_lived_token=target.long_lived_token or target.short_lived_token,
            expires_in=settings.LONG_LIVED_TOKEN_EXPIRES_IN,
            app_id=session.app_id,
        )

    def _remember_selection(self, platform: Platform, target: ConnectableTarget) -> None:
        keys = selected_keys(platform)
        self.storage.set(keys["account_id"], target.external_id)
        self.storage.set(keys["account_name"], target.display_name)
        if target.username:
            self.storage.set(keys["username"], target.username)
        else:
            self.storage.delete(keys["username"])
        self.storage.set(keys["access_token"], target.short_lived_token)
        self.storage.set(keys["long_lived_token"], target.long_lived_token or target.short_lived_token)

    async def _persist(
        self,
        session: OAuthSession,
        target: ConnectableTarget,
        attempt: ConnectionAttempt,
        outcome: ConnectionOutcome,
    ) -> ConnectionOutcome:
        attempt.advance(S.PERSISTING)
        self._remember_selection(session.platform, target)
        record = self.build_record(session, target)
        outcome.selected = target
        outcome.record = record

        try:
            await self.backend.upsert_connection(record)
            outcome.persisted = True
        except WebhookError as exc:
            # Lokalny stan "połączono" zostaje, tylko ostrzeżenie
            logger.error(
                "Zapis połączenia nieudany",
                platform=session.platform.value,
                account_id=target.external_id,
                error=str(exc),
            )
            outcome.warnings.append(
                ConnectionWarning(
                    code="persistence_failed",
                    subject=target.external_id,
                    message=f"Połączono, ale nie udało się zapisać połączenia: {exc}",
                )
            )

        attempt.advance(S.CONNECTED)
        outcome.state = attempt.state
        logger.info(
            "Połączono konto",
            platform=session.platform.value,
            account_id=target.external_id,
            persisted=outcome.persisted,
        )
        return outcome

    # ── Odłączenie ──

    async def disconnect(self, platform: Platform | str, account_id: str) -> None:
        """Soft-delete połączenia (status=0) w backendzie."""
        platform = Platform(platform)
        user_id = self.load_user_id(platform)
        try:
            await self.backend.deactivate_connection(user_id, platform.value, account_id)
        except WebhookError as exc:
            raise PersistenceFailed(f"Nie udało się odłączyć konta: {exc}", platform=platform.value) from exc

        keys = selected_keys(platform)
        if self.storage.get(keys["account_id"]) == account_id:
            for key in keys.values():
                self.storage.delete(key)
