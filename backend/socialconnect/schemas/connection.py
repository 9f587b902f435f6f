"""Schematy połączeń z platformami (Facebook, Instagram)."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class Platform(str, Enum):
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"


class ConnectionState(str, Enum):
    IDLE = "idle"
    AWAITING_REDIRECT = "awaiting_redirect"
    VERIFYING = "verifying"
    EXCHANGING = "exchanging"
    UPGRADING = "upgrading"
    DISCOVERING = "discovering"
    SELECTING = "selecting"
    PERSISTING = "persisting"
    CONNECTED = "connected"
    FAILED = "failed"


class OAuthSession(BaseModel):
    platform: Platform
    state: str
    app_id: str
    app_secret: str
    user_id: int


class ConnectableTarget(BaseModel):
    external_id: str
    display_name: str
    username: str | None = None
    short_lived_token: str
    long_lived_token: str | None = None


class ConnectionRecord(BaseModel):
    user_id: int
    platform: Platform
    account_id: str
    account_name: str
    username: str | None = None
    access_token: str
    long_lived_token: str
    expires_in: str
    connected_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    app_id: str
    status: int = 1


class ConnectionWarning(BaseModel):
    code: str  # long_lived_upgrade_failed, discovery_skipped, persistence_failed
    subject: str | None = None
    message: str


class ConnectionOutcome(BaseModel):
    platform: Platform
    state: ConnectionState
    targets: list[ConnectableTarget] = []
    selected: ConnectableTarget | None = None
    record: ConnectionRecord | None = None
    persisted: bool = False
    warnings: list[ConnectionWarning] = []

    @property
    def degraded(self) -> bool:
        return any(w.code == "persistence_failed" for w in self.warnings)


# ── API ──


class CredentialsRequest(BaseModel):
    app_id: str = Field(min_length=1)
    app_secret: str = Field(min_length=1)
    user_id: int = Field(gt=0)


class CredentialsStatus(BaseModel):
    configured: bool
    app_id: str | None = None
    user_id: int | None = None


class TargetOut(BaseModel):
    """Cel połączenia bez tokenów — do odpowiedzi API."""

    external_id: str
    display_name: str
    username: str | None = None


class ConnectionOutcomeOut(BaseModel):
    platform: Platform
    state: ConnectionState
    targets: list[TargetOut]
    selected: TargetOut | None
    persisted: bool
    degraded: bool
    warnings: list[ConnectionWarning]

    @classmethod
    def from_outcome(cls, outcome: ConnectionOutcome) -> "ConnectionOutcomeOut":
        return cls(
            platform=outcome.platform,
            state=outcome.state,
            targets=[TargetOut(**t.model_dump()) for t in outcome.targets],
            selected=TargetOut(**outcome.selected.model_dump()) if outcome.selected else None,
            persisted=outcome.persisted,
            degraded=outcome.degraded,
            warnings=outcome.warnings,
        )


class SelectTargetRequest(BaseModel):
    account_id: str = Field(min_length=1)


class ConnectionSummary(BaseModel):
    """Rekord połączenia zwracany przez backend (bez tokenów)."""

    platform: str
    account_id: str | None = None
    account_name: str | None = None
    username: str | None = None
    status: int = 0
    connected_at: str | None = None

    model_config = {"extra": "ignore", "coerce_numbers_to_str": True}
