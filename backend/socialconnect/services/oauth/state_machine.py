"""Maszyna stanów pojedynczej próby połączenia."""

import structlog

from socialconnect.schemas.connection import ConnectionState
from socialconnect.services.oauth.errors import InvalidTransition

logger = structlog.get_logger()

S = ConnectionState

TRANSITIONS: dict[ConnectionState, set[ConnectionState]] = {
    S.IDLE: {S.AWAITING_REDIRECT, S.VERIFYING, S.SELECTING},
    S.AWAITING_REDIRECT: {S.VERIFYING},
    S.VERIFYING: {S.EXCHANGING},
    S.EXCHANGING: {S.UPGRADING},
    S.UPGRADING: {S.DISCOVERING},
    S.DISCOVERING: {S.SELECTING},
    S.SELECTING: {S.PERSISTING},
    S.PERSISTING: {S.SELECTING, S.CONNECTED},
    S.CONNECTED: set(),
    S.FAILED: set(),
}

TERMINAL = {S.CONNECTED, S.FAILED}


class ConnectionAttempt:
    """
    Śledzi stan jednej próby. FAILED osiągalny z każdego stanu poza terminalnymi.
    IDLE -> VERIFYING: callback obsługiwany w innym żądaniu niż przekierowanie.
    IDLE -> SELECTING: ponowny wybór celu z już odkrytego zbioru.
    """

    def __init__(self, platform: str):
        self.platform = platform
        self.state = S.IDLE
        self.history: list[ConnectionState] = [S.IDLE]
        self.failure_reason: str | None = None

    def advance(self, new_state: ConnectionState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)
        logger.debug("Stan połączenia", platform=self.platform, state=new_state.value)

    def fail(self, reason: str) -> None:
        if self.state in TERMINAL:
            raise InvalidTransition(f"{self.state.value} -> failed")
        self.state = S.FAILED
        self.history.append(S.FAILED)
        self.failure_reason = reason

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL
