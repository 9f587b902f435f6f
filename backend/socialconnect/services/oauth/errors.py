"""Błędy przepływu łączenia kont (OAuth Meta)."""


class ConnectionFlowError(Exception):
    """Bazowy błąd próby połączenia. `reason` trafia do odpowiedzi API."""

    reason = "connection_failed"

    def __init__(self, message: str, platform: str | None = None):
        super().__init__(message)
        self.message = message
        self.platform = platform


class OAuthDenied(ConnectionFlowError):
    reason = "oauth_denied"


class MissingAuthorizationCode(ConnectionFlowError):
    reason = "missing_authorization_code"


class StateMismatch(ConnectionFlowError):
    reason = "state_mismatch"


class MissingCredentials(ConnectionFlowError):
    reason = "missing_credentials"


class TokenExchangeFailed(ConnectionFlowError):
    reason = "token_exchange_failed"


class DiscoveryFailed(ConnectionFlowError):
    reason = "discovery_failed"


class NoConnectableTargets(ConnectionFlowError):
    reason = "no_connectable_targets"


class UnknownTarget(ConnectionFlowError):
    reason = "unknown_target"


class PersistenceFailed(ConnectionFlowError):
    reason = "persistence_failed"


class InvalidTransition(RuntimeError):
    """Niedozwolone przejście maszyny stanów (błąd programistyczny)."""
