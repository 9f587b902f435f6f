"""
Główna aplikacja FastAPI — SocialConnect.
Ulepszenia: structured logging, CORS, rate limiting, Sentry, sesje po stronie serwera.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.sessions import SessionMiddleware

from socialconnect.api.v1.endpoints import oauth
from socialconnect.api.v1.router import api_router
from socialconnect.core.config import get_settings
from socialconnect.services.backend.webhook_client import WebhookError
from socialconnect.services.oauth.errors import ConnectionFlowError, PersistenceFailed

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle — inicjalizacja i zamknięcie zasobów."""
    logger.info("Uruchamianie SocialConnect API", version=settings.APP_VERSION)

    # Sentry
    if settings.SENTRY_DSN:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration

        sentry_sdk.init(dsn=settings.SENTRY_DSN, integrations=[FastApiIntegration()])

    yield

    logger.info("SocialConnect API zamknięte")


# Rate limiter
limiter = Limiter(key_func=get_remote_address, default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"])

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="API panelu sprzedawcy — łączenie stron Facebook i kont Instagram, kalendarz postów",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Sesja przeglądarki (ciasteczko niesie tylko identyfikator)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    https_only=settings.SESSION_HTTPS_ONLY,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router
app.include_router(oauth.router, tags=["OAuth"])
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# ── Health Checks ──

@app.get("/health")
async def health_check():
    return {"status": "ok", "version": settings.APP_VERSION}


# ── Obsługa błędów ──

@app.exception_handler(ConnectionFlowError)
async def connection_flow_exception_handler(request: Request, exc: ConnectionFlowError):
    """Błąd terminalny próby połączenia — klient pokazuje ekran błędu z ponowieniem."""
    platform = exc.platform or request.path_params.get("platform")
    if isinstance(exc, PersistenceFailed):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(
        status_code=code,
        content={
            "detail": exc.message,
            "reason": exc.reason,
            "state": "failed",
            "retry_url": f"/connect/{platform}" if platform else None,
        },
    )


@app.exception_handler(WebhookError)
async def webhook_exception_handler(request: Request, exc: WebhookError):
    logger.error("Błąd backendu webhookowego", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Backend danych jest niedostępny, spróbuj ponownie"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Nieobsłużony wyjątek", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Wewnętrzny błąd serwera"},
    )
