"""Główny router API v1."""

from fastapi import APIRouter

from socialconnect.api.v1.endpoints import connections, credentials, dashboard

api_router = APIRouter()

api_router.include_router(credentials.router, prefix="/credentials", tags=["Dane aplikacji"])
api_router.include_router(connections.router, prefix="/connections", tags=["Połączenia"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Panel"])
