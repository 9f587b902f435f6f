"""
Endpointy panelu sprzedawcy — pakiet, kalendarz postów, profil marki, preferencje.
"""

import asyncio
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from socialconnect.api.deps import get_current_user_id, get_webhook_client
from socialconnect.schemas.dashboard import (
    BrandProfileOut,
    BrandProfileRequest,
    CalendarOut,
    PostingPreferenceOut,
    PostingPreferenceRequest,
    PostUpdateRequest,
    SellerPackageOut,
    SocialPost,
)
from socialconnect.services.backend.webhook_client import WebhookClient, WebhookError
from socialconnect.services.dashboard.packages import get_package_permissions, get_seller_package_id
from socialconnect.services.dashboard.post_calendar import build_month, connected_platforms
from socialconnect.services.dashboard.profiles import (
    PlanLimitExceeded,
    load_brand_profile,
    load_posting_preference,
    save_brand_profile,
    save_posting_preference,
)

router = APIRouter()


@router.get("/package", response_model=SellerPackageOut)
async def get_package(
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    """Pakiet sprzedawcy i uprawnienia (dostęp, limit dni publikacji)."""
    package_id = await get_seller_package_id(backend, user_id)
    return SellerPackageOut(
        seller_package_id=package_id,
        permissions=get_package_permissions(package_id),
    )


async def _require_access(backend: WebhookClient, user_id: int):
    permissions = get_package_permissions(await get_seller_package_id(backend, user_id))
    if not permissions.has_access:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Plan '{permissions.plan_name}' nie daje dostępu do tej funkcji",
        )
    return permissions


@router.get("/calendar", response_model=CalendarOut)
async def get_calendar(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    """Posty w układzie miesiąca + które platformy są aktywnie połączone."""
    await _require_access(backend, user_id)
    today = date.today()
    year = year or today.year
    month = month or today.month

    posts_rows, connections = await asyncio.gather(
        backend.get_social_posts(user_id),
        backend.search_connections(user_id),
        return_exceptions=True,
    )
    if isinstance(posts_rows, BaseException):
        raise posts_rows
    # Brak statusu połączeń nie blokuje kalendarza
    if isinstance(connections, WebhookError):
        connections = []
    elif isinstance(connections, BaseException):
        raise connections

    posts = [SocialPost(**row) for row in posts_rows if row.get("id") is not None and row.get("date")]
    return CalendarOut(
        year=year,
        month=month,
        connected=connected_platforms(connections),
        days=build_month(year, month, posts, today=today),
    )


@router.patch("/posts/{post_id}", response_model=SocialPost)
async def update_post(
    post_id: int,
    body: PostUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    """Edycja podpisu i akceptacja / odrzucenie postu."""
    await _require_access(backend, user_id)
    rows = await backend.get_social_posts(user_id)
    current = next((row for row in rows if str(row.get("id")) == str(post_id)), None)
    if current is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post nie znaleziony")

    await backend.update_social_post(post_id, body.caption, current.get("image") or "", body.status)
    return SocialPost(**{**current, "caption": body.caption, "status": body.status})


@router.get("/brand-profile", response_model=BrandProfileOut)
async def get_brand_profile(
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    return await load_brand_profile(backend, user_id)


@router.put("/brand-profile", response_model=BrandProfileOut)
async def put_brand_profile(
    body: BrandProfileRequest,
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    return await save_brand_profile(backend, user_id, body)


@router.get("/posting-preferences", response_model=PostingPreferenceOut)
async def get_posting_preferences(
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    permissions = get_package_permissions(await get_seller_package_id(backend, user_id))
    preference, exists = await load_posting_preference(backend, user_id)
    return PostingPreferenceOut(
        **preference.model_dump(), exists=exists, max_posting_days=permissions.max_posting_days
    )


@router.put("/posting-preferences", response_model=PostingPreferenceOut)
async def put_posting_preferences(
    body: PostingPreferenceRequest,
    user_id: int = Depends(get_current_user_id),
    backend: WebhookClient = Depends(get_webhook_client),
):
    """Zapis preferencji; liczba dni ograniczona planem sprzedawcy."""
    permissions = await _require_access(backend, user_id)
    try:
        saved = await save_posting_preference(backend, user_id, body, permissions.max_posting_days)
    except PlanLimitExceeded as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return PostingPreferenceOut(
        **saved.model_dump(), exists=True, max_posting_days=permissions.max_posting_days
    )
