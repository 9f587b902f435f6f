"""
Profil marki i preferencje publikacji — odczyt z backendu + zapis insert/update.
"""

import structlog
from pydantic import TypeAdapter, ValidationError

from socialconnect.schemas.dashboard import (
    BrandProfileOut,
    BrandProfileRequest,
    PostingPreference,
    PostingPreferenceRequest,
)
from socialconnect.services.backend.webhook_client import WebhookClient, WebhookError

logger = structlog.get_logger()

_FLAG = TypeAdapter(bool)


class PlanLimitExceeded(ValueError):
    pass


async def load_brand_profile(backend: WebhookClient, user_id: int) -> BrandProfileOut:
    """Pierwszy rekord z backendu; brak lub błąd -> pusty formularz do utworzenia."""
    try:
        rows = await backend.search_brand_profile(user_id)
    except WebhookError as exc:
        logger.warning("Nie udało się pobrać profilu marki", user_id=user_id, error=str(exc))
        rows = []

    if not rows:
        return BrandProfileOut(exists=False)

    row = rows[0]
    return BrandProfileOut(
        tone=row.get("tone") or "",
        voice=row.get("voice") or "",
        description=row.get("description") or "",
        exists=True,
    )


async def save_brand_profile(backend: WebhookClient, user_id: int, body: BrandProfileRequest) -> BrandProfileOut:
    existing = await load_brand_profile(backend, user_id)
    payload = {"user_id": user_id, **body.model_dump()}
    await backend.save_brand_profile(payload, exists=existing.exists)
    logger.info("Zapisano profil marki", user_id=user_id, updated=existing.exists)
    return BrandProfileOut(**body.model_dump(), exists=True)


def _as_flag(value) -> bool:
    # Backend zwraca 0/1, "1", "true" albo null
    if value is None or value == "":
        return False
    try:
        return _FLAG.validate_python(value)
    except ValidationError:
        logger.warning("Nieczytelna flaga w preferencjach publikacji", value=value)
        return False


def _has_preference_data(row: dict) -> bool:
    # Backend potrafi zwrócić [{}] zamiast pustej listy
    return bool(row.get("posting_days") or row.get("posting_time") or "manual_review" in row)


async def load_posting_preference(backend: WebhookClient, user_id: int) -> tuple[PostingPreference, bool]:
    try:
        rows = await backend.search_post_preference(user_id)
    except WebhookError as exc:
        logger.warning("Nie udało się pobrać preferencji publikacji", user_id=user_id, error=str(exc))
        rows = []

    if not rows or not _has_preference_data(rows[0]):
        return PostingPreference(), False

    row = rows[0]
    days = [d for d in (row.get("posting_days") or "").split(",") if d]
    return (
        PostingPreference(
            posting_days=days,
            posting_time=row.get("posting_time") or "10:00:00",
            manual_review=_as_flag(row.get("manual_review")),
            notification_days=row.get("notification_days") or "",
            consent=_as_flag(row.get("consent")),
        ),
        True,
    )


async def save_posting_preference(
    backend: WebhookClient, user_id: int, body: PostingPreferenceRequest, max_posting_days: int
) -> PostingPreference:
    """Zapis z limitem dni wynikającym z planu sprzedawcy."""
    if len(body.posting_days) > max_posting_days:
        raise PlanLimitExceeded(
            f"Twój plan pozwala wybrać maksymalnie {max_posting_days} dni publikacji"
        )

    _, exists = await load_posting_preference(backend, user_id)
    payload = {
        "user_id": user_id,
        "posting_days": ",".join(body.posting_days),
        "posting_time": body.posting_time,
        "manual_review": 1 if body.manual_review else 0,
        "notification_days": body.notification_days,
        "consent": 1 if body.consent else 0,
    }
    await backend.save_post_preference(payload, exists=exists)
    logger.info("Zapisano preferencje publikacji", user_id=user_id, updated=exists)
    return PostingPreference(**body.model_dump())
