"""
Kalendarz postów — grupowanie po dniach miesiąca + status połączonych platform.
"""

import calendar
from datetime import date, datetime

import structlog

from socialconnect.schemas.dashboard import CalendarDay, ConnectedPlatforms, SocialPost

logger = structlog.get_logger()


def parse_post_date(value: str) -> date | None:
    """Data postu w ISO (sama data lub data z czasem). Nieparsowalne -> None."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def connected_platforms(connections: list[dict]) -> ConnectedPlatforms:
    connected = ConnectedPlatforms()
    for conn in connections:
        try:
            active = int(conn.get("status", 0)) == 1
        except (TypeError, ValueError):
            active = False
        if not active:
            continue
        if conn.get("platform") == "facebook":
            connected.facebook = True
        elif conn.get("platform") == "instagram":
            connected.instagram = True
    return connected


def build_month(year: int, month: int, posts: list[SocialPost], today: date | None = None) -> list[CalendarDay]:
    """Wszystkie dni miesiąca; dzień jest "upcoming", gdy to dziś lub później."""
    today = today or date.today()
    by_day: dict[date, list[SocialPost]] = {}
    for post in posts:
        post_date = parse_post_date(post.date)
        if post_date is None:
            logger.debug("Pominięto post z nieprawidłową datą", post_id=post.id, date=post.date)
            continue
        if post_date.year == year and post_date.month == month:
            by_day.setdefault(post_date, []).append(post)

    _, days_in_month = calendar.monthrange(year, month)
    days = []
    for day_number in range(1, days_in_month + 1):
        day = date(year, month, day_number)
        days.append(CalendarDay(date=day, upcoming=day >= today, posts=by_day.get(day, [])))
    return days
