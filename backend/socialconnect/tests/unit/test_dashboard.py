"""Testy usług panelu — uprawnienia pakietów, kalendarz, preferencje publikacji."""

from datetime import date

import pytest
from pydantic import ValidationError

from socialconnect.schemas.dashboard import BrandProfileRequest, PostingPreferenceRequest, SocialPost
from socialconnect.services.dashboard.packages import get_package_permissions, get_seller_package_id
from socialconnect.services.dashboard.post_calendar import build_month, connected_platforms, parse_post_date
from socialconnect.services.dashboard.profiles import (
    PlanLimitExceeded,
    load_posting_preference,
    save_brand_profile,
    save_posting_preference,
)


@pytest.mark.parametrize(
    "package_id, has_access, days, plan",
    [
        (4, False, 0, "Restricted Plan"),
        (7, True, 3, "Starter Plan"),
        (8, True, 7, "Advanced Plan"),
        (9, True, 7, "Advanced Plan"),
        (1, False, 0, "Unknown Plan"),
        (None, False, 0, "Unknown Plan"),
    ],
)
def test_package_permissions(package_id, has_access, days, plan):
    permissions = get_package_permissions(package_id)
    assert permissions.has_access is has_access
    assert permissions.max_posting_days == days
    assert permissions.plan_name == plan


@pytest.mark.asyncio
async def test_seller_package_picks_current_user(webhook_client, webhook_stub):
    webhook_stub.responses["seller-package"] = [
        {"user_id": 1, "seller_package_id": 4},
        {"user_id": 42, "seller_package_id": 8},
    ]
    assert await get_seller_package_id(webhook_client, 42) == 8


@pytest.mark.asyncio
async def test_seller_package_backend_failure_means_no_package(webhook_client, webhook_stub):
    webhook_stub.failing = {"seller-package"}
    assert await get_seller_package_id(webhook_client, 42) is None


def test_parse_post_date_formats():
    assert parse_post_date("2026-10-21") == date(2026, 10, 21)
    assert parse_post_date("2026-10-21T09:30:00Z") == date(2026, 10, 21)
    assert parse_post_date("21/10/2026") is None
    assert parse_post_date("") is None


def test_build_month_groups_posts_and_flags_upcoming():
    posts = [
        SocialPost(id=1, date="2026-10-05", caption="a"),
        SocialPost(id=2, date="2026-10-20T10:00:00", caption="b"),
        SocialPost(id=3, date="2026-10-20", caption="c"),
        SocialPost(id=4, date="2026-11-01", caption="next month"),
        SocialPost(id=5, date="nonsense", caption="bad"),
    ]
    days = build_month(2026, 10, posts, today=date(2026, 10, 19))

    assert len(days) == 31
    by_day = {d.date.day: d for d in days}
    assert [p.id for p in by_day[5].posts] == [1]
    assert [p.id for p in by_day[20].posts] == [2, 3]
    assert by_day[18].upcoming is False
    assert by_day[19].upcoming is True
    assert sum(len(d.posts) for d in days) == 3


def test_connected_platforms_only_active():
    connected = connected_platforms(
        [
            {"platform": "facebook", "status": 1},
            {"platform": "instagram", "status": 0},
            {"platform": "instagram", "status": "bad"},
        ]
    )
    assert connected.facebook is True
    assert connected.instagram is False


def test_posting_preference_validation():
    valid = PostingPreferenceRequest(
        posting_days=["Monday", "Friday"],
        posting_time="18:30:00",
        manual_review=False,
        notification_days="Sunday",
        consent=True,
    )
    assert valid.notification_days == ""

    with pytest.raises(ValidationError):
        PostingPreferenceRequest(posting_days=[], consent=True)
    with pytest.raises(ValidationError):
        PostingPreferenceRequest(posting_days=["Funday"], consent=True)
    with pytest.raises(ValidationError):
        PostingPreferenceRequest(posting_days=["Monday"], consent=False)
    with pytest.raises(ValidationError):
        PostingPreferenceRequest(posting_days=["Monday"], manual_review=True, consent=True)
    with pytest.raises(ValidationError):
        PostingPreferenceRequest(posting_days=["Monday"], posting_time="25:00", consent=True)


@pytest.mark.asyncio
async def test_posting_preference_plan_limit(webhook_client, webhook_stub):
    body = PostingPreferenceRequest(
        posting_days=["Monday", "Tuesday", "Wednesday", "Thursday"], consent=True
    )
    with pytest.raises(PlanLimitExceeded):
        await save_posting_preference(webhook_client, 42, body, max_posting_days=3)
    assert webhook_stub.payloads("insert-post-preference") == []


@pytest.mark.asyncio
async def test_posting_preference_insert_then_update(webhook_client, webhook_stub):
    body = PostingPreferenceRequest(
        posting_days=["Monday", "Friday"], manual_review=True, notification_days="Sunday", consent=True
    )
    webhook_stub.responses["search-post-preference"] = [{}]
    await save_posting_preference(webhook_client, 42, body, max_posting_days=7)

    assert webhook_stub.payloads("insert-post-preference") == [
        {
            "user_id": 42,
            "posting_days": "Monday,Friday",
            "posting_time": "10:00:00",
            "manual_review": 1,
            "notification_days": "Sunday",
            "consent": 1,
        }
    ]

    webhook_stub.responses["search-post-preference"] = [
        {"user_id": 42, "posting_days": "Monday,Friday", "manual_review": 1, "consent": 1}
    ]
    await save_posting_preference(webhook_client, 42, body, max_posting_days=7)
    assert len(webhook_stub.payloads("update-post-preference")) == 1


@pytest.mark.asyncio
async def test_load_posting_preference_parses_row(webhook_client, webhook_stub):
    webhook_stub.responses["search-post-preference"] = [
        {
            "user_id": 42,
            "posting_days": "Tuesday,Saturday",
            "posting_time": "08:00:00",
            "manual_review": 0,
            "notification_days": "",
            "consent": 1,
        }
    ]
    preference, exists = await load_posting_preference(webhook_client, 42)

    assert exists is True
    assert preference.posting_days == ["Tuesday", "Saturday"]
    assert preference.posting_time == "08:00:00"
    assert preference.consent is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "manual_review, consent, expected",
    [
        ("true", "1", (True, True)),
        ("false", 1, (False, True)),
        ("maybe", None, (False, False)),
        ("", "garbage", (False, False)),
    ],
)
async def test_load_posting_preference_tolerates_odd_flags(
    webhook_client, webhook_stub, manual_review, consent, expected
):
    webhook_stub.responses["search-post-preference"] = [
        {"user_id": 42, "posting_days": "Monday", "manual_review": manual_review, "consent": consent}
    ]
    preference, exists = await load_posting_preference(webhook_client, 42)

    assert exists is True
    assert (preference.manual_review, preference.consent) == expected


@pytest.mark.asyncio
async def test_brand_profile_insert_when_missing(webhook_client, webhook_stub):
    webhook_stub.responses["search-brand-profile"] = []
    body = BrandProfileRequest(tone="Friendly", voice="Warm", description="Ręcznie robiona biżuteria")

    saved = await save_brand_profile(webhook_client, 42, body)

    assert saved.exists is True
    assert webhook_stub.payloads("insert-brand-profile") == [
        {"user_id": 42, "tone": "Friendly", "voice": "Warm", "description": "Ręcznie robiona biżuteria"}
    ]


def test_brand_profile_rejects_unknown_tone():
    with pytest.raises(ValidationError):
        BrandProfileRequest(tone="Grumpy", voice="Warm", description="x")
    with pytest.raises(ValidationError):
        BrandProfileRequest(tone="Bold", voice="Warm", description="   ")
