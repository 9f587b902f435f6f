"""Schematy panelu sprzedawcy — pakiet, posty, profil marki, preferencje publikacji."""

import datetime
import re

from pydantic import BaseModel, Field, field_validator, model_validator

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

TONE_OPTIONS = [
    "Friendly",
    "Luxurious",
    "Playful",
    "Bold",
    "Minimalist",
    "Professional",
    "Fun",
    "Premium",
    "Inspirational",
]

VOICE_OPTIONS = [
    "Confident",
    "Conversational",
    "Energetic",
    "Formal",
    "Casual",
    "Humorous",
    "Warm",
    "Sophisticated",
    "Youthful",
]

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d:[0-5]\d$")


class PackagePermissions(BaseModel):
    has_access: bool
    max_posting_days: int
    plan_name: str


class SellerPackageOut(BaseModel):
    seller_package_id: int | None
    permissions: PackagePermissions


class SocialPost(BaseModel):
    id: int
    user_id: int | None = None
    product_id: int | None = None
    product_name: str | None = None
    caption: str | None = None
    image: str | None = None
    dayof: str | None = None
    date: str
    status: str | None = None
    published_status: int | None = 0
    created_at: str | None = None
    updated_at: str | None = None

    model_config = {"extra": "ignore"}


class CalendarDay(BaseModel):
    date: datetime.date
    upcoming: bool
    posts: list[SocialPost]


class ConnectedPlatforms(BaseModel):
    facebook: bool = False
    instagram: bool = False


class CalendarOut(BaseModel):
    year: int
    month: int
    connected: ConnectedPlatforms
    days: list[CalendarDay]


class PostUpdateRequest(BaseModel):
    caption: str = Field(min_length=1)
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v: str) -> str:
        if v not in ("approved", "rejected"):
            raise ValueError("status musi być 'approved' lub 'rejected'")
        return v


class BrandProfile(BaseModel):
    tone: str = ""
    voice: str = ""
    description: str = ""


class BrandProfileRequest(BaseModel):
    tone: str
    voice: str
    description: str

    @field_validator("tone")
    @classmethod
    def check_tone(cls, v: str) -> str:
        if v not in TONE_OPTIONS:
            raise ValueError(f"Nieznany ton: {v}")
        return v

    @field_validator("voice")
    @classmethod
    def check_voice(cls, v: str) -> str:
        if v not in VOICE_OPTIONS:
            raise ValueError(f"Nieznany głos marki: {v}")
        return v

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Opis marki jest wymagany")
        return v


class BrandProfileOut(BrandProfile):
    exists: bool


class PostingPreference(BaseModel):
    posting_days: list[str] = []
    posting_time: str = "10:00:00"
    manual_review: bool = False
    notification_days: str = ""
    consent: bool = False


class PostingPreferenceRequest(PostingPreference):
    @field_validator("posting_days")
    @classmethod
    def check_days(cls, v: list[str]) -> list[str]:
        unknown = [d for d in v if d not in DAYS_OF_WEEK]
        if unknown:
            raise ValueError(f"Nieznane dni: {', '.join(unknown)}")
        if len(set(v)) != len(v):
            raise ValueError("Dni publikacji nie mogą się powtarzać")
        if not v:
            raise ValueError("Wybierz co najmniej jeden dzień publikacji")
        return v

    @field_validator("posting_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        if not _TIME_RE.match(v):
            raise ValueError("Godzina publikacji w formacie HH:MM:SS")
        return v

    @model_validator(mode="after")
    def check_review_and_consent(self) -> "PostingPreferenceRequest":
        if not self.posting_days:
            raise ValueError("Wybierz co najmniej jeden dzień publikacji")
        if self.manual_review and self.notification_days not in DAYS_OF_WEEK:
            raise ValueError("Wybierz dzień powiadomienia dla ręcznej weryfikacji")
        if not self.manual_review:
            self.notification_days = ""
        if not self.consent:
            raise ValueError("Wymagana zgoda na treści generowane przez AI")
        return self


class PostingPreferenceOut(PostingPreference):
    exists: bool
    max_posting_days: int
