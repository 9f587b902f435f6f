"""
Deskryptory platform i strategie odkrywania celów połączenia.
Facebook: strony użytkownika. Instagram: konta Business podpięte do tych stron.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from socialconnect.schemas.connection import ConnectableTarget, ConnectionWarning, Platform
from socialconnect.services.oauth.errors import DiscoveryFailed, NoConnectableTargets
from socialconnect.services.oauth.graph_client import GraphAPIError, MetaGraphClient

logger = structlog.get_logger()


@dataclass
class DiscoveryResult:
    targets: list[ConnectableTarget] = field(default_factory=list)
    warnings: list[ConnectionWarning] = field(default_factory=list)


class LongLivedUpgrader:
    """
    Wymiana tokena na długoterminowy z fallbackiem na token krótkotrwały.
    Błąd nie przerywa przepływu — zwracany jest warning.
    """

    def __init__(self, graph: MetaGraphClient, app_id: str, app_secret: str):
        self.graph = graph
        self.app_id = app_id
        self.app_secret = app_secret

    async def upgrade(self, token: str, subject: str) -> tuple[str, ConnectionWarning | None]:
        try:
            return await self.graph.exchange_long_lived(token, self.app_id, self.app_secret), None
        except (GraphAPIError, KeyError) as exc:
            logger.warning("Wymiana na token długoterminowy nieudana", subject=subject, error=str(exc))
            return token, ConnectionWarning(
                code="long_lived_upgrade_failed",
                subject=subject,
                message=f"Użyto tokena krótkotrwałego: {exc}",
            )


DiscoverFn = Callable[[MetaGraphClient, LongLivedUpgrader, str], Awaitable[DiscoveryResult]]


@dataclass(frozen=True)
class PlatformDescriptor:
    platform: Platform
    scope: str
    discover: DiscoverFn
    empty_message: str


async def _fetch_pages(graph: MetaGraphClient, user_token: str, empty_message: str) -> list[dict]:
    try:
        pages = await graph.list_pages(user_token)
    except GraphAPIError as exc:
        raise DiscoveryFailed(f"Nie udało się pobrać stron: {exc}") from exc
    if not pages:
        raise NoConnectableTargets(empty_message)
    return pages


async def discover_facebook_pages(
    graph: MetaGraphClient, upgrader: LongLivedUpgrader, user_token: str
) -> DiscoveryResult:
    pages = await _fetch_pages(graph, user_token, FACEBOOK.empty_message)

    result = DiscoveryResult()
    usable = []
    for page in pages:
        if page.get("id") and page.get("access_token"):
            usable.append(page)
            continue
        page_id = str(page.get("id", ""))
        logger.info("Pominięto stronę bez tokena", page_id=page_id)
        result.warnings.append(
            ConnectionWarning(
                code="discovery_skipped",
                subject=page_id,
                message=f"Strona {page.get('name', page_id)} nie zwróciła tokena dostępu",
            )
        )
    if not usable:
        raise NoConnectableTargets(FACEBOOK.empty_message)

    upgraded = await asyncio.gather(
        *(upgrader.upgrade(page["access_token"], subject=str(page["id"])) for page in usable)
    )

    for page, (token, warning) in zip(usable, upgraded):
        result.targets.append(
            ConnectableTarget(
                external_id=str(page["id"]),
                display_name=page.get("name", ""),
                short_lived_token=page["access_token"],
                long_lived_token=token,
            )
        )
        if warning:
            result.warnings.append(warning)
    return result


async def _inspect_page_for_instagram(
    graph: MetaGraphClient, upgrader: LongLivedUpgrader, page: dict
) -> tuple[ConnectableTarget | None, list[ConnectionWarning]]:
    page_id = str(page.get("id"))
    warnings: list[ConnectionWarning] = []
    try:
        page_token = page["access_token"]
        long_token, warning = await upgrader.upgrade(page_token, subject=page_id)
        if warning:
            warnings.append(warning)

        ig_account_id = await graph.get_linked_instagram_account(page_id, long_token)
        if ig_account_id is None:
            return None, warnings

        profile = await graph.get_instagram_profile(ig_account_id, long_token)
    except (GraphAPIError, KeyError, TypeError) as exc:
        logger.info("Pominięto stronę przy szukaniu konta Instagram", page_id=page_id, error=str(exc))
        warnings.append(
            ConnectionWarning(
                code="discovery_skipped",
                subject=page_id,
                message=f"Nie udało się sprawdzić strony {page.get('name', page_id)}: {exc}",
            )
        )
        return None, warnings

    target = ConnectableTarget(
        external_id=ig_account_id,
        display_name=profile.get("name") or page.get("name", ""),
        username=profile.get("username") or "Unknown",
        short_lived_token=page_token,
        long_lived_token=long_token,
    )
    return target, warnings


async def discover_instagram_accounts(
    graph: MetaGraphClient, upgrader: LongLivedUpgrader, user_token: str
) -> DiscoveryResult:
    pages = await _fetch_pages(
        graph,
        user_token,
        "Nie znaleziono stron Facebook. Konto Instagram Business musi być podpięte do strony.",
    )

    inspected = await asyncio.gather(
        *(_inspect_page_for_instagram(graph, upgrader, page) for page in pages)
    )

    result = DiscoveryResult()
    for target, warnings in inspected:
        result.warnings.extend(warnings)
        if target is not None:
            result.targets.append(target)

    if not result.targets:
        raise NoConnectableTargets(INSTAGRAM.empty_message)
    return result


FACEBOOK = PlatformDescriptor(
    platform=Platform.FACEBOOK,
    scope="pages_show_list,pages_manage_posts,pages_read_engagement",
    discover=discover_facebook_pages,
    empty_message=(
        "Nie znaleziono stron Facebook. Utwórz stronę lub upewnij się, "
        "że jesteś administratorem co najmniej jednej."
    ),
)

INSTAGRAM = PlatformDescriptor(
    platform=Platform.INSTAGRAM,
    scope="instagram_basic,pages_show_list",
    discover=discover_instagram_accounts,
    empty_message=(
        "Nie znaleziono kont Instagram Business. Podłącz konto Instagram Business do strony Facebook."
    ),
)

PLATFORMS: dict[Platform, PlatformDescriptor] = {
    Platform.FACEBOOK: FACEBOOK,
    Platform.INSTAGRAM: INSTAGRAM,
}


def get_descriptor(platform: Platform | str) -> PlatformDescriptor:
    return PLATFORMS[Platform(platform)]
