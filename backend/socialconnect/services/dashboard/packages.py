"""Pakiety sprzedawcy i wynikające z nich uprawnienia."""

import structlog

from socialconnect.schemas.dashboard import PackagePermissions
from socialconnect.services.backend.webhook_client import WebhookClient, WebhookError

logger = structlog.get_logger()

NO_PACKAGE = PackagePermissions(has_access=False, max_posting_days=0, plan_name="Unknown Plan")

PACKAGE_PERMISSIONS: dict[int, PackagePermissions] = {
    4: PackagePermissions(has_access=False, max_posting_days=0, plan_name="Restricted Plan"),
    7: PackagePermissions(has_access=True, max_posting_days=3, plan_name="Starter Plan"),
    8: PackagePermissions(has_access=True, max_posting_days=7, plan_name="Advanced Plan"),
    9: PackagePermissions(has_access=True, max_posting_days=7, plan_name="Advanced Plan"),
}


def get_package_permissions(package_id: int | None) -> PackagePermissions:
    if package_id is None:
        return NO_PACKAGE
    return PACKAGE_PERMISSIONS.get(package_id, NO_PACKAGE)


async def get_seller_package_id(backend: WebhookClient, user_id: int) -> int | None:
    """
    Pakiet użytkownika z backendu. Błąd backendu = brak pakietu
    (panel pokazuje wtedy ograniczony dostęp zamiast błędu).
    """
    try:
        packages = await backend.get_seller_packages(user_id)
    except WebhookError as exc:
        logger.warning("Nie udało się pobrać pakietu sprzedawcy", user_id=user_id, error=str(exc))
        return None

    for package in packages:
        try:
            if int(package.get("user_id")) == user_id:
                return int(package["seller_package_id"])
        except (TypeError, ValueError, KeyError):
            continue
    return None
