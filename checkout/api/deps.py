# checkout/api/deps.py
from checkout.services.lock_service import LockService
from checkout.services.notification_service import NotificationService
from checkout.services.product_client import ProductClient
from checkout.utils.settings import BonusSettings, get_bonus_settings

#zaleznosci wstrzykiwane przez Depends - w testach podmieniane przez dependency_overrides


def get_product_client() -> ProductClient:
    return ProductClient()


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_bonus_config() -> BonusSettings:
    return get_bonus_settings()
