# checkout/services/notification_service.py
from checkout.celery_worker import celery_app
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania powiadomien.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int, order_number: str):
        send_order_notification_task.delay(user_id, order_id, order_number)

    @staticmethod
    def send_bonus_notification(user_id: int, order_number: str, amount: str):
        send_bonus_notification_task.delay(user_id, order_number, amount)


@celery_app.task(name="checkout.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int, order_number: str):
    """
    W prawdziwym systemie email/SMS/push. Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: Order #{order_number} ({order_id}) has been placed")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="checkout.services.notification_service.send_bonus_notification_task")
def send_bonus_notification_task(user_id: int, order_number: str, amount: str):
    logger.info(f"[NOTIFICATION] User {user_id}: bonus {amount} credited for Order #{order_number}")
    return {"user_id": user_id, "order_number": order_number, "amount": amount, "status": "sent"}
