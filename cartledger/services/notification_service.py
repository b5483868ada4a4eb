# cartledger/services/notification_service.py
from decimal import Decimal

from cartledger.celery_worker import celery_app
from cartledger.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Post-checkout notifications, processed asynchronously by Celery.
    """

    @staticmethod
    def send_checkout_notification(owner_key: str, batch_id: str, line_count: int, total: Decimal):
        send_checkout_notification_task.delay(owner_key, batch_id, line_count, str(total))


@celery_app.task(name="cartledger.services.notification_service.send_checkout_notification_task")
def send_checkout_notification_task(owner_key: str, batch_id: str, line_count: int, total: str):
    """
    A real deployment would send an e-mail / push here; for now it only logs.
    """
    logger.info(
        f"[NOTIFICATION] Owner {owner_key}: order batch {batch_id} "
        f"({line_count} lines, total {total}) placed"
    )
    return {"owner_key": owner_key, "batch_id": batch_id, "status": "sent"}
