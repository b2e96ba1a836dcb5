# storefront/services/notification_service.py
from kombu.exceptions import OperationalError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications.
    Uses celery so the request never waits for email/SMS delivery.
    """

    def notify(self, user_id: int, order_id: int, event: str) -> bool:
        """
        Enqueue a notification about an order event (ORDER_PLACED, ORDER_SHIPPED, ...).
        Called after the order transaction committed: a broker outage is logged,
        never raised, since the order itself already exists.
        """
        try:
            send_order_notification_task.delay(user_id, order_id, event)
            return True
        except OperationalError as e:
            logger.warning(f"Could not enqueue {event} notification for order {order_id}: {e}")
            return False


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int, event: str):
    """
    Celery task. A real deployment would send email/SMS/push here,
    for now it only logs.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} {event}")

    return {"user_id": user_id, "order_id": order_id, "event": event, "status": "sent"}
