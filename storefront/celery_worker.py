# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    GUEST_CART_PURGE_INTERVAL,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#tasks have to be imported explicitly so celery registers them
celery_app.conf.imports = (
    "storefront.tasks.expire",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "purge-expired-guest-carts": {
        "task": "storefront.tasks.expire.purge_expired_guest_carts_task",
        "schedule": GUEST_CART_PURGE_INTERVAL,
    },
}

celery_app.conf.timezone = "UTC"
#tests and local dev run tasks inline without a broker
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
