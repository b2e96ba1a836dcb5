# storefront/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal, atomic
from storefront.repos.cart_repo import CartRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def purge_expired_guest_carts(db: Session, now: datetime | None = None) -> int:
    """Delete guest carts whose session ran out. User carts never expire."""
    now = now or datetime.now(timezone.utc)
    repo = CartRepo(db)

    with atomic(db):
        carts = repo.get_expired_guest_carts(now)
        logger.info(f"Found {len(carts)} expired guest carts")

        purged = 0
        for cart in carts:
            #skip carts touched since they were read
            purged += repo.delete_cart(cart.id, version=cart.version)

    return purged


@celery_app.task(name="storefront.tasks.expire.purge_expired_guest_carts_task")
def purge_expired_guest_carts_task():
    logger.info("Purge expired guest carts task started")

    db = SessionLocal()
    try:
        purged = purge_expired_guest_carts(db)
        logger.info(f"Purged {purged} guest carts")
        return purged
    finally:
        db.close()
