# storefront/api/routers/health.py
from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service
from storefront.data.database import get_db
from storefront.services.lock_service import LockService

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db), lock_service: LockService = Depends(get_lock_service)):
    checks = {}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError:
        checks["database"] = "down"

    try:
        lock_service.redis.ping()
        checks["redis"] = "ok"
    except RedisError:
        checks["redis"] = "down"

    status = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "checks": checks}
