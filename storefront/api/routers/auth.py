# storefront/api/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service
from storefront.data.database import get_db
from storefront.domain.errors import ConflictError, NotFoundError, TransactionAbortedError
from storefront.domain.schemas import AuthOut, SignInIn, SignUpIn, UserCreate
from storefront.services.auth_service import AuthSessionService
from storefront.services.lock_service import LockService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_service(db: Session, lock_service: LockService):
    return AuthSessionService(db, lock_service)


@router.post("/login", response_model=AuthOut)
def login(
    payload: SignInIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Called once the credentials were verified.
    Folds the pre-login guest cart into the account and returns the merged cart.
    """
    svc = get_service(db, lock_service)
    try:
        return svc.sign_in(payload.user_id, payload.session_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TransactionAbortedError as e:
        logger.error(f"Cart merge for user {payload.user_id} aborted: {e}")
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/signup", response_model=AuthOut, status_code=201)
def signup(
    payload: SignUpIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    user = UserCreate(id=payload.id, name=payload.name)
    try:
        return svc.sign_up(user, payload.session_id)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TransactionAbortedError as e:
        logger.error(f"Signup merge aborted: {e}")
        raise HTTPException(status_code=503, detail=str(e))
