# storefront/data/database.py
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from storefront.domain.errors import ConflictError, TransactionAbortedError
from storefront.utils.settings import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def build_engine(url: str = DATABASE_URL):
    connect_args = {}
    if url.startswith("sqlite"):
        #fastapi threadpool shares connections between threads
        connect_args["check_same_thread"] = False
    elif url.startswith("postgresql"):
        #a hung transaction is rolled back by the server instead of holding row locks
        connect_args["options"] = f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"

    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """
    Unit of work: commit on success, roll back on any error.

    Driver errors are translated so callers only see the domain taxonomy:
    a unique/check violation means a concurrent writer won (ConflictError),
    anything else from the database is TransactionAbortedError.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Transaction rolled back on integrity error: {e.orig}")
        raise ConflictError("Concurrent modification detected, retry the operation") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction aborted: {e}")
        raise TransactionAbortedError("Database transaction aborted") from e
    except BaseException:
        db.rollback()
        raise
