from contextlib import contextmanager
from typing import Callable, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from app.core.config import get_settings

settings = get_settings()

engine = create_engine(
    str(settings.database_url),
    future=True,
    pool_pre_ping=True,
)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.

    Services own their transaction boundaries (see `unit_of_work`);
    this dependency only guarantees the session is closed.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """
    FastAPI dependency returning the session factory.

    Background tasks run after the request session is closed, so they
    open their own session from this factory.
    """
    return SessionLocal


@contextmanager
def unit_of_work(db: Session) -> Generator[Session, None, None]:
    """
    Commit everything done inside the block as one transaction.

    Usage:
        with unit_of_work(db):
            product = lock_product(db, product_id)
            ...

    Any exception rolls the whole unit back and is re-raised.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
