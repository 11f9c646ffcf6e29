import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from confbot.core.config import get_settings
from confbot.core.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

settings = get_settings()

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session, on_conflict: Optional[ErrorCode] = None) -> None:
    """Commit the unit of work or roll back.

    A unique-constraint violation raises ``on_conflict`` when given; any other
    database error raises STORAGE_FAILURE.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if on_conflict is not None:
            raise DomainError(on_conflict) from e
        logger.exception("Integrity error on commit")
        raise DomainError(ErrorCode.STORAGE_FAILURE, str(e.orig)) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database commit failed")
        raise DomainError(ErrorCode.STORAGE_FAILURE, str(e)) from e
