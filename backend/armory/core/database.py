from datetime import datetime, timezone
from typing import Callable, TypeVar

from sqlalchemy import Column, DateTime, create_engine, event, text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker, with_loader_criteria

from armory.core.config import settings
from armory.core.errors import AlreadyExists, Transient
from armory.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "echo": settings.DEBUG}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
        "echo": settings.DEBUG,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SoftDeleteMixin:
    """Rows with deleted_at set are hidden from default queries.

    Pass ``execution_options(include_deleted=True)`` to reach them.
    """

    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state):
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteMixin,
                lambda cls: cls.deleted_at.is_(None),
                include_aliases=True,
                propagate_to_loaders=False,
            )
        )


def soft_delete(db: Session, obj: SoftDeleteMixin) -> None:
    obj.deleted_at = utcnow()
    db.add(obj)


def restore(db: Session, obj: SoftDeleteMixin) -> None:
    obj.deleted_at = None
    db.add(obj)


def in_transaction(db: Session, fn: Callable[[Session], T]) -> T:
    """Run fn and commit. Storage errors are translated to error kinds."""
    try:
        result = fn(db)
        db.commit()
        return result
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Unique constraint violation: {e.orig}")
        raise AlreadyExists() from e
    except DBAPIError as e:
        db.rollback()
        logger.error(f"Database error: {e}")
        raise Transient() from e
    except Exception:
        db.rollback()
        raise


def get_db():
    """FastAPI dependency: one DB session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> bool:
    """DB connectivity check"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
