# File location: src/quiz_portal/db/session.py
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from src.quiz_portal.config.settings import get_settings
from src.quiz_portal.utils.errors import QuizPortalError, StoreUnavailableError

logger = logging.getLogger(__name__)

settings = get_settings()

connect_args = {}
if settings.database_url.startswith("sqlite"):
    # FastAPI serves sync endpoints from a thread pool
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.database_url,
    echo=settings.database_echo,
    connect_args=connect_args,
    pool_pre_ping=True,
)


def create_db_and_tables() -> None:
    # Make sure every table is registered on the metadata first
    import src.quiz_portal.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created.")


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@contextmanager
def store_guard(db: Session, operation: str):
    """
    Roll back and reclassify database failures raised inside the block.

    Domain errors pass through untouched; anything SQLAlchemy raises becomes
    a StoreUnavailableError so callers can tell infrastructure trouble apart
    from a rejected transition.
    """
    try:
        yield
    except QuizPortalError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database failure during {operation}: {e}", exc_info=True)
        raise StoreUnavailableError(f"The database is unavailable; could not {operation}.") from e
