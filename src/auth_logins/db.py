from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from src.auth_logins.config import settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""
    pass


_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def make_session_factory(engine: Engine) -> sessionmaker:
    """Build the session factory used for every store operation."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


# Initialize the engine only if DATABASE_URL is provided.
if settings.DATABASE_URL:
    _engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    _SessionLocal = make_session_factory(_engine)


def get_engine() -> Optional[Engine]:
    """Get the SQLAlchemy engine if configured."""
    return _engine


def get_session_factory() -> Optional[sessionmaker]:
    """Get the SQLAlchemy session factory if configured."""
    return _SessionLocal


def init_db(engine: Optional[Engine] = None) -> None:
    """Create the auth_logins table if it does not exist."""
    # Register the models on Base.metadata
    from src.auth_logins import models  # noqa: F401

    engine = engine if engine is not None else _engine
    if engine is not None:
        Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    factory = factory if factory is not None else _SessionLocal
    if factory is None:
        raise RuntimeError(
            "DATABASE_URL is not configured. Set DATABASE_URL in the environment."
        )
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
