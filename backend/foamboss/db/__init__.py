"""
Database Layer - SQLAlchemy engine + session factory.
"""
import logging
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger("foamboss-db")


class Base(DeclarativeBase):
    pass


# Assigned by init_database() at startup
SessionLocal: Optional[sessionmaker] = None


def normalise_database_url(url: str) -> str:
    """Hosted Postgres URLs often use the legacy postgres:// scheme."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def init_database(database_url: str) -> sessionmaker:
    """Create tables for every ORM model and configure SessionLocal."""
    from foamboss.models import orm_models  # noqa: F401

    url = normalise_database_url(database_url)
    engine = create_engine(url, pool_pre_ping=True, echo=False)
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables initialized ({engine.url.get_backend_name()})")

    global SessionLocal
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal


def get_db() -> Generator[Session, None, None]:
    if SessionLocal is None:
        raise RuntimeError("SessionLocal is not initialized; call init_database() first")
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
