"""
Database Engine & Session Management
SQLAlchemy setup with dependency injection for FastAPI and a short-lived
session scope for service code (one connection per logical operation).
"""
import os
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from opsdesk.config import get_settings

settings = get_settings()

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # Required for SQLite

    # Ensure data directory exists for file-backed databases
    db_path = settings.DATABASE_URL.replace("sqlite:///", "")
    if settings.DATABASE_URL.startswith("sqlite:///") and os.path.dirname(db_path):
        os.makedirs(os.path.dirname(db_path), exist_ok=True)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session, auto-closes on finish."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Session:
    """Open a session for one logical operation.

    Commits on success, rolls back on any exception and always closes,
    so provider errors never leak a connection.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db():
    """Create all tables and seed default options. Called once at startup."""
    from opsdesk.models import option as _option_model        # noqa: F401
    from opsdesk.models import contact as _contact_model      # noqa: F401
    from opsdesk.models import gateway as _gateway_model      # noqa: F401
    from opsdesk.models import payment_link as _link_model    # noqa: F401

    Base.metadata.create_all(bind=engine)

    from opsdesk.services.option_service import OptionService
    OptionService.seed_defaults()
