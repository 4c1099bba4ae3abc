# portal/database.py
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from portal.config import Settings

# Base class for models
Base = declarative_base()


def build_engine(settings: Settings):
    """Create the engine for the configured database."""
    if settings.DATABASE_URL.startswith("sqlite"):
        # In-memory SQLite must share one connection across threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in settings.DATABASE_URL:
            kwargs["poolclass"] = StaticPool
        return create_engine(settings.DATABASE_URL, echo=False, **kwargs)

    return create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,  # Check connection health
        pool_size=10,
        max_overflow=20,
        echo=settings.DEBUG
    )


def build_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency to get DB session
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    """Timezone-aware UTC now, used as the Python-side default for timestamps."""
    return datetime.now(timezone.utc)
