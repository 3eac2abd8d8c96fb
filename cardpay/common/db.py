"""Database bootstrap helpers."""

from sqlalchemy import URL, Engine, create_engine, make_url, text
from sqlalchemy.orm import DeclarativeBase, sessionmaker


PLAIN_POSTGRES_SCHEMES = {"postgres", "postgresql"}


def normalize_database_url(database_url: str) -> URL:
    """Point bare `postgres://` and `postgresql://` DSNs at the psycopg 3 driver."""

    url = make_url(database_url)
    if url.drivername in PLAIN_POSTGRES_SCHEMES:
        url = url.set(drivername="postgresql+psycopg")
    return url


def make_engine(database_url: str, max_connections: int = 5) -> Engine:
    """Create the process engine with a bounded connection pool."""

    return create_engine(
        normalize_database_url(database_url),
        pool_pre_ping=True,
        pool_size=max_connections,
        max_overflow=0,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    # `expire_on_commit=False` keeps ORM objects readable after commit in handlers.
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def check_connection(engine: Engine) -> None:
    """Open one connection so a bad DSN fails at startup rather than per request."""

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass
