from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import Engine
from .config import settings


def build_engine(db_url: str, lock_timeout_seconds: float = settings.DB_LOCK_TIMEOUT_SECONDS, echo: bool = False) -> Engine:
    """Create an engine whose lock waits are bounded by ``lock_timeout_seconds``."""
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False, "timeout": lock_timeout_seconds}
        })
    else:
        # Better resiliency for managed Postgres
        timeout_ms = int(lock_timeout_seconds * 1000)
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
            "connect_args": {"options": f"-c lock_timeout={timeout_ms} -c statement_timeout={timeout_ms}"},
        })

    return create_engine(db_url, echo=echo, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def create_db_and_tables(bind: Engine = None):
    # Import table models so they register on the metadata
    from .db import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_engine() -> Engine:
    return engine


def get_session():
    with Session(engine) as session:
        yield session
