from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
import os

# Empty means "no database": the in-memory backend is used instead.
DATABASE_URL = (os.getenv("DATABASE_URL", "") or "").strip()

Base = declarative_base()


def make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    if url in {"sqlite://", "sqlite:///:memory:"}:
        # Every session has to see the same in-memory database.
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


def make_session_factory(bind):
    return sessionmaker(bind=bind, autocommit=False, autoflush=False)


engine = make_engine(DATABASE_URL) if DATABASE_URL else None
SessionLocal = make_session_factory(engine) if engine is not None else None


def ensure_schema(bind=None) -> None:
    target = bind if bind is not None else engine
    if target is None:
        return
    Base.metadata.create_all(bind=target)
