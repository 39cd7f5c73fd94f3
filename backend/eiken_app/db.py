from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./app.db"


def make_engine(url: str) -> Engine:
	# SQLite connections are shared across the request threadpool
	connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
	return create_engine(url, connect_args=connect_args, pool_pre_ping=True, future=True)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


@contextmanager
def session_scope() -> Iterator[Session]:
	"""Session for work outside a request (startup, background cleanup)."""
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


def get_db():
	with session_scope() as db:
		yield db


def init_db() -> None:
	"""Create missing tables; models must be registered on Base first."""
	from . import models  # noqa: F401

	Base.metadata.create_all(bind=engine)
