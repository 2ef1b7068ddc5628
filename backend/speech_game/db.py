from __future__ import annotations
import logging

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./speech_game.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for databases created before session keys existed
def ensure_schema(bind=None) -> None:
	bind = bind or engine
	try:
		inspector = inspect(bind)
		tables = set(inspector.get_table_names())
	except Exception:
		logger.warning("Could not inspect database schema", exc_info=True)
		return
	for table in ("user_progress", "user_sessions"):
		if table not in tables:
			continue
		cols = {c["name"] for c in inspector.get_columns(table)}
		if "session_key" not in cols:
			logger.info("Adding session_key column to %s", table)
			with bind.begin() as conn:
				conn.exec_driver_sql(f"ALTER TABLE {table} ADD COLUMN session_key VARCHAR(255)")
