from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from speech_game import models  # noqa: F401  (registers tables)
from speech_game.analytics import ProgressRecord
from speech_game.db import Base, get_db
from speech_game.main import app


BASE_TIME = datetime(2025, 3, 1, 9, 0, 0)


def make_record(session_key="s1", level_id=1, minutes=0, success=True, score=80, **kwargs) -> ProgressRecord:
	return ProgressRecord(
		session_key=session_key,
		level_id=level_id,
		completed_at=BASE_TIME + timedelta(minutes=minutes),
		success=success,
		score=score,
		**kwargs,
	)


@pytest.fixture
def db_session():
	engine = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=engine)
	TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
	db = TestingSession()
	try:
		yield db
	finally:
		db.close()
		engine.dispose()


@pytest.fixture
def client(db_session):
	def _override_get_db():
		yield db_session

	app.dependency_overrides[get_db] = _override_get_db
	try:
		yield TestClient(app)
	finally:
		app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers():
	return {"x-access-key": "player-one-key"}
