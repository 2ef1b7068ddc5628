import json
import re
from datetime import datetime, timedelta

import pytest

from speech_game import service
from speech_game.models import User, UserProgress
from speech_game.settings import settings


SESSION_KEY_RE = re.compile(r"^session_[0-9a-z]+_[0-9a-z]{6}$")


@pytest.fixture
def player(db_session):
	return service.authenticate(db_session, "player-one-key")


def _attempt(db, user, level_id, success, score=80, session_key="s1", **kwargs):
	return service.save_progress(db, user, session_key, level_id=level_id, success=success, score=score, **kwargs)


# ============================================================================
# USERS
# ============================================================================

def test_authenticate_registers_and_reuses_key(db_session):
	first = service.authenticate(db_session, "  shared-key ")
	second = service.authenticate(db_session, "shared-key")

	assert first is not None
	assert first.id == second.id
	assert first.access_key == "shared-key"
	assert db_session.query(User).count() == 1


def test_authenticate_rejects_blank_key(db_session):
	assert service.authenticate(db_session, "") is None
	assert service.authenticate(db_session, "   ") is None
	assert service.authenticate(db_session, None) is None


def test_authenticate_rejects_inactive_user(db_session, player):
	player.is_active = False
	db_session.commit()

	assert service.authenticate(db_session, "player-one-key") is None


def test_authenticate_without_auto_registration(db_session, player, monkeypatch):
	monkeypatch.setattr(settings, "auto_register_keys", False)

	assert service.authenticate(db_session, "unknown-key") is None
	assert service.authenticate(db_session, "player-one-key").id == player.id


# ============================================================================
# PROGRESS AND STATS
# ============================================================================

def test_save_progress_refreshes_cached_stats(db_session, player):
	_attempt(db_session, player, 1, True, score=85, accuracy=0.9, fluency=0.8, coins_earned=25, xp_earned=50)
	_attempt(db_session, player, 2, False, score=40, accuracy=0.5, fluency=0.4)
	_attempt(db_session, player, 2, True, score=75, coins_earned=30, xp_earned=55)

	stats = service.get_user_stats(db_session, player.id)
	assert stats.total_coins == 55
	assert stats.total_xp == 105
	assert stats.levels_completed == 2
	assert stats.current_level == 3
	assert stats.current_streak == 1
	assert stats.best_streak == 1
	assert stats.average_score == pytest.approx((85 + 40 + 75) / 3)
	assert stats.average_accuracy == pytest.approx(0.7)
	assert stats.total_sessions == 1


def test_streak_grows_and_resets(db_session, player):
	for level_id in (1, 2, 3):
		_attempt(db_session, player, level_id, True)
	assert service.get_user_stats(db_session, player.id).current_streak == 3

	_attempt(db_session, player, 4, False)
	stats = service.get_user_stats(db_session, player.id)
	assert stats.current_streak == 0
	assert stats.best_streak == 3


def test_measured_zero_is_stored_as_zero(db_session, player):
	row = _attempt(db_session, player, 1, False, score=10, accuracy=0.0)
	visual = _attempt(db_session, player, 9, True, score=90)

	assert row.accuracy == 0.0
	assert visual.accuracy is None
	assert service.to_progress_record(visual).accuracy is None


def test_completed_levels(db_session, player):
	_attempt(db_session, player, 3, True)
	_attempt(db_session, player, 1, True)
	_attempt(db_session, player, 1, True)
	_attempt(db_session, player, 2, False)

	assert service.get_completed_levels(db_session, player.id) == [1, 3]


def test_level_progress_newest_first(db_session, player):
	_attempt(db_session, player, 1, False, score=30)
	_attempt(db_session, player, 1, True, score=90)
	_attempt(db_session, player, 2, True, score=70)

	rows = service.get_level_progress(db_session, player.id, 1)
	assert [row.score for row in rows] == [90, 30]


def test_user_data_falls_back_to_progress_sums(db_session, player):
	db_session.add(UserProgress(user_id=player.id, session_key="s1", level_id=1, success=True, score=80, coins_earned=10, xp_earned=20))
	db_session.commit()

	data = service.get_user_data(db_session, "player-one-key")
	assert data.stats is None
	assert data.total_coins == 10
	assert data.total_xp == 20
	assert data.completed_levels == [1]
	assert data.current_level == 2
	assert data.snapshot().stats is None


def test_user_data_snapshot_carries_cached_stats(db_session, player):
	_attempt(db_session, player, 1, True, score=88, coins_earned=25, xp_earned=50)

	data = service.get_user_data(db_session, "player-one-key")
	snapshot = data.snapshot()
	assert snapshot.total_coins == 25
	assert snapshot.current_streak == 1
	assert snapshot.stats.average_score == pytest.approx(88)
	assert data.to_dict()["user"]["access_key"] == "player-one-key"


def test_user_data_unknown_key(db_session):
	assert service.get_user_data(db_session, "nobody") is None


# ============================================================================
# SESSIONS
# ============================================================================

def test_generate_session_key_format():
	keys = {service.generate_session_key() for _ in range(20)}

	assert all(SESSION_KEY_RE.match(key) for key in keys)
	assert len(keys) == 20


def test_session_lifecycle(db_session, player):
	started = service.start_session(db_session, player)
	assert SESSION_KEY_RE.match(started.session_key)
	assert service.get_active_session(db_session, player.id).id == started.id

	ended = service.end_session(
		db_session,
		player,
		total_time_seconds=95,
		levels_attempted=3,
		levels_completed=2,
		total_coins_earned=55,
		total_xp_earned=105,
		current_level=3,
		session_data={"total_time_seconds": 95, "note": "first run"},
	)
	assert ended.id == started.id
	assert ended.session_end is not None
	assert json.loads(ended.session_data)["note"] == "first run"
	assert service.get_active_session(db_session, player.id) is None

	stats = service.get_user_stats(db_session, player.id)
	assert stats.total_sessions == 1
	assert stats.total_time_seconds == 95

	history = service.get_session_history(db_session, player.id)
	assert [row.id for row in history] == [started.id]
	assert service.session_to_dict(history[0])["session_data"]["note"] == "first run"


def test_end_session_without_active_session(db_session, player):
	result = service.end_session(
		db_session,
		player,
		total_time_seconds=1,
		levels_attempted=0,
		levels_completed=0,
		total_coins_earned=0,
		total_xp_earned=0,
		current_level=1,
	)
	assert result is None


# ============================================================================
# PUBLIC AGGREGATES
# ============================================================================

def test_leaderboard_sorting(db_session):
	alice = service.authenticate(db_session, "alice")
	bob = service.authenticate(db_session, "bob")
	idle = service.authenticate(db_session, "idle")
	_attempt(db_session, alice, 1, True, coins_earned=10, xp_earned=100)
	_attempt(db_session, bob, 1, True, coins_earned=40, xp_earned=50)

	by_xp = service.get_leaderboard(db_session, sort_by="xp")
	assert [user.id for user, _ in by_xp] == [alice.id, bob.id, idle.id]
	assert by_xp[2][1] is None

	by_coins = service.get_leaderboard(db_session, sort_by="coins", limit=1)
	assert [user.id for user, _ in by_coins] == [bob.id]

	# players without a stats row have no activity inside a timeframe
	weekly = service.get_leaderboard(db_session, timeframe="week")
	assert {user.id for user, _ in weekly} == {alice.id, bob.id}


def test_public_stats(db_session):
	alice = service.authenticate(db_session, "alice")
	bob = service.authenticate(db_session, "bob")
	_attempt(db_session, alice, 1, True, score=80, coins_earned=25, xp_earned=50)
	_attempt(db_session, alice, 2, False, score=40)
	_attempt(db_session, bob, 1, True, score=90, coins_earned=25, xp_earned=50)

	stats = service.get_public_stats(db_session, now=datetime.utcnow() + timedelta(minutes=1))

	assert stats["overview"]["total_users"] == 2
	assert stats["overview"]["active_users"] == 2
	assert stats["overview"]["total_sessions"] == 3
	assert stats["overview"]["users_with_progress"] == 2
	assert stats["performance"]["successful_attempts"] == 2
	assert stats["performance"]["average_score"] == pytest.approx(70)
	assert stats["performance"]["total_coins_earned"] == 50
	assert stats["levels"] == {"levels_attempted": 1, "levels_completed": 2, "highest_level_reached": 1}
	breakdown = {entry["level_id"]: entry for entry in stats["level_completion_breakdown"]}
	assert breakdown[1]["attempts"] == 2
	assert breakdown[1]["completions"] == 2
	assert breakdown[2]["completions"] == 0
	assert sum(day["attempts"] for day in stats["recent_activity"]) == 3
