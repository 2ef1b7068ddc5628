from __future__ import annotations
import json
import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from .analytics import CachedStats, PlayerSnapshot, ProgressRecord, best_streak, performance_averages
from .models import User, UserProgress, UserSession, UserStats
from .settings import settings


logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

LEADERBOARD_SORTS = {
	"xp": "Total XP",
	"coins": "Total Coins",
	"levels": "Levels Completed",
	"streak": "Best Streak",
}
LEADERBOARD_TIMEFRAMES = {
	"all": ("All Time", None),
	"month": ("Last 30 Days", timedelta(days=30)),
	"week": ("Last 7 Days", timedelta(days=7)),
}


@dataclass
class UserData:
	user: User
	stats: Optional[UserStats]
	completed_levels: List[int] = field(default_factory=list)
	current_level: int = 1
	total_coins: int = 0
	total_xp: int = 0
	current_streak: int = 0

	def snapshot(self) -> PlayerSnapshot:
		cached = None
		if self.stats is not None:
			cached = CachedStats(
				average_score=self.stats.average_score,
				average_accuracy=self.stats.average_accuracy,
				average_fluency=self.stats.average_fluency,
				average_words_per_minute=self.stats.average_words_per_minute,
				total_sessions=self.stats.total_sessions,
				total_time_seconds=self.stats.total_time_seconds,
				best_streak=self.stats.best_streak,
			)
		return PlayerSnapshot(
			completed_levels=tuple(self.completed_levels),
			current_level=self.current_level,
			total_coins=self.total_coins,
			total_xp=self.total_xp,
			current_streak=self.current_streak,
			stats=cached,
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"user": user_to_dict(self.user),
			"stats": stats_to_dict(self.stats) if self.stats is not None else None,
			"completed_levels": self.completed_levels,
			"current_level": self.current_level,
			"total_coins": self.total_coins,
			"total_xp": self.total_xp,
			"current_streak": self.current_streak,
		}


def _commit(db: Session) -> None:
	try:
		db.commit()
	except Exception:
		db.rollback()
		raise


def user_to_dict(user: User) -> Dict[str, Any]:
	return {
		"id": user.id,
		"access_key": user.access_key,
		"created_at": user.created_at,
		"last_active": user.last_active,
	}


def stats_to_dict(stats: UserStats) -> Dict[str, Any]:
	return {c.name: getattr(stats, c.name) for c in UserStats.__table__.columns if c.name not in ("id", "user_id")}


def progress_to_dict(row: UserProgress) -> Dict[str, Any]:
	return {c.name: getattr(row, c.name) for c in UserProgress.__table__.columns}


def session_to_dict(row: UserSession) -> Dict[str, Any]:
	data = {c.name: getattr(row, c.name) for c in UserSession.__table__.columns}
	if row.session_data:
		try:
			data["session_data"] = json.loads(row.session_data)
		except ValueError:
			logger.warning("Unreadable session_data on session %s", row.id)
	return data


def to_progress_record(row: UserProgress) -> ProgressRecord:
	return ProgressRecord(
		session_key=row.session_key or "",
		level_id=row.level_id,
		completed_at=row.completed_at,
		success=bool(row.success),
		score=row.score or 0,
		user_id=row.user_id,
		transcription=row.transcription,
		accuracy=row.accuracy,
		fluency=row.fluency,
		words_per_minute=row.words_per_minute,
		duration_seconds=row.duration_seconds,
		coins_earned=row.coins_earned or 0,
		xp_earned=row.xp_earned or 0,
	)


# ============================================================================
# USERS
# ============================================================================

def get_user_by_access_key(db: Session, access_key: str) -> Optional[User]:
	return (
		db.query(User)
		.filter(User.access_key == access_key, User.is_active.is_(True))
		.first()
	)


def get_or_create_user(db: Session, access_key: str) -> User:
	user = db.query(User).filter(User.access_key == access_key).first()
	if user is not None:
		return user
	user = User(access_key=access_key)
	db.add(user)
	_commit(db)
	db.refresh(user)
	logger.info("Registered new player %s", user.id)
	return user


def authenticate(db: Session, access_key: Optional[str]) -> Optional[User]:
	key = (access_key or "").strip()
	if not key:
		return None
	if settings.auto_register_keys:
		user = get_or_create_user(db, key)
		if not user.is_active:
			return None
	else:
		user = get_user_by_access_key(db, key)
		if user is None:
			return None
	user.last_active = datetime.utcnow()
	db.add(user)
	_commit(db)
	return user


# ============================================================================
# PROGRESS
# ============================================================================

def save_progress(
	db: Session,
	user: User,
	session_key: str,
	*,
	level_id: int,
	success: bool,
	score: float,
	transcription: Optional[str] = None,
	accuracy: Optional[float] = None,
	fluency: Optional[float] = None,
	words_per_minute: Optional[float] = None,
	duration_seconds: Optional[float] = None,
	coins_earned: int = 0,
	xp_earned: int = 0,
) -> UserProgress:
	row = UserProgress(
		user_id=user.id,
		session_key=session_key,
		level_id=level_id,
		success=success,
		score=score,
		transcription=transcription or None,
		accuracy=accuracy,
		fluency=fluency,
		words_per_minute=words_per_minute,
		duration_seconds=duration_seconds,
		coins_earned=coins_earned or 0,
		xp_earned=xp_earned or 0,
	)
	db.add(row)
	_commit(db)
	db.refresh(row)

	stats = refresh_user_stats(db, user.id)
	if success:
		update_streak(db, user.id, stats.current_streak + 1)
	else:
		reset_streak(db, user.id)
	return row


def get_level_progress(db: Session, user_id: int, level_id: int) -> List[UserProgress]:
	return (
		db.query(UserProgress)
		.filter(UserProgress.user_id == user_id, UserProgress.level_id == level_id)
		.order_by(UserProgress.completed_at.desc(), UserProgress.id.desc())
		.all()
	)


def get_all_progress(db: Session, user_id: int) -> List[UserProgress]:
	return (
		db.query(UserProgress)
		.filter(UserProgress.user_id == user_id)
		.order_by(UserProgress.completed_at.desc(), UserProgress.id.desc())
		.all()
	)


def get_completed_levels(db: Session, user_id: int) -> List[int]:
	rows = (
		db.query(UserProgress.level_id)
		.filter(UserProgress.user_id == user_id, UserProgress.success.is_(True))
		.distinct()
		.order_by(UserProgress.level_id)
		.all()
	)
	return [row[0] for row in rows]


# ============================================================================
# SESSIONS
# ============================================================================

def _base36(number: int) -> str:
	digits = []
	while number:
		number, rem = divmod(number, 36)
		digits.append(_BASE36[rem])
	return "".join(reversed(digits)) or "0"


def generate_session_key() -> str:
	stamp = _base36(int(time.time() * 1000))
	suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
	return f"session_{stamp}_{suffix}"


def start_session(db: Session, user: User) -> UserSession:
	row = UserSession(user_id=user.id, session_key=generate_session_key(), session_start=datetime.utcnow())
	db.add(row)
	_commit(db)
	db.refresh(row)
	return row


def get_active_session(db: Session, user_id: int) -> Optional[UserSession]:
	return (
		db.query(UserSession)
		.filter(UserSession.user_id == user_id, UserSession.session_end.is_(None))
		.order_by(UserSession.session_start.desc(), UserSession.id.desc())
		.first()
	)


def end_session(
	db: Session,
	user: User,
	*,
	total_time_seconds: int,
	levels_attempted: int,
	levels_completed: int,
	total_coins_earned: int,
	total_xp_earned: int,
	current_level: int,
	session_data: Optional[Dict[str, Any]] = None,
) -> Optional[UserSession]:
	"""Close the player's most recent active session. Returns None when there is none."""
	row = get_active_session(db, user.id)
	if row is None:
		return None
	row.session_end = datetime.utcnow()
	row.total_time_seconds = total_time_seconds
	row.levels_attempted = levels_attempted
	row.levels_completed = levels_completed
	row.total_coins_earned = total_coins_earned
	row.total_xp_earned = total_xp_earned
	row.current_level = current_level
	row.session_data = json.dumps(session_data, default=str) if session_data is not None else None
	db.add(row)
	_commit(db)
	refresh_user_stats(db, user.id)
	return row


def get_session_history(db: Session, user_id: int, limit: int = 50) -> List[UserSession]:
	return (
		db.query(UserSession)
		.filter(UserSession.user_id == user_id)
		.order_by(UserSession.session_start.desc(), UserSession.id.desc())
		.limit(limit)
		.all()
	)


# ============================================================================
# STATS
# ============================================================================

def get_user_stats(db: Session, user_id: int) -> Optional[UserStats]:
	return db.query(UserStats).filter(UserStats.user_id == user_id).first()


def _get_or_create_stats(db: Session, user_id: int) -> UserStats:
	stats = get_user_stats(db, user_id)
	if stats is None:
		stats = UserStats(user_id=user_id, current_streak=0, best_streak=0)
		db.add(stats)
	return stats


def refresh_user_stats(db: Session, user_id: int) -> UserStats:
	"""Recompute the cached summary row from progress and session history."""
	records = [to_progress_record(row) for row in get_all_progress(db, user_id)]
	completed = sorted({r.level_id for r in records if r.success})
	averages = performance_averages(records)
	session_count, session_time = (
		db.query(func.count(UserSession.id), func.coalesce(func.sum(UserSession.total_time_seconds), 0))
		.filter(UserSession.user_id == user_id)
		.one()
	)

	stats = _get_or_create_stats(db, user_id)
	stats.total_coins = sum(r.coins_earned for r in records)
	stats.total_xp = sum(r.xp_earned for r in records)
	stats.levels_completed = len(completed)
	stats.current_level = max(completed) + 1 if completed else 1
	stats.average_score = averages["average_score"]
	stats.average_accuracy = averages["average_accuracy"]
	stats.average_fluency = averages["average_fluency"]
	stats.average_words_per_minute = averages["average_words_per_minute"]
	stats.best_streak = max(stats.best_streak or 0, best_streak(records))
	stats.total_sessions = max(session_count or 0, len({r.session_key for r in records}))
	stats.total_time_seconds = int(session_time or 0)
	stats.last_updated = datetime.utcnow()
	db.add(stats)
	_commit(db)
	return stats


def update_streak(db: Session, user_id: int, new_streak: int) -> UserStats:
	stats = _get_or_create_stats(db, user_id)
	stats.current_streak = new_streak
	stats.best_streak = max(stats.best_streak or 0, new_streak)
	stats.last_updated = datetime.utcnow()
	db.add(stats)
	_commit(db)
	return stats


def reset_streak(db: Session, user_id: int) -> UserStats:
	stats = _get_or_create_stats(db, user_id)
	stats.current_streak = 0
	stats.last_updated = datetime.utcnow()
	db.add(stats)
	_commit(db)
	return stats


def get_user_data(db: Session, access_key: str) -> Optional[UserData]:
	user = get_user_by_access_key(db, access_key)
	if user is None:
		return None
	stats = get_user_stats(db, user.id)
	completed = get_completed_levels(db, user.id)

	total_coins = stats.total_coins if stats else 0
	total_xp = stats.total_xp if stats else 0
	if not stats or total_coins == 0:
		rows = get_all_progress(db, user.id)
		total_coins = sum(row.coins_earned or 0 for row in rows)
		total_xp = sum(row.xp_earned or 0 for row in rows)

	return UserData(
		user=user,
		stats=stats,
		completed_levels=completed,
		current_level=max(completed) + 1 if completed else 1,
		total_coins=total_coins,
		total_xp=total_xp,
		current_streak=stats.current_streak if stats else 0,
	)


# ============================================================================
# PUBLIC AGGREGATES
# ============================================================================

def get_leaderboard(
	db: Session,
	limit: int = 10,
	sort_by: str = "xp",
	timeframe: str = "all",
) -> List[Tuple[User, Optional[UserStats]]]:
	xp = func.coalesce(UserStats.total_xp, 0)
	coins = func.coalesce(UserStats.total_coins, 0)
	levels = func.coalesce(UserStats.levels_completed, 0)
	current = func.coalesce(UserStats.current_streak, 0)
	best = func.coalesce(UserStats.best_streak, 0)
	order = {
		"coins": (coins.desc(), xp.desc()),
		"levels": (levels.desc(), xp.desc()),
		"streak": (case((current > best, current), else_=best).desc(), xp.desc()),
	}.get(sort_by, (xp.desc(), levels.desc()))

	query = (
		db.query(User, UserStats)
		.outerjoin(UserStats, UserStats.user_id == User.id)
		.filter(User.is_active.is_(True))
	)
	window = LEADERBOARD_TIMEFRAMES.get(timeframe, LEADERBOARD_TIMEFRAMES["all"])[1]
	if window is not None:
		query = query.filter(UserStats.last_updated >= datetime.utcnow() - window)
	return query.order_by(*order, User.id).limit(limit).all()


def _num(value: Any) -> float:
	return float(value) if value is not None else 0


def get_public_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
	now = now or datetime.utcnow()
	day_ago = now - timedelta(hours=24)
	week_ago = now - timedelta(days=7)

	users = db.query(
		func.count(User.id),
		func.count(case((User.is_active.is_(True), 1))),
		func.count(case((User.created_at >= day_ago, 1))),
		func.count(case((User.last_active >= day_ago, 1))),
	).one()

	progress = db.query(
		func.count(UserProgress.id),
		func.count(func.distinct(UserProgress.user_id)),
		func.count(case((UserProgress.success.is_(True), 1))),
		func.avg(UserProgress.score),
		func.avg(UserProgress.accuracy),
		func.avg(UserProgress.fluency),
		func.avg(UserProgress.words_per_minute),
		func.sum(UserProgress.coins_earned),
		func.sum(UserProgress.xp_earned),
	).one()

	levels = (
		db.query(
			func.count(func.distinct(UserProgress.level_id)),
			func.count(UserProgress.id),
			func.max(UserProgress.level_id),
		)
		.filter(UserProgress.success.is_(True))
		.one()
	)

	sessions = db.query(
		func.count(UserSession.id),
		func.avg(UserSession.total_time_seconds),
		func.max(UserSession.total_time_seconds),
		func.avg(UserSession.levels_completed),
	).one()

	per_level = (
		db.query(
			UserProgress.level_id,
			func.count(UserProgress.id),
			func.count(case((UserProgress.success.is_(True), 1))),
			func.avg(UserProgress.score),
		)
		.group_by(UserProgress.level_id)
		.order_by(UserProgress.level_id)
		.all()
	)

	day = func.date(UserProgress.completed_at)
	recent = (
		db.query(
			day,
			func.count(UserProgress.id),
			func.count(case((UserProgress.success.is_(True), 1))),
			func.avg(UserProgress.score),
		)
		.filter(UserProgress.completed_at >= week_ago)
		.group_by(day)
		.order_by(day.desc())
		.all()
	)

	return {
		"overview": {
			"total_users": int(users[0]),
			"active_users": int(users[1]),
			"new_users_24h": int(users[2]),
			"active_users_24h": int(users[3]),
			# Counts progress rows, one per attempt
			"total_sessions": int(progress[0]),
			"users_with_progress": int(progress[1]),
		},
		"performance": {
			"successful_attempts": int(progress[2]),
			"average_score": _num(progress[3]),
			"average_accuracy": _num(progress[4]),
			"average_fluency": _num(progress[5]),
			"average_wpm": _num(progress[6]),
			"total_coins_earned": int(progress[7] or 0),
			"total_xp_earned": int(progress[8] or 0),
		},
		"levels": {
			"levels_attempted": int(levels[0]),
			"levels_completed": int(levels[1]),
			"highest_level_reached": int(levels[2] or 0),
		},
		"sessions": {
			"total_game_sessions": int(sessions[0]),
			"average_session_time_seconds": _num(sessions[1]),
			"longest_session_seconds": _num(sessions[2]),
			"average_levels_per_session": _num(sessions[3]),
		},
		"level_completion_breakdown": [
			{
				"level_id": int(level_id),
				"attempts": int(attempts),
				"completions": int(completions),
				"average_score": _num(avg_score),
			}
			for level_id, attempts, completions, avg_score in per_level
		],
		"recent_activity": [
			{
				"date": str(date_value)[:10],
				"attempts": int(attempts),
				"completions": int(completions),
				"average_score": _num(avg_score),
			}
			for date_value, attempts, completions, avg_score in recent
		],
	}
