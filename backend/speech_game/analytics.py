"""
Progress Analytics
==================

Derives the analytics view for one player from their full progress history.

Everything here is a pure function of its inputs: the caller loads every
progress row (and the cached stats row, if any) and this module computes
overview counters, performance averages, recent activity, per-level and
per-session breakdowns and optional daily trends. Display limits only slice
the output; counters always cover the whole history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence


# ============================================================================
# INPUT TYPES
# ============================================================================

@dataclass(frozen=True)
class ProgressRecord:
	"""One attempt at one level within one session.

	accuracy, fluency, words_per_minute and duration_seconds are None when the
	level has nothing to measure (visual or interview levels). None is not 0.
	"""
	session_key: str
	level_id: int
	completed_at: datetime
	success: bool
	score: float
	user_id: Optional[int] = None
	transcription: Optional[str] = None
	accuracy: Optional[float] = None
	fluency: Optional[float] = None
	words_per_minute: Optional[float] = None
	duration_seconds: Optional[float] = None
	coins_earned: int = 0
	xp_earned: int = 0


@dataclass(frozen=True)
class CachedStats:
	"""Values from the cached user_stats row. Missing or zero means "not cached"."""
	average_score: Optional[float] = None
	average_accuracy: Optional[float] = None
	average_fluency: Optional[float] = None
	average_words_per_minute: Optional[float] = None
	total_sessions: Optional[int] = None
	total_time_seconds: Optional[float] = None
	best_streak: Optional[int] = None


@dataclass(frozen=True)
class PlayerSnapshot:
	"""Counters that come from separate queries and are merged into the overview."""
	completed_levels: Sequence[int] = field(default_factory=tuple)
	current_level: int = 1
	total_coins: int = 0
	total_xp: int = 0
	current_streak: int = 0
	stats: Optional[CachedStats] = None


@dataclass(frozen=True)
class AggregateOptions:
	recent_activity_limit: int = 10
	session_limit: int = 5
	include_trends: bool = True


# ============================================================================
# HELPERS
# ============================================================================

def _mean(values: Sequence[float]) -> float:
	return sum(values) / len(values) if values else 0.0


def _running_mean(current: float, count: int, value: float) -> float:
	"""Fold the count-th value into a mean of count-1 values."""
	return (current * (count - 1) + value) / count


def _prefer_cached(cached: Optional[float], computed: float) -> float:
	# A stale cache is still preferred as long as it holds a positive value
	if cached is not None and cached > 0:
		return cached
	return computed


def _utc_date(ts: datetime) -> date:
	if ts.tzinfo is not None:
		ts = ts.astimezone(timezone.utc)
	return ts.date()


def _chronological(records: Sequence[ProgressRecord]) -> List[ProgressRecord]:
	return sorted(records, key=lambda r: r.completed_at)


def _activity(record: ProgressRecord) -> Dict[str, Any]:
	return {
		"level_id": record.level_id,
		"completed_at": record.completed_at,
		"success": record.success,
		"score": record.score,
		"accuracy": record.accuracy,
		"fluency": record.fluency,
		"words_per_minute": record.words_per_minute,
		"duration_seconds": record.duration_seconds,
		"transcription": record.transcription,
	}


# ============================================================================
# VIEW SECTIONS
# ============================================================================

def best_streak(records: Sequence[ProgressRecord]) -> int:
	best = 0
	run = 0
	for record in _chronological(records):
		if record.success:
			run += 1
			best = max(best, run)
		else:
			run = 0
	return best


def performance_averages(records: Sequence[ProgressRecord]) -> Dict[str, float]:
	"""Averages over each metric's own valid subset.

	Scores only count when positive; the optional metrics count whenever they
	were measured, including a measured 0.
	"""
	return {
		"average_score": _mean([r.score for r in records if r.score > 0]),
		"average_accuracy": _mean([r.accuracy for r in records if r.accuracy is not None]),
		"average_fluency": _mean([r.fluency for r in records if r.fluency is not None]),
		"average_words_per_minute": _mean([r.words_per_minute for r in records if r.words_per_minute is not None]),
	}


def recent_activity(records: Sequence[ProgressRecord], limit: int) -> List[Dict[str, Any]]:
	newest_first = sorted(records, key=lambda r: r.completed_at, reverse=True)
	return [{"session_key": r.session_key, **_activity(r)} for r in newest_first[:max(0, limit)]]


def level_breakdown(records: Iterable[ProgressRecord]) -> Dict[int, Dict[str, Any]]:
	levels: Dict[int, Dict[str, Any]] = {}
	for record in records:
		entry = levels.get(record.level_id)
		if entry is None:
			entry = levels[record.level_id] = {
				"level_id": record.level_id,
				"attempts": 0,
				"successful_attempts": 0,
				"best_score": 0,
				"average_score": 0.0,
				"average_accuracy": 0.0,
				"average_fluency": 0.0,
				"average_words_per_minute": 0.0,
				"last_attempt": None,
			}
		entry["attempts"] += 1
		count = entry["attempts"]
		if record.success:
			entry["successful_attempts"] += 1
			entry["best_score"] = max(entry["best_score"], record.score)

		entry["average_score"] = _running_mean(entry["average_score"], count, record.score)
		# Known quirk kept for compatibility: falsy values (None and a measured 0)
		# skip the update, yet the divisor is still the total attempt count.
		if record.accuracy:
			entry["average_accuracy"] = _running_mean(entry["average_accuracy"], count, record.accuracy)
		if record.fluency:
			entry["average_fluency"] = _running_mean(entry["average_fluency"], count, record.fluency)
		if record.words_per_minute:
			entry["average_words_per_minute"] = _running_mean(entry["average_words_per_minute"], count, record.words_per_minute)

		if entry["last_attempt"] is None or record.completed_at > entry["last_attempt"]:
			entry["last_attempt"] = record.completed_at
	return levels


def session_breakdown(records: Iterable[ProgressRecord], limit: int) -> Dict[str, Dict[str, Any]]:
	"""Group attempts by session key, keeping the first `limit` sessions encountered.

	Grouping runs over the whole history; truncation happens afterwards and
	follows first-encounter order, not any metric.
	"""
	sessions: Dict[str, Dict[str, Any]] = {}
	for record in records:
		entry = sessions.get(record.session_key)
		if entry is None:
			entry = sessions[record.session_key] = {
				"session_key": record.session_key,
				# Approximation: the first attempt seen stands in for the session start
				"start_time": record.completed_at,
				"levels_completed": 0,
				"total_score": 0,
				"average_accuracy": 0.0,
				"average_fluency": 0.0,
				"average_words_per_minute": 0.0,
				"total_coins_earned": 0,
				"total_xp_earned": 0,
				"activities": [],
			}
		entry["levels_completed"] += 1
		count = entry["levels_completed"]
		entry["total_score"] += record.score
		entry["total_coins_earned"] += record.coins_earned
		entry["total_xp_earned"] += record.xp_earned
		# Same falsy-skip quirk as level_breakdown
		if record.accuracy:
			entry["average_accuracy"] = _running_mean(entry["average_accuracy"], count, record.accuracy)
		if record.fluency:
			entry["average_fluency"] = _running_mean(entry["average_fluency"], count, record.fluency)
		if record.words_per_minute:
			entry["average_words_per_minute"] = _running_mean(entry["average_words_per_minute"], count, record.words_per_minute)
		entry["activities"].append(_activity(record))
	return dict(list(sessions.items())[:max(0, limit)])


def daily_progress(records: Iterable[ProgressRecord]) -> List[Dict[str, Any]]:
	days: Dict[str, Dict[str, Any]] = {}
	day_sessions: Dict[str, set] = {}
	for record in records:
		key = _utc_date(record.completed_at).isoformat()
		bucket = days.get(key)
		if bucket is None:
			bucket = days[key] = {
				"date": key,
				"levels_completed": 0,
				"total_score": 0,
				"total_accuracy": 0.0,
				"total_fluency": 0.0,
				"unique_sessions": 0,
			}
			day_sessions[key] = set()
		bucket["levels_completed"] += 1
		bucket["total_score"] += record.score
		if record.accuracy is not None:
			bucket["total_accuracy"] += record.accuracy
		if record.fluency is not None:
			bucket["total_fluency"] += record.fluency
		day_sessions[key].add(record.session_key)
	for key, bucket in days.items():
		bucket["unique_sessions"] = len(day_sessions[key])
	return [days[key] for key in sorted(days)]


def improvement(records: Sequence[ProgressRecord]) -> Optional[Dict[str, float]]:
	"""Second-half mean minus first-half mean, chronologically.

	Returns None when there are fewer than two attempts to compare.
	"""
	if len(records) <= 1:
		return None
	ordered = _chronological(records)
	middle = len(ordered) // 2
	first, second = ordered[:middle], ordered[middle:]

	def _delta(attr: str) -> float:
		before = [getattr(r, attr) for r in first if getattr(r, attr) is not None]
		after = [getattr(r, attr) for r in second if getattr(r, attr) is not None]
		return _mean(after) - _mean(before)

	return {
		"score_improvement": _mean([r.score for r in second]) - _mean([r.score for r in first]),
		"accuracy_improvement": _delta("accuracy"),
		"fluency_improvement": _delta("fluency"),
	}


# ============================================================================
# ENTRY POINT
# ============================================================================

def aggregate(
	records: Sequence[ProgressRecord],
	options: Optional[AggregateOptions] = None,
	snapshot: Optional[PlayerSnapshot] = None,
) -> Dict[str, Any]:
	"""Build the analytics view for one player.

	Args:
		records: Every progress record of the player, in the order the
			persistence layer returned them (session truncation follows it)
		options: Display limits and whether to include trends
		snapshot: Completed levels, totals and cached stats fetched separately;
			when omitted, completed levels are derived from the records

	Returns:
		Dict with overview, performance, recent_activity, level_breakdown,
		sessions and (optionally) trends

	Raises:
		TypeError: If records is not a sequence of ProgressRecord
	"""
	if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
		raise TypeError("records must be a sequence of ProgressRecord")
	for record in records:
		if not isinstance(record, ProgressRecord):
			raise TypeError(f"expected ProgressRecord, got {type(record).__name__}")
	options = options or AggregateOptions()
	if snapshot is None:
		completed = sorted({r.level_id for r in records if r.success})
		snapshot = PlayerSnapshot(
			completed_levels=completed,
			current_level=max(completed) + 1 if completed else 1,
			total_coins=sum(r.coins_earned for r in records),
			total_xp=sum(r.xp_earned for r in records),
		)
	cached = snapshot.stats or CachedStats()

	averages = performance_averages(records)
	unique_sessions = len({r.session_key for r in records})
	total_time = sum(r.duration_seconds or 0 for r in records)
	streak = best_streak(records)

	view: Dict[str, Any] = {
		"overview": {
			"total_levels_completed": len(snapshot.completed_levels),
			"current_level": snapshot.current_level,
			"total_coins": snapshot.total_coins,
			"total_xp": snapshot.total_xp,
			"current_streak": snapshot.current_streak,
			"total_sessions": _prefer_cached(cached.total_sessions, unique_sessions),
			"total_time_spent_seconds": _prefer_cached(cached.total_time_seconds, total_time),
		},
		"performance": {
			"average_score": _prefer_cached(cached.average_score, averages["average_score"]),
			"average_accuracy": _prefer_cached(cached.average_accuracy, averages["average_accuracy"]),
			"average_fluency": _prefer_cached(cached.average_fluency, averages["average_fluency"]),
			"average_words_per_minute": _prefer_cached(
				cached.average_words_per_minute, averages["average_words_per_minute"]
			),
			"best_streak": max(cached.best_streak or 0, streak),
		},
		"recent_activity": recent_activity(records, options.recent_activity_limit),
		"level_breakdown": level_breakdown(records),
		"sessions": {
			"session_breakdown": session_breakdown(records, options.session_limit),
		},
	}
	if options.include_trends:
		view["trends"] = {
			"daily_progress": daily_progress(records),
			"improvement": improvement(records),
		}
	return view
