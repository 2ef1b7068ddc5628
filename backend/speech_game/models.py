from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, Text, ForeignKey
from .db import Base


class User(Base):
	__tablename__ = "users"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# Opaque bearer token; looked up by equality only
	access_key = Column(String(255), unique=True, index=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_active = Column(DateTime, default=datetime.utcnow, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)


class UserProgress(Base):
	__tablename__ = "user_progress"
	# Append-only: one row per submitted attempt, never updated or deleted
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
	session_key = Column(String(255), index=True, nullable=True)
	level_id = Column(Integer, index=True, nullable=False)
	completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	success = Column(Boolean, default=False, nullable=False)
	score = Column(Float, default=0, nullable=False)
	transcription = Column(Text, nullable=True)
	# NULL means "not measured", which is not the same as 0
	accuracy = Column(Float, nullable=True)
	fluency = Column(Float, nullable=True)
	words_per_minute = Column(Float, nullable=True)
	duration_seconds = Column(Float, nullable=True)
	coins_earned = Column(Integer, default=0, nullable=False)
	xp_earned = Column(Integer, default=0, nullable=False)


class UserSession(Base):
	__tablename__ = "user_sessions"
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
	session_key = Column(String(255), unique=True, index=True, nullable=True)
	session_start = Column(DateTime, default=datetime.utcnow, nullable=False)
	# NULL while the session is active
	session_end = Column(DateTime, nullable=True)
	total_time_seconds = Column(Integer, default=0, nullable=False)
	levels_attempted = Column(Integer, default=0, nullable=False)
	levels_completed = Column(Integer, default=0, nullable=False)
	total_coins_earned = Column(Integer, default=0, nullable=False)
	total_xp_earned = Column(Integer, default=0, nullable=False)
	current_level = Column(Integer, default=1, nullable=False)
	session_data = Column(Text, nullable=True)  # JSON string snapshot


class UserStats(Base):
	__tablename__ = "user_stats"
	# Cached summary row, recomputed from user_progress/user_sessions on write
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
	total_coins = Column(Integer, default=0, nullable=False)
	total_xp = Column(Integer, default=0, nullable=False)
	current_level = Column(Integer, default=1, nullable=False)
	current_streak = Column(Integer, default=0, nullable=False)
	best_streak = Column(Integer, default=0, nullable=False)
	total_sessions = Column(Integer, default=0, nullable=False)
	total_time_seconds = Column(Integer, default=0, nullable=False)
	levels_completed = Column(Integer, default=0, nullable=False)
	average_score = Column(Float, default=0, nullable=False)
	average_accuracy = Column(Float, default=0, nullable=False)
	average_fluency = Column(Float, default=0, nullable=False)
	average_words_per_minute = Column(Float, default=0, nullable=False)
	last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
