"""Public read-only API. No authentication; player identities are anonymised."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import levels, service
from ..db import get_db
from ..settings import settings


router = APIRouter(prefix="/api/public", tags=["public"])

logger = logging.getLogger(__name__)


@router.get("")
async def api_index(request: Request):
	base_url = str(request.base_url).rstrip("/")
	return {
		"name": "Speech Game Public API",
		"version": "1.0.0",
		"description": "Public API for accessing Speech Game data, statistics, and analytics",
		"endpoints": {
			"stats": {
				"url": f"{base_url}/api/public/stats",
				"description": "Overall game statistics and analytics",
				"parameters": {},
			},
			"levels": {
				"url": f"{base_url}/api/public/levels",
				"description": "Information about all available game levels",
				"parameters": {
					"difficulty": "Filter by difficulty (easy/medium/hard)",
					"type": "Filter by type (basic/intermediate/advanced/boss)",
					"include_boss_levels": "Include/exclude boss levels (true/false, default: true)",
				},
			},
			"leaderboard": {
				"url": f"{base_url}/api/public/leaderboard",
				"description": "Top players leaderboard",
				"parameters": {
					"limit": f"Number of results to return (max {settings.leaderboard_max_limit}, default: 10)",
					"sort_by": "Sort criteria (xp/coins/levels/streak, default: xp)",
					"timeframe": "Time period (all/month/week, default: all)",
				},
			},
		},
		"usage": {
			"authentication": "No authentication required for public endpoints",
			"content_type": "application/json",
		},
	}


@router.get("/stats")
async def public_stats(db: Session = Depends(get_db)):
	try:
		return service.get_public_stats(db)
	except SQLAlchemyError:
		logger.exception("Failed to compute public stats")
		raise HTTPException(status_code=500, detail="Failed to fetch statistics")


@router.get("/levels")
async def public_levels(
	difficulty: Optional[str] = Query(default=None),
	type: Optional[str] = Query(default=None),
	include_boss_levels: bool = Query(default=True),
):
	selected = levels.filter_levels(difficulty, type, include_boss_levels)
	return {
		"total_levels": len(levels.LEVELS),
		"filtered_count": len(selected),
		"filters_applied": {
			"difficulty": difficulty or "all",
			"type": type or "all",
			"include_boss_levels": include_boss_levels,
		},
		"levels": [
			{
				"id": level.id,
				"level": level.level,
				"name": level.name,
				"difficulty": level.difficulty,
				"type": level.type,
				"is_boss_level": level.is_boss_level,
				"prompt": level.prompt,
				"reward_coins": level.reward_coins,
				"reward_xp": level.reward_xp,
				"time_limit": level.time_limit,
				"skills": list(level.skills),
			}
			for level in selected
		],
	}


def _stat(stats, name: str, default=0):
	value = getattr(stats, name, None) if stats is not None else None
	return default if value is None else value


@router.get("/leaderboard")
async def public_leaderboard(
	limit: int = Query(default=10, ge=1),
	sort_by: str = Query(default="xp"),
	timeframe: str = Query(default="all"),
	db: Session = Depends(get_db),
):
	limit = min(limit, settings.leaderboard_max_limit)
	if sort_by not in service.LEADERBOARD_SORTS:
		sort_by = "xp"
	if timeframe not in service.LEADERBOARD_TIMEFRAMES:
		timeframe = "all"
	try:
		rows = service.get_leaderboard(db, limit=limit, sort_by=sort_by, timeframe=timeframe)
	except SQLAlchemyError:
		logger.exception("Failed to fetch leaderboard")
		raise HTTPException(status_code=500, detail="Failed to fetch leaderboard")

	entries = []
	for rank, (user, stats) in enumerate(rows, start=1):
		entries.append({
			"rank": rank,
			# Only the last four digits of the id are exposed
			"user_id": f"user_{str(user.id)[-4:]}",
			"joined_date": user.created_at.date().isoformat(),
			"last_active": user.last_active.date().isoformat(),
			"stats": {
				"total_coins": int(_stat(stats, "total_coins")),
				"total_xp": int(_stat(stats, "total_xp")),
				"current_level": int(_stat(stats, "current_level", 1)),
				"current_streak": int(_stat(stats, "current_streak")),
				"best_streak": int(_stat(stats, "best_streak")),
				"total_sessions": int(_stat(stats, "total_sessions")),
				"total_time_seconds": int(_stat(stats, "total_time_seconds")),
				"levels_completed": int(_stat(stats, "levels_completed")),
				"average_score": float(_stat(stats, "average_score")),
				"average_accuracy": float(_stat(stats, "average_accuracy")),
				"average_fluency": float(_stat(stats, "average_fluency")),
				"average_words_per_minute": float(_stat(stats, "average_words_per_minute")),
			},
		})

	return {
		"metadata": {
			"sort_by": sort_by,
			"sort_label": service.LEADERBOARD_SORTS[sort_by],
			"timeframe": timeframe,
			"timeframe_label": service.LEADERBOARD_TIMEFRAMES[timeframe][0],
			"limit": limit,
			"total_results": len(entries),
		},
		"leaderboard": entries,
	}
