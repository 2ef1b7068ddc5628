from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import service
from ..analytics import AggregateOptions, aggregate
from ..db import get_db
from ..models import User
from .auth import get_current_user_or_query_key


router = APIRouter(prefix="/api/analytics", tags=["analytics"])

logger = logging.getLogger(__name__)


@router.get("")
async def get_analytics(
	recent_activity_limit: int = Query(default=10, ge=0),
	session_limit: int = Query(default=5, ge=0),
	include_trends: bool = Query(default=True),
	user: User = Depends(get_current_user_or_query_key),
	db: Session = Depends(get_db),
):
	"""Full analytics view for the authenticated player.

	The whole history is loaded and aggregated in memory; the limits only trim
	the recent activity list and the session breakdown.
	"""
	try:
		user_data = service.get_user_data(db, user.access_key)
		if user_data is None:
			raise HTTPException(status_code=404, detail="User data not found")
		records = [service.to_progress_record(row) for row in service.get_all_progress(db, user.id)]
	except SQLAlchemyError:
		logger.exception("Failed to load analytics for user %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to fetch analytics")

	options = AggregateOptions(
		recent_activity_limit=recent_activity_limit,
		session_limit=session_limit,
		include_trends=include_trends,
	)
	view = aggregate(records, options, user_data.snapshot())
	return {"success": True, "analytics": {"user": service.user_to_dict(user_data.user), **view}}
