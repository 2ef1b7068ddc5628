from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import service
from ..db import get_db
from ..models import User
from .auth import get_current_user


router = APIRouter(prefix="/api/session", tags=["session"])

logger = logging.getLogger(__name__)

_END_FIELDS = (
	"total_time_seconds",
	"levels_attempted",
	"levels_completed",
	"total_coins_earned",
	"total_xp_earned",
	"current_level",
)


class SessionRequest(BaseModel):
	action: Literal["start", "end"]
	session_data: Optional[Dict[str, Any]] = None


def _is_number(value: Any) -> bool:
	return isinstance(value, (int, float)) and not isinstance(value, bool)


@router.post("")
async def manage_session(req: SessionRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	"""Start a session when a level begins, end it when the level flow finishes.

	Ending closes the player's most recent active session; session_data must
	carry every numeric summary field.
	"""
	if req.action == "start":
		try:
			row = service.start_session(db, user)
		except SQLAlchemyError:
			logger.exception("Failed to start session for user %s", user.id)
			raise HTTPException(status_code=500, detail="Failed to start session")
		return {"success": True, "data": service.session_to_dict(row)}

	data = req.session_data or {}
	if not all(_is_number(data.get(name)) for name in _END_FIELDS):
		raise HTTPException(status_code=400, detail="Missing required session data fields")
	try:
		row = service.end_session(
			db,
			user,
			total_time_seconds=int(data["total_time_seconds"]),
			levels_attempted=int(data["levels_attempted"]),
			levels_completed=int(data["levels_completed"]),
			total_coins_earned=int(data["total_coins_earned"]),
			total_xp_earned=int(data["total_xp_earned"]),
			current_level=int(data["current_level"]),
			session_data=data,
		)
	except SQLAlchemyError:
		logger.exception("Failed to end session for user %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to end session")
	if row is None:
		raise HTTPException(status_code=404, detail="No active session to end")
	return {"success": True, "message": "Session ended successfully"}


@router.get("")
async def session_history(
	limit: int = Query(default=50, ge=1, le=200),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	try:
		rows = service.get_session_history(db, user.id, limit=limit)
	except SQLAlchemyError:
		logger.exception("Failed to load session history for user %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to fetch sessions")
	return {"success": True, "data": [service.session_to_dict(row) for row in rows]}
