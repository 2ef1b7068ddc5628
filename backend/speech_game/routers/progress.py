from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import service
from ..db import get_db
from ..models import User
from .auth import get_current_user


router = APIRouter(prefix="/api", tags=["progress"])

logger = logging.getLogger(__name__)


class ProgressRequest(BaseModel):
	session_key: str
	level_id: int
	success: bool
	score: float = Field(ge=0, le=100)
	transcription: Optional[str] = None
	# Leave unset for levels without a spoken-response measurement; 0 is a real value
	accuracy: Optional[float] = Field(default=None, ge=0, le=1)
	fluency: Optional[float] = Field(default=None, ge=0, le=1)
	words_per_minute: Optional[float] = Field(default=None, ge=0)
	duration_seconds: Optional[float] = Field(default=None, ge=0)
	coins_earned: int = Field(default=0, ge=0)
	xp_earned: int = Field(default=0, ge=0)


@router.post("/progress")
async def save_progress(req: ProgressRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	session_key = req.session_key.strip()
	if not session_key:
		raise HTTPException(status_code=400, detail="Missing required fields: session_key, level_id, success, score")
	try:
		service.save_progress(
			db,
			user,
			session_key,
			level_id=req.level_id,
			success=req.success,
			score=req.score,
			transcription=req.transcription,
			accuracy=req.accuracy,
			fluency=req.fluency,
			words_per_minute=req.words_per_minute,
			duration_seconds=req.duration_seconds,
			coins_earned=req.coins_earned,
			xp_earned=req.xp_earned,
		)
	except SQLAlchemyError:
		logger.exception("Failed to save progress for user %s", user.id)
		raise HTTPException(status_code=500, detail="Failed to save progress")
	return {"success": True, "message": "Progress saved successfully"}


@router.get("/progress")
async def get_progress(
	level_id: Optional[int] = Query(default=None),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	if level_id is not None:
		rows = service.get_level_progress(db, user.id, level_id)
		return {"success": True, "data": [service.progress_to_dict(row) for row in rows]}
	user_data = service.get_user_data(db, user.access_key)
	return {
		"success": True,
		"data": {
			"completed_levels": user_data.completed_levels if user_data else [],
			"current_level": user_data.current_level if user_data else 1,
		},
	}


@router.get("/user/data")
async def get_user_data(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	user_data = service.get_user_data(db, user.access_key)
	if user_data is None:
		raise HTTPException(status_code=404, detail="User data not found")
	return {"success": True, "data": user_data.to_dict()}
