from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query, Request, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..settings import settings
from ..db import get_db
from ..models import User
from .. import service

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = logging.getLogger(__name__)


class ValidateRequest(BaseModel):
	access_key: str


def access_key_from_request(request: Request) -> Optional[str]:
	# Cookie first, then the x-access-key header
	key = request.cookies.get(settings.access_key_cookie)
	if key:
		return key
	return request.headers.get("x-access-key")


def _resolve_user(db: Session, access_key: Optional[str]) -> User:
	if not access_key or not access_key.strip():
		raise HTTPException(
			status_code=401,
			detail="Access key required. Provide it via cookie or x-access-key header",
		)
	try:
		user = service.authenticate(db, access_key)
	except SQLAlchemyError:
		logger.exception("Access key lookup failed")
		raise HTTPException(status_code=503, detail="Authentication service unavailable")
	if user is None:
		raise HTTPException(status_code=401, detail="Invalid access key")
	return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
	return _resolve_user(db, access_key_from_request(request))


def get_current_user_or_query_key(
	request: Request,
	access_key: Optional[str] = Query(default=None),
	db: Session = Depends(get_db),
) -> User:
	"""Like get_current_user, but an ?access_key= parameter takes precedence (external scraping)."""
	if access_key:
		return _resolve_user(db, access_key)
	return get_current_user(request, db)


@router.post("/validate")
async def validate(req: ValidateRequest, response: Response, db: Session = Depends(get_db)):
	key = (req.access_key or "").strip()
	if not key:
		raise HTTPException(status_code=400, detail="Access key is required")
	user = _resolve_user(db, key)
	response.set_cookie(
		settings.access_key_cookie,
		key,
		max_age=settings.access_key_max_age,
		httponly=True,
		secure=True,
		samesite="strict",
		path="/",
	)
	return {"success": True, "user": service.user_to_dict(user)}


@router.post("/logout")
async def logout(response: Response):
	response.delete_cookie(settings.access_key_cookie, path="/", secure=True, httponly=True, samesite="strict")
	return {"success": True}
