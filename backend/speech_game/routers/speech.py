"""
Speech Analysis Endpoints
=========================

Scores a spoken attempt. Audio goes to the transcription provider first; the
transcript is then scored by the deterministic heuristics in scoring.py and,
when the provider reports its own confidence, the two are blended.

API Endpoints:
- POST /api/speech/analyze: multipart audio upload, transcribe then score
- POST /api/speech/score: score a transcript the client already has
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from .. import levels
from ..scoring import ScoreResult, score
from ..transcription import TranscriptionError, transcribe


router = APIRouter(prefix="/api/speech", tags=["speech"])

logger = logging.getLogger(__name__)


class ScoreRequest(BaseModel):
	transcript: str
	duration: float = 0
	expected_text: Optional[str] = None
	# When set and expected_text is missing, the level's script is used
	level_id: Optional[int] = None
	external_confidence: Optional[float] = Field(default=None, ge=0, le=1)


class ScoreResponse(BaseModel):
	transcription: str
	confidence: float
	accuracy: float
	fluency: float
	speed: float
	duration: float
	word_count: int
	words_per_minute: float
	disfluencies: int
	completion: bool
	score: int
	success: bool
	provider_confidence: Optional[float] = None


def _expected_text(expected_text: Optional[str], level_id: Optional[int]) -> Optional[str]:
	if expected_text:
		return expected_text
	if level_id is not None:
		return levels.expected_text_for(level_id)
	return None


def _to_response(result: ScoreResult, provider_confidence: Optional[float] = None) -> ScoreResponse:
	return ScoreResponse(**result.to_dict(), provider_confidence=provider_confidence)


@router.post("/analyze", response_model=ScoreResponse)
async def analyze(
	audio: UploadFile = File(...),
	expected_text: Optional[str] = Form(default=None),
	language: str = Form(default="en"),
	duration: float = Form(default=0),
	level_id: Optional[int] = Form(default=None),
):
	"""Transcribe an uploaded recording and score it.

	Raises:
		HTTPException: 400 for a missing or non-audio upload, 502 when the
			transcription provider fails
	"""
	content_type = audio.content_type or ""
	if not content_type.startswith("audio/"):
		raise HTTPException(status_code=400, detail="Invalid file type. Expected audio file.")
	content = await audio.read()
	if not content:
		raise HTTPException(status_code=400, detail="No audio file provided")

	try:
		transcript = await run_in_threadpool(transcribe, content, language)
	except TranscriptionError as e:
		logger.warning("Transcription failed: %s", e)
		raise HTTPException(status_code=502, detail=str(e))

	result = score(transcript.text, duration, _expected_text(expected_text, level_id))
	result = result.with_external_confidence(transcript.confidence)
	return _to_response(result, transcript.confidence)


@router.post("/score", response_model=ScoreResponse)
async def score_transcript(req: ScoreRequest):
	result = score(req.transcript, req.duration, _expected_text(req.expected_text, req.level_id))
	result = result.with_external_confidence(req.external_confidence)
	return _to_response(result, req.external_confidence)
