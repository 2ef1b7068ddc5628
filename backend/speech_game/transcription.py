from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional

from google.cloud import speech_v1p1beta1 as speech
from google.api_core.exceptions import GoogleAPIError

from .settings import settings


logger = logging.getLogger(__name__)


class TranscriptionError(RuntimeError):
	pass


@dataclass(frozen=True)
class Transcript:
	text: str
	# Provider confidence in [0, 1]; None when the provider did not report one
	confidence: Optional[float] = None


def _language_code(language: Optional[str]) -> str:
	if not language:
		return settings.speech_language_code
	# Bare language hints such as "en" are widened to a full locale
	if language == "en":
		return "en-US"
	return language


def transcribe(audio_content: bytes, language: Optional[str] = None, *, client=None) -> Transcript:
	"""Transcribe a short recording with Google Cloud Speech-to-Text.

	Args:
		audio_content: Raw audio bytes as recorded by the browser
		language: Optional language hint ("en", "en-GB", ...)
		client: Optional SpeechClient, created on demand otherwise

	Returns:
		Transcript joining the top alternative of every result, with the mean
		of their confidences

	Raises:
		TranscriptionError: On empty audio, provider errors or an empty result
	"""
	if not audio_content:
		raise TranscriptionError("Empty audio payload received")

	try:
		client = client or speech.SpeechClient()
	except Exception as e:
		raise TranscriptionError(f"Speech client unavailable: {e}") from e

	audio = speech.RecognitionAudio(content=audio_content)
	config = speech.RecognitionConfig(
		language_code=_language_code(language),
		model="default",
		enable_automatic_punctuation=True,
		enable_word_confidence=False,
		profanity_filter=False,
	)

	try:
		response = client.recognize(config=config, audio=audio, timeout=settings.speech_timeout_seconds)
	except GoogleAPIError as e:
		logger.warning("Speech-to-Text API error: %s", e)
		raise TranscriptionError(f"Transcription API error: {e}") from e

	pieces: List[str] = []
	confidences: List[float] = []
	for result in response.results:
		if not result.alternatives:
			continue
		best = result.alternatives[0]
		if best.transcript:
			pieces.append(best.transcript.strip())
		# proto3 reports an unset confidence as 0.0
		if best.confidence:
			confidences.append(float(best.confidence))

	text = " ".join(p for p in pieces if p).strip()
	if not text:
		raise TranscriptionError("No transcription text received")
	confidence = sum(confidences) / len(confidences) if confidences else None
	return Transcript(text=text, confidence=confidence)
