"""
Speech Scoring
==============

Deterministic heuristics that turn a transcript into a multi-dimensional
speaking score. The transcript itself comes from the transcription provider;
nothing in this module performs I/O.

Dimensions:
- accuracy: word overlap with the expected script (plus a positional bonus)
- fluency: penalised by filler words, repetitions, hesitation and pause marks
- speed: words per minute, banded around a 120-160 wpm optimum
- completion: the player actually said something for more than a second

The composite confidence (0-1) is what the game shows as a 0-100 score.
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, replace
from numbers import Real
from typing import Any, Dict, List, Optional


# ============================================================================
# CONSTANTS
# ============================================================================

OPTIMAL_WPM_MIN = 120
OPTIMAL_WPM_MAX = 160
FAST_WPM_REFERENCE = 200
SLOW_SPEED_FLOOR = 0.3
FAST_SPEED_FLOOR = 0.5

DEFAULT_ACCURACY = 0.8
SEQUENCE_BONUS = 0.1

ACCURACY_WEIGHT = 0.4
FLUENCY_WEIGHT = 0.3
SPEED_WEIGHT = 0.2
COMPLETION_BONUS = 0.1

# Blend applied when the transcription provider reports its own confidence
OWN_CONFIDENCE_WEIGHT = 0.7
EXTERNAL_CONFIDENCE_WEIGHT = 0.3

# Caller policy: an attempt scoring at least this much counts as a success
PASS_THRESHOLD = 70

DISFLUENCY_PATTERNS: List[re.Pattern] = [
	re.compile(r"\b(?:uh|um|er|ah|like|you know)\b", re.IGNORECASE),  # fillers
	re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE),  # "the the"
	re.compile(r"-{2,}"),  # hesitation
	re.compile(r"\.{3,}"),  # pause
]


@dataclass(frozen=True)
class ScoreResult:
	transcription: str
	confidence: float
	accuracy: float
	fluency: float
	# speed and words_per_minute carry the same value; both are kept for API compatibility
	speed: float
	duration: float
	word_count: int
	words_per_minute: float
	disfluencies: int
	completion: bool

	@property
	def score(self) -> int:
		return display_score(self.confidence)

	@property
	def success(self) -> bool:
		return self.score >= PASS_THRESHOLD

	def with_external_confidence(self, external_confidence: Optional[float]) -> "ScoreResult":
		if external_confidence is None:
			return self
		return replace(self, confidence=blend_confidence(self.confidence, external_confidence))

	def to_dict(self) -> Dict[str, Any]:
		data = asdict(self)
		data["score"] = self.score
		data["success"] = self.success
		return data


# ============================================================================
# HELPERS
# ============================================================================

def clamp01(value: float) -> float:
	return max(0.0, min(1.0, value))


def _tokenize(text: str) -> List[str]:
	return [w for w in text.split() if w]


def count_disfluencies(text: str) -> int:
	"""Count hesitation markers in a raw transcript.

	Every regex match of every pattern counts once, so one transcript can
	contribute to several classes at the same time.
	"""
	return sum(len(pattern.findall(text)) for pattern in DISFLUENCY_PATTERNS)


def words_per_minute(word_count: int, duration_seconds: float) -> float:
	if word_count <= 0 or duration_seconds <= 0:
		return 0.0
	return word_count / duration_seconds * 60


def fluency_score(disfluencies: int, word_count: int) -> float:
	if word_count <= 0:
		return 0.0
	return clamp01(1 - (disfluencies / word_count) * 2)


def speed_score(wpm: float) -> float:
	"""Score a speaking rate.

	Full marks inside the optimal band; linear falloff below it (floored at 0.3)
	and above it (floored at 0.5).
	"""
	if wpm < OPTIMAL_WPM_MIN:
		return max(SLOW_SPEED_FLOOR, (wpm / OPTIMAL_WPM_MIN) * 0.7)
	if wpm > OPTIMAL_WPM_MAX:
		return max(
			FAST_SPEED_FLOOR,
			1 - ((wpm - OPTIMAL_WPM_MAX) / (FAST_WPM_REFERENCE - OPTIMAL_WPM_MAX)) * 0.5,
		)
	return 1.0


def accuracy_score(transcript: str, expected_text: Optional[str]) -> float:
	"""Word-overlap accuracy of a transcript against the expected script.

	Membership, not alignment: a transcript word counts as correct if it appears
	anywhere in the expected words. Each word in exactly the right position adds
	a small bonus on top.

	Args:
		transcript: Transcribed speech
		expected_text: Script the player was asked to read; falsy means "none"

	Returns:
		Accuracy in [0, 1]; DEFAULT_ACCURACY when there is no script, 0 when the
		script holds no words
	"""
	if not expected_text:
		return DEFAULT_ACCURACY
	spoken = _tokenize(transcript.lower())
	expected = _tokenize(expected_text.lower())
	if not expected:
		return 0.0
	expected_set = set(expected)
	correct = sum(1 for word in spoken if word in expected_set)
	in_position = sum(1 for a, b in zip(spoken, expected) if a == b)
	return clamp01(correct / len(expected) + in_position * SEQUENCE_BONUS)


def blend_confidence(own_confidence: float, external_confidence: float) -> float:
	return clamp01(own_confidence * OWN_CONFIDENCE_WEIGHT + external_confidence * EXTERNAL_CONFIDENCE_WEIGHT)


def display_score(confidence: float) -> int:
	# Half-up rounding, so 0.125 shows as 13 rather than banker's 12
	return int(math.floor(confidence * 100 + 0.5))


def _check_number(name: str, value: Any) -> float:
	if isinstance(value, bool) or not isinstance(value, Real):
		raise TypeError(f"{name} must be a number, got {type(value).__name__}")
	return float(value)


# ============================================================================
# ENTRY POINT
# ============================================================================

def score(transcript: str, duration_seconds: float, expected_text: Optional[str] = None) -> ScoreResult:
	"""Score one spoken attempt.

	Args:
		transcript: Text returned by the transcription provider (may be empty)
		duration_seconds: Recording length; negative values are treated as 0
		expected_text: Optional script used for accuracy scoring

	Returns:
		ScoreResult with every ratio clamped to [0, 1]

	Raises:
		TypeError: If transcript/expected_text are not strings or the duration
			is not a number
	"""
	if not isinstance(transcript, str):
		raise TypeError(f"transcript must be a string, got {type(transcript).__name__}")
	if expected_text is not None and not isinstance(expected_text, str):
		raise TypeError(f"expected_text must be a string, got {type(expected_text).__name__}")
	duration = max(0.0, _check_number("duration_seconds", duration_seconds))

	word_count = len(_tokenize(transcript))
	wpm = words_per_minute(word_count, duration)
	disfluencies = count_disfluencies(transcript)
	fluency = fluency_score(disfluencies, word_count)
	accuracy = accuracy_score(transcript, expected_text)
	completion = word_count > 0 and duration > 1

	confidence = (
		accuracy * ACCURACY_WEIGHT
		+ fluency * FLUENCY_WEIGHT
		+ speed_score(wpm) * SPEED_WEIGHT
		+ (COMPLETION_BONUS if completion else 0)
	)

	return ScoreResult(
		transcription=transcript.strip(),
		confidence=clamp01(confidence),
		accuracy=accuracy,
		fluency=fluency,
		speed=wpm,
		duration=duration,
		word_count=word_count,
		words_per_minute=wpm,
		disfluencies=disfluencies,
		completion=completion,
	)
