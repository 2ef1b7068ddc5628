import pytest

from speech_game import scoring
from speech_game.scoring import ScoreResult, score


PANGRAM = "the quick brown fox jumps over the lazy dog"


def test_clean_read_of_expected_text_scores_full_marks():
	result = score(PANGRAM, 4, PANGRAM)

	assert result.word_count == 9
	assert result.words_per_minute == pytest.approx(135.0)
	assert result.speed == result.words_per_minute
	assert result.disfluencies == 0
	assert result.accuracy == 1.0
	assert result.fluency == 1.0
	assert result.completion is True
	assert result.confidence == pytest.approx(1.0)
	assert result.score == 100
	assert result.success is True


def test_empty_transcript():
	result = score("", 10)

	assert result.word_count == 0
	assert result.words_per_minute == 0
	assert result.completion is False
	assert result.fluency == 0.0
	# default accuracy plus the slow-speed floor, nothing else
	assert result.confidence == pytest.approx(0.8 * 0.4 + 0.3 * 0.2)


def test_zero_duration_yields_no_rate_and_no_completion():
	result = score("hello world", 0, "hello world")

	assert result.words_per_minute == 0
	assert result.completion is False
	assert result.accuracy == 1.0


def test_negative_duration_is_treated_as_zero():
	result = score("hello there", -5)

	assert result.duration == 0
	assert result.words_per_minute == 0
	assert result.completion is False


def test_short_recording_is_not_complete():
	assert score("hi", 1).completion is False
	assert score("hi", 1.5).completion is True


def test_filler_words_reduce_fluency():
	result = score("um I think um this is uh correct", 10)

	assert result.word_count == 8
	assert result.disfluencies == 3
	assert result.fluency == pytest.approx(0.25)
	assert score("so I think that this is very correct", 10).fluency == 1.0


def test_repeated_word_counts_once():
	assert score("the the cat sat", 2).disfluencies == 1
	assert score("The the cat sat", 2).disfluencies == 1


def test_distinct_adjacent_words_are_not_repetitions():
	assert scoring.count_disfluencies("this is fine") == 0
	assert scoring.count_disfluencies("is it it") == 1


def test_hesitation_and_pause_marks():
	assert scoring.count_disfluencies("well -- I ... think") == 2
	assert scoring.count_disfluencies("a - b .. c") == 0


def test_fluency_never_negative():
	assert score("um uh um uh", 3).fluency == 0.0


@pytest.mark.parametrize(
	"wpm, expected",
	[
		(0, 0.3),
		(60, 0.35),
		(120, 1.0),
		(140, 1.0),
		(160, 1.0),
		(180, 0.75),
		(300, 0.5),
	],
)
def test_speed_bands(wpm, expected):
	assert scoring.speed_score(wpm) == pytest.approx(expected)


def test_words_per_minute():
	assert scoring.words_per_minute(4, 2) == pytest.approx(120.0)
	assert scoring.words_per_minute(0, 2) == 0
	assert scoring.words_per_minute(4, 0) == 0


def test_accuracy_without_script_is_default():
	assert score("anything at all", 3).accuracy == scoring.DEFAULT_ACCURACY
	assert score("anything at all", 3, "").accuracy == scoring.DEFAULT_ACCURACY


def test_accuracy_against_blank_script_is_zero():
	assert score("anything at all", 3, "   ").accuracy == 0.0


def test_accuracy_is_membership_not_alignment():
	# two of four expected words spoken, none in position
	assert scoring.accuracy_score("cat dog", "dog cat bird fish") == pytest.approx(0.5)


def test_accuracy_positional_bonus_and_case():
	# one of four in place: 1/4 + 0.1
	assert scoring.accuracy_score("Hello", "hello good morning everyone") == pytest.approx(0.35)


def test_accuracy_clamped_to_one():
	assert scoring.accuracy_score("go go go go", "go") == 1.0


def test_ratios_stay_in_unit_interval():
	samples = [
		("", 0, None),
		("um um um um", 0.5, "completely different words"),
		("word " * 500, 1, "word"),
		("fine steady pace here", 2, "fine steady pace here"),
	]
	for transcript, duration, expected in samples:
		result = score(transcript, duration, expected)
		for value in (result.confidence, result.accuracy, result.fluency):
			assert 0.0 <= value <= 1.0
		assert result.words_per_minute >= 0
		assert 0 <= result.score <= 100


def test_score_is_deterministic():
	assert score("hello um world", 3, "hello world") == score("hello um world", 3, "hello world")


def test_transcription_is_stripped():
	assert score("  hello world \n", 2).transcription == "hello world"


@pytest.mark.parametrize(
	"args",
	[
		(None, 3),
		(42, 3),
		("hello", "3"),
		("hello", None),
		("hello", True),
		("hello", 3, 7),
	],
)
def test_invalid_argument_types(args):
	with pytest.raises(TypeError):
		score(*args)


def test_external_confidence_blend():
	result = score(PANGRAM, 4, PANGRAM)
	blended = result.with_external_confidence(0.5)

	assert blended.confidence == pytest.approx(1.0 * 0.7 + 0.5 * 0.3)
	assert blended.accuracy == result.accuracy
	assert result.with_external_confidence(None) is result


def test_display_score_rounds_half_up():
	assert scoring.display_score(0.125) == 13
	assert scoring.display_score(0.0) == 0
	assert scoring.display_score(1.0) == 100


def test_pass_threshold():
	base = dict(
		transcription="x", accuracy=1.0, fluency=1.0, speed=130.0, duration=2.0,
		word_count=1, words_per_minute=130.0, disfluencies=0, completion=True,
	)
	assert ScoreResult(confidence=0.7, **base).success is True
	assert ScoreResult(confidence=0.69, **base).success is False


def test_to_dict_carries_score_and_success():
	data = score(PANGRAM, 4, PANGRAM).to_dict()

	assert data["score"] == 100
	assert data["success"] is True
	assert data["word_count"] == 9
