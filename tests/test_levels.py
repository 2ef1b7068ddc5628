from speech_game import levels


def test_catalog_is_complete_and_ordered():
	assert [level.id for level in levels.LEVELS] == list(range(1, 22))
	assert all(level.difficulty in levels.DIFFICULTIES for level in levels.LEVELS)
	assert all(level.type in levels.LEVEL_TYPES for level in levels.LEVELS)


def test_boss_levels():
	assert [level.id for level in levels.filter_levels(level_type="boss")] == [7, 14, 16, 21]


def test_get_level():
	assert levels.get_level(1).name == "Greetings Master"
	assert levels.get_level(99) is None


def test_filter_levels_combines_filters():
	hard = levels.filter_levels(difficulty="hard", include_boss_levels=False)
	assert hard
	assert all(level.difficulty == "hard" and not level.is_boss_level for level in hard)
	assert levels.filter_levels(level_type="boss", include_boss_levels=False) == []


def test_only_basic_levels_have_a_script():
	assert levels.expected_text_for(1) == levels.get_level(1).prompt
	assert levels.expected_text_for(7) is None
	assert levels.expected_text_for(99) is None
