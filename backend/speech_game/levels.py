"""Fixed level sequence of the game.

Only the basic levels ask the player to read a script verbatim, so only they
carry an expected text for accuracy scoring. Everything else is free speech.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


DIFFICULTIES = ("easy", "medium", "hard")
LEVEL_TYPES = ("basic", "intermediate", "advanced", "boss")


@dataclass(frozen=True)
class Level:
	id: int
	level: int
	name: str
	difficulty: str
	type: str
	prompt: str
	reward_coins: int
	reward_xp: int
	time_limit: Optional[int] = None
	skills: List[str] = field(default_factory=list)

	@property
	def is_boss_level(self) -> bool:
		return self.type == "boss"


LEVELS: List[Level] = [
	Level(1, 1, "Greetings Master", "easy", "basic",
		"Hello! Good morning everyone. How are you today? Nice to meet you!",
		25, 50, 25, ["Intonation", "Social Communication", "Confidence", "Greeting Etiquette"]),
	Level(2, 2, "Number Master", "easy", "basic",
		"Say clearly: Phone number 555-0123, Price $24.99, Date September 27th, 2025, Time 3:45 PM",
		30, 55, 20, ["Number Pronunciation", "Clarity", "Practical Communication", "Digit Articulation"]),
	Level(3, 3, "Weather Reporter", "easy", "basic",
		"Today will be sunny with temperatures reaching 75 degrees. Tomorrow brings partly cloudy skies and a chance of afternoon showers.",
		35, 65, 30, ["Expressive Delivery", "Weather Vocabulary", "Professional Communication", "Vocal Variety"]),
	Level(4, 4, "Breathing Techniques", "medium", "intermediate",
		'Take a deep breath, then speak: "I can speak clearly and confidently without running out of breath." Repeat this sentence 3 times smoothly.',
		40, 75, 25, ["Breath Control", "Pacing", "Sustained Speech", "Breathing Awareness"]),
	Level(5, 5, "Story Teller", "medium", "intermediate",
		"Once upon a time, in a magical forest, there lived a curious little rabbit named Hopper. Every morning, Hopper would explore new paths and discover hidden treasures. One sunny day, he found something extraordinary...",
		45, 85, 45, ["Storytelling", "Creative Continuation", "Narrative Pacing", "Imaginative Speech"]),
	Level(6, 6, "Color Poet", "medium", "intermediate",
		'Describe the color blue: "Blue is the color of a clear summer sky, deep and endless like the ocean depths, cool and calming like a gentle breeze."',
		50, 90, 35, ["Descriptive Language", "Vocabulary Building", "Creative Expression", "Sensory Language"]),
	Level(7, 7, "Communication Master", "hard", "boss",
		"Greet someone warmly, give them your phone number (555-9876), describe tomorrow's weather forecast with enthusiasm, then tell a short creative story about meeting a friendly dragon.",
		100, 200, 75, ["Integrated Communication", "Skill Synthesis", "Confidence Under Pressure", "Complete Speech Mastery"]),
	Level(8, 8, "Quick Reaction", "medium", "intermediate",
		'Say quickly: "Supercalifragilisticexpialidocious"',
		45, 90, 8, ["Quick Thinking", "Rapid Response", "Confidence Under Pressure", "Speed Articulation"]),
	Level(9, 9, "Object Description", "medium", "intermediate",
		"Describe this vintage red telephone: its round rotary dial, shiny brass mouthpiece, coiled cord, and wooden base with gold numbers. Explain how it works and why it was important.",
		50, 100, 45, ["Descriptive Language", "Vocabulary", "Visual Processing", "Detailed Observation"]),
	Level(10, 10, "Story Building", "hard", "advanced",
		'Continue this story: "Sarah discovered an old brass key in her grandmother\'s attic. As she turned it in her hand, she noticed strange symbols etched into the metal. Suddenly, the room began to spin..." What happens next? Create an exciting adventure involving mystery, magic, and courage.',
		55, 110, 75, ["Creative Thinking", "Narrative Structure", "Spontaneous Speech", "Plot Development"]),
	Level(11, 11, "Lyric Singing", "hard", "advanced",
		'Sing with clear rhythm: "Twinkle, twinkle, little star, how I wonder what you are. Up above the world so high, like a diamond in the sky. Twinkle, twinkle, little star, how I wonder what you are."',
		60, 120, 60, ["Rhythm", "Musical Timing", "Expressive Speech", "Melodic Pronunciation"]),
	Level(12, 12, "Puzzle Solving", "hard", "advanced",
		'Look at this rebus puzzle showing "painless" (represented by "pain" with "less" next to it). Explain what it means and solve 3 more similar puzzles verbally: 1) HEAD + HEELS = ?, 2) MIND over MATTER = ?, 3) SPLIT + SECOND = ?',
		65, 130, 90, ["Analytical Thinking", "Problem Solving", "Logical Communication", "Wordplay Analysis"]),
	Level(13, 13, "Complex Articulation", "hard", "advanced",
		'Articulate clearly: "The sixth sick sheik\'s sixth sheep\'s sick." Then say: "Red leather, yellow leather." Finally: "She sells seashells by the seashore."',
		70, 140, 45, ["Advanced Articulation", "Sound Combinations", "Speech Precision", "Tongue Coordination"]),
	Level(14, 14, "Interview Master", "hard", "boss",
		"Choose your interview type and job role, then conduct a professional mock interview. Answer questions confidently and professionally.",
		200, 400, 180, ["Professional Communication", "Interview Skills", "Confidence Under Pressure", "Industry Knowledge", "Career Readiness"]),
	Level(15, 15, "Public Speaking", "hard", "advanced",
		"Deliver a short speech",
		75, 150, 120, ["Public Speaking", "Presentation Skills", "Audience Engagement"]),
	Level(16, 16, "Debate Champion", "hard", "boss",
		"Choose a debate topic and argue your position against the AI opponent. The debate will last 3 minutes.",
		300, 600, 180, ["Debate Mastery", "Persuasive Communication", "Critical Thinking", "Real-time Reasoning", "Public Speaking Under Pressure"]),
	Level(17, 17, "Emotional Expression", "hard", "advanced",
		"Express complex emotions",
		85, 170, 75, ["Emotional Intelligence", "Tone Control", "Expressive Communication"]),
	Level(18, 18, "Technical Explanation", "hard", "advanced",
		"Explain a complex concept",
		90, 180, 105, ["Technical Communication", "Simplification", "Educational Speaking"]),
	Level(19, 19, "Storytelling Mastery", "hard", "advanced",
		"Narrate an engaging story",
		95, 190, 135, ["Storytelling", "Narrative Pacing", "Audience Captivation"]),
	Level(20, 20, "Speed Articulation", "hard", "advanced",
		"Rapid-fire word combinations",
		100, 200, 45, ["Rapid Articulation", "Speed Control", "Precision Under Pressure"]),
	Level(21, 21, "Ultimate Speech Boss", "hard", "boss",
		"The final speech challenge awaits!",
		250, 500, 180, ["All Speech Skills", "Ultimate Mastery", "Speech Excellence"]),
]

_BY_ID = {level.id: level for level in LEVELS}


def get_level(level_id: int) -> Optional[Level]:
	return _BY_ID.get(level_id)


def filter_levels(
	difficulty: Optional[str] = None,
	level_type: Optional[str] = None,
	include_boss_levels: bool = True,
) -> List[Level]:
	result = list(LEVELS)
	if difficulty:
		result = [level for level in result if level.difficulty == difficulty]
	if level_type:
		result = [level for level in result if level.type == level_type]
	if not include_boss_levels:
		result = [level for level in result if not level.is_boss_level]
	return result


def expected_text_for(level_id: int) -> Optional[str]:
	level = get_level(level_id)
	if level is None or level.type != "basic":
		return None
	return level.prompt
