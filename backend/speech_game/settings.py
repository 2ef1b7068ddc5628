from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Logging
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Access key auth (opaque bearer tokens, compared by equality)
	access_key_cookie: str = Field(default="speech_game_access_key", validation_alias="ACCESS_KEY_COOKIE")
	access_key_max_age: int = Field(default=365 * 24 * 60 * 60, validation_alias="ACCESS_KEY_MAX_AGE")
	# Unknown keys create a new player on first use
	auto_register_keys: bool = Field(default=True, validation_alias="AUTO_REGISTER_KEYS")

	# Google Cloud Speech-to-Text
	google_project: str | None = Field(default=None, validation_alias="GOOGLE_CLOUD_PROJECT")
	speech_language_code: str = Field(default="en-US", validation_alias="SPEECH_LANGUAGE_CODE")
	speech_timeout_seconds: float = Field(default=30.0, validation_alias="SPEECH_TIMEOUT_SECONDS")

	# Public API
	leaderboard_max_limit: int = Field(default=50, validation_alias="LEADERBOARD_MAX_LIMIT")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
