from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Speech-to-text (OpenAI audio transcriptions, verbose_json gives segment metadata)
	openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
	openai_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL")
	transcription_model: str = Field(default="whisper-1", validation_alias="TRANSCRIPTION_MODEL")
	transcription_language: str = Field(default="en", validation_alias="TRANSCRIPTION_LANGUAGE")

	# Text-to-speech (ElevenLabs); one voice per examiner gender
	elevenlabs_api_key: str | None = Field(default=None, validation_alias="ELEVENLABS_API_KEY")
	elevenlabs_voice_female_id: str | None = Field(default=None, validation_alias="ELEVENLABS_VOICE_FEMALE_ID")
	elevenlabs_voice_male_id: str | None = Field(default=None, validation_alias="ELEVENLABS_VOICE_MALE_ID")
	elevenlabs_base_url: str = Field(default="https://api.elevenlabs.io/v1", validation_alias="ELEVENLABS_BASE_URL")
	elevenlabs_model_id: str = Field(default="eleven_multilingual_v2", validation_alias="ELEVENLABS_MODEL_ID")

	http_timeout_seconds: float = Field(default=30.0, validation_alias="HTTP_TIMEOUT_SECONDS")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
	# Attempts older than this are purged at startup and then daily
	record_retention_days: int = Field(default=7, validation_alias="RECORD_RETENTION_DAYS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
