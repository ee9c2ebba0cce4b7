"""
Configuration management — all values sourced from environment variables.
Defaults let the gateway boot for local development; real deployments set
provider credentials through the environment or a `.env` file.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Provider selection (read once at start) ───────────────────────────────
    ai_provider: Literal["bedrock", "openai"] = "bedrock"

    # ── OpenAI ────────────────────────────────────────────────────────────────
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # ── AWS Bedrock (Amazon Nova) ─────────────────────────────────────────────
    bedrock_region: str = "us-east-1"
    bedrock_access_key_id: str = ""
    bedrock_secret_access_key: str = ""
    bedrock_session_token: str = ""
    bedrock_model_id: str = "amazon.nova-lite-v1:0"
    # read_timeout per client follows the matching ai_*_timeout_seconds
    bedrock_connect_timeout_seconds: float = 5.0

    # ── Generation ────────────────────────────────────────────────────────────
    llm_max_tokens: int = 1024
    text_temperature: float = 0.7
    vision_temperature: float = 0.4

    # ── Resilience ────────────────────────────────────────────────────────────
    ai_max_retries: int = 2
    ai_backoff_seconds: float = 1.0
    ai_text_timeout_seconds: float = 30.0
    ai_vision_timeout_seconds: float = 45.0

    # ── AWS voice (Transcribe + Polly) ────────────────────────────────────────
    aws_region: str = "ap-south-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    # Kajal (neural) is only served from a subset of regions
    polly_region: str = "ap-south-1"
    polly_voice_id: str = "Kajal"
    polly_engine: str = "neural"

    # ── Transcription jobs ────────────────────────────────────────────────────
    transcribe_language_options: List[str] = ["hi-IN", "en-US", "en-IN"]
    transcribe_poll_interval_seconds: float = 3.0
    transcribe_max_polls: int = 30
    transcribe_job_prefix: str = "agri-stt"
    transcript_download_timeout_seconds: float = 30.0

    # ── Weather (OpenWeatherMap) ──────────────────────────────────────────────
    weather_api_key: str = ""
    weather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_timeout_seconds: float = 10.0

    # ── Storage ───────────────────────────────────────────────────────────────
    s3_bucket_name: str = ""
    upload_path: str = "./uploads"
    public_base_url: str = "/uploads"

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_file: str = "logs/app.log"
    log_rotation_bytes: int = 10 * 1024 * 1024    # 10 MB
    log_backup_count: int = 5


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
