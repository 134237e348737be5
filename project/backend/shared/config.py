"""
Configuration management.

Centralized environment variable management and validation.
"""

from typing import Literal, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow case-insensitive env var matching
        extra="ignore"
    )

    # Environment
    environment: Literal["development", "staging", "production", "test"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: str = "logs"

    # Frontend configuration (CORS). Unset disables the CORS middleware.
    frontend_url: Optional[str] = None

    # Assembly pipeline
    # TEMP_DIR: where run artifacts are written (defaults to the system temp dir)
    temp_dir: Optional[str] = None
    run_deadline_seconds: float = 300.0
    max_request_bytes: int = 32 * 1024 * 1024
    # NORMALIZE_CONCURRENCY: clips transcoded at once per run; 1 runs them sequentially
    normalize_concurrency: int = 2
    verify_clip_profiles: bool = True
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    # Stock footage (Pixabay)
    pixabay_api_key: Optional[str] = None
    pixabay_base_url: str = "https://pixabay.com/api"
    stock_results_per_term: int = 3

    # Transcription (AssemblyAI)
    assemblyai_api_key: Optional[str] = None
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"
    transcript_poll_attempts: int = 60
    transcript_poll_interval: float = 2.0

    # Payments (Paystack)
    paystack_secret_key: Optional[str] = None
    paystack_base_url: str = "https://api.paystack.co"
    # Smallest currency unit (kobo): 1500 NGN
    payment_expected_amount: int = 150000

    @field_validator("run_deadline_seconds", "transcript_poll_interval")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Validate durations are positive."""
        if v <= 0:
            raise ConfigError(f"Duration setting must be positive, got {v}")
        return v

    @field_validator(
        "max_request_bytes",
        "normalize_concurrency",
        "stock_results_per_term",
        "transcript_poll_attempts",
        "payment_expected_amount",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate limits and counts are at least 1."""
        if v < 1:
            raise ConfigError(f"Limit setting must be at least 1, got {v}")
        return v

    @field_validator("pixabay_base_url", "assemblyai_base_url", "paystack_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate collaborator base URLs."""
        if not v.startswith(("http://", "https://")):
            raise ConfigError(f"Base URL must be a valid HTTP/HTTPS URL: {v}")
        return v.rstrip("/")

    @field_validator("frontend_url")
    @classmethod
    def validate_frontend_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate frontend URL format."""
        if v and not v.startswith(("http://", "https://")):
            raise ConfigError("FRONTEND_URL must be a valid HTTP/HTTPS URL")
        return v


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigError for consistency
    if isinstance(e, ConfigError):
        raise
    raise ConfigError(f"Failed to load configuration: {str(e)}") from e
