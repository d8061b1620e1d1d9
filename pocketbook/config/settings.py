"""
Configuration Management for Pocketbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which external collaborators exist and
ensures every tunable constant (image bounds, backup naming, thresholds)
lives in one place instead of being scattered through the code.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POCKETBOOK_STORAGE_",
        extra="ignore"
    )

    data_dir: str = Field(
        default="~/.pocketbook",
        description="Directory holding one JSON file per storage key"
    )

    @property
    def data_path(self) -> Path:
        """Data directory with the user home expanded."""
        return Path(self.data_dir).expanduser()


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (optional smart-parse feature)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key. Smart parsing is disabled when unset."
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=512,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Upper bound for a single parse call"
    )

    @field_validator("api_key")
    @classmethod
    def blank_key_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty key as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )

    # Receipt normalization
    receipt_max_dimension: int = Field(
        default=800,
        ge=16,
        description="Longest side of a stored receipt image, in pixels"
    )
    receipt_jpeg_quality: float = Field(
        default=0.6,
        gt=0.0,
        le=1.0,
        description="Lossy re-encode quality on a 0-1 scale"
    )

    # Backups
    backup_filename_prefix: str = Field(
        default="financas_backup",
        description="Prefix of exported backup file names"
    )

    # Dashboard
    budget_warning_percentage: float = Field(
        default=75.0,
        ge=0.0,
        le=100.0,
        description="Budget consumption above which the budget card warns"
    )
    recent_expenses_limit: int = Field(
        default=5,
        ge=1,
        description="How many expenses the home screen lists"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def receipt_pillow_quality(self) -> int:
        """JPEG quality on Pillow's 1-95 scale."""
        return max(1, min(95, round(self.receipt_jpeg_quality * 100)))


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks and the settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        gemini = settings.gemini
        results["gemini"] = gemini.is_configured
        if not gemini.is_configured:
            results["gemini_error"] = "GEMINI_API_KEY not set"
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
