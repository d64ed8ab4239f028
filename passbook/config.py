"""
Application configuration using pydantic-settings.

Loads configuration from environment variables (prefix ``PASSBOOK_``) with
sensible defaults.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PASSBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Interpretation defaults
    multi_pass_extraction: bool = True
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)

    # Text acquisition
    use_advanced_ocr: bool = True
    min_digital_text_chars: int = 100
    ocr_page_limit: int = 10
    ocr_scale: float = 2.0
    tesseract_cmd: Optional[str] = None

    # Batch processing
    max_concurrency: int = 3
    max_upload_size_mb: int = 50

    # Export
    export_dir: Path = Path("./exports")

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
