from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field, field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache


class Settings(BaseSettings):
    """
    Logging pipeline settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"
    SERVICE_NAME: str = "logenrich"

    # Logging facility
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "text"

    # Enrichment pipeline
    LOG_ENRICHMENT_ENABLED: bool = False
    GIANT_LOGS_THRESHOLD: int = Field(default=10_000, ge=0)  # bytes
    LOG_BACKTRACE_DEPTH: int = Field(default=8, ge=0)
    LOG_INCLUDE_STACKTRACES: bool = True

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize the LOG_LEVEL environment variable value to uppercase.

        The logging module expects level names in uppercase ("DEBUG", "INFO"),
        while environment files are often written in lowercase.
        """
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        """
        Normalize the LOG_FORMAT environment variable value to lowercase.
        """
        if isinstance(v, str):
            return v.lower()
        return v

    # --- ConfigDict settings ---
    model_config = ConfigDict(
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings are read once per process; the installer runs at startup only.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
