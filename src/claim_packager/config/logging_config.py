# ============================================================================
# src/claim_packager/config/logging_config.py
# ============================================================================
"""
Logging Settings
- Log level
- Run log file
- JSON output
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLAIM_PACKAGER_",
        env_file=".env",
        extra="ignore",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )
    LOG_FILE: Optional[Path] = Field(
        default=Path("log.txt"),
        description="Run log written next to the console output"
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Emit JSON lines instead of plain text"
    )


logging_settings = LoggingSettings()
