# ============================================================================
# src/claim_packager/config/base_config.py
# ============================================================================
"""
Base Configuration
- Patient folder root
- Normalization mode
- Worker pool size
- Upload size ceiling
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseSettingsConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLAIM_PACKAGER_",
        env_file=".env",
        extra="ignore",
    )

    # Root folder holding one subfolder per patient
    PATIENTS_FOLDER: Path = Field(
        default=Path("patients"),
        description="Folder scanned when no folder is given on the command line"
    )

    CONVERT_TO_PDF: bool = Field(
        default=True,
        description="Write images and grouped subfolders back as PDFs during intake"
    )

    MAX_WORKERS: int = Field(
        default=1,
        ge=1,
        description="Patient cases composed and submitted concurrently"
    )

    SIZE_LIMIT_MB: float = Field(
        default=15.0,
        gt=0,
        description="Merged PDFs above this size are flagged (portal upload limit)"
    )

    STRICT_COMPOSITION: bool = Field(
        default=True,
        description="Fail the case on the first unreadable source instead of skipping it"
    )


# Global instance
base_settings = BaseSettingsConfig()
