# ============================================================================
# src/claim_packager/config/compression_config.py
# ============================================================================
"""
Raster Compression Settings
- JPEG quality range applied to images before embedding
- Optional downscale ceiling
"""

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.models import CompressionPolicy


class CompressionSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLAIM_PACKAGER_",
        env_file=".env",
        extra="ignore",
    )

    QUALITY_MIN: float = Field(
        default=0.6,
        gt=0.0, le=1.0,
        description="Fallback quality when the first pass does not shrink the image"
    )
    QUALITY_MAX: float = Field(
        default=0.8,
        gt=0.0, le=1.0,
        description="Quality tried first"
    )
    MAX_IMAGE_DIMENSION: Optional[int] = Field(
        default=None,
        gt=0,
        description="Longest image side in pixels; larger images are downscaled"
    )

    @model_validator(mode="after")
    def check_quality_range(self) -> "CompressionSettings":
        if self.QUALITY_MIN > self.QUALITY_MAX:
            raise ValueError("QUALITY_MIN must not exceed QUALITY_MAX")
        return self

    def policy(self) -> CompressionPolicy:
        return CompressionPolicy(
            quality_min=self.QUALITY_MIN,
            quality_max=self.QUALITY_MAX,
            max_dimension=self.MAX_IMAGE_DIMENSION,
        )


compression_settings = CompressionSettings()
