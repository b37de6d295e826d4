# ============================================================================
# src/claim_packager/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .base_config import base_settings, BaseSettingsConfig
from .compression_config import compression_settings, CompressionSettings
from .logging_config import logging_settings, LoggingSettings
