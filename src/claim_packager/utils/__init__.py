# ============================================================================
# src/claim_packager/utils/__init__.py
# ============================================================================
"""
Utility modules for the claim packager.
"""

from .exceptions import (
    ClaimPackagerError,
    IntakeError,
    ClassificationError,
    ConversionError,
    UnsupportedSourceError,
    CompositionError,
    ConfigurationError,
)

from .logging import (
    setup_logging,
    JsonFormatter,
    CaseLogAdapter,
)

__all__ = [
    # Exceptions
    'ClaimPackagerError',
    'IntakeError',
    'ClassificationError',
    'ConversionError',
    'UnsupportedSourceError',
    'CompositionError',
    'ConfigurationError',
    # Logging
    'setup_logging',
    'JsonFormatter',
    'CaseLogAdapter',
]
