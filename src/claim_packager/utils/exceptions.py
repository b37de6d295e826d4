# ============================================================================
# src/claim_packager/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the claim packager.
"""


class ClaimPackagerError(Exception):
    """Base exception for all claim packager errors."""
    pass


class IntakeError(ClaimPackagerError):
    """The patients root folder cannot be read. Aborts the whole run."""
    pass


class ClassificationError(ClaimPackagerError):
    """Bad entry name, unknown type code, nested folder or duplicate type."""
    pass


class ConversionError(ClaimPackagerError):
    """A source file could not be read, converted or embedded."""
    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class UnsupportedSourceError(ConversionError):
    """No available normalizer handles this kind of file."""
    pass


class CompositionError(ClaimPackagerError):
    """Composition produced no pages."""
    pass


class ConfigurationError(ClaimPackagerError):
    """Invalid configuration."""
    pass
