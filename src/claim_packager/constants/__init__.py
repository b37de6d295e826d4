# ============================================================================
# src/claim_packager/constants/__init__.py
# ============================================================================
"""
Convenient imports for all constants
"""

from .document_types import DocumentType, PORTAL_IDS, REQUIRED_DOCUMENT_TYPES
