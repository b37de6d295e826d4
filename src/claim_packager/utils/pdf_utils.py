# ============================================================================
# src/claim_packager/utils/pdf_utils.py
# ============================================================================
"""
PDF helpers shared by intake and composition.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional

import pypdf

from .exceptions import ConversionError


def read_pdf(data: bytes, label: str) -> pypdf.PdfReader:
    """
    Open PDF bytes, decrypting empty-password PDFs.

    Args:
        data: PDF content
        label: Name used in error messages

    Returns:
        Reader with its page tree loaded

    Raises:
        ConversionError: corrupt PDF or one that needs a password
    """
    try:
        reader = pypdf.PdfReader(BytesIO(data))
        if reader.is_encrypted and not reader.decrypt(""):
            raise ConversionError(f"{label} is encrypted and requires a password")
        # Touch the page tree so corrupt files fail here, not mid-merge
        len(reader.pages)
        return reader
    except ConversionError:
        raise
    except Exception as e:
        raise ConversionError(f"Corrupt or invalid PDF {label}: {e}") from e


def count_pages(data: bytes, label: str = "document") -> int:
    return len(read_pdf(data, label).pages)


def read_creator(pdf_path: Path) -> Optional[str]:
    """The /Creator metadata entry, or None if absent or unreadable."""
    try:
        metadata = pypdf.PdfReader(pdf_path).metadata
    except Exception:
        return None
    if not metadata:
        return None
    creator = metadata.get("/Creator")
    return str(creator) if creator is not None else None
