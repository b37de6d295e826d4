# ============================================================================
# src/claim_packager/utils/file_utils.py
# ============================================================================
"""
File utilities for the claim packager.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..core.models import SourceKind


EXTENSION_KINDS = {
    '.pdf': SourceKind.PDF,
    '.jpg': SourceKind.JPEG,
    '.jpeg': SourceKind.JPEG,
    '.png': SourceKind.PNG,
    '.tif': SourceKind.TIFF,
    '.tiff': SourceKind.TIFF,
    '.doc': SourceKind.WORD,
    '.docx': SourceKind.WORD,
}

_DIGIT_RUN = re.compile(r'(\d+)')


def detect_source_kind(file_path: Path, header: Optional[bytes] = None) -> Optional[SourceKind]:
    """
    Detect the kind of a source file.

    Magic bytes win over the extension when a header is available, so a
    JPEG saved as `.png` is still treated as JPEG.

    Args:
        file_path: Path to file
        header: Optional leading bytes of the file

    Returns:
        SourceKind or None if unsupported
    """
    if header:
        if header.startswith(b'%PDF'):
            return SourceKind.PDF
        if header.startswith(b'\xff\xd8\xff'):
            return SourceKind.JPEG
        if header.startswith(b'\x89PNG'):
            return SourceKind.PNG
        if header.startswith(b'II*\x00') or header.startswith(b'MM\x00*'):
            return SourceKind.TIFF

    return EXTENSION_KINDS.get(Path(file_path).suffix.lower())


def natural_sort_key(name: Union[str, Path]) -> List[Union[int, str]]:
    """Sort key that orders 'page2' before 'page10'."""
    name = name.name if isinstance(name, Path) else name
    return [
        int(part) if part.isdigit() else part.lower()
        for part in _DIGIT_RUN.split(name)
    ]


def latest_mtime(paths: Iterable[Path]) -> float:
    """Newest modification time among paths (0.0 for none)."""
    return max((path.stat().st_mtime for path in paths), default=0.0)
