# ============================================================================
# src/claim_packager/core/upload.py
# ============================================================================
"""
Upload collaborator seam.

The claim portal (login, session cookies, transport, result parsing) lives
outside this package. The pipeline hands it an UploadPackage and gets an
UploadOutcome back.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable
import json
import logging

from .models import CompositionManifestEntry


@dataclass(frozen=True)
class UploadPackage:
    """Everything the portal needs for one claim."""
    visit_number: str
    display_name: str
    pdf_path: Path
    merged_bytes: bytes
    manifest: List[CompositionManifestEntry]

    def document_details(self) -> List[Dict[str, int]]:
        """Manifest in the portal's document_details shape."""
        return [entry.to_upload_detail() for entry in self.manifest]

    def document_details_json(self) -> str:
        return json.dumps({"document_details": self.document_details()})


@dataclass(frozen=True)
class UploadOutcome:
    success: bool
    message: Optional[str] = None


@runtime_checkable
class UploadSink(Protocol):
    """Protocol for portal integrations."""

    def submit(self, package: UploadPackage) -> UploadOutcome:
        """Send one claim. Failures come back as UploadOutcome(success=False)."""
        ...


class DryRunUploadSink:
    """Logs what would be uploaded and reports success."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.submitted: List[UploadPackage] = []

    def submit(self, package: UploadPackage) -> UploadOutcome:
        self.submitted.append(package)
        self.logger.info(
            f"{package.display_name}: dry run, would upload {package.pdf_path.name} "
            f"with {package.document_details_json()}"
        )
        return UploadOutcome(success=True, message="dry run")
