# ============================================================================
# src/claim_packager/compositor/compositor.py
# ============================================================================
"""
Document Compositor

Merges a patient case's classified sources into one PDF plus a manifest
of which page range belongs to which document type.

Composition Flow:
    Sources → Stable sort by type priority → Per type: embed pages
            → Record (type, start page, page count) → Write merged PDF
"""

from dataclasses import dataclass
from io import BytesIO
from itertools import groupby
from pathlib import Path
from typing import List, Optional, Sequence
import logging

import pypdf

from ..core.models import (
    CompositionManifestEntry,
    CompositionResult,
    PatientCase,
    SourceFile,
    SourceKind,
)
from ..constants.document_types import DocumentType
from ..utils.exceptions import ClaimPackagerError, CompositionError, ConversionError
from ..utils.image_utils import encode_png, images_to_pdf_bytes, iter_frames
from ..utils.pdf_utils import read_creator, read_pdf
from .compression import RasterCompressor

# Stamped into the /Creator entry of every merged claim PDF
MERGED_PDF_CREATOR = "claim-packager compositor"


def is_merged_pdf(pdf_path: Path) -> bool:
    """True if the PDF is a merged claim written by the compositor."""
    return read_creator(pdf_path) == MERGED_PDF_CREATOR


@dataclass
class CompositorSource:
    """One buffer handed to the compositor."""
    document_type: DocumentType
    data: bytes
    kind: SourceKind
    label: str = ""

    @classmethod
    def from_source_file(cls, source: SourceFile) -> "CompositorSource":
        return cls(
            document_type=source.document_type,
            data=source.data,
            kind=source.kind,
            label=source.path.name,
        )


class DocumentCompositor:
    """
    Builds the merged claim document.

    Rasters (JPEG/PNG) are recompressed and placed as full pages; PDF pages
    are copied as-is; TIFF frames become pages without recompression.
    """

    def __init__(self, compressor: Optional[RasterCompressor] = None, strict: bool = True):
        """
        Args:
            compressor: Raster compressor (default policy if omitted)
            strict: Raise on the first failing source instead of skipping it
        """
        self.compressor = compressor or RasterCompressor()
        self.strict = strict
        self.logger = logging.getLogger(__name__)

    def compose(self, sources: Sequence[CompositorSource]) -> CompositionResult:
        """
        Merge sources into one PDF.

        Args:
            sources: Type-tagged buffers in any order; files of the same
                type keep their relative order

        Returns:
            CompositionResult with merged bytes and a contiguous manifest

        Raises:
            ConversionError: a source failed and strict mode is on
            CompositionError: no pages were produced
        """
        ordered = sorted(sources, key=lambda source: source.document_type.priority)

        writer = pypdf.PdfWriter()
        manifest: List[CompositionManifestEntry] = []
        skipped: List[str] = []
        counter = 0

        for doc_type, group in groupby(ordered, key=lambda source: source.document_type):
            start_page = counter + 1
            for source in group:
                try:
                    pages = self._pages_for(source)
                except ConversionError as e:
                    if self.strict:
                        raise
                    self.logger.warning(f"Skipping {source.label or doc_type.label}: {e}")
                    skipped.append(source.label or doc_type.label)
                    continue
                for page in pages:
                    writer.add_page(page)
                counter += len(pages)

            page_count = counter - start_page + 1
            if page_count > 0:
                manifest.append(CompositionManifestEntry(
                    document_type=doc_type,
                    start_page=start_page,
                    page_count=page_count,
                ))

        if counter == 0 or not manifest:
            raise CompositionError("No pages were produced")

        writer.add_metadata({"/Creator": MERGED_PDF_CREATOR})
        buffer = BytesIO()
        writer.write(buffer)

        self.logger.info(
            f"Composed {counter} pages across {len(manifest)} document types"
        )
        return CompositionResult(
            merged_bytes=buffer.getvalue(),
            manifest=manifest,
            total_page_count=counter,
            skipped=skipped,
        )

    def compose_case(self, case: PatientCase) -> CompositionResult:
        """
        Load a case's files and compose them.

        Raises:
            ConversionError: unreadable file (strict mode)
            CompositionError: no pages were produced
        """
        sources: List[CompositorSource] = []
        unreadable: List[str] = []
        for doc_type, path in case.iter_files():
            try:
                sources.append(CompositorSource.from_source_file(SourceFile.load(path, doc_type)))
            except ConversionError as e:
                if self.strict:
                    raise
                self.logger.warning(f"Skipping {path.name}: {e}")
                unreadable.append(path.name)

        result = self.compose(sources)
        result.skipped = unreadable + result.skipped
        return result

    def _pages_for(self, source: CompositorSource) -> List[pypdf.PageObject]:
        label = source.label or source.document_type.label
        try:
            if source.kind == SourceKind.PDF:
                return list(read_pdf(source.data, label).pages)
            if source.kind.is_raster:
                data = images_to_pdf_bytes([self.compressor.compress(source.data)])
            elif source.kind == SourceKind.TIFF:
                data = images_to_pdf_bytes([encode_png(frame) for frame in iter_frames(source.data)])
            else:
                raise ConversionError(f"{label}: {source.kind.value} sources must be converted at intake")
            return list(read_pdf(data, label).pages)
        except ClaimPackagerError:
            raise
        except Exception as e:
            raise ConversionError(f"Cannot embed {label}: {e}") from e
