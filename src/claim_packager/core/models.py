# ============================================================================
# src/claim_packager/core/models.py
# ============================================================================
"""
Data model shared by intake, composition and upload.

PatientCase  - one patient's classified documents (built by the scanner)
SourceFile   - one input artifact with its bytes and detected kind
CompositionManifestEntry / CompositionResult - compositor output contract
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..constants.document_types import DocumentType


class SourceKind(str, Enum):
    PDF = "pdf"
    JPEG = "jpeg"
    PNG = "png"
    TIFF = "tiff"
    WORD = "word"

    @property
    def is_raster(self) -> bool:
        """Rasters that go through lossy compression before embedding."""
        return self in (SourceKind.JPEG, SourceKind.PNG)


@dataclass
class SourceFile:
    """A single input artifact."""
    path: Path
    document_type: DocumentType
    data: bytes
    kind: SourceKind

    @classmethod
    def load(cls, path: Path, document_type: DocumentType) -> "SourceFile":
        """
        Read a file and detect its kind.

        Raises:
            ConversionError: unreadable file
            UnsupportedSourceError: unknown kind
        """
        from ..utils.exceptions import ConversionError, UnsupportedSourceError
        from ..utils.file_utils import detect_source_kind

        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ConversionError(f"Cannot read {path}: {e}", path=path) from e

        kind = detect_source_kind(path, data[:8])
        if kind is None:
            raise UnsupportedSourceError(f"Unsupported file kind: {path.name}", path=path)
        return cls(path=path, document_type=document_type, data=data, kind=kind)


@dataclass(frozen=True)
class PatientCase:
    """
    One claim submission unit.

    documents maps each DocumentType to its source paths in intake order.
    Built once per scan and never modified afterwards.
    """
    visit_number: str
    display_name: str
    folder: Path
    documents: Mapping[DocumentType, Tuple[Path, ...]]

    def __post_init__(self):
        if not self.visit_number:
            raise ValueError("visit_number must be non-empty")
        frozen = {
            doc_type: tuple(paths)
            for doc_type, paths in self.documents.items()
        }
        object.__setattr__(self, "documents", MappingProxyType(frozen))

    @property
    def document_types(self) -> List[DocumentType]:
        return sorted(self.documents, key=lambda doc_type: doc_type.priority)

    def iter_files(self) -> Iterator[Tuple[DocumentType, Path]]:
        """Yield (type, path) in priority order, then intake order."""
        for doc_type in self.document_types:
            for path in self.documents[doc_type]:
                yield doc_type, path

    def __eq__(self, other):
        if not isinstance(other, PatientCase):
            return NotImplemented
        return (
            self.visit_number == other.visit_number
            and self.display_name == other.display_name
            and self.folder == other.folder
            and dict(self.documents) == dict(other.documents)
        )

    def __hash__(self):
        return hash((self.visit_number, self.display_name, self.folder))


@dataclass(frozen=True)
class CaseAccepted:
    case: PatientCase


@dataclass(frozen=True)
class CaseRejected:
    folder: Path
    reason: str


FolderVerdict = Union[CaseAccepted, CaseRejected]


@dataclass(frozen=True)
class CompressionPolicy:
    """
    Lossy quality target for raster images.

    Qualities are fractions (0-1]; the compressor tries quality_max first
    and falls back to quality_min when that does not shrink the image.
    """
    quality_min: float = 0.6
    quality_max: float = 0.8
    max_dimension: Optional[int] = None

    def __post_init__(self):
        if not 0 < self.quality_min <= self.quality_max <= 1:
            raise ValueError(
                f"Invalid quality range {self.quality_min}-{self.quality_max}"
            )
        if self.max_dimension is not None and self.max_dimension < 1:
            raise ValueError("max_dimension must be positive")

    @property
    def jpeg_qualities(self) -> List[int]:
        first = round(self.quality_max * 100)
        second = round(self.quality_min * 100)
        return [first] if first == second else [first, second]


@dataclass(frozen=True)
class CompositionManifestEntry:
    document_type: DocumentType
    start_page: int  # 1-based
    page_count: int

    @property
    def end_page(self) -> int:
        return self.start_page + self.page_count - 1

    def to_upload_detail(self) -> Dict[str, int]:
        """Shape the portal expects for each document_details item."""
        return {
            "document_type_id": self.document_type.portal_id,
            "page_from": self.start_page,
            "page_number": self.page_count,
        }


@dataclass
class CompositionResult:
    merged_bytes: bytes
    manifest: List[CompositionManifestEntry]
    total_page_count: int
    skipped: List[str] = field(default_factory=list)

    @property
    def size_bytes(self) -> int:
        return len(self.merged_bytes)

    @property
    def size_mb(self) -> float:
        return round(self.size_bytes / (1024 * 1024), 2)


def manifest_is_contiguous(manifest: Sequence[CompositionManifestEntry], total_pages: int) -> bool:
    """True when entries start at page 1, touch end to start and cover total_pages."""
    expected_start = 1
    for entry in manifest:
        if entry.start_page != expected_start or entry.page_count < 1:
            return False
        expected_start = entry.start_page + entry.page_count
    return expected_start - 1 == total_pages
