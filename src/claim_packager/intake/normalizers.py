# ============================================================================
# src/claim_packager/intake/normalizers.py
# ============================================================================
"""
Document Normalizers

Turn heterogeneous intake files into PDF bytes:
- PDF   -> validated and passed through
- Image -> one page per frame, sized to the image (JPEG, PNG, TIFF)
- Word  -> headless LibreOffice conversion, when installed

Every PDF written back into a patient folder carries a /Creator marker so
a later scan can tell its own artifacts apart from user files.
"""

from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence
import logging
import shutil
import subprocess
import tempfile

import pypdf

from ..core.models import SourceKind
from ..compositor.compression import RasterCompressor
from ..utils.exceptions import ConversionError, UnsupportedSourceError
from ..utils.file_utils import detect_source_kind, latest_mtime
from ..utils.image_utils import encode_png, images_to_pdf_bytes, iter_frames
from ..utils.pdf_utils import read_creator, read_pdf

# Stamped into the /Creator entry of every PDF written into a patient folder
GENERATED_PDF_CREATOR = "claim-packager normalizer"


def is_generated_pdf(pdf_path: Path) -> bool:
    """True if the PDF was written by a normalizer."""
    return read_creator(pdf_path) == GENERATED_PDF_CREATOR


def is_stale(output: Path, sources: Sequence[Path]) -> bool:
    """True if output is missing or older than any of its sources."""
    if not output.exists():
        return True
    return output.stat().st_mtime < latest_mtime(sources)


class DocumentNormalizer(ABC):
    """
    Converts one kind of source file into PDF bytes.

    Subclasses must implement:
    - get_name(): Normalizer identifier
    - kinds: SourceKinds handled
    - to_pdf_bytes(): The conversion
    """

    kinds: tuple = ()

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.get_name()}")

    @abstractmethod
    def get_name(self) -> str:
        pass

    @property
    def available(self) -> bool:
        """False when an external tool the conversion needs is missing."""
        return True

    def supports(self, kind: SourceKind) -> bool:
        return kind in self.kinds and self.available

    @abstractmethod
    def to_pdf_bytes(self, path: Path, kind: SourceKind) -> bytes:
        """
        Convert a file to PDF bytes.

        Raises:
            ConversionError: the file cannot be converted
        """
        pass


class PdfPassthroughNormalizer(DocumentNormalizer):
    kinds = (SourceKind.PDF,)

    def get_name(self) -> str:
        return "PdfPassthroughNormalizer"

    def to_pdf_bytes(self, path: Path, kind: SourceKind) -> bytes:
        data = _read(path)
        read_pdf(data, path.name)
        return data


class ImageNormalizer(DocumentNormalizer):
    """
    Wraps rasters into PDF pages sized to their native dimensions.

    With a compressor, JPEG/PNG are recompressed first; without one the
    image is embedded losslessly. TIFF frames are always lossless.
    """

    kinds = (SourceKind.JPEG, SourceKind.PNG, SourceKind.TIFF)

    def __init__(self, compressor: Optional[RasterCompressor] = None):
        super().__init__()
        self.compressor = compressor

    def get_name(self) -> str:
        return "ImageNormalizer"

    def to_pdf_bytes(self, path: Path, kind: SourceKind) -> bytes:
        data = _read(path)
        try:
            if kind == SourceKind.TIFF:
                pages = [encode_png(frame) for frame in iter_frames(data)]
            elif self.compressor is not None:
                pages = [self.compressor.compress(data)]
            else:
                pages = [data]
            return images_to_pdf_bytes(pages)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(f"Cannot embed image {path.name}: {e}", path=path) from e


class WordNormalizer(DocumentNormalizer):
    """
    Best-effort DOC/DOCX conversion through LibreOffice.

    Unavailable when no `soffice`/`libreoffice` executable is on PATH.
    """

    kinds = (SourceKind.WORD,)
    EXECUTABLES = ("soffice", "libreoffice")
    TIMEOUT_SECONDS = 120

    def __init__(self, executable: Optional[str] = None):
        super().__init__()
        self.executable = executable or self._find_executable()

    def get_name(self) -> str:
        return "WordNormalizer"

    @classmethod
    def _find_executable(cls) -> Optional[str]:
        for name in cls.EXECUTABLES:
            found = shutil.which(name)
            if found:
                return found
        return None

    @property
    def available(self) -> bool:
        return self.executable is not None

    def to_pdf_bytes(self, path: Path, kind: SourceKind) -> bytes:
        if not self.available:
            raise UnsupportedSourceError(
                f"Word conversion is not available for {path.name}", path=path
            )

        with tempfile.TemporaryDirectory() as out_dir:
            try:
                subprocess.run(
                    [self.executable, '--headless', '--convert-to', 'pdf',
                     '--outdir', out_dir, str(path)],
                    capture_output=True, check=True, timeout=self.TIMEOUT_SECONDS
                )
            except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
                raise ConversionError(f"Word conversion failed for {path.name}: {e}", path=path) from e

            converted = Path(out_dir) / f"{path.stem}.pdf"
            if not converted.exists():
                raise ConversionError(f"Converted PDF does not exist for {path.name}", path=path)
            data = converted.read_bytes()

        read_pdf(data, path.name)
        self.logger.info(f"Converted {path.name} to PDF")
        return data


class NormalizerRegistry:
    """
    Resolves source kinds to normalizers and writes normalized PDFs.
    """

    def __init__(self, normalizers: Optional[List[DocumentNormalizer]] = None):
        self.logger = logging.getLogger(__name__)
        self.normalizers = normalizers if normalizers is not None else [
            PdfPassthroughNormalizer(),
            ImageNormalizer(),
            WordNormalizer(),
        ]

    @classmethod
    def with_compressor(cls, compressor: Optional[RasterCompressor]) -> "NormalizerRegistry":
        return cls([
            PdfPassthroughNormalizer(),
            ImageNormalizer(compressor),
            WordNormalizer(),
        ])

    def supported_kinds(self) -> List[SourceKind]:
        return [kind for kind in SourceKind if self.find(kind) is not None]

    def find(self, kind: SourceKind) -> Optional[DocumentNormalizer]:
        for normalizer in self.normalizers:
            if normalizer.supports(kind):
                return normalizer
        return None

    def kind_of(self, path: Path) -> SourceKind:
        """
        Detect a file's kind and check that it can be normalized.

        Raises:
            UnsupportedSourceError: unknown kind or no available normalizer
        """
        kind = detect_source_kind(path, _header(path))
        if kind is None:
            raise UnsupportedSourceError(f"Unsupported file '{path.name}'", path=path)
        if self.find(kind) is None:
            raise UnsupportedSourceError(
                f"No converter available for {kind.value} file '{path.name}'", path=path
            )
        return kind

    def to_pdf_bytes(self, path: Path) -> bytes:
        kind = self.kind_of(path)
        return self.find(kind).to_pdf_bytes(path, kind)

    def normalize_file(self, path: Path, output: Path) -> Path:
        """
        Convert a single non-PDF file and write it to output.

        PDFs need no conversion and are returned unchanged.
        """
        if self.kind_of(path) == SourceKind.PDF:
            return path
        return self.merge_to_pdf([path], output)

    def merge_to_pdf(self, paths: Sequence[Path], output: Path) -> Path:
        """
        Merge several sources, in the given order, into one marked PDF.

        Raises:
            ConversionError: any member fails to convert
        """
        writer = pypdf.PdfWriter()
        for path in paths:
            reader = read_pdf(self.to_pdf_bytes(path), path.name)
            for page in reader.pages:
                writer.add_page(page)

        if len(writer.pages) == 0:
            raise ConversionError(f"No pages produced for {output.name}", path=output)

        writer.add_metadata({"/Creator": GENERATED_PDF_CREATOR})
        buffer = BytesIO()
        writer.write(buffer)
        _write(output, buffer.getvalue())
        self.logger.info(f"Normalized {len(paths)} file(s) -> {output.name} ({len(writer.pages)} pages)")
        return output


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise ConversionError(f"Cannot read {path}: {e}", path=path) from e


def _header(path: Path) -> bytes:
    try:
        with open(path, 'rb') as f:
            return f.read(8)
    except OSError as e:
        raise ConversionError(f"Cannot read {path}: {e}", path=path) from e


def _write(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise ConversionError(f"Cannot write {path}: {e}", path=path) from e
