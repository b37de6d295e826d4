"""
Tests for document normalizers and the normalizer registry.
"""

from io import BytesIO

import pypdf
import pytest

from claim_packager.compositor.compression import RasterCompressor
from claim_packager.core.models import SourceKind
from claim_packager.intake.normalizers import (
    GENERATED_PDF_CREATOR,
    ImageNormalizer,
    NormalizerRegistry,
    PdfPassthroughNormalizer,
    WordNormalizer,
    is_generated_pdf,
    is_stale,
)
from claim_packager.utils.exceptions import ConversionError, UnsupportedSourceError

from conftest import write_image, write_pdf, write_tiff


def test_image_normalizer_page_matches_image_size(tmp_path):
    """A raster becomes one page sized to its pixel dimensions"""
    path = write_image(tmp_path / "2.png", size=(300, 150))
    data = ImageNormalizer().to_pdf_bytes(path, SourceKind.PNG)

    reader = pypdf.PdfReader(BytesIO(data))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert (float(box.width), float(box.height)) == (300.0, 150.0)


def test_image_normalizer_tiff_frames(tmp_path):
    path = write_tiff(tmp_path / "6.tif", frames=3)
    registry = NormalizerRegistry()
    output = registry.merge_to_pdf([path], tmp_path / "6.pdf")
    assert len(pypdf.PdfReader(output).pages) == 3


def test_image_normalizer_with_compressor(tmp_path):
    path = write_image(tmp_path / "2.jpg", size=(400, 400))
    data = ImageNormalizer(RasterCompressor()).to_pdf_bytes(path, SourceKind.JPEG)
    assert data.startswith(b"%PDF")


def test_image_normalizer_corrupt_image(tmp_path):
    path = tmp_path / "2.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0 not really a jpeg")
    with pytest.raises(ConversionError):
        ImageNormalizer().to_pdf_bytes(path, SourceKind.JPEG)


def test_pdf_passthrough_rejects_corrupt(tmp_path):
    path = tmp_path / "1.pdf"
    path.write_bytes(b"%PDF-1.4 garbage")
    with pytest.raises(ConversionError):
        PdfPassthroughNormalizer().to_pdf_bytes(path, SourceKind.PDF)


def test_kind_of_prefers_magic_bytes(tmp_path):
    """A JPEG saved with a .png extension is still a JPEG"""
    path = write_image(tmp_path / "2.png", fmt="JPEG")
    assert NormalizerRegistry().kind_of(path) == SourceKind.JPEG


def test_kind_of_unsupported(tmp_path):
    path = tmp_path / "2.txt"
    path.write_text("notes")
    with pytest.raises(UnsupportedSourceError):
        NormalizerRegistry().kind_of(path)


def test_word_without_converter(tmp_path):
    """Word files are unsupported when no converter is installed"""
    path = tmp_path / "4-summary.docx"
    path.write_bytes(b"PK\x03\x04 fake docx")
    registry = NormalizerRegistry([PdfPassthroughNormalizer(), ImageNormalizer()])

    assert SourceKind.WORD not in registry.supported_kinds()
    with pytest.raises(UnsupportedSourceError):
        registry.kind_of(path)


def test_word_normalizer_unavailable(tmp_path, monkeypatch):
    monkeypatch.setattr("shutil.which", lambda name: None)
    normalizer = WordNormalizer()
    assert not normalizer.available
    assert not normalizer.supports(SourceKind.WORD)


def test_normalize_file_writes_marked_pdf(tmp_path):
    source = write_image(tmp_path / "2-claim.jpg")
    output = NormalizerRegistry().normalize_file(source, tmp_path / "2-claim.pdf")

    assert output.exists()
    assert is_generated_pdf(output)
    assert pypdf.PdfReader(output).metadata["/Creator"] == GENERATED_PDF_CREATOR


def test_normalize_file_leaves_pdfs_alone(tmp_path):
    source = write_pdf(tmp_path / "1.pdf")
    assert NormalizerRegistry().normalize_file(source, tmp_path / "other.pdf") == source
    assert not (tmp_path / "other.pdf").exists()
    assert not is_generated_pdf(source)


def test_merge_to_pdf_keeps_member_order(tmp_path):
    members = [
        write_pdf(tmp_path / "6" / "a.pdf", pages=2),
        write_image(tmp_path / "6" / "b.png"),
        write_pdf(tmp_path / "6" / "c.pdf", pages=1),
    ]
    output = NormalizerRegistry().merge_to_pdf(members, tmp_path / "6.pdf")

    reader = pypdf.PdfReader(output)
    assert len(reader.pages) == 4
    assert "page 1" in reader.pages[0].extract_text()
    assert "page 1" in reader.pages[3].extract_text()


def test_is_stale(tmp_path):
    import os

    source = write_image(tmp_path / "2.jpg")
    output = tmp_path / "2.pdf"
    assert is_stale(output, [source])

    write_pdf(output)
    stat = source.stat()
    os.utime(output, (stat.st_atime, stat.st_mtime + 10))
    assert not is_stale(output, [source])

    os.utime(source, (stat.st_atime, stat.st_mtime + 20))
    assert is_stale(output, [source])
