"""
Tests for the document compositor.
"""

from io import BytesIO

import pypdf
import pytest

from claim_packager.compositor.compositor import CompositorSource, DocumentCompositor
from claim_packager.constants import DocumentType
from claim_packager.core.models import (
    CompositionManifestEntry,
    PatientCase,
    SourceKind,
    manifest_is_contiguous,
)
from claim_packager.utils.exceptions import CompositionError, ConversionError
from claim_packager.utils.pdf_utils import count_pages

from conftest import jpeg_bytes, pdf_bytes, png_bytes, write_image, write_pdf


def pdf_source(doc_type, pages, label=""):
    return CompositorSource(doc_type, pdf_bytes(pages), SourceKind.PDF, label)


def test_single_source_round_trip():
    """One PDF of n pages yields [(type, 1, n)]"""
    result = DocumentCompositor().compose([pdf_source(DocumentType.LAB_REPORT, 4)])

    assert result.manifest == [CompositionManifestEntry(DocumentType.LAB_REPORT, 1, 4)]
    assert result.total_page_count == 4
    assert count_pages(result.merged_bytes) == 4


def test_priority_order_regardless_of_input_order():
    sources = [
        pdf_source(DocumentType.HOSPITAL_DISCHARGE_SUMMARY, 1),
        pdf_source(DocumentType.INSURANCE_FORM, 2),
        pdf_source(DocumentType.LAB_REPORT, 3),
        pdf_source(DocumentType.IDENTIFICATION, 1),
    ]

    result = DocumentCompositor().compose(sources)

    assert [entry.document_type for entry in result.manifest] == [
        DocumentType.IDENTIFICATION,
        DocumentType.INSURANCE_FORM,
        DocumentType.LAB_REPORT,
        DocumentType.HOSPITAL_DISCHARGE_SUMMARY,
    ]
    assert manifest_is_contiguous(result.manifest, result.total_page_count)
    assert result.total_page_count == 7


def test_same_type_sources_share_one_entry():
    """Files of one type keep their relative order under a single entry"""
    sources = [
        pdf_source(DocumentType.LAB_REPORT, 1, "a"),
        pdf_source(DocumentType.IDENTIFICATION, 1, "id"),
        pdf_source(DocumentType.LAB_REPORT, 2, "b"),
    ]

    result = DocumentCompositor().compose(sources)

    assert result.manifest == [
        CompositionManifestEntry(DocumentType.IDENTIFICATION, 1, 1),
        CompositionManifestEntry(DocumentType.LAB_REPORT, 2, 3),
    ]


def test_rasters_become_one_page_each():
    sources = [
        CompositorSource(DocumentType.IDENTIFICATION, jpeg_bytes(), SourceKind.JPEG, "1.jpg"),
        CompositorSource(DocumentType.INSURANCE_FORM, png_bytes(), SourceKind.PNG, "2.png"),
    ]

    result = DocumentCompositor().compose(sources)

    assert result.total_page_count == 2
    assert [entry.page_count for entry in result.manifest] == [1, 1]


def test_empty_input_raises():
    with pytest.raises(CompositionError):
        DocumentCompositor().compose([])


def test_strict_mode_raises_on_corrupt_source():
    sources = [
        pdf_source(DocumentType.IDENTIFICATION, 1),
        CompositorSource(DocumentType.INSURANCE_FORM, b"%PDF-1.4 broken", SourceKind.PDF, "2.pdf"),
    ]
    with pytest.raises(ConversionError):
        DocumentCompositor(strict=True).compose(sources)


def test_lenient_mode_skips_corrupt_source():
    """Skipped sources leave no manifest entry and no page gap"""
    sources = [
        pdf_source(DocumentType.IDENTIFICATION, 2),
        CompositorSource(DocumentType.INSURANCE_FORM, b"%PDF-1.4 broken", SourceKind.PDF, "2.pdf"),
        pdf_source(DocumentType.LAB_REPORT, 1),
    ]

    result = DocumentCompositor(strict=False).compose(sources)

    assert result.skipped == ["2.pdf"]
    assert result.manifest == [
        CompositionManifestEntry(DocumentType.IDENTIFICATION, 1, 2),
        CompositionManifestEntry(DocumentType.LAB_REPORT, 3, 1),
    ]


def test_lenient_mode_all_sources_fail():
    sources = [CompositorSource(DocumentType.IDENTIFICATION, b"garbage", SourceKind.PDF, "1.pdf")]
    with pytest.raises(CompositionError):
        DocumentCompositor(strict=False).compose(sources)


def test_word_source_must_be_converted_first():
    sources = [CompositorSource(DocumentType.OTHER_SUPPORTING, b"PK", SourceKind.WORD, "8.docx")]
    with pytest.raises(ConversionError):
        DocumentCompositor().compose(sources)


def test_compose_case_john_doe(tmp_path):
    """1.pdf (2 pages) + 2.jpg gives [(ID,1,2),(Insurance,3,1)]"""
    case = PatientCase("00123", "JohnDoe-00123", tmp_path, {
        DocumentType.INSURANCE_FORM: (write_image(tmp_path / "2.jpg"),),
        DocumentType.IDENTIFICATION: (write_pdf(tmp_path / "1.pdf", pages=2),),
    })

    result = DocumentCompositor().compose_case(case)

    assert result.manifest == [
        CompositionManifestEntry(DocumentType.IDENTIFICATION, 1, 2),
        CompositionManifestEntry(DocumentType.INSURANCE_FORM, 3, 1),
    ]
    assert result.total_page_count == 3
    assert len(pypdf.PdfReader(BytesIO(result.merged_bytes)).pages) == 3


def test_compose_case_missing_file(tmp_path):
    case = PatientCase("1", "A-1", tmp_path, {
        DocumentType.IDENTIFICATION: (write_pdf(tmp_path / "1.pdf"),),
        DocumentType.INSURANCE_FORM: (tmp_path / "2.pdf",),
    })

    with pytest.raises(ConversionError):
        DocumentCompositor().compose_case(case)

    result = DocumentCompositor(strict=False).compose_case(case)
    assert result.skipped == ["2.pdf"]
    assert result.total_page_count == 1
