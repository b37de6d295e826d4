"""
Tests for the document type taxonomy.
"""

import pytest

from claim_packager.constants import DocumentType, PORTAL_IDS, REQUIRED_DOCUMENT_TYPES


def test_every_type_has_a_portal_id():
    """Each type maps to a distinct portal id"""
    assert set(PORTAL_IDS) == set(DocumentType)
    assert len(set(PORTAL_IDS.values())) == len(DocumentType)


@pytest.mark.parametrize("code,expected", [
    ("1", DocumentType.IDENTIFICATION),
    ("2", DocumentType.INSURANCE_FORM),
    ("4", DocumentType.HOSPITAL_DISCHARGE_SUMMARY),
    ("11", DocumentType.BIRTH_CERTIFICATE),
])
def test_from_code(code, expected):
    assert DocumentType.from_code(code) is expected


@pytest.mark.parametrize("code", ["0", "12", "99", "01", "", "abc"])
def test_from_code_unknown(code):
    """Unknown or zero-padded codes do not resolve"""
    assert DocumentType.from_code(code) is None


def test_priority_order_follows_portal_ids():
    ordered = DocumentType.in_priority_order()
    assert ordered[0] is DocumentType.IDENTIFICATION
    assert ordered[1] is DocumentType.INSURANCE_FORM
    assert [doc_type.priority for doc_type in ordered] == sorted(PORTAL_IDS.values())
    # Lab reports (6) come before radiology (7) and discharge summaries (11)
    assert ordered.index(DocumentType.LAB_REPORT) < ordered.index(DocumentType.RADIOLOGY_REPORT)
    assert ordered.index(DocumentType.RADIOLOGY_REPORT) < ordered.index(DocumentType.HOSPITAL_DISCHARGE_SUMMARY)


def test_required_types():
    assert REQUIRED_DOCUMENT_TYPES == (DocumentType.IDENTIFICATION, DocumentType.INSURANCE_FORM)


def test_label():
    assert DocumentType.INSURANCE_FORM.label == "Insurance Form"
    assert DocumentType.LAB_REPORT.code == "6"
