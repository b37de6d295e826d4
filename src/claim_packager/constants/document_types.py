# ============================================================================
# src/claim_packager/constants/document_types.py
# ============================================================================
"""
Document Types and Portal Mappings
- Fixed taxonomy of claim documents
- File/folder name prefix code for each type
- Portal document type id (also the ordering rank in the merged PDF)
"""

from enum import Enum
from typing import List, Optional


class DocumentType(str, Enum):
    """
    Categories a patient folder entry can be classified into.

    The value is the name prefix code used on disk. A folder entry named
    `4-discharge.pdf` or a subfolder named `4` belongs to
    HOSPITAL_DISCHARGE_SUMMARY.
    """
    IDENTIFICATION = "1"
    INSURANCE_FORM = "2"
    RADIOLOGY_REPORT = "3"
    HOSPITAL_DISCHARGE_SUMMARY = "4"
    RESERVE_FUND = "5"
    LAB_REPORT = "6"
    TREATMENT_SHEET = "7"
    OTHER_SUPPORTING = "8"
    STICKER = "9"
    DEATH_REPORT = "10"
    BIRTH_CERTIFICATE = "11"

    @property
    def code(self) -> str:
        return self.value

    @property
    def portal_id(self) -> int:
        """Identifier the claim portal expects as document_type_id."""
        return PORTAL_IDS[self]

    @property
    def priority(self) -> int:
        """Lower ranks come first in the merged document."""
        return PORTAL_IDS[self]

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def from_code(cls, code: str) -> Optional["DocumentType"]:
        """Exact lookup of a name prefix ('01' is not '1')."""
        try:
            return cls(code)
        except ValueError:
            return None

    @classmethod
    def in_priority_order(cls) -> List["DocumentType"]:
        return sorted(cls, key=lambda doc_type: doc_type.priority)


# Portal ids must match the portal's document type table
PORTAL_IDS = {
    DocumentType.IDENTIFICATION: 1,
    DocumentType.INSURANCE_FORM: 2,
    DocumentType.RADIOLOGY_REPORT: 7,
    DocumentType.HOSPITAL_DISCHARGE_SUMMARY: 11,
    DocumentType.RESERVE_FUND: 9,
    DocumentType.LAB_REPORT: 6,
    DocumentType.TREATMENT_SHEET: 13,
    DocumentType.OTHER_SUPPORTING: 14,
    DocumentType.STICKER: 15,
    DocumentType.DEATH_REPORT: 12,
    DocumentType.BIRTH_CERTIFICATE: 16,
}

# A case cannot be submitted without these
REQUIRED_DOCUMENT_TYPES = (
    DocumentType.IDENTIFICATION,
    DocumentType.INSURANCE_FORM,
)
