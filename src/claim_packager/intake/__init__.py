"""
Patient folder intake: classification and normalization.
"""

from .normalizers import (
    DocumentNormalizer,
    ImageNormalizer,
    NormalizerRegistry,
    PdfPassthroughNormalizer,
    WordNormalizer,
    is_generated_pdf,
)
from .scanner import IntakeReport, PatientIntakeScanner
