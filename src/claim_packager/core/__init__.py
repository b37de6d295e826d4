"""
Core data model and pipeline.
"""

from .models import (
    SourceKind,
    SourceFile,
    PatientCase,
    CaseAccepted,
    CaseRejected,
    FolderVerdict,
    CompressionPolicy,
    CompositionManifestEntry,
    CompositionResult,
)
from .upload import DryRunUploadSink, UploadOutcome, UploadPackage, UploadSink
