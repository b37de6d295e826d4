# ============================================================================
# src/claim_packager/core/pipeline.py
# ============================================================================
"""
Claim Pipeline

Runs intake, composition and upload for every patient folder:

    Scan root → per case: Compose → Write <visit>.pdf → Size check → Submit

Cases are independent. A failure in one case is recorded in its outcome
and never reaches another case. Only an unreadable root aborts the run.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional
import logging

from ..compositor.compositor import DocumentCompositor
from ..compositor.compression import RasterCompressor
from ..config import base_settings, compression_settings
from ..intake.normalizers import NormalizerRegistry
from ..intake.scanner import IntakeReport, PatientIntakeScanner
from ..utils.exceptions import ClaimPackagerError, ConfigurationError
from ..utils.logging import CaseLogAdapter
from .models import CaseRejected, CompositionManifestEntry, CompressionPolicy, PatientCase
from .upload import DryRunUploadSink, UploadPackage, UploadSink


class CaseStatus(str, Enum):
    UPLOADED = "uploaded"
    UPLOAD_FAILED = "upload_failed"
    FAILED = "failed"


@dataclass
class CaseOutcome:
    """What happened to one accepted case."""
    visit_number: str
    display_name: str
    status: CaseStatus
    message: Optional[str] = None
    total_pages: int = 0
    size_bytes: int = 0
    output_path: Optional[Path] = None
    manifest: List[CompositionManifestEntry] = field(default_factory=list)
    oversized: bool = False


@dataclass
class RunReport:
    root: Path
    outcomes: List[CaseOutcome] = field(default_factory=list)
    rejections: List[CaseRejected] = field(default_factory=list)

    def count(self, status: CaseStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def uploaded(self) -> int:
        return self.count(CaseStatus.UPLOADED)

    @property
    def failed(self) -> int:
        return self.count(CaseStatus.FAILED) + self.count(CaseStatus.UPLOAD_FAILED)

    def summary_lines(self) -> List[str]:
        lines = [
            f"{len(self.outcomes) + len(self.rejections)} folder(s) in {self.root}: "
            f"{self.uploaded} uploaded, {self.failed} failed, {len(self.rejections)} rejected"
        ]
        for rejection in self.rejections:
            lines.append(f"  rejected {rejection.folder.name}: {rejection.reason}")
        for outcome in self.outcomes:
            if outcome.status != CaseStatus.UPLOADED:
                lines.append(f"  {outcome.status.value} {outcome.display_name}: {outcome.message}")
        return lines


class ClaimPipeline:
    """
    Wires scanner, compositor and upload sink together.

    Components default to the global settings; pass them explicitly to
    override (tests, alternate portals).
    """

    def __init__(
        self,
        sink: Optional[UploadSink] = None,
        scanner: Optional[PatientIntakeScanner] = None,
        compositor: Optional[DocumentCompositor] = None,
        policy: Optional[CompressionPolicy] = None,
        convert_to_pdf: Optional[bool] = None,
        strict: Optional[bool] = None,
        max_workers: Optional[int] = None,
        size_limit_mb: Optional[float] = None,
    ):
        self.logger = logging.getLogger(__name__)

        compressor = RasterCompressor(policy or compression_settings.policy())
        if convert_to_pdf is None:
            convert_to_pdf = base_settings.CONVERT_TO_PDF
        if strict is None:
            strict = base_settings.STRICT_COMPOSITION

        self.scanner = scanner or PatientIntakeScanner(
            NormalizerRegistry.with_compressor(compressor),
            convert_to_pdf=convert_to_pdf,
        )
        self.compositor = compositor or DocumentCompositor(compressor, strict=strict)
        self.sink = sink or DryRunUploadSink()
        self.max_workers = base_settings.MAX_WORKERS if max_workers is None else max_workers
        self.size_limit_mb = base_settings.SIZE_LIMIT_MB if size_limit_mb is None else size_limit_mb

        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.size_limit_mb <= 0:
            raise ConfigurationError(f"size_limit_mb must be positive, got {self.size_limit_mb}")

    def run(self, root: Path) -> RunReport:
        """
        Process every patient folder under root.

        Raises:
            IntakeError: root is missing or unreadable
        """
        intake: IntakeReport = self.scanner.scan(Path(root))
        report = RunReport(root=intake.root, rejections=list(intake.rejections))

        if not intake.cases:
            self.logger.info("No valid patient folders to process")
            return report

        if self.max_workers == 1:
            report.outcomes = [self.process_case(case) for case in intake.cases]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                report.outcomes = list(executor.map(self.process_case, intake.cases))

        for line in report.summary_lines():
            self.logger.info(line)
        return report

    def process_case(self, case: PatientCase) -> CaseOutcome:
        """Compose, save and submit one case. Never raises."""
        log = CaseLogAdapter(self.logger, case.display_name, case.visit_number)
        outcome = CaseOutcome(
            visit_number=case.visit_number,
            display_name=case.display_name,
            status=CaseStatus.FAILED,
        )

        try:
            result = self.compositor.compose_case(case)
            outcome.total_pages = result.total_page_count
            outcome.size_bytes = result.size_bytes
            outcome.manifest = result.manifest

            if result.skipped:
                log.warning(f"Skipped unreadable source(s): {', '.join(result.skipped)}")

            if result.size_bytes > self.size_limit_mb * 1024 * 1024:
                outcome.oversized = True
                log.warning(f"Warning! file size {result.size_mb} MB > {self.size_limit_mb} MB")

            output_path = case.folder / f"{case.visit_number}.pdf"
            try:
                output_path.write_bytes(result.merged_bytes)
            except OSError as e:
                raise ClaimPackagerError(f"Saving pdf failed: {e}") from e
            outcome.output_path = output_path
            log.info(f"Saved {output_path.name} ({result.total_page_count} pages, {result.size_mb} MB)")

            upload = self.sink.submit(UploadPackage(
                visit_number=case.visit_number,
                display_name=case.display_name,
                pdf_path=output_path,
                merged_bytes=result.merged_bytes,
                manifest=result.manifest,
            ))
        except ClaimPackagerError as e:
            log.error(f"Error generating documents: {e}")
            outcome.message = str(e)
            return outcome
        except Exception as e:
            log.exception(f"Unexpected error: {e}")
            outcome.message = f"unexpected error: {e}"
            return outcome

        outcome.message = upload.message
        if upload.success:
            outcome.status = CaseStatus.UPLOADED
            log.info(f"Uploaded{': ' + upload.message if upload.message else ''}")
        else:
            outcome.status = CaseStatus.UPLOAD_FAILED
            log.error(f"Upload failed: {upload.message}")
        return outcome
