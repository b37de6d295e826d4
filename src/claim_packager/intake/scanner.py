# ============================================================================
# src/claim_packager/intake/scanner.py
# ============================================================================
"""
Patient Intake Scanner

Walks a patients root folder and turns every patient subfolder into a
PatientCase, or a rejection with a reason.

Folder layout:
    patients/
        JohnDoe-00123/          <- visit number = trailing digits
            1.pdf               <- leading digits = document type code
            2-claim-form.jpg    <- wrapped into 2-claim-form.pdf
            6/                  <- group: merged into 6.pdf
                page1.jpg
                page2.pdf
            00123.pdf           <- merged output of a previous run, ignored

Any bad entry rejects the whole patient folder; other folders are not
affected. Only an unreadable root aborts the scan.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple
import logging
import re

from ..compositor.compositor import is_merged_pdf
from ..constants.document_types import DocumentType, REQUIRED_DOCUMENT_TYPES
from ..core.models import CaseAccepted, CaseRejected, FolderVerdict, PatientCase, SourceKind
from ..utils.exceptions import ClassificationError, ConversionError, IntakeError
from ..utils.file_utils import natural_sort_key
from .normalizers import NormalizerRegistry, is_generated_pdf, is_stale


VISIT_NUMBER_PATTERN = re.compile(r'(\d+)$')
TYPE_CODE_PATTERN = re.compile(r'^(\d+)')


@dataclass
class IntakeReport:
    """Result of scanning a patients root folder."""
    root: Path
    cases: List[PatientCase] = field(default_factory=list)
    rejections: List[CaseRejected] = field(default_factory=list)

    @property
    def folder_count(self) -> int:
        return len(self.cases) + len(self.rejections)


class PatientIntakeScanner:
    """
    Classifies and normalizes patient folders.

    Steps per folder:
    1. Visit number from the trailing digits of the folder name
    2. Document type from the leading digits of every entry
    3. Groups (subfolders) merged into `<code>.pdf`
    4. Loose images/Word files wrapped into `<stem>.pdf`
    5. Identification and insurance form must both be present
    """

    def __init__(
        self,
        registry: Optional[NormalizerRegistry] = None,
        convert_to_pdf: bool = True
    ):
        """
        Args:
            registry: Normalizers used for conversion and kind checks
            convert_to_pdf: Write converted PDFs back into the folder. When
                False, images are passed to the compositor unconverted.
        """
        self.registry = registry or NormalizerRegistry()
        self.convert_to_pdf = convert_to_pdf
        self.logger = logging.getLogger(__name__)

    def scan(self, root: Path) -> IntakeReport:
        """
        Scan every immediate subentry of root as one patient folder.

        Raises:
            IntakeError: root is missing or unreadable
        """
        root = Path(root)
        try:
            entries = sorted(root.iterdir(), key=natural_sort_key)
        except OSError as e:
            raise IntakeError(f"Cannot read patients folder {root}: {e}") from e

        report = IntakeReport(root=root)
        for entry in entries:
            verdict = self.evaluate_folder(entry)
            if isinstance(verdict, CaseAccepted):
                report.cases.append(verdict.case)
            else:
                self.logger.warning(f"{entry.name}: {verdict.reason}")
                report.rejections.append(verdict)

        self.logger.info(
            f"Scanned {report.folder_count} folder(s) in {root}: "
            f"{len(report.cases)} accepted, {len(report.rejections)} rejected"
        )
        return report

    def evaluate_folder(self, folder: Path) -> FolderVerdict:
        """
        Validate and normalize one patient folder.

        Never raises for problems inside the folder; they come back as
        CaseRejected.
        """
        folder = Path(folder)
        if not folder.is_dir():
            return CaseRejected(folder, "not a folder")

        match = VISIT_NUMBER_PATTERN.search(folder.name)
        if not match:
            return CaseRejected(folder, "visit number not found at end of folder name")
        visit_number = match.group(1)

        try:
            documents = self._classify(folder, visit_number)
        except (ClassificationError, ConversionError) as e:
            return CaseRejected(folder, str(e))
        except OSError as e:
            return CaseRejected(folder, f"cannot read folder: {e}")

        missing = [doc_type for doc_type in REQUIRED_DOCUMENT_TYPES if not documents.get(doc_type)]
        if missing:
            names = " and ".join(doc_type.label for doc_type in missing)
            return CaseRejected(folder, f"missing required {names}")

        return CaseAccepted(PatientCase(
            visit_number=visit_number,
            display_name=folder.name,
            folder=folder,
            documents=documents,
        ))

    def _classify(self, folder: Path, visit_number: str) -> Dict[DocumentType, Tuple[Path, ...]]:
        entries = sorted(folder.iterdir(), key=natural_sort_key)
        output_name = f"{visit_number}.pdf"

        # A visit number such as 5 shares its output name with type code 5
        output_is_type_code = DocumentType.from_code(visit_number) is not None

        typed: List[Tuple[Path, DocumentType]] = []
        for entry in entries:
            if entry.name == output_name:
                if output_is_type_code and not is_merged_pdf(entry):
                    raise ClassificationError(
                        f"'{entry.name}' would be overwritten by the merged claim PDF"
                    )
                continue
            typed.append((entry, self._document_type(entry)))

        artifacts = self._artifact_names(typed)
        if self.convert_to_pdf and output_name in artifacts:
            raise ClassificationError(
                f"conversion output '{output_name}' clashes with the merged claim PDF"
            )

        # Validate every entry before anything is written into the folder
        sources: Dict[DocumentType, Path] = {}
        for entry, doc_type in typed:
            if entry.name in artifacts and entry.is_file() and is_generated_pdf(entry):
                # Owned by the sibling it was generated from
                continue
            if doc_type in sources:
                raise ClassificationError(
                    f"has multiple entries of type {doc_type.label} ('{entry.name}')"
                )
            sources[doc_type] = entry

        groups = {doc_type: self._group_members(entry) for doc_type, entry in sources.items() if entry.is_dir()}
        for doc_type, entry in sources.items():
            if not entry.is_dir():
                self._check_kind(entry)

        documents: Dict[DocumentType, Tuple[Path, ...]] = {}
        for doc_type, entry in sources.items():
            if entry.is_dir():
                if not groups[doc_type]:
                    self.logger.warning(f"{folder.name}: ignoring empty folder '{entry.name}'")
                    continue
                documents[doc_type] = self._collect_group(entry, doc_type, groups[doc_type])
            else:
                documents[doc_type] = self._collect_file(entry)
        return documents

    def _document_type(self, entry: Path) -> DocumentType:
        match = TYPE_CODE_PATTERN.match(entry.name)
        doc_type = DocumentType.from_code(match.group(1)) if match else None
        if doc_type is None:
            raise ClassificationError(f"has bad folder or file name '{entry.name}'")
        return doc_type

    def _artifact_names(self, typed: List[Tuple[Path, DocumentType]]) -> Set[str]:
        """Names of PDFs a converting scan writes for the given entries."""
        names = set()
        for entry, doc_type in typed:
            if entry.is_dir():
                names.add(f"{doc_type.code}.pdf")
            elif entry.suffix.lower() != '.pdf':
                names.add(f"{entry.stem}.pdf")
        return names

    def _group_members(self, group: Path) -> List[Path]:
        """Members of a group folder, checked for nesting and kind."""
        members = sorted(group.iterdir(), key=natural_sort_key)
        for member in members:
            if member.is_dir():
                raise ClassificationError(f"has a folder inside '{group.name}'")
            self._check_kind(member)
        return members

    def _collect_group(self, group: Path, doc_type: DocumentType, members: List[Path]) -> Tuple[Path, ...]:
        if not self.convert_to_pdf:
            return tuple(members)

        output = group.parent / f"{doc_type.code}.pdf"
        if is_stale(output, members + [group]):
            self.registry.merge_to_pdf(members, output)
        else:
            self.logger.debug(f"Reusing {output.name} for '{group.name}'")
        return (output,)

    def _collect_file(self, entry: Path) -> Tuple[Path, ...]:
        kind = self._check_kind(entry)
        if kind == SourceKind.PDF or not self.convert_to_pdf:
            return (entry,)

        output = entry.with_suffix('.pdf')
        if is_stale(output, [entry]):
            self.registry.normalize_file(entry, output)
        else:
            self.logger.debug(f"Reusing {output.name} for '{entry.name}'")
        return (output,)

    def _check_kind(self, path: Path) -> SourceKind:
        kind = self.registry.kind_of(path)
        if not self.convert_to_pdf and kind == SourceKind.WORD:
            raise ConversionError(f"Word file '{path.name}' needs PDF conversion", path=path)
        return kind
