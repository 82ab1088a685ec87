"""Pydantic models for the supply-chain compromise scanner."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScanStatus(str, Enum):
    """Overall outcome of a scan."""

    clean = "clean"
    vulnerabilities_found = "vulnerabilities_found"
    compromised_packages_found = "compromised_packages_found"
    tool_error = "tool_error"

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self]


EXIT_CODES = {
    ScanStatus.clean: 0,
    ScanStatus.vulnerabilities_found: 1,
    ScanStatus.tool_error: 2,
    ScanStatus.compromised_packages_found: 3,
}


class FileCategory(str, Enum):
    """Walk categories, in reporting order."""

    manifest = "manifest"
    lockfile = "lockfile"
    other = "other"


CATEGORY_ORDER = [FileCategory.manifest, FileCategory.lockfile, FileCategory.other]


class Signature(BaseModel):
    """A known-compromised package and the exact versions that were compromised."""

    model_config = ConfigDict(frozen=True)

    package: str = Field(min_length=1, description="Package name, matched literally")
    versions: tuple[str, ...] = Field(min_length=1, description="Exact compromised versions")
    advisory: Optional[str] = Field(default=None, description="Advisory identifier, e.g. CVE-2025-54313")
    safe_versions: Optional[str] = Field(default=None, description="Versions to upgrade to")

    @field_validator("versions")
    @classmethod
    def _no_blank_versions(cls, versions: tuple[str, ...]) -> tuple[str, ...]:
        if any(not v.strip() for v in versions):
            raise ValueError("versions must not contain blank entries")
        return versions


class ScanTarget(BaseModel):
    """Root directory plus the exclusion rules for one scan."""

    model_config = ConfigDict(frozen=True)

    root_path: Path
    excluded_dirs: frozenset[str]
    excluded_file_patterns: tuple[str, ...]
    other_extensions: frozenset[str]


class Finding(BaseModel):
    """One line of one file that matched a signature."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(description="Path relative to the scan root")
    line: int = Field(description="1-based line number")
    matched_text: str = Field(description="The matching line, stripped")
    category: FileCategory
    package: str = Field(description="Package of the signature that matched")
    version: str = Field(description="Compromised version that matched")


class ScanWarning(BaseModel):
    """A non-fatal problem encountered while scanning."""

    file: Optional[str] = Field(default=None, description="Affected path, if any")
    message: str


class CollaboratorStatus(str, Enum):
    passed = "passed"
    failed = "failed"
    error = "error"
    unavailable = "unavailable"
    skipped = "skipped"


class CollaboratorResult(BaseModel):
    """Outcome of one downstream security tool."""

    name: str
    ecosystem: str
    command: list[str]
    status: CollaboratorStatus
    exit_code: Optional[int] = None
    detail: str = ""


class ScanResult(BaseModel):
    """Complete result of a scan run."""

    scan_id: str
    root: str
    status: ScanStatus
    findings: list[Finding] = Field(default_factory=list)
    warnings: list[ScanWarning] = Field(default_factory=list)
    files_seen: int = Field(default=0, description="Files found under the root after directory exclusions")
    files_scanned: int = Field(default=0, description="Candidate files whose contents were matched")
    signature_count: int = 0
    collaborators: list[CollaboratorResult] = Field(default_factory=list)
    summary: str = ""

    @property
    def exit_code(self) -> int:
        return self.status.exit_code


class ScanRequest(BaseModel):
    """Request body for scanning a local path or a git repository."""

    path: Optional[str] = Field(default=None, description="Local directory to scan")
    repo_url: Optional[str] = Field(default=None, description="URL of a git repository to clone and scan")
    with_collaborators: bool = Field(
        default=False,
        description="Run downstream security tools when no compromised packages are found",
    )
    workers: int = Field(default=1, ge=1, le=64, description="Parallel file workers")
