"""Aggregation of findings into a pass/fail scan result."""

import uuid
from typing import Iterable, Optional

from .models import (
    CATEGORY_ORDER,
    CollaboratorResult,
    CollaboratorStatus,
    Finding,
    ScanResult,
    ScanStatus,
    ScanWarning,
)


def order_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Sort by category (manifest, lockfile, other); stable within a category."""
    rank = {category: i for i, category in enumerate(CATEGORY_ORDER)}
    return sorted(findings, key=lambda f: rank[f.category])


def decide_status(findings: list[Finding], files_seen: int, signature_count: int) -> ScanStatus:
    """
    Decide the detector status.

    Any finding means compromised packages. Without findings, a scan that
    inspected nothing or ran with no signatures is a tool error rather than
    a clean pass.
    """
    if findings:
        return ScanStatus.compromised_packages_found
    if signature_count == 0 or files_seen == 0:
        return ScanStatus.tool_error
    return ScanStatus.clean


def build_summary(result: ScanResult) -> str:
    """One-line summary of a result."""
    if result.status == ScanStatus.compromised_packages_found:
        packages = sorted({f"{f.package}@{f.version}" for f in result.findings})
        return (
            f"FAIL: {len(result.findings)} compromised package reference(s) found "
            f"({', '.join(packages)})"
        )
    if result.status == ScanStatus.vulnerabilities_found:
        failed = [c.name for c in result.collaborators if c.status == CollaboratorStatus.failed]
        return f"FAIL: no compromised packages, but vulnerabilities reported by {', '.join(failed)}"
    if result.status == ScanStatus.tool_error:
        if result.signature_count == 0:
            return "ERROR: signature set is empty; nothing could be detected"
        if result.files_seen == 0:
            return "ERROR: 0 files inspected; scan root is empty, missing, or unreadable"
        return "ERROR: scan did not complete"
    return (
        f"PASS: no compromised packages found "
        f"({result.files_scanned} files scanned, {result.signature_count} signatures)"
    )


def aggregate(
    findings: Iterable[Finding],
    root: str,
    warnings: Optional[list[ScanWarning]] = None,
    files_seen: int = 0,
    files_scanned: int = 0,
    signature_count: int = 0,
    scan_id: Optional[str] = None,
) -> ScanResult:
    """Collect findings from all categories into a ScanResult with a status."""
    ordered = order_findings(findings)
    result = ScanResult(
        scan_id=scan_id or str(uuid.uuid4()),
        root=root,
        status=decide_status(ordered, files_seen, signature_count),
        findings=ordered,
        warnings=list(warnings or []),
        files_seen=files_seen,
        files_scanned=files_scanned,
        signature_count=signature_count,
    )
    result.summary = build_summary(result)
    return result


def error_result(root: str, message: str, signature_count: int = 0, scan_id: Optional[str] = None) -> ScanResult:
    """Result for a scan that could not run at all."""
    result = ScanResult(
        scan_id=scan_id or str(uuid.uuid4()),
        root=root,
        status=ScanStatus.tool_error,
        warnings=[ScanWarning(file=None, message=message)],
        signature_count=signature_count,
    )
    result.summary = f"ERROR: {message}"
    return result


def apply_collaborators(result: ScanResult, collaborators: list[CollaboratorResult]) -> ScanResult:
    """
    Fold downstream tool outcomes into a detector result.

    A compromised or errored detector status is never overridden. A clean
    detector result becomes vulnerabilities_found when any tool failed.
    """
    status = result.status
    if status == ScanStatus.clean and any(c.status == CollaboratorStatus.failed for c in collaborators):
        status = ScanStatus.vulnerabilities_found

    updated = result.model_copy(update={"status": status, "collaborators": list(collaborators)})
    if status != result.status:
        updated.summary = build_summary(updated)
    return updated
