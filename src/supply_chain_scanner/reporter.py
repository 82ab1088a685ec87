"""Human-readable and JSON rendering of scan results."""

import json
from typing import Iterable, Optional

from .models import FileCategory, ScanResult, ScanStatus, Signature

RULE = "=" * 60

CATEGORY_HEADINGS = {
    FileCategory.manifest: "Compromised packages found in package.json files:",
    FileCategory.lockfile: "Compromised packages found in lockfiles:",
    FileCategory.other: "Compromised packages referenced in other files:",
}

ADVISORY_URLS = {
    "CVE-2025-54313": [
        "https://nvd.nist.gov/vuln/detail/CVE-2025-54313",
        "https://github.com/prettier/eslint-config-prettier/issues/339",
    ],
}


def _required_actions(result: ScanResult, signatures: Iterable[Signature]) -> list[str]:
    by_package = {s.package: s for s in signatures}
    hit_packages = sorted({f.package for f in result.findings})

    lines = ["REQUIRED ACTIONS:", "  1. Remove or update the compromised packages:"]
    for package in hit_packages:
        signature = by_package.get(package)
        if signature and signature.safe_versions:
            advice = f"use {signature.safe_versions}"
        elif signature:
            advice = f"move off {', '.join(signature.versions)}"
        else:
            advice = "move off the flagged version"
        lines.append(f"     - {package}: {advice}")
    lines.append("  2. Rotate any credentials that may have been exposed")
    lines.append("  3. Scan affected systems for malware")
    lines.append("  4. Review npm audit logs for suspicious activity")

    advisories = sorted({
        by_package[p].advisory for p in hit_packages if p in by_package and by_package[p].advisory
    })
    if advisories:
        lines.append("References:")
        for advisory in advisories:
            urls = ADVISORY_URLS.get(advisory)
            if urls:
                lines.extend(f"  - {advisory}: {url}" for url in urls)
            else:
                lines.append(f"  - {advisory}")
    return lines


def render_report(result: ScanResult, signatures: Optional[Iterable[Signature]] = None) -> str:
    """
    Render a result as plain text.

    Findings are printed as ``<file>:<line>:<matched_text>`` grouped by walk
    category. The report contains nothing run-specific, so rescanning an
    unchanged tree reproduces it exactly.
    """
    lines = [
        "Supply-chain compromise scan",
        RULE,
        f"Root: {result.root}",
        f"Signatures: {result.signature_count}",
        f"Files inspected: {result.files_scanned} of {result.files_seen}",
    ]

    for category, heading in CATEGORY_HEADINGS.items():
        in_category = [f for f in result.findings if f.category == category]
        if not in_category:
            continue
        lines.append("")
        lines.append(heading)
        lines.extend(f"{f.file}:{f.line}:{f.matched_text}" for f in in_category)

    if result.warnings:
        lines.append("")
        lines.append(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            where = f"{warning.file}: " if warning.file else ""
            lines.append(f"  - {where}{warning.message}")

    if result.status == ScanStatus.compromised_packages_found:
        lines.append("")
        lines.extend(_required_actions(result, signatures or []))

    if result.collaborators:
        lines.append("")
        lines.append("Downstream security tools:")
        for collaborator in result.collaborators:
            detail = f" ({collaborator.detail})" if collaborator.detail else ""
            lines.append(f"  - {collaborator.name}: {collaborator.status.value}{detail}")

    lines.append(RULE)
    lines.append(result.summary)
    return "\n".join(lines) + "\n"


def render_json(results: list[ScanResult]) -> str:
    """
    JSON for one result (an object) or several (a list).

    The per-run ``scan_id`` is left out so an unchanged tree reproduces the
    report byte for byte.
    """
    payload = [r.model_dump(mode="json", exclude={"scan_id"}) for r in results]
    return json.dumps(payload[0] if len(payload) == 1 else payload, indent=2)
