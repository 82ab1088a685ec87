"""Scan orchestration: walk, match, aggregate, then gate downstream tools."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from .aggregator import aggregate, apply_collaborators, error_result
from .collaborators import plan_collaborators, run_collaborators, skipped_results
from .config import ScannerConfig
from .errors import ScanRootError
from .file_walker import group_by_category, iter_files
from .git_utils import cloned_repo
from .matcher import display_path, scan_file
from .models import FileCategory, Finding, ScanResult, ScanStatus, ScanWarning
from .signatures import SignatureSet

logger = logging.getLogger(__name__)


def check_root(root: Path) -> None:
    """Raise ScanRootError unless root is an existing, listable directory."""
    if not root.exists():
        raise ScanRootError(f"Path does not exist: {root}")
    if not root.is_dir():
        raise ScanRootError(f"Path is not a directory: {root}")
    try:
        with os.scandir(root):
            pass
    except OSError as e:
        raise ScanRootError(f"Cannot read directory {root}: {e.strerror or e}") from e


def _match_candidates(
    candidates: list[tuple[FileCategory, Path]],
    signature_set: SignatureSet,
    root: Path,
    workers: int,
) -> tuple[list[Finding], list[ScanWarning]]:
    """Match every candidate, optionally on a thread pool, keeping candidate order."""

    def _scan_one(item: tuple[FileCategory, Path]):
        category, path = item
        return scan_file(path, category, signature_set, root)

    if workers > 1 and len(candidates) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(_scan_one, candidates))
    else:
        outcomes = [_scan_one(item) for item in candidates]

    findings: list[Finding] = []
    warnings: list[ScanWarning] = []
    for file_findings, warning in outcomes:
        findings.extend(file_findings)
        if warning:
            warnings.append(warning)
    return findings, warnings


def scan_path(
    root: str | Path,
    config: Optional[ScannerConfig] = None,
    display_root: Optional[str] = None,
) -> ScanResult:
    """
    Scan a directory tree for compromised package signatures.

    Args:
        root: Directory to scan
        config: Scanner configuration (defaults when omitted)
        display_root: Root shown in the result instead of the local path

    Returns:
        ScanResult; root problems yield status tool_error rather than raising
    """
    config = config or ScannerConfig()
    signature_set = SignatureSet(config.signatures)
    root_path = Path(root)
    shown_root = display_root or str(root)

    try:
        check_root(root_path)
    except ScanRootError as e:
        logger.error(str(e))
        return error_result(shown_root, str(e), signature_count=len(signature_set))

    warnings: list[ScanWarning] = []
    if not signature_set:
        logger.warning("Signature set is empty; no compromised package can be detected")
        warnings.append(ScanWarning(message="signature set is empty (0 signatures loaded)"))

    def _on_walk_error(err: OSError) -> None:
        where = display_path(Path(err.filename), root_path) if err.filename else None
        warnings.append(ScanWarning(file=where, message=f"cannot list directory: {err.strerror or err}"))

    target = config.target(root_path)
    files = list(iter_files(target, _on_walk_error))
    candidates = group_by_category(files, target)
    logger.info(
        f"Scanning {len(candidates)} candidate files of {len(files)} under {shown_root} "
        f"with {len(signature_set)} signatures"
    )

    findings, file_warnings = _match_candidates(candidates, signature_set, root_path, config.workers)
    warnings.extend(file_warnings)

    result = aggregate(
        findings,
        root=shown_root,
        warnings=warnings,
        files_seen=len(files),
        files_scanned=len(candidates),
        signature_count=len(signature_set),
    )
    logger.info(f"Scan of {shown_root} finished: {result.status.value}")
    return result


def run_gate(
    root: str | Path,
    config: Optional[ScannerConfig] = None,
    with_collaborators: bool = True,
    display_root: Optional[str] = None,
) -> ScanResult:
    """
    Run the compromise scan first, then downstream tools only if it is clean.

    A compromised or errored scan marks every planned tool as skipped and its
    status stands regardless of what those tools would have reported.
    """
    config = config or ScannerConfig()
    root_path = Path(root)
    plan = plan_collaborators(root_path) if with_collaborators else []

    result = scan_path(root_path, config, display_root=display_root)
    if not plan:
        return result

    if result.status != ScanStatus.clean:
        reason = f"blocked by compromise scan ({result.status.value})"
        logger.error(f"Downstream security tools not run: {reason}")
        return apply_collaborators(result, skipped_results(plan, reason))

    return apply_collaborators(result, run_collaborators(root_path, plan, config.tool_timeout))


def scan_repository(
    repo_url: str,
    config: Optional[ScannerConfig] = None,
    with_collaborators: bool = False,
    ref: Optional[str] = None,
) -> ScanResult:
    """
    Clone a repository and run the gate on its working tree.

    Raises:
        git.exc.GitCommandError: If the clone fails
    """
    with cloned_repo(repo_url, ref) as repo_path:
        return run_gate(
            repo_path,
            config,
            with_collaborators=with_collaborators,
            display_root=repo_url,
        )
