"""Downstream security tools that run after the compromise scan passes.

Which tools apply is decided once, from marker files at the scan root, using
the declarative COLLABORATORS table. The tools themselves are external
binaries; this module only invokes them and classifies their exit status.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .models import CollaboratorResult, CollaboratorStatus

logger = logging.getLogger(__name__)

DETAIL_MAX_CHARS = 200


@dataclass(frozen=True)
class Collaborator:
    name: str
    ecosystem: str
    command: tuple[str, ...]
    # Files at the root that make this tool applicable; empty means always.
    markers: tuple[str, ...] = ()
    # Exit codes meaning "findings"; None means any non-zero exit.
    finding_exit_codes: Optional[frozenset[int]] = None

    @property
    def executable(self) -> str:
        return self.command[0]

    def applies_to(self, root: Path) -> bool:
        return not self.markers or any((root / marker).is_file() for marker in self.markers)


COLLABORATORS: tuple[Collaborator, ...] = (
    Collaborator(
        name="trivy",
        ecosystem="filesystem",
        command=("trivy", "fs", "--severity", "HIGH,CRITICAL", "--exit-code", "1", "."),
    ),
    Collaborator(
        name="npm-audit",
        ecosystem="node",
        command=("npm", "audit", "--audit-level=moderate"),
        markers=("package-lock.json",),
    ),
    Collaborator(
        name="bundle-audit",
        ecosystem="ruby",
        command=("bundle-audit", "check", "--update"),
        markers=("Gemfile.lock",),
    ),
    Collaborator(
        name="pip-audit",
        ecosystem="python",
        command=("pip-audit",),
        markers=("requirements.txt", "pyproject.toml"),
    ),
    Collaborator(
        name="trufflehog",
        ecosystem="secrets",
        command=("trufflehog", "git", "file://.", "--only-verified", "--fail"),
        finding_exit_codes=frozenset({183}),
    ),
    Collaborator(
        name="semgrep",
        ecosystem="sast",
        command=("semgrep", "--config=auto", "--severity=ERROR", "--error"),
    ),
)


def plan_collaborators(
    root: Path, collaborators: Iterable[Collaborator] = COLLABORATORS
) -> list[Collaborator]:
    """Select the collaborators whose marker files are present at the root."""
    plan = [c for c in collaborators if c.applies_to(root)]
    logger.info(f"Downstream tools planned: {', '.join(c.name for c in plan) or 'none'}")
    return plan


def _last_line(output: str) -> str:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1][:DETAIL_MAX_CHARS] if lines else ""


def _result(collaborator: Collaborator, status: CollaboratorStatus, **kwargs) -> CollaboratorResult:
    return CollaboratorResult(
        name=collaborator.name,
        ecosystem=collaborator.ecosystem,
        command=list(collaborator.command),
        status=status,
        **kwargs,
    )


def run_collaborator(collaborator: Collaborator, root: Path, timeout: int) -> CollaboratorResult:
    """
    Run one tool in the scan root and classify its exit status.

    Returns:
        CollaboratorResult: unavailable if the tool is not on PATH, passed on
        exit 0, failed on a findings exit code, error otherwise.
    """
    if shutil.which(collaborator.executable) is None:
        logger.warning(f"{collaborator.name} not installed; skipping")
        return _result(collaborator, CollaboratorStatus.unavailable, detail="not installed")

    logger.info(f"Running {collaborator.name}...")
    try:
        proc = subprocess.run(
            list(collaborator.command),
            cwd=root,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"{collaborator.name} timed out after {timeout}s")
        return _result(collaborator, CollaboratorStatus.error, detail=f"timed out after {timeout}s")
    except OSError as e:
        logger.error(f"{collaborator.name} could not be started: {e}")
        return _result(collaborator, CollaboratorStatus.error, detail=str(e))

    code = proc.returncode
    if code == 0:
        return _result(collaborator, CollaboratorStatus.passed, exit_code=code)

    detail = _last_line(proc.stdout) or _last_line(proc.stderr)
    if collaborator.finding_exit_codes is None or code in collaborator.finding_exit_codes:
        logger.warning(f"{collaborator.name} reported findings (exit code {code})")
        return _result(collaborator, CollaboratorStatus.failed, exit_code=code, detail=detail)

    logger.warning(f"{collaborator.name} had issues (exit code {code})")
    return _result(collaborator, CollaboratorStatus.error, exit_code=code, detail=detail)


def run_collaborators(root: Path, plan: list[Collaborator], timeout: int) -> list[CollaboratorResult]:
    return [run_collaborator(c, root, timeout) for c in plan]


def skipped_results(plan: list[Collaborator], reason: str) -> list[CollaboratorResult]:
    return [_result(c, CollaboratorStatus.skipped, detail=reason) for c in plan]
