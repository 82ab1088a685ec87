"""Matching a single candidate file against the signature set."""

import logging
import stat
from pathlib import Path
from typing import Optional

from .models import FileCategory, Finding, ScanWarning
from .signatures import SignatureSet

logger = logging.getLogger(__name__)

BINARY_SNIFF_BYTES = 1024


def display_path(file_path: Path, base_path: Optional[Path]) -> str:
    """Path relative to the scan root, in POSIX form, for stable reports."""
    if base_path:
        try:
            return file_path.relative_to(base_path).as_posix()
        except ValueError:
            pass
    return file_path.as_posix()


def is_binary(data: bytes) -> bool:
    """Binary content has a NUL byte near the start."""
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def scan_file(
    file_path: str | Path,
    category: FileCategory,
    signature_set: SignatureSet,
    base_path: str | Path | None = None,
) -> tuple[list[Finding], Optional[ScanWarning]]:
    """
    Scan one file for compromised package signatures.

    Pure function of the file's contents, so it can run on worker threads.

    Args:
        file_path: Path to the file to scan
        category: Walk category the file was found under
        signature_set: Compiled signatures
        base_path: Scan root, used to make reported paths relative

    Returns:
        (findings, warning). The warning is set when the file could not be
        read or decoded, or is not a regular file (a FIFO would block the
        read); such a file contributes no findings.
    """
    file_path = Path(file_path)
    shown = display_path(file_path, Path(base_path) if base_path else None)

    try:
        mode = file_path.stat().st_mode
        if not stat.S_ISREG(mode):
            logger.warning(f"Skipping {shown}: not a regular file")
            return [], ScanWarning(file=shown, message="not a regular file")
        data = file_path.read_bytes()
    except (IOError, OSError) as e:
        logger.warning(f"Skipping unreadable file {shown}: {e}")
        return [], ScanWarning(file=shown, message=f"unreadable: {e.strerror or e}")

    if is_binary(data):
        logger.debug(f"Skipping binary file {shown}")
        return [], None

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"Skipping file that is not valid UTF-8: {shown}")
        return [], ScanWarning(file=shown, message="not valid UTF-8 text")

    findings = [
        Finding(
            file=shown,
            line=match.line,
            matched_text=match.text,
            category=category,
            package=match.signature.package,
            version=match.version,
        )
        for match in signature_set.iter_lines(text)
    ]
    return findings, None
