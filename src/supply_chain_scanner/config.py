"""Scanner configuration: signatures, exclusions, worker count.

Built once per run (from defaults and environment variables) and passed down
to every component; nothing here is mutated after construction.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigError
from .models import ScanTarget, Signature
from .signatures import DEFAULT_SIGNATURES, load_signatures_file

logger = logging.getLogger(__name__)

MANIFEST_NAMES: frozenset[str] = frozenset({"package.json"})
LOCKFILE_NAMES: frozenset[str] = frozenset({"package-lock.json", "yarn.lock"})

# Version-control metadata and dependency-install directories
DEFAULT_SKIP_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn", "node_modules"})

DEFAULT_EXCLUDED_PATTERNS: tuple[str, ...] = ("*.lock", "package-lock.json", "yarn.lock")

DEFAULT_OTHER_EXTENSIONS: frozenset[str] = frozenset({".json", ".js", ".ts"})

DEFAULT_TOOL_TIMEOUT = 600

ENV_SIGNATURES_FILE = "SUPPLY_CHAIN_SIGNATURES_FILE"
ENV_EXTRA_SKIP_DIRS = "SUPPLY_CHAIN_EXTRA_SKIP_DIRS"
ENV_EXCLUDED_PATTERNS = "SUPPLY_CHAIN_EXCLUDED_PATTERNS"
ENV_EXTENSIONS = "SUPPLY_CHAIN_EXTENSIONS"
ENV_WORKERS = "SUPPLY_CHAIN_WORKERS"
ENV_TOOL_TIMEOUT = "SUPPLY_CHAIN_TOOL_TIMEOUT"


class ScannerConfig(BaseModel):
    """Immutable configuration for one scan run."""

    model_config = ConfigDict(frozen=True)

    signatures: tuple[Signature, ...] = DEFAULT_SIGNATURES
    excluded_dirs: frozenset[str] = DEFAULT_SKIP_DIRS
    excluded_file_patterns: tuple[str, ...] = DEFAULT_EXCLUDED_PATTERNS
    other_extensions: frozenset[str] = DEFAULT_OTHER_EXTENSIONS
    workers: int = Field(default=1, ge=1)
    tool_timeout: int = Field(default=DEFAULT_TOOL_TIMEOUT, gt=0, description="Seconds per collaborator tool")

    def target(self, root: str | Path) -> ScanTarget:
        """Build the read-only scan target for a root directory."""
        return ScanTarget(
            root_path=Path(root),
            excluded_dirs=self.excluded_dirs,
            excluded_file_patterns=self.excluded_file_patterns,
            other_extensions=self.other_extensions,
        )


def _split_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _normalize_extension(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def load_config(
    signatures_file: Optional[str] = None,
    workers: Optional[int] = None,
) -> ScannerConfig:
    """
    Build configuration from defaults and environment variables.

    Args:
        signatures_file: Signature JSON file; overrides SUPPLY_CHAIN_SIGNATURES_FILE
        workers: Worker count; overrides SUPPLY_CHAIN_WORKERS

    Raises:
        SignatureConfigError: If the signature file is invalid
        ConfigError: If a numeric setting is invalid
    """
    signatures = DEFAULT_SIGNATURES
    signatures_file = signatures_file or os.environ.get(ENV_SIGNATURES_FILE)
    if signatures_file:
        signatures = load_signatures_file(signatures_file)

    excluded_dirs = DEFAULT_SKIP_DIRS | set(_split_list(os.environ.get(ENV_EXTRA_SKIP_DIRS, "")))

    patterns_raw = os.environ.get(ENV_EXCLUDED_PATTERNS)
    excluded_patterns = tuple(_split_list(patterns_raw)) if patterns_raw is not None else DEFAULT_EXCLUDED_PATTERNS

    extensions_raw = os.environ.get(ENV_EXTENSIONS)
    if extensions_raw:
        extensions = frozenset(_normalize_extension(e) for e in _split_list(extensions_raw))
    else:
        extensions = DEFAULT_OTHER_EXTENSIONS

    if workers is None:
        workers = _int_from_env(ENV_WORKERS, 1)
    tool_timeout = _int_from_env(ENV_TOOL_TIMEOUT, DEFAULT_TOOL_TIMEOUT)

    if workers < 1:
        raise ConfigError(f"Worker count must be at least 1, got {workers}")
    if tool_timeout < 1:
        raise ConfigError(f"Tool timeout must be positive, got {tool_timeout}")

    logger.debug(
        f"Config: {len(signatures)} signatures, skip dirs {sorted(excluded_dirs)}, "
        f"extensions {sorted(extensions)}, workers {workers}"
    )

    return ScannerConfig(
        signatures=signatures,
        excluded_dirs=frozenset(excluded_dirs),
        excluded_file_patterns=excluded_patterns,
        other_extensions=extensions,
        workers=workers,
        tool_timeout=tool_timeout,
    )
