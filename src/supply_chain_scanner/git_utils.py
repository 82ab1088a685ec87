"""Git utilities for scanning remote repositories."""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from git import Repo

logger = logging.getLogger(__name__)


def clone_repo(repo_url: str, ref: Optional[str] = None) -> Path:
    """Shallow-clone a repository into a fresh temporary directory.

    Args:
        repo_url: URL of the repository to clone.
        ref: Branch or tag to check out instead of the default branch.

    Returns:
        Path to the working tree.
    """
    temp_path = Path(tempfile.mkdtemp(prefix="supply_chain_scan_"))
    kwargs = {"depth": 1}
    if ref:
        kwargs["branch"] = ref

    logger.info(f"Cloning {repo_url} into {temp_path}")
    try:
        Repo.clone_from(repo_url, temp_path, **kwargs)
    except Exception:
        shutil.rmtree(temp_path, ignore_errors=True)
        raise
    return temp_path


@contextmanager
def cloned_repo(repo_url: str, ref: Optional[str] = None) -> Generator[Path, None, None]:
    """Clone a repository for the duration of a with-block, then delete it."""
    repo_path = clone_repo(repo_url, ref)
    try:
        yield repo_path
    finally:
        if repo_path.exists():
            shutil.rmtree(repo_path, ignore_errors=True)
