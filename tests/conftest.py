"""Shared test fixtures for supply-chain-scanner tests."""

from pathlib import Path
from typing import Callable

import pytest

PACKAGE_JSON_COMPROMISED = """{
  "name": "demo",
  "devDependencies": {
    "eslint-config-prettier": "8.10.1"
  }
}
"""

PACKAGE_JSON_CLEAN = """{
  "name": "demo",
  "devDependencies": {
    "eslint-config-prettier": "8.10.2"
  }
}
"""


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str | bytes]], Path]:
    """Create files under tmp_path from a {relative_path: content} mapping."""

    def _write(files: dict[str, str | bytes]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
