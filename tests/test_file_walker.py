"""Tests for tree walking and file categorisation."""

import os
from pathlib import Path

import pytest

from supply_chain_scanner.config import ScannerConfig
from supply_chain_scanner.file_walker import (
    categorize,
    is_excluded_file,
    iter_files,
    walk,
    walk_category,
)
from supply_chain_scanner.models import FileCategory

TREE = {
    "package.json": "{}",
    "package-lock.json": "{}",
    "yarn.lock": "",
    "README.md": "# demo",
    "deps.lock": "",
    "tsconfig.json": "{}",
    "src/index.js": "",
    "src/app.ts": "",
    "src/styles.css": "",
    "sub/package.json": "{}",
    "node_modules/evil/package.json": "{}",
    "node_modules/evil/index.js": "",
    ".git/hooks/pre-commit.js": "",
}


def _relative(root: Path, items):
    return [(category, path.relative_to(root).as_posix()) for category, path in items]


class TestCategorize:
    """Test category assignment."""

    @pytest.fixture
    def target(self, tmp_path):
        return ScannerConfig().target(tmp_path)

    def test_manifest(self, target, tmp_path):
        assert categorize(tmp_path / "a" / "package.json", target) == FileCategory.manifest

    def test_lockfiles(self, target, tmp_path):
        assert categorize(tmp_path / "package-lock.json", target) == FileCategory.lockfile
        assert categorize(tmp_path / "yarn.lock", target) == FileCategory.lockfile

    def test_other_by_extension(self, target, tmp_path):
        assert categorize(tmp_path / "src" / "index.js", target) == FileCategory.other
        assert categorize(tmp_path / "src" / "app.ts", target) == FileCategory.other
        assert categorize(tmp_path / "tsconfig.json", target) == FileCategory.other

    def test_extension_case_insensitive(self, target, tmp_path):
        assert categorize(tmp_path / "LEGACY.JS", target) == FileCategory.other

    def test_not_allowlisted(self, target, tmp_path):
        assert categorize(tmp_path / "README.md", target) is None
        assert categorize(tmp_path / "requirements.txt", target) is None

    def test_excluded_pattern(self, tmp_path):
        """Test that excluded patterns remove files from the other category."""
        target = ScannerConfig(excluded_file_patterns=("*.min.js", "dist/*")).target(tmp_path)
        assert categorize(tmp_path / "bundle.min.js", target) is None
        assert categorize(tmp_path / "dist" / "main.js", target) is None
        assert categorize(tmp_path / "src" / "main.js", target) == FileCategory.other

    def test_excluded_pattern_does_not_hide_lockfiles(self, tmp_path):
        """Test lockfiles are scanned in their own category despite *.lock."""
        target = ScannerConfig().target(tmp_path)
        assert is_excluded_file(tmp_path / "yarn.lock", target)
        assert categorize(tmp_path / "yarn.lock", target) == FileCategory.lockfile


class TestWalk:
    """Test directory traversal."""

    def test_skips_excluded_dirs(self, write_tree):
        """Test node_modules and .git are never descended into."""
        root = write_tree(TREE)
        target = ScannerConfig().target(root)

        seen = [p.relative_to(root).as_posix() for p in iter_files(target)]

        assert not any(p.startswith("node_modules/") for p in seen)
        assert not any(p.startswith(".git/") for p in seen)
        assert "README.md" in seen

    def test_category_order(self, write_tree):
        """Test manifests come first, then lockfiles, then other files."""
        root = write_tree(TREE)
        target = ScannerConfig().target(root)

        assert _relative(root, walk(target)) == [
            (FileCategory.manifest, "package.json"),
            (FileCategory.manifest, "sub/package.json"),
            (FileCategory.lockfile, "package-lock.json"),
            (FileCategory.lockfile, "yarn.lock"),
            (FileCategory.other, "tsconfig.json"),
            (FileCategory.other, "src/app.ts"),
            (FileCategory.other, "src/index.js"),
        ]

    def test_walk_category(self, write_tree):
        """Test walking a single category."""
        root = write_tree(TREE)
        target = ScannerConfig().target(root)

        lockfiles = [p.name for p in walk_category(target, FileCategory.lockfile)]

        assert lockfiles == ["package-lock.json", "yarn.lock"]

    def test_restartable(self, write_tree):
        """Test that walking an unchanged tree twice yields the same sequence."""
        root = write_tree(TREE)
        target = ScannerConfig().target(root)

        assert list(walk(target)) == list(walk(target))

    def test_walk_matches_per_category_streams(self, write_tree):
        """Test the ordered walk equals the single-category streams joined in category order."""
        root = write_tree(TREE)
        target = ScannerConfig().target(root)

        joined = [
            (category, path)
            for category in (FileCategory.manifest, FileCategory.lockfile, FileCategory.other)
            for path in walk_category(target, category)
        ]

        assert list(walk(target)) == joined

    def test_extra_skip_dir(self, write_tree):
        """Test configured extra directories are skipped."""
        root = write_tree({"vendor/lib.js": "", "src/app.js": ""})
        config = ScannerConfig(excluded_dirs=frozenset({".git", "node_modules", "vendor"}))

        names = [p.relative_to(root).as_posix() for _, p in walk(config.target(root))]

        assert names == ["src/app.js"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlink_cycle_does_not_hang(self, write_tree):
        """Test a directory symlink pointing at its parent is not followed."""
        root = write_tree({"src/app.js": ""})
        os.symlink(root, root / "src" / "loop", target_is_directory=True)
        target = ScannerConfig().target(root)

        names = [p.relative_to(root).as_posix() for _, p in walk(target)]

        assert names == ["src/app.js"]
