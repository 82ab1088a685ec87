"""Tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from supply_chain_scanner.config import (
    DEFAULT_EXCLUDED_PATTERNS,
    DEFAULT_OTHER_EXTENSIONS,
    DEFAULT_SKIP_DIRS,
    ScannerConfig,
    load_config,
)
from supply_chain_scanner.errors import ConfigError, SignatureConfigError
from supply_chain_scanner.signatures import DEFAULT_SIGNATURES

ENV_VARS = [
    "SUPPLY_CHAIN_SIGNATURES_FILE",
    "SUPPLY_CHAIN_EXTRA_SKIP_DIRS",
    "SUPPLY_CHAIN_EXCLUDED_PATTERNS",
    "SUPPLY_CHAIN_EXTENSIONS",
    "SUPPLY_CHAIN_WORKERS",
    "SUPPLY_CHAIN_TOOL_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Test building configuration from the environment."""

    def test_defaults(self):
        """Test defaults when no variables are set."""
        config = load_config()
        assert config.signatures == DEFAULT_SIGNATURES
        assert config.excluded_dirs == DEFAULT_SKIP_DIRS
        assert config.excluded_file_patterns == DEFAULT_EXCLUDED_PATTERNS
        assert config.other_extensions == DEFAULT_OTHER_EXTENSIONS
        assert config.workers == 1

    def test_env_overrides(self, monkeypatch):
        """Test list and numeric settings from the environment."""
        monkeypatch.setenv("SUPPLY_CHAIN_EXTRA_SKIP_DIRS", "vendor, dist")
        monkeypatch.setenv("SUPPLY_CHAIN_EXCLUDED_PATTERNS", "*.min.js")
        monkeypatch.setenv("SUPPLY_CHAIN_EXTENSIONS", "js,.MJS")
        monkeypatch.setenv("SUPPLY_CHAIN_WORKERS", "4")
        monkeypatch.setenv("SUPPLY_CHAIN_TOOL_TIMEOUT", "30")

        config = load_config()

        assert {"vendor", "dist", "node_modules", ".git"} <= config.excluded_dirs
        assert config.excluded_file_patterns == ("*.min.js",)
        assert config.other_extensions == frozenset({".js", ".mjs"})
        assert config.workers == 4
        assert config.tool_timeout == 30

    def test_empty_patterns_disable_exclusions(self, monkeypatch):
        """Test an explicitly empty pattern list excludes nothing."""
        monkeypatch.setenv("SUPPLY_CHAIN_EXCLUDED_PATTERNS", "")
        assert load_config().excluded_file_patterns == ()

    def test_argument_overrides_env(self, monkeypatch, tmp_path):
        """Test explicit arguments win over environment variables."""
        env_file = tmp_path / "env.json"
        env_file.write_text(json.dumps([{"package": "from-env", "versions": ["1.0.0"]}]))
        arg_file = tmp_path / "arg.json"
        arg_file.write_text(json.dumps([{"package": "from-arg", "versions": ["1.0.0"]}]))
        monkeypatch.setenv("SUPPLY_CHAIN_SIGNATURES_FILE", str(env_file))
        monkeypatch.setenv("SUPPLY_CHAIN_WORKERS", "8")

        config = load_config(signatures_file=str(arg_file), workers=2)

        assert [s.package for s in config.signatures] == ["from-arg"]
        assert config.workers == 2

    def test_signatures_file_from_env(self, monkeypatch, tmp_path):
        """Test the signature file variable replaces the defaults."""
        path = tmp_path / "sigs.json"
        path.write_text(json.dumps([{"package": "evil", "versions": ["0.0.1"]}]))
        monkeypatch.setenv("SUPPLY_CHAIN_SIGNATURES_FILE", str(path))

        assert [s.package for s in load_config().signatures] == ["evil"]

    def test_bad_signatures_file(self, monkeypatch, tmp_path):
        """Test a malformed signature file is a configuration error."""
        path = tmp_path / "sigs.json"
        path.write_text("nope")
        monkeypatch.setenv("SUPPLY_CHAIN_SIGNATURES_FILE", str(path))

        with pytest.raises(SignatureConfigError):
            load_config()

    def test_non_integer_workers(self, monkeypatch):
        monkeypatch.setenv("SUPPLY_CHAIN_WORKERS", "many")
        with pytest.raises(ConfigError, match="SUPPLY_CHAIN_WORKERS"):
            load_config()

    def test_zero_workers(self):
        with pytest.raises(ConfigError, match="at least 1"):
            load_config(workers=0)


class TestScannerConfig:
    """Test the immutable config value."""

    def test_frozen(self):
        config = ScannerConfig()
        with pytest.raises(ValidationError):
            config.workers = 3

    def test_target(self, tmp_path):
        target = ScannerConfig().target(tmp_path)
        assert target.root_path == tmp_path
        assert target.excluded_dirs == DEFAULT_SKIP_DIRS
