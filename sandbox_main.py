#!/usr/bin/env python3
"""
Sandbox entrypoint for supply-chain-scanner.
Reads scan parameters from stdin JSON, scans for compromised packages, outputs JSON to stdout.
The process exit status is the scan status (0 clean, 1 vulnerabilities, 2 error, 3 compromised).
"""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from git.exc import GitCommandError

from supply_chain_scanner.aggregator import error_result
from supply_chain_scanner.config import load_config
from supply_chain_scanner.errors import SupplyChainScanError
from supply_chain_scanner.models import ScanStatus
from supply_chain_scanner.scanner import run_gate, scan_repository

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

EXIT_INVALID_INPUT = ScanStatus.tool_error.exit_code


def main() -> None:
    try:
        input_data = json.load(sys.stdin)
    except json.JSONDecodeError as e:
        print(json.dumps({"error": f"Invalid JSON input: {e}"}))
        sys.exit(EXIT_INVALID_INPUT)

    if not isinstance(input_data, dict):
        print(json.dumps({"error": "Input must be a JSON object"}))
        sys.exit(EXIT_INVALID_INPUT)

    repo_url = input_data.get("repo_url")
    local_path = input_data.get("path") or input_data.get("directory")
    if not repo_url and not local_path:
        local_path = "."

    with_collaborators = bool(input_data.get("with_collaborators", False))

    try:
        config = load_config(
            signatures_file=input_data.get("signatures_file"),
            workers=input_data.get("workers"),
        )
        if local_path:
            result = run_gate(local_path, config, with_collaborators=with_collaborators)
        else:
            result = scan_repository(repo_url, config, with_collaborators=with_collaborators)
    except GitCommandError as e:
        result = error_result(repo_url, f"Failed to clone repository: {e}")
    except SupplyChainScanError as e:
        result = error_result(local_path or repo_url, str(e))
    except Exception as e:
        print(json.dumps({"error": str(e)}))
        sys.exit(EXIT_INVALID_INPUT)

    print(json.dumps(result.model_dump(mode="json")))
    sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
