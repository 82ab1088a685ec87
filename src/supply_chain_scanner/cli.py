"""Command-line entrypoint: ``supply-chain-scan [paths...]``.

Exit status: 0 clean, 1 vulnerabilities reported by downstream tools,
2 scanner error, 3 compromised packages found.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from .aggregator import error_result
from .config import load_config
from .errors import SupplyChainScanError
from .models import ScanResult, ScanStatus
from .reporter import render_json, render_report
from .scanner import run_gate

logger = logging.getLogger("supply_chain_scanner")

# Worst outcome first; the CLI exits with the worst status across all paths.
STATUS_SEVERITY = [
    ScanStatus.compromised_packages_found,
    ScanStatus.tool_error,
    ScanStatus.vulnerabilities_found,
    ScanStatus.clean,
]


def worst_status(results: list[ScanResult]) -> ScanStatus:
    statuses = {r.status for r in results}
    for status in STATUS_SEVERITY:
        if status in statuses:
            return status
    return ScanStatus.tool_error


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="supply-chain-scan",
        description="Scan project trees for known compromised package versions.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Project directories to scan (default: current directory).",
    )
    parser.add_argument("--json", action="store_true", dest="json_output", help="Emit results as JSON.")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parallel file workers (default: $SUPPLY_CHAIN_WORKERS or 1).",
    )
    parser.add_argument(
        "--signatures-file",
        help="JSON file of compromised packages. Overrides the built-in list and $SUPPLY_CHAIN_SIGNATURES_FILE.",
    )
    parser.add_argument(
        "--with-collaborators",
        action="store_true",
        help="Run Trivy, npm audit, pip-audit and the other downstream tools when the scan is clean.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log verbosity on stderr (default: WARNING).",
    )
    return parser.parse_args(argv)


def _emit(results: list[ScanResult], signatures, json_output: bool) -> None:
    if json_output:
        print(render_json(results))
        return
    for result in results:
        sys.stdout.write(render_report(result, signatures))


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")

    try:
        config = load_config(signatures_file=args.signatures_file, workers=args.workers)
    except SupplyChainScanError as e:
        logger.error(str(e))
        _emit([error_result(path, str(e)) for path in args.paths], (), args.json_output)
        return ScanStatus.tool_error.exit_code

    results = [
        run_gate(path, config, with_collaborators=args.with_collaborators)
        for path in args.paths
    ]
    _emit(results, config.signatures, args.json_output)
    return worst_status(results).exit_code


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
