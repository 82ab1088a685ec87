"""
Supply-chain compromise scanner.

Scans a source tree for dependency versions known to have been published with
embedded malicious code, and blocks the rest of a CI security gate when any are
found. Files are only read, never executed.
"""

__version__ = "0.1.0"
