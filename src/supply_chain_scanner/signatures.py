"""Known-compromised package signatures and line matching."""

import json
import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, NamedTuple, Optional

from pydantic import TypeAdapter, ValidationError

from .errors import SignatureConfigError
from .models import Signature

logger = logging.getLogger(__name__)

CVE_2025_54313 = "CVE-2025-54313"

# eslint-config-prettier maintainer compromise (Scavenger malware) and the
# packages published with the same stolen token.
DEFAULT_SIGNATURES: tuple[Signature, ...] = (
    Signature(
        package="eslint-config-prettier",
        versions=("8.10.1", "9.1.1", "10.1.6", "10.1.7"),
        advisory=CVE_2025_54313,
        safe_versions="8.10.2, 9.1.2, or 10.1.8+",
    ),
    Signature(
        package="eslint-plugin-prettier",
        versions=("4.2.2", "4.2.3"),
        advisory=CVE_2025_54313,
        safe_versions="4.2.4+",
    ),
    Signature(
        package="synckit",
        versions=("0.11.9",),
        advisory=CVE_2025_54313,
        safe_versions="0.11.10+",
    ),
    Signature(package="@pkgr/core", versions=("0.2.8",), advisory=CVE_2025_54313),
    Signature(package="napi-postinstall", versions=("0.3.1",), advisory=CVE_2025_54313),
    Signature(package="got-fetch", versions=("5.1.11", "5.1.12"), advisory=CVE_2025_54313),
    Signature(package="is", versions=("3.3.1", "5.0.0"), advisory=CVE_2025_54313),
)

# Characters that may continue an npm package name to the left. A slash may
# precede a name (URL paths) unless it ends a scope, see _SCOPE_TAIL.
_NAME_PREFIX_GUARD = r"(?<![\w@.-])"
# Text ending in a scope such as "@types/": the name after it is scoped.
_SCOPE_TAIL = re.compile(r"@[\w.-]+/$")
# A version followed by one of these is a different, longer version.
_VERSION_SUFFIX_GUARD = r"(?![\w+-]|\.\d)"

_signature_list = TypeAdapter(list[Signature])


def compile_signature(signature: Signature) -> re.Pattern[str]:
    """
    Compile a signature into a pattern for a single line of text.

    Matches ``name@version`` anywhere in the line, and the pinned manifest
    form ``"name": "version"``.
    """
    name = re.escape(signature.package)
    versions = "|".join(re.escape(v) for v in signature.versions)
    return re.compile(
        rf"{_NAME_PREFIX_GUARD}{name}"
        rf"(?:@(?P<at>{versions}){_VERSION_SUFFIX_GUARD}"
        rf'|"\s*:\s*"(?P<pin>{versions})")'
    )


class LineMatch(NamedTuple):
    """A line holding at least one signature, with the first one found."""

    line: int
    text: str
    signature: Signature
    version: str


class SignatureSet:
    """Immutable, ordered set of compiled signatures."""

    def __init__(self, signatures: Iterable[Signature] = DEFAULT_SIGNATURES):
        self._signatures = tuple(signatures)
        self._compiled = tuple((sig, compile_signature(sig)) for sig in self._signatures)

    def __len__(self) -> int:
        return len(self._signatures)

    def __iter__(self) -> Iterator[Signature]:
        return iter(self._signatures)

    @property
    def signatures(self) -> tuple[Signature, ...]:
        return self._signatures

    def match_line(self, line: str) -> Optional[tuple[Signature, str]]:
        """Return the first signature matching the line and the version that matched."""
        for signature, pattern in self._compiled:
            scoped = signature.package.startswith("@")
            for match in pattern.finditer(line):
                if not scoped and _SCOPE_TAIL.search(line[:match.start()]):
                    continue
                return signature, match.group("at") or match.group("pin")
        return None

    def iter_lines(self, text: str) -> Iterator[LineMatch]:
        """Yield a LineMatch for every matching line, numbered from 1."""
        for line_num, line in enumerate(text.split("\n"), start=1):
            hit = self.match_line(line)
            if hit:
                yield LineMatch(line_num, line.strip(), *hit)

    def matches(self, text: str) -> list[tuple[int, str]]:
        """
        Scan text line by line.

        Returns:
            (line_number, matched_text) for every line containing at least one
            signature. A line is reported once however many signatures it holds.
        """
        return [(m.line, m.text) for m in self.iter_lines(text)]


def load_signatures_file(path: str | Path) -> tuple[Signature, ...]:
    """
    Load signatures from a JSON file.

    The file holds either a list of signature objects or an object with a
    ``signatures`` list. Each entry needs ``package`` and ``versions``;
    ``advisory`` and ``safe_versions`` are optional.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SignatureConfigError(f"Cannot read signature file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SignatureConfigError(f"Invalid JSON in signature file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("signatures")

    try:
        signatures = _signature_list.validate_python(data)
    except ValidationError as e:
        raise SignatureConfigError(f"Malformed signature file {path}: {e}") from e

    logger.info(f"Loaded {len(signatures)} signatures from {path}")
    return tuple(signatures)
