"""Line splitting and record classification for PDB text."""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Iterator, Optional, Tuple

_LINE_RE = re.compile(r"[^\r\n]+")


class RecordKind(str, Enum):
    """Record tags the parser cares about."""

    ATOM = "ATOM"
    HETATM = "HETATM"
    HELIX = "HELIX"
    SHEET = "SHEET"
    HEADER = "HEADER"
    EXPDTA = "EXPDTA"
    REMARK = "REMARK"
    SOURCE = "SOURCE"
    IGNORED = "IGNORED"


COORDINATE_KINDS = frozenset({RecordKind.ATOM, RecordKind.HETATM})
ANNOTATION_KINDS = frozenset({RecordKind.HELIX, RecordKind.SHEET})
HEADER_KINDS = frozenset(
    {RecordKind.HEADER, RecordKind.EXPDTA, RecordKind.REMARK, RecordKind.SOURCE}
)

# "ATOM " (with the space) keeps e.g. "ATOMS" out.
_PREFIXES: Tuple[Tuple[str, RecordKind], ...] = (
    ("HETATM", RecordKind.HETATM),
    ("HEADER", RecordKind.HEADER),
    ("EXPDTA", RecordKind.EXPDTA),
    ("REMARK", RecordKind.REMARK),
    ("SOURCE", RecordKind.SOURCE),
    ("HELIX ", RecordKind.HELIX),
    ("SHEET ", RecordKind.SHEET),
    ("ATOM ", RecordKind.ATOM),
)


def iter_lines(text: str) -> Iterator[str]:
    """Yield the non-empty lines of ``text``.

    Lines are split on ``\\n`` and ``\\r`` in any combination. The
    generator is lazy so a caller may stop early.

    Parameters
    ----------
    text
        Raw PDB text.

    Returns
    -------
    Iterator[str]
        Lines without their terminators.
    """

    for match in _LINE_RE.finditer(text or ""):
        yield match.group(0)


def classify(line: str) -> RecordKind:
    """Return the record kind of a single line.

    Field contents are not interpreted. A record name shorter than its
    padded width (``"HELIX"`` at end of line) still counts.
    """

    for prefix, kind in _PREFIXES:
        if line.startswith(prefix) or line == prefix.rstrip():
            return kind
    return RecordKind.IGNORED


def scan_records(text: str) -> Iterator[Tuple[RecordKind, str]]:
    """Yield ``(kind, line)`` for every recognized record in ``text``.

    Unrecognized lines are skipped silently; third-party archive files
    are not guaranteed to be complete or well-formed.

    Parameters
    ----------
    text
        Raw PDB text.

    Returns
    -------
    Iterator[tuple]
        Record kind and raw line pairs in input order.
    """

    for line in iter_lines(text):
        kind = classify(line)
        if kind is not RecordKind.IGNORED:
            yield kind, line


def field(line: str, start: int, end: int) -> str:
    """Return the whitespace-trimmed fixed-column slice ``[start, end)``.

    Short lines yield an empty string rather than raising.
    """

    return line[start:end].strip()


def parse_int_field(text: str) -> Optional[int]:
    """Parse a trimmed integer field; ``None`` when blank or non-numeric."""

    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_float_field(text: str) -> Optional[float]:
    """Parse a trimmed float field; ``None`` when blank, non-numeric or non-finite."""

    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value
