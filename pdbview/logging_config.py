"""Logging setup for the pdbview CLI."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(log_file: Optional[str], level: Union[int, str] = logging.WARNING) -> None:
    """Route pdbview logs to a file or to stderr.

    stdout is reserved for the JSON the CLI prints, so the fallback
    handler writes to stderr. An unwritable ``log_file`` is reported once
    on that fallback handler.

    Parameters
    ----------
    log_file
        Log file path, or ``None`` for stderr.
    level
        Root level as a ``logging`` constant or a name such as ``"INFO"``.
        Unknown names fall back to WARNING.
    """

    handlers = []
    open_error = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as exc:
            open_error = exc
    if not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))
    logging.basicConfig(
        level=_resolve_level(level),
        handlers=handlers,
        format=LOG_FORMAT,
        force=True,
    )
    if open_error is not None:
        logging.getLogger(__name__).warning(
            "Cannot write log file %s (%s); logging to stderr", log_file, open_error
        )
