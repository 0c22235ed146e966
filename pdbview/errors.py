"""Exceptions raised outside the tolerant parse path, and their JSON form."""

from __future__ import annotations

from typing import Dict, Optional


class PdbviewError(Exception):
    """Failure that callers see as an ``{"ok": False, ...}`` payload.

    Malformed PDB records never end up here; the parser skips them. These
    exceptions cover requests that cannot be answered at all.

    Attributes
    ----------
    code
        Short machine-readable reason, e.g. ``"not_loaded"``.
    message
        One-line description for logs and the CLI.
    details
        Extra context such as the offending value or an OS error string.
    """

    def __init__(self, code: str, message: str, details: Optional[object] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_result(self) -> Dict[str, object]:
        return error_result(self.code, self.message, self.details)


class ModelError(PdbviewError):
    """A structure could not be loaded or queried.

    Codes: ``file_not_found``, ``read_failed``, ``invalid_input``,
    ``not_loaded``, ``not_found`` and ``info_failed``.
    """


class GeometryError(PdbviewError):
    """A sphere, cylinder, bond or color has no valid render description.

    Raised for non-positive or non-finite sizes, malformed colors and
    bonds whose endpoints coincide.
    """


class PdbWriterError(PdbviewError):
    """An atom cannot be written back into fixed PDB columns."""


def error_result(code: str, message: str, details: Optional[object] = None) -> Dict[str, object]:
    """Build the failure payload shared by the model and the CLI.

    Parameters
    ----------
    code
        Reason code.
    message
        Human-readable summary.
    details
        Optional extra context; must be JSON-serializable.

    Returns
    -------
    dict
        ``{"ok": False, "error": {"code", "message", "details"}}``.
    """

    return {"ok": False, "error": {"code": code, "message": message, "details": details}}
