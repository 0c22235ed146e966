"""Descriptive annotations derived from header records and atom counts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from pdbview.config import EMPTY_VALUE, MASS_PER_ATOM, UNKNOWN_VALUE
from pdbview.model.state import Annotation, AnnotationType
from pdbview.services.records import RecordKind, field

_ORGANISM_TAG = "ORGANISM_SCIENTIFIC:"


@dataclass(frozen=True)
class HeaderInfo:
    """Header values found in the input; ``None`` when absent."""

    classification: Optional[str] = None
    deposition_date: Optional[str] = None
    resolution: Optional[str] = None
    method: Optional[str] = None
    organism: Optional[str] = None


def read_header(records: Iterable[Tuple[RecordKind, str]]) -> HeaderInfo:
    """Collect HEADER, REMARK 2, EXPDTA and SOURCE values.

    The first non-blank value of each kind wins; resolution lines that
    carry no number (``NOT APPLICABLE``) are ignored.
    """

    classification = deposition_date = resolution = method = organism = None
    for kind, line in records:
        if kind is RecordKind.HEADER:
            classification = classification or field(line, 10, 50) or None
            deposition_date = deposition_date or field(line, 50, 59) or None
        elif kind is RecordKind.REMARK and line.startswith("REMARK   2 RESOLUTION"):
            value = field(line, 23, 30)
            if resolution is None and value and _is_number(value):
                resolution = value
        elif kind is RecordKind.EXPDTA:
            method = method or field(line, 10, 79) or None
        elif kind is RecordKind.SOURCE and organism is None:
            text = line[:80]
            if _ORGANISM_TAG in text:
                organism = text.split(_ORGANISM_TAG, 1)[1].strip().rstrip(";").strip() or None
    return HeaderInfo(
        classification=classification,
        deposition_date=deposition_date,
        resolution=resolution,
        method=method,
        organism=organism,
    )


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def estimate_mass(atom_count: int) -> int:
    """Crude molecular mass estimate in Dalton (``atom_count * 14``)."""

    return atom_count * MASS_PER_ATOM


def empty_annotations() -> Tuple[Annotation, ...]:
    """Annotations for a structure with no usable atoms: every value is ``N/A``."""

    return (
        Annotation(AnnotationType.RESOLUTION, EMPTY_VALUE, "No structure data"),
        Annotation(AnnotationType.MOLECULAR_WEIGHT, EMPTY_VALUE, "No atoms found"),
        Annotation(AnnotationType.EXPERIMENTAL_METHOD, EMPTY_VALUE, "No structure data"),
        Annotation(AnnotationType.ORGANISM, EMPTY_VALUE, "No structure data"),
        Annotation(AnnotationType.FUNCTION, EMPTY_VALUE, "No structure data"),
        Annotation(AnnotationType.DEPOSITION_DATE, EMPTY_VALUE, "No structure data"),
    )


def synthesize_annotations(
    atom_count: int, header: Optional[HeaderInfo] = None
) -> Tuple[Annotation, ...]:
    """Build the fixed annotation list for a parsed structure.

    Parameters
    ----------
    atom_count
        Number of extracted atoms.
    header
        Header values read from the same input, if any.

    Returns
    -------
    tuple
        Resolution, molecular weight, experimental method, organism,
        function and deposition date annotations, in that order.
    """

    if atom_count <= 0:
        return empty_annotations()
    header = header or HeaderInfo()
    return (
        Annotation(
            AnnotationType.RESOLUTION,
            f"{header.resolution} Å" if header.resolution else UNKNOWN_VALUE,
            "X-ray diffraction resolution" if header.resolution else "Resolution not specified",
        ),
        Annotation(
            AnnotationType.MOLECULAR_WEIGHT,
            f"{estimate_mass(atom_count)} Da",
            f"Approximate, {atom_count} atoms at {MASS_PER_ATOM} Da each",
        ),
        Annotation(
            AnnotationType.EXPERIMENTAL_METHOD,
            header.method or UNKNOWN_VALUE,
            "Structure determination method" if header.method else "Method not specified",
        ),
        Annotation(
            AnnotationType.ORGANISM,
            header.organism or UNKNOWN_VALUE,
            "Source organism" if header.organism else "Source organism not specified",
        ),
        Annotation(
            AnnotationType.FUNCTION,
            header.classification or UNKNOWN_VALUE,
            "Protein classification" if header.classification else "Function not specified",
        ),
        Annotation(
            AnnotationType.DEPOSITION_DATE,
            header.deposition_date or UNKNOWN_VALUE,
            "Structure deposition date" if header.deposition_date else "Date not specified",
        ),
    )
