"""Coordinate record extraction and atom classification."""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Tuple

import numpy as np

from pdbview.config import (
    BACKBONE_ATOM_NAMES,
    DEFAULT_ELEMENT,
    DEFAULT_OCCUPANCY,
    DEFAULT_TEMPERATURE_FACTOR,
    STANDARD_RESIDUES,
    TWO_LETTER_ELEMENTS,
)
from pdbview.model.state import Atom, SecondaryStructure
from pdbview.services.records import (
    COORDINATE_KINDS,
    RecordKind,
    field,
    parse_float_field,
    parse_int_field,
)

logger = logging.getLogger(__name__)

_FLOAT32_MAX = float(np.finfo(np.float32).max)


def infer_element(raw_name: str, allow_two_letter: bool = False) -> str:
    """Guess an element symbol from an atom name.

    Parameters
    ----------
    raw_name
        Atom name field, untrimmed (columns 12-16) when available. PDB
        left-aligns two-letter element names (``"CA  "`` calcium) and
        indents one-letter ones (``" CA "`` alpha carbon).
    allow_two_letter
        Consider two-letter symbols at all. Polymer atoms are always
        one-letter elements, so callers pass ``True`` for ligands only.

    Returns
    -------
    str
        Title-cased element symbol; ``"C"`` when the name has no letters.
    """

    name = raw_name or ""
    left_aligned = bool(name) and name[0].isalpha()
    stripped = name.strip().lstrip("0123456789")
    letters = "".join(ch for ch in stripped if ch.isalpha())
    if not letters:
        return DEFAULT_ELEMENT
    if allow_two_letter and left_aligned and letters[:2].upper() in TWO_LETTER_ELEMENTS:
        return letters[:2].title()
    return letters[0].upper()


def normalize_element(symbol: str) -> str:
    """Title-case an explicit element symbol (``"FE"`` -> ``"Fe"``)."""

    return symbol.strip().title()


def _parse_coordinate(text: str) -> Optional[float]:
    value = parse_float_field(text)
    if value is None or abs(value) > _FLOAT32_MAX:
        return None
    return float(np.float32(value))


def extract_atom(
    kind: RecordKind,
    line: str,
    atom_id: int,
    ss_index: Mapping[Tuple[str, int], SecondaryStructure],
) -> Optional[Atom]:
    """Build one Atom from a coordinate record.

    Parameters
    ----------
    kind
        ``RecordKind.ATOM`` or ``RecordKind.HETATM``.
    line
        Raw record line.
    atom_id
        Dense id to assign.
    ss_index
        Secondary-structure lookup keyed by ``(chain, residue_number)``.

    Returns
    -------
    Atom or None
        ``None`` when the residue number or any coordinate is missing,
        non-numeric, or non-finite.
    """

    residue_number = parse_int_field(field(line, 22, 26))
    x = _parse_coordinate(field(line, 30, 38))
    y = _parse_coordinate(field(line, 38, 46))
    z = _parse_coordinate(field(line, 46, 54))
    if residue_number is None or x is None or y is None or z is None:
        return None

    raw_name = line[12:16]
    name = raw_name.strip()
    residue_name = field(line, 17, 20)
    chain = field(line, 21, 22)
    is_hetero = kind is RecordKind.HETATM
    is_backbone = name in BACKBONE_ATOM_NAMES
    is_ligand = is_hetero or residue_name not in STANDARD_RESIDUES

    element = field(line, 76, 78)
    if element:
        element = normalize_element(element)
    else:
        element = infer_element(raw_name, allow_two_letter=is_ligand)

    occupancy = parse_float_field(field(line, 54, 60))
    temperature_factor = parse_float_field(field(line, 60, 66))

    return Atom(
        id=atom_id,
        element=element,
        name=name,
        chain=chain,
        residue_name=residue_name,
        residue_number=residue_number,
        position=(x, y, z),
        secondary_structure=ss_index.get(
            (chain, residue_number), SecondaryStructure.UNASSIGNED
        ),
        is_backbone=is_backbone,
        is_ligand=is_ligand,
        is_pocket=not is_backbone and not is_ligand,
        is_hetero=is_hetero,
        occupancy=DEFAULT_OCCUPANCY if occupancy is None else occupancy,
        temperature_factor=(
            DEFAULT_TEMPERATURE_FACTOR if temperature_factor is None else temperature_factor
        ),
    )


def extract_atoms(
    records: Iterable[Tuple[RecordKind, str]],
    ss_index: Mapping[Tuple[str, int], SecondaryStructure],
) -> Tuple[List[Atom], int]:
    """Extract atoms from coordinate records in input order.

    Parameters
    ----------
    records
        ``(kind, line)`` pairs; non-coordinate kinds are ignored.
    ss_index
        Secondary-structure lookup.

    Returns
    -------
    tuple
        Atoms with ids ``0..n-1`` and the number of dropped records.
    """

    atoms: List[Atom] = []
    dropped = 0
    for kind, line in records:
        if kind not in COORDINATE_KINDS:
            continue
        atom = extract_atom(kind, line, len(atoms), ss_index)
        if atom is None:
            dropped += 1
            logger.debug("Dropping coordinate record with invalid fields: %r", line)
            continue
        atoms.append(atom)
    return atoms, dropped
