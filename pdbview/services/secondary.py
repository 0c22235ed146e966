"""Secondary-structure assignment from HELIX/SHEET records or residue propensities."""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pdbview.config import HELIX_FAVORING_RESIDUES, SHEET_FAVORING_RESIDUES
from pdbview.model.state import Atom, SecondaryStructure
from pdbview.services.records import RecordKind, field, parse_int_field

logger = logging.getLogger(__name__)

ResidueKey = Tuple[str, int]
SecondaryStructureIndex = Dict[ResidueKey, SecondaryStructure]

# (chain column, start field, end field) per record kind
_RANGE_COLUMNS = {
    RecordKind.HELIX: (19, (21, 25), (33, 37)),
    RecordKind.SHEET: (21, (22, 26), (33, 37)),
}


@dataclass(frozen=True)
class SecondaryRange:
    """One residue range claimed by a HELIX or SHEET record."""

    kind: SecondaryStructure
    chain: str
    start: int
    end: int


def parse_range_record(kind: RecordKind, line: str) -> Optional[SecondaryRange]:
    """Extract the chain and residue range of a HELIX or SHEET record.

    Parameters
    ----------
    kind
        ``RecordKind.HELIX`` or ``RecordKind.SHEET``.
    line
        Raw record line.

    Returns
    -------
    SecondaryRange or None
        ``None`` when either residue number is missing or non-numeric.
    """

    chain_col, (start_lo, start_hi), (end_lo, end_hi) = _RANGE_COLUMNS[kind]
    start = parse_int_field(field(line, start_lo, start_hi))
    end = parse_int_field(field(line, end_lo, end_hi))
    if start is None or end is None:
        return None
    ss = SecondaryStructure.HELIX if kind is RecordKind.HELIX else SecondaryStructure.SHEET
    return SecondaryRange(
        kind=ss, chain=field(line, chain_col, chain_col + 1), start=start, end=end
    )


def build_secondary_structure_index(
    records: Iterable[Tuple[RecordKind, str]],
) -> Tuple[SecondaryStructureIndex, int]:
    """Build the ``(chain, residue_number) -> class`` lookup.

    Helix takes priority: a SHEET range never overwrites a residue already
    claimed by a HELIX, and a HELIX range overwrites a SHEET claim, so the
    outcome does not depend on record order.

    Parameters
    ----------
    records
        ``(kind, line)`` pairs; kinds other than HELIX/SHEET are ignored.

    Returns
    -------
    tuple
        The index and the number of malformed records that were skipped.
    """

    index: SecondaryStructureIndex = {}
    skipped = 0
    for kind, line in records:
        if kind not in _RANGE_COLUMNS:
            continue
        ss_range = parse_range_record(kind, line)
        if ss_range is None:
            skipped += 1
            logger.debug("Skipping malformed %s record: %r", kind.value, line)
            continue
        for residue_number in range(ss_range.start, ss_range.end + 1):
            key = (ss_range.chain, residue_number)
            if ss_range.kind is SecondaryStructure.HELIX:
                index[key] = SecondaryStructure.HELIX
            else:
                index.setdefault(key, SecondaryStructure.SHEET)
    return index, skipped


def propensity_class(residue_name: str) -> SecondaryStructure:
    """Guess a structural class from residue identity alone.

    This is a crude propensity lookup, not a secondary-structure
    predictor.
    """

    name = residue_name.strip().upper()
    if name in HELIX_FAVORING_RESIDUES:
        return SecondaryStructure.HELIX
    if name in SHEET_FAVORING_RESIDUES:
        return SecondaryStructure.SHEET
    return SecondaryStructure.COIL


def apply_propensity_fallback(atoms: Sequence[Atom]) -> List[Atom]:
    """Reclassify every residue group by residue-name propensity.

    Only meant for inputs with no HELIX/SHEET records at all. Atoms are
    grouped by ``(chain, residue_number)``; the first atom's residue name
    decides the class of the whole group.

    Parameters
    ----------
    atoms
        Extracted atoms.

    Returns
    -------
    list
        New atoms with ``secondary_structure`` replaced; ids are unchanged.
    """

    classes: Dict[ResidueKey, SecondaryStructure] = {}
    for atom in atoms:
        key = atom.residue_key
        if key not in classes:
            classes[key] = propensity_class(atom.residue_name)
    return [
        atom
        if atom.secondary_structure is classes[atom.residue_key]
        else replace(atom, secondary_structure=classes[atom.residue_key])
        for atom in atoms
    ]
