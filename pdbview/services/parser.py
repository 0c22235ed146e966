"""PDB text to Structure pipeline.

``parse_pdb`` is a pure function of its input: it performs no I/O, keeps
no shared state and may run concurrently on any thread. Malformed records
are dropped one at a time; the parse itself never fails. An input with no
usable coordinate records yields an empty Structure carrying ``N/A``
annotations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Dict, Tuple

from pdbview.config import BOND_TOLERANCE, MAX_BOND_DEGREE, MIN_BOND_DISTANCE
from pdbview.model.state import SecondaryStructureSource, Structure
from pdbview.services.annotations import read_header, synthesize_annotations
from pdbview.services.atoms import extract_atoms
from pdbview.services.bonds import infer_bonds
from pdbview.services.records import (
    ANNOTATION_KINDS,
    COORDINATE_KINDS,
    HEADER_KINDS,
    scan_records,
)
from pdbview.services.secondary import (
    apply_propensity_fallback,
    build_secondary_structure_index,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseStats:
    """Bookkeeping for one parse call.

    Attributes
    ----------
    coordinate_records
        Number of ATOM/HETATM lines seen.
    dropped_atoms
        Coordinate records dropped for invalid fields.
    annotation_records
        Number of HELIX/SHEET lines seen.
    skipped_annotations
        HELIX/SHEET records skipped for invalid residue ranges.
    indexed_residues
        Residues claimed by HELIX/SHEET ranges.
    timings
        Seconds spent per stage.
    """

    coordinate_records: int = 0
    dropped_atoms: int = 0
    annotation_records: int = 0
    skipped_annotations: int = 0
    indexed_residues: int = 0
    timings: Dict[str, float] = field(default_factory=dict)


def parse_pdb_with_stats(
    text: str,
    tolerance: float = BOND_TOLERANCE,
    max_degree: int = MAX_BOND_DEGREE,
    min_distance: float = MIN_BOND_DISTANCE,
) -> Tuple[Structure, ParseStats]:
    """Parse PDB text and report per-stage statistics.

    Parameters
    ----------
    text
        Whole contents of a PDB-format file.
    tolerance
        Bond cutoff multiplier.
    max_degree
        Maximum bonds per atom.
    min_distance
        Distance floor below which atoms are never bonded.

    Returns
    -------
    tuple
        The immutable Structure and its ParseStats.
    """

    timings: Dict[str, float] = {}

    start = time.perf_counter()
    annotation_records = 0
    header_records = []
    range_records = []
    for kind, line in scan_records(text):
        if kind in ANNOTATION_KINDS:
            annotation_records += 1
            range_records.append((kind, line))
        elif kind in HEADER_KINDS:
            header_records.append((kind, line))
    ss_index, skipped_annotations = build_secondary_structure_index(range_records)
    header = read_header(header_records)
    timings["secondary_index"] = time.perf_counter() - start

    start = time.perf_counter()
    coordinate_records = [
        record for record in scan_records(text) if record[0] in COORDINATE_KINDS
    ]
    atoms, dropped = extract_atoms(coordinate_records, ss_index)
    timings["atoms"] = time.perf_counter() - start
    if dropped:
        logger.debug("Dropped %d of %d coordinate records", dropped, len(coordinate_records))

    if not atoms:
        logger.debug("No usable coordinate records found")
        stats = ParseStats(
            coordinate_records=len(coordinate_records),
            dropped_atoms=dropped,
            annotation_records=annotation_records,
            skipped_annotations=skipped_annotations,
            indexed_residues=len(ss_index),
            timings=timings,
        )
        return Structure(annotations=synthesize_annotations(0)), stats

    if ss_index:
        source = SecondaryStructureSource.RECORDS
    else:
        start = time.perf_counter()
        atoms = apply_propensity_fallback(atoms)
        timings["fallback"] = time.perf_counter() - start
        source = SecondaryStructureSource.HEURISTIC
        logger.info(
            "No HELIX/SHEET records; secondary structure approximated from residue propensities"
        )

    start = time.perf_counter()
    bonds = infer_bonds(
        atoms, tolerance=tolerance, max_degree=max_degree, min_distance=min_distance
    )
    timings["bonds"] = time.perf_counter() - start

    structure = Structure(
        atoms=tuple(atoms),
        bonds=tuple(bonds),
        annotations=synthesize_annotations(len(atoms), header),
        secondary_structure_source=source,
    )
    stats = ParseStats(
        coordinate_records=len(coordinate_records),
        dropped_atoms=dropped,
        annotation_records=annotation_records,
        skipped_annotations=skipped_annotations,
        indexed_residues=len(ss_index),
        timings=timings,
    )
    logger.debug(
        "Parsed structure: atoms=%d bonds=%d residues=%d",
        structure.atom_count,
        structure.bond_count,
        structure.residue_count,
    )
    return structure, stats


def parse_pdb(
    text: str,
    tolerance: float = BOND_TOLERANCE,
    max_degree: int = MAX_BOND_DEGREE,
    min_distance: float = MIN_BOND_DISTANCE,
) -> Structure:
    """Parse PDB text into an immutable Structure.

    See ``parse_pdb_with_stats`` for parameters.

    Returns
    -------
    Structure
        Parsed atoms, inferred bonds and annotations.
    """

    structure, _ = parse_pdb_with_stats(
        text, tolerance=tolerance, max_degree=max_degree, min_distance=min_distance
    )
    return structure
