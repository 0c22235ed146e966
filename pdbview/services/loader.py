"""Structure file loading utilities."""

from __future__ import annotations

import base64
from dataclasses import dataclass
import gzip
import logging
import mmap
import os
import time
from typing import Dict, List, Optional

from pdbview.config import BOND_TOLERANCE, MAX_BOND_DEGREE, MIN_BOND_DISTANCE
from pdbview.errors import ModelError
from pdbview.model.state import SecondaryStructureSource, Structure
from pdbview.services.parser import ParseStats, parse_pdb_with_stats
from pdbview.services.pdb_writer import write_pdb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StructureLoadResult:
    """Result of loading a PDB structure.

    Attributes
    ----------
    structure
        Parsed structure.
    source
        File path or caller-supplied label.
    pdb_b64
        Base64-encoded normalized PDB text for viewers.
    stats
        Parse statistics.
    warnings
        Human-readable load warnings.
    timings
        Timing breakdown for the load pipeline.
    """

    structure: Structure
    source: Optional[str]
    pdb_b64: str
    stats: ParseStats
    warnings: List[str]
    timings: Dict[str, float]

    @property
    def natoms(self) -> int:
        return self.structure.atom_count

    @property
    def nresidues(self) -> int:
        return self.structure.residue_count


def read_structure_text(path: str) -> str:
    """Read a PDB file as UTF-8 text.

    ``.gz`` files are decompressed. Undecodable bytes are replaced.

    Parameters
    ----------
    path
        Path to the structure file.

    Returns
    -------
    str
        File contents.

    Raises
    ------
    ModelError
        If the file is missing or unreadable.
    """

    if not path:
        raise ModelError("invalid_input", "structure path is required")
    if not os.path.exists(path):
        raise ModelError("file_not_found", "structure file not found", path)
    try:
        if path.endswith(".gz"):
            with gzip.open(path, "rb") as handle:
                return handle.read().decode("utf-8", errors="replace")
        if os.path.getsize(path) == 0:
            return ""
        with open(path, "rb") as handle:
            with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as mm:
                return mm.read().decode("utf-8", errors="replace")
    except OSError as exc:
        logger.exception("Failed to read structure file")
        raise ModelError("read_failed", "Failed to read structure file", str(exc)) from exc


def load_structure_text(
    text: str,
    source: Optional[str] = None,
    tolerance: float = BOND_TOLERANCE,
    max_degree: int = MAX_BOND_DEGREE,
    min_distance: float = MIN_BOND_DISTANCE,
) -> StructureLoadResult:
    """Parse in-memory PDB text and collect warnings and timings.

    Parameters
    ----------
    text
        PDB text.
    source
        Optional label used in log messages and payloads.
    tolerance
        Bond cutoff multiplier.
    max_degree
        Maximum bonds per atom.
    min_distance
        Distance floor below which atoms are never bonded.

    Returns
    -------
    StructureLoadResult
        Parsed structure and load metadata.
    """

    total_start = time.perf_counter()
    structure, stats = parse_pdb_with_stats(
        text, tolerance=tolerance, max_degree=max_degree, min_distance=min_distance
    )
    parse_time = time.perf_counter() - total_start

    warnings: List[str] = []
    if structure.is_empty:
        warnings.append("No usable coordinate records found")
    if stats.dropped_atoms:
        warnings.append(
            f"Dropped {stats.dropped_atoms} coordinate records with invalid fields"
        )
    if stats.skipped_annotations:
        warnings.append(
            f"Skipped {stats.skipped_annotations} HELIX/SHEET records with invalid ranges"
        )
    if structure.secondary_structure_source is SecondaryStructureSource.HEURISTIC:
        warnings.append(
            "Secondary structure approximated from residue propensities"
        )
    if warnings:
        logger.debug("Load warnings for %s: %s", source or "<text>", warnings)

    pdb_start = time.perf_counter()
    pdb_text = write_pdb(
        structure.atoms,
        include_secondary=(
            structure.secondary_structure_source is SecondaryStructureSource.RECORDS
        ),
    )
    pdb_time = time.perf_counter() - pdb_start
    pdb_b64 = base64.b64encode(pdb_text.encode("utf-8")).decode("ascii")

    timings = dict(stats.timings)
    timings["parse"] = parse_time
    timings["pdb"] = pdb_time
    timings["total"] = time.perf_counter() - total_start
    logger.debug(
        "Structure loaded: atoms=%d bonds=%d residues=%d",
        structure.atom_count,
        structure.bond_count,
        structure.residue_count,
    )
    return StructureLoadResult(
        structure=structure,
        source=source,
        pdb_b64=pdb_b64,
        stats=stats,
        warnings=warnings,
        timings=timings,
    )


def load_structure_file(
    path: str,
    tolerance: float = BOND_TOLERANCE,
    max_degree: int = MAX_BOND_DEGREE,
    min_distance: float = MIN_BOND_DISTANCE,
) -> StructureLoadResult:
    """Read and parse a PDB file.

    Parameters
    ----------
    path
        Path to a ``.pdb``/``.ent`` file, optionally gzip-compressed.
    tolerance
        Bond cutoff multiplier.
    max_degree
        Maximum bonds per atom.
    min_distance
        Distance floor below which atoms are never bonded.

    Returns
    -------
    StructureLoadResult
        Parsed structure and load metadata.

    Raises
    ------
    ModelError
        If the file is missing or unreadable.
    """

    read_start = time.perf_counter()
    text = read_structure_text(path)
    read_time = time.perf_counter() - read_start
    result = load_structure_text(
        text,
        source=path,
        tolerance=tolerance,
        max_degree=max_degree,
        min_distance=min_distance,
    )
    result.timings["read"] = read_time
    result.timings["total"] += read_time
    return result
