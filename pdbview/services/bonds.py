"""Covalent bond inference from atom positions."""

from __future__ import annotations

import itertools
import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from pdbview.config import (
    BOND_TOLERANCE,
    COVALENT_RADII,
    DEFAULT_COVALENT_RADIUS,
    MAX_BOND_DEGREE,
    MIN_BOND_DISTANCE,
)
from pdbview.model.state import Atom, Bond

logger = logging.getLogger(__name__)

_NEIGHBOR_OFFSETS = tuple(itertools.product((-1, 0, 1), repeat=3))


def covalent_radius(element: str) -> float:
    """Return the covalent radius (Angstrom) used for bonding cutoffs."""

    return COVALENT_RADII.get((element or "").strip().upper(), DEFAULT_COVALENT_RADIUS)


def bond_cutoff(element_a: str, element_b: str, tolerance: float = BOND_TOLERANCE) -> float:
    """Return the maximum bonding distance for two elements."""

    return (covalent_radius(element_a) + covalent_radius(element_b)) * tolerance


def infer_bonds(
    atoms: Sequence[Atom],
    tolerance: float = BOND_TOLERANCE,
    max_degree: int = MAX_BOND_DEGREE,
    min_distance: float = MIN_BOND_DISTANCE,
) -> List[Bond]:
    """Infer covalent bonds with a distance-and-valence heuristic.

    Pairs ``(i, j)`` with ``i < j`` are considered in lexicographic order.
    A pair is skipped when either atom already has ``max_degree`` bonds,
    and bonded when ``min_distance <= d <= (r_i + r_j) * tolerance``.
    Distances below ``min_distance`` are coincident records (e.g. alternate
    locations) and never bond.

    Candidates come from a uniform grid whose cell edge is the largest
    possible cutoff, so only the 27 surrounding cells need to be searched.
    Visiting the candidates of each ``i`` in ascending ``j`` gives the same
    bonds as the full pairwise scan.

    Parameters
    ----------
    atoms
        Atoms in id order.
    tolerance
        Multiplier applied to the summed covalent radii.
    max_degree
        Maximum number of bonds per atom.
    min_distance
        Distances below this are never bonded.

    Returns
    -------
    list
        Bonds in discovery order, each with ``a < b``.
    """

    natoms = len(atoms)
    if natoms < 2 or max_degree <= 0:
        return []

    coords = np.array([atom.position for atom in atoms], dtype=np.float32).astype(np.float64)
    radii = np.array([covalent_radius(atom.element) for atom in atoms], dtype=np.float64)
    max_cutoff = 2.0 * float(radii.max()) * tolerance
    cell_size = max(max_cutoff, min_distance, 1.0e-6)

    cells = np.floor(coords / cell_size).astype(np.int64)
    cell_keys: List[Tuple[int, int, int]] = [tuple(cell) for cell in cells.tolist()]
    grid: Dict[Tuple[int, int, int], List[int]] = {}
    for idx, key in enumerate(cell_keys):
        grid.setdefault(key, []).append(idx)

    degree = [0] * natoms
    bonds: List[Bond] = []
    for i in range(natoms):
        if degree[i] >= max_degree:
            continue
        cx, cy, cz = cell_keys[i]
        candidates: List[int] = []
        for dx, dy, dz in _NEIGHBOR_OFFSETS:
            members = grid.get((cx + dx, cy + dy, cz + dz))
            if members:
                candidates.extend(j for j in members if j > i)
        if not candidates:
            continue
        candidates.sort()
        cand = np.asarray(candidates, dtype=np.int64)
        deltas = coords[cand] - coords[i]
        distances = np.sqrt(np.einsum("ij,ij->i", deltas, deltas))
        cutoffs = (radii[i] + radii[cand]) * tolerance
        within = (distances >= min_distance) & (distances <= cutoffs)
        for j, distance in zip(cand[within].tolist(), distances[within].tolist()):
            if degree[i] >= max_degree:
                break
            if degree[j] >= max_degree:
                continue
            bonds.append(Bond(a=i, b=j, distance=float(distance)))
            degree[i] += 1
            degree[j] += 1

    logger.debug("Inferred %d bonds for %d atoms", len(bonds), natoms)
    return bonds


def bond_degrees(bonds: Sequence[Bond], natoms: int) -> np.ndarray:
    """Return the number of bonds per atom id."""

    counts = np.zeros(natoms, dtype=np.int64)
    for bond in bonds:
        counts[bond.a] += 1
        counts[bond.b] += 1
    return counts
