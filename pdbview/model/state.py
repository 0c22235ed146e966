"""Dataclasses for the parsed structure and model state."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np


class SecondaryStructure(str, Enum):
    """Structural class of a residue."""

    HELIX = "helix"
    SHEET = "sheet"
    COIL = "coil"
    UNASSIGNED = "unassigned"

    @property
    def display_name(self) -> str:
        return _SS_DISPLAY_NAMES[self]


_SS_DISPLAY_NAMES = {
    SecondaryStructure.HELIX: "α-Helix",
    SecondaryStructure.SHEET: "β-Sheet",
    SecondaryStructure.COIL: "Coil",
    SecondaryStructure.UNASSIGNED: "Unassigned",
}


class SecondaryStructureSource(str, Enum):
    """Where the secondary-structure classes of a structure came from.

    ``HEURISTIC`` marks residue-propensity guesses, which are an
    approximation and not a secondary-structure prediction.
    """

    RECORDS = "records"
    HEURISTIC = "heuristic"
    NONE = "none"


class AnnotationType(str, Enum):
    """Kinds of descriptive annotation attached to a structure."""

    RESOLUTION = "Resolution"
    MOLECULAR_WEIGHT = "Molecular Weight"
    EXPERIMENTAL_METHOD = "Experimental Method"
    ORGANISM = "Organism"
    FUNCTION = "Function"
    DEPOSITION_DATE = "Deposition Date"


@dataclass(frozen=True)
class Atom:
    """One physical atom.

    Attributes
    ----------
    id
        Dense 0-based index in the structure's atom sequence.
    element
        Title-cased element symbol.
    name
        Atom name.
    chain
        Chain identifier (may be empty).
    residue_name
        Residue name.
    residue_number
        Residue sequence number.
    position
        Cartesian coordinates in single precision.
    secondary_structure
        Structural class of the residue.
    is_backbone
        Atom name is one of the backbone names.
    is_ligand
        HETATM record or non-standard residue.
    is_pocket
        Neither backbone nor ligand (pocket-surface candidate).
    is_hetero
        Record was a HETATM record.
    occupancy
        Occupancy column value.
    temperature_factor
        Temperature factor column value.
    """

    id: int
    element: str
    name: str
    chain: str
    residue_name: str
    residue_number: int
    position: Tuple[float, float, float]
    secondary_structure: SecondaryStructure = SecondaryStructure.UNASSIGNED
    is_backbone: bool = False
    is_ligand: bool = False
    is_pocket: bool = False
    is_hetero: bool = False
    occupancy: float = 1.0
    temperature_factor: float = 0.0

    @property
    def residue_key(self) -> Tuple[str, int]:
        return (self.chain, self.residue_number)

    def to_dict(self) -> Dict[str, object]:
        """Serialize atom data for JSON payloads.

        Returns
        -------
        dict
            JSON-ready atom data.
        """
        return {
            "id": self.id,
            "element": self.element,
            "name": self.name,
            "chain": self.chain,
            "residue_name": self.residue_name,
            "residue_number": self.residue_number,
            "position": {"x": self.position[0], "y": self.position[1], "z": self.position[2]},
            "secondary_structure": self.secondary_structure.value,
            "is_backbone": self.is_backbone,
            "is_ligand": self.is_ligand,
            "is_pocket": self.is_pocket,
            "is_hetero": self.is_hetero,
            "occupancy": self.occupancy,
            "temperature_factor": self.temperature_factor,
        }


@dataclass(frozen=True)
class Bond:
    """Inferred covalent bond between atom ids ``a < b``.

    Attributes
    ----------
    a
        Lower atom id.
    b
        Higher atom id.
    distance
        Distance between the two atoms in Angstrom.
    """

    a: int
    b: int
    distance: float

    def to_dict(self) -> Dict[str, object]:
        return {"a": self.a, "b": self.b, "distance": self.distance}


@dataclass(frozen=True)
class Annotation:
    """Descriptive (type, value, description) fact about a structure."""

    type: AnnotationType
    value: str
    description: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type.value,
            "value": self.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class Structure:
    """Immutable molecular graph produced by one parse call.

    An empty atom sequence is the "nothing usable was found" signal; it
    still carries the placeholder annotations.

    Attributes
    ----------
    atoms
        Atoms in input order; ``atoms[i].id == i``.
    bonds
        Inferred bonds.
    annotations
        Descriptive annotations.
    secondary_structure_source
        Origin of the atoms' secondary-structure classes.
    """

    atoms: Tuple[Atom, ...] = ()
    bonds: Tuple[Bond, ...] = ()
    annotations: Tuple[Annotation, ...] = ()
    secondary_structure_source: SecondaryStructureSource = SecondaryStructureSource.NONE

    @property
    def is_empty(self) -> bool:
        return not self.atoms

    @property
    def atom_count(self) -> int:
        return len(self.atoms)

    @property
    def bond_count(self) -> int:
        return len(self.bonds)

    @property
    def residue_count(self) -> int:
        return len({atom.residue_key for atom in self.atoms})

    @property
    def chain_count(self) -> int:
        return len({atom.chain for atom in self.atoms})

    @property
    def positions(self) -> np.ndarray:
        """Atom coordinates as an ``(n, 3)`` float32 array (a fresh copy)."""
        if not self.atoms:
            return np.zeros((0, 3), dtype=np.float32)
        return np.array([atom.position for atom in self.atoms], dtype=np.float32)

    @property
    def bounding_box(self) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
        """Axis-aligned (min, max) corners; zeros for an empty structure."""
        if not self.atoms:
            return (0.0, 0.0, 0.0), (0.0, 0.0, 0.0)
        coords = self.positions
        low = coords.min(axis=0)
        high = coords.max(axis=0)
        return tuple(float(v) for v in low), tuple(float(v) for v in high)

    @property
    def center(self) -> Tuple[float, float, float]:
        """Unweighted centroid of the atom positions."""
        if not self.atoms:
            return (0.0, 0.0, 0.0)
        mean = self.positions.astype(np.float64).mean(axis=0)
        return (float(mean[0]), float(mean[1]), float(mean[2]))

    def annotation(self, kind: AnnotationType) -> Optional[Annotation]:
        for annotation in self.annotations:
            if annotation.type == kind:
                return annotation
        return None

    def to_dict(self, include_atoms: bool = True) -> Dict[str, object]:
        """Serialize the structure for JSON payloads.

        Parameters
        ----------
        include_atoms
            When False, atoms and bonds are omitted and only counts are sent.

        Returns
        -------
        dict
            JSON-ready structure payload.
        """
        low, high = self.bounding_box
        payload: Dict[str, object] = {
            "natoms": self.atom_count,
            "nbonds": self.bond_count,
            "nresidues": self.residue_count,
            "nchains": self.chain_count,
            "secondary_structure_source": self.secondary_structure_source.value,
            "bounding_box": {"min": list(low), "max": list(high)},
            "center": list(self.center),
            "annotations": [annotation.to_dict() for annotation in self.annotations],
        }
        if include_atoms:
            payload["atoms"] = [atom.to_dict() for atom in self.atoms]
            payload["bonds"] = [bond.to_dict() for bond in self.bonds]
        return payload


@dataclass
class ModelState:
    """Mutable model state shared across API calls.

    Attributes
    ----------
    structure
        Currently loaded structure.
    source
        Path or label of the loaded input.
    atoms_by_residue
        Atom ids keyed by ``(chain, residue_number)``.
    pdb_text_b64
        Base64-encoded normalized PDB text.
    structure_info
        Cached info tables payload.
    structure_info_future
        Background future for info table generation.
    prewarm_future
        Background future filling the geometry cache.
    load_timings
        Timing breakdown for the last load.
    warnings
        Warnings raised by the last load.
    loaded
        Whether a structure is currently loaded.
    """

    structure: Optional[Structure] = None
    source: Optional[str] = None
    atoms_by_residue: Dict[Tuple[str, int], List[int]] = field(default_factory=dict)
    pdb_text_b64: Optional[str] = None
    structure_info: Optional[Dict[str, Dict[str, object]]] = None
    structure_info_future: Optional[Future] = None
    prewarm_future: Optional[Future] = None
    load_timings: Optional[Dict[str, float]] = None
    warnings: List[str] = field(default_factory=list)
    loaded: bool = False
