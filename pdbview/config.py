"""Application constants and tunable defaults."""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

APP_NAME = "pdbview"

# Bond inference
BOND_TOLERANCE = 1.2
MAX_BOND_DEGREE = 4
MIN_BOND_DISTANCE = 0.4
DEFAULT_COVALENT_RADIUS = 0.85
COVALENT_RADII: Dict[str, float] = {
    "H": 0.31,
    "C": 0.76,
    "N": 0.71,
    "O": 0.66,
    "S": 1.05,
    "P": 1.07,
}

# Atom classification
BACKBONE_ATOM_NAMES: FrozenSet[str] = frozenset({"CA", "C", "N", "O"})
STANDARD_RESIDUES: FrozenSet[str] = frozenset(
    {
        "ALA",
        "ARG",
        "ASN",
        "ASP",
        "CYS",
        "GLN",
        "GLU",
        "GLY",
        "HIS",
        "ILE",
        "LEU",
        "LYS",
        "MET",
        "PHE",
        "PRO",
        "SER",
        "THR",
        "TRP",
        "TYR",
        "VAL",
    }
)
TWO_LETTER_ELEMENTS: FrozenSet[str] = frozenset(
    {
        "CL",
        "BR",
        "NA",
        "MG",
        "ZN",
        "FE",
        "CA",
        "LI",
        "SI",
        "AL",
        "CU",
        "MN",
        "CO",
        "NI",
        "CD",
        "HG",
        "PB",
        "AG",
        "AU",
        "SE",
    }
)
DEFAULT_ELEMENT = "C"
DEFAULT_OCCUPANCY = 1.0
DEFAULT_TEMPERATURE_FACTOR = 0.0

# Secondary-structure propensity fallback (approximation only)
HELIX_FAVORING_RESIDUES: FrozenSet[str] = frozenset(
    {"ALA", "LEU", "MET", "GLU", "LYS", "ARG", "GLN"}
)
SHEET_FAVORING_RESIDUES: FrozenSet[str] = frozenset(
    {"VAL", "ILE", "PHE", "TYR", "TRP", "THR"}
)

# Annotations
MASS_PER_ATOM = 14
UNKNOWN_VALUE = "Unknown"
EMPTY_VALUE = "N/A"

# Geometry cache: (segment count, screen-space threshold) from finest to coarsest
SPHERE_LOD_LEVELS: Tuple[Tuple[int, float], ...] = ((32, 40.0), (16, 20.0), (8, 8.0))
CYLINDER_LOD_LEVELS: Tuple[Tuple[int, float], ...] = ((16, 30.0), (8, 15.0), (6, 6.0))
UNIT_CYLINDER_HEIGHT = 1.0
MATERIAL_LIGHTING_MODEL = "blinn"
MATERIAL_SPECULAR = (1.0, 1.0, 1.0, 1.0)
MATERIAL_SHININESS = 0.5
SIZE_KEY_DIGITS = 6

# Rendering defaults
DEFAULT_BOND_RADIUS = 0.3
DEFAULT_BOND_COLOR = (0.5, 0.5, 0.5, 1.0)
DEFAULT_UNIFORM_COLOR = (0.3, 0.6, 0.9, 1.0)
UNIFORM_ATOM_RADIUS = 2.0
ELEMENT_RADIUS_SCALE = 2.0

# Info tables
POCKET_MIN_ATOMS = 12

# Query
DEFAULT_MAX_QUERY_RESULTS = 50000
