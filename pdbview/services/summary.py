"""Structure info tables derived from a parsed Structure."""

from __future__ import annotations

import logging
import math
import time
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from pdbview.config import HELIX_FAVORING_RESIDUES, POCKET_MIN_ATOMS, STANDARD_RESIDUES
from pdbview.model.state import SecondaryStructure, Structure

logger = logging.getLogger(__name__)

HYDROPHOBIC_RESIDUES = frozenset({"ALA", "VAL", "ILE", "LEU", "MET", "PHE", "TRP", "PRO"})
ONE_LETTER_CODES = {
    "ALA": "A",
    "ARG": "R",
    "ASN": "N",
    "ASP": "D",
    "CYS": "C",
    "GLN": "Q",
    "GLU": "E",
    "GLY": "G",
    "HIS": "H",
    "ILE": "I",
    "LEU": "L",
    "LYS": "K",
    "MET": "M",
    "PHE": "F",
    "PRO": "P",
    "SER": "S",
    "THR": "T",
    "TRP": "W",
    "TYR": "Y",
    "VAL": "V",
}
WATER_RESIDUES = frozenset({"HOH", "WAT", "DOD"})


def build_structure_tables(structure: Structure) -> Dict[str, Dict[str, object]]:
    """Build info tables for a structure.

    Parameters
    ----------
    structure
        Parsed structure.

    Returns
    -------
    dict
        Mapping of table identifiers (``chains``, ``residues``,
        ``elements``, ``secondary_structure``, ``ligands``, ``pockets``)
        to column/row payloads.
    """

    atoms_df = _atoms_frame(structure)
    return {
        "chains": _df_to_table(_build_chain_table(atoms_df)),
        "residues": _df_to_table(_build_residue_table(atoms_df)),
        "elements": _df_to_table(_build_element_table(atoms_df)),
        "secondary_structure": _df_to_table(_build_secondary_table(atoms_df)),
        "ligands": _df_to_table(_build_ligand_table(atoms_df)),
        "pockets": _df_to_table(_build_pocket_table(atoms_df)),
    }


def build_structure_tables_with_timing(
    structure: Structure,
) -> Tuple[Dict[str, Dict[str, object]], float]:
    """Build structure info tables and return elapsed time.

    Parameters
    ----------
    structure
        Parsed structure.

    Returns
    -------
    tuple
        Tables payload and elapsed seconds.
    """

    start = time.perf_counter()
    tables = build_structure_tables(structure)
    return tables, time.perf_counter() - start


def residue_sequence(structure: Structure, chain: str) -> str:
    """Return the one-letter sequence of a chain's standard residues."""

    df = _atoms_frame(structure)
    if df.empty:
        return ""
    residues = (
        df[(df["chain"] == chain) & df["residue_name"].isin(STANDARD_RESIDUES)]
        .drop_duplicates(["residue_number"])
        .sort_values("id")
    )
    return "".join(ONE_LETTER_CODES.get(name, "X") for name in residues["residue_name"])


_ATOM_COLUMNS = [
    "id",
    "element",
    "name",
    "chain",
    "residue_name",
    "residue_number",
    "x",
    "y",
    "z",
    "secondary_structure",
    "is_backbone",
    "is_ligand",
    "is_pocket",
]


def _atoms_frame(structure: Structure) -> pd.DataFrame:
    if structure.is_empty:
        return _empty_table(_ATOM_COLUMNS)
    coords = structure.positions
    return pd.DataFrame(
        {
            "id": [atom.id for atom in structure.atoms],
            "element": [atom.element for atom in structure.atoms],
            "name": [atom.name for atom in structure.atoms],
            "chain": [atom.chain for atom in structure.atoms],
            "residue_name": [atom.residue_name for atom in structure.atoms],
            "residue_number": [atom.residue_number for atom in structure.atoms],
            "x": coords[:, 0].astype(float),
            "y": coords[:, 1].astype(float),
            "z": coords[:, 2].astype(float),
            "secondary_structure": [
                atom.secondary_structure.value for atom in structure.atoms
            ],
            "is_backbone": [atom.is_backbone for atom in structure.atoms],
            "is_ligand": [atom.is_ligand for atom in structure.atoms],
            "is_pocket": [atom.is_pocket for atom in structure.atoms],
        }
    )


def _residues_frame(atoms_df: pd.DataFrame) -> pd.DataFrame:
    return atoms_df.drop_duplicates(["chain", "residue_number"])


def _build_chain_table(atoms_df: pd.DataFrame) -> pd.DataFrame:
    columns = [
        "chain",
        "atom_count",
        "residue_count",
        "ligand_atoms",
        "helix_residues",
        "sheet_residues",
    ]
    if atoms_df.empty:
        return _empty_table(columns)
    residues = _residues_frame(atoms_df)
    atom_counts = atoms_df.groupby("chain").agg(
        atom_count=("id", "size"), ligand_atoms=("is_ligand", "sum")
    )
    residue_counts = residues.groupby("chain").agg(residue_count=("id", "size"))
    helix = (
        residues[residues["secondary_structure"] == SecondaryStructure.HELIX.value]
        .groupby("chain")
        .size()
        .rename("helix_residues")
    )
    sheet = (
        residues[residues["secondary_structure"] == SecondaryStructure.SHEET.value]
        .groupby("chain")
        .size()
        .rename("sheet_residues")
    )
    table = atom_counts.join(residue_counts).join(helix).join(sheet).reset_index()
    for column in ("ligand_atoms", "helix_residues", "sheet_residues"):
        table[column] = table[column].fillna(0).astype(int)
    return table[columns].sort_values("chain")


def _build_residue_table(atoms_df: pd.DataFrame) -> pd.DataFrame:
    columns = ["residue_name", "one_letter", "count", "hydrophobic", "helix_favoring"]
    if atoms_df.empty:
        return _empty_table(columns)
    residues = _residues_frame(atoms_df)
    counts = (
        residues["residue_name"]
        .value_counts()
        .rename_axis("residue_name")
        .reset_index(name="count")
    )
    counts["one_letter"] = counts["residue_name"].map(ONE_LETTER_CODES).fillna("X")
    counts["hydrophobic"] = counts["residue_name"].isin(HYDROPHOBIC_RESIDUES)
    counts["helix_favoring"] = counts["residue_name"].isin(HELIX_FAVORING_RESIDUES)
    return counts[columns].sort_values(["count", "residue_name"], ascending=[False, True])


def _build_element_table(atoms_df: pd.DataFrame) -> pd.DataFrame:
    columns = ["element", "count", "fraction"]
    if atoms_df.empty:
        return _empty_table(columns)
    counts = atoms_df["element"].value_counts().rename_axis("element").reset_index(name="count")
    counts["fraction"] = counts["count"] / float(len(atoms_df))
    return counts[columns].sort_values(["count", "element"], ascending=[False, True])


def _build_secondary_table(atoms_df: pd.DataFrame) -> pd.DataFrame:
    columns = ["secondary_structure", "residue_count", "atom_count", "fraction"]
    if atoms_df.empty:
        return _empty_table(columns)
    residues = _residues_frame(atoms_df)
    order = [ss.value for ss in SecondaryStructure]
    residue_counts = residues["secondary_structure"].value_counts().reindex(order, fill_value=0)
    atom_counts = atoms_df["secondary_structure"].value_counts().reindex(order, fill_value=0)
    total = int(residue_counts.sum())
    table = pd.DataFrame(
        {
            "secondary_structure": order,
            "residue_count": residue_counts.to_numpy().astype(int),
            "atom_count": atom_counts.to_numpy().astype(int),
        }
    )
    table["fraction"] = table["residue_count"] / total if total else 0.0
    return table[columns]


def _build_ligand_table(atoms_df: pd.DataFrame) -> pd.DataFrame:
    columns = ["chain", "residue_number", "residue_name", "atom_count", "is_water"]
    if atoms_df.empty:
        return _empty_table(columns)
    ligands = atoms_df[atoms_df["is_ligand"]]
    if ligands.empty:
        return _empty_table(columns)
    grouped = (
        ligands.groupby(["chain", "residue_number", "residue_name"], sort=False)
        .size()
        .reset_index(name="atom_count")
    )
    grouped["is_water"] = grouped["residue_name"].isin(WATER_RESIDUES)
    return grouped[columns].sort_values(["chain", "residue_number"])


def _build_pocket_table(atoms_df: pd.DataFrame) -> pd.DataFrame:
    # Coarse per-chain estimate: dense clusters of side-chain atoms score higher.
    columns = ["name", "chain", "atom_count", "score", "volume", "druggability"]
    if atoms_df.empty:
        return _empty_table(columns)
    candidates = atoms_df[atoms_df["is_pocket"]]
    rows = []
    for chain, group in candidates.groupby("chain", sort=True):
        if len(group) < POCKET_MIN_ATOMS:
            continue
        coords = group[["x", "y", "z"]].to_numpy(dtype=float)
        center = coords.mean(axis=0)
        mean_distance = float(np.linalg.norm(coords - center, axis=1).mean())
        density = max(0.0, min(1.0, 1.0 / (mean_distance + 0.001)))
        volume = int(max(300.0, min(1800.0, len(group) * mean_distance * 8.0)))
        score = min(0.95, 0.55 + density * 0.4)
        if score > 0.85:
            druggability = "High"
        elif score > 0.7:
            druggability = "Medium"
        else:
            druggability = "Low"
        rows.append(
            {
                "name": f"Binding Site {len(rows) + 1} - Chain {chain}",
                "chain": chain,
                "atom_count": int(len(group)),
                "score": score,
                "volume": volume,
                "druggability": druggability,
            }
        )
    if not rows:
        return _empty_table(columns)
    return pd.DataFrame(rows, columns=columns)


def _empty_table(columns: Iterable[str]) -> pd.DataFrame:
    return pd.DataFrame({column: pd.Series(dtype=object) for column in columns})


def _df_to_table(df: pd.DataFrame) -> Dict[str, object]:
    safe = df.astype(object).where(pd.notnull(df), None)
    columns = [str(col) for col in safe.columns]
    rows = [[_to_native(value) for value in row] for row in safe.itertuples(index=False)]
    return {"columns": columns, "rows": rows}


def _to_native(value: object) -> Optional[object]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (np.integer, np.floating)):
        return value.item()
    if isinstance(value, np.bool_):
        return bool(value)
    return value
