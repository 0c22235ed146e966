"""PDB formatting utilities."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from pdbview.errors import PdbWriterError
from pdbview.model.state import Atom, SecondaryStructure


def _format_atom_name(name: str, element: str) -> str:
    name = (name or "").strip()
    if len(name) >= 4:
        return name[:4]
    # one-letter elements start in column 14, two-letter ones in column 13
    if len((element or "").strip()) == 1:
        return f" {name:<3}"
    return name.ljust(4)


def _format_resname(resname: str) -> str:
    resname = (resname or "").strip()
    if len(resname) > 3:
        return resname[:3]
    return resname.rjust(3)


def _format_element(element: str) -> str:
    element = (element or "").strip()
    if not element:
        return "  "
    if len(element) == 1:
        return f" {element.upper()}"
    return element[0].upper() + element[1].lower()


def _format_coord(value: float) -> str:
    for decimals in (3, 2, 1, 0):
        text = f"{value:8.{decimals}f}"
        if len(text) == 8:
            return text
    text = f"{value:8.1e}"
    if len(text) != 8:
        raise PdbWriterError("pdb_format_failed", "Coordinate does not fit in 8 columns", value)
    return text


def _secondary_ranges(atoms: Sequence[Atom]) -> List[Tuple[SecondaryStructure, str, int, int, str, str]]:
    ranges: List[Tuple[SecondaryStructure, str, int, int, str, str]] = []
    for atom in atoms:
        ss = atom.secondary_structure
        if ss not in (SecondaryStructure.HELIX, SecondaryStructure.SHEET):
            continue
        if ranges:
            last_ss, chain, start, end, start_name, _ = ranges[-1]
            if last_ss is ss and chain == atom.chain and 0 <= atom.residue_number - end <= 1:
                ranges[-1] = (ss, chain, start, atom.residue_number, start_name, atom.residue_name)
                continue
        ranges.append(
            (ss, atom.chain, atom.residue_number, atom.residue_number,
             atom.residue_name, atom.residue_name)
        )
    return ranges


def write_pdb(atoms: Iterable[Atom], include_secondary: bool = True) -> str:
    """Build a PDB text block for a sequence of atoms.

    Parameters
    ----------
    atoms
        Atoms in id order. Serials are written as ``id + 1``.
    include_secondary
        Emit HELIX/SHEET records for contiguous helix/sheet residue runs.

    Returns
    -------
    str
        PDB text ending in a newline.

    Raises
    ------
    PdbWriterError
        If atom data is missing required attributes.
    """

    atom_list = list(atoms)
    lines: List[str] = []
    if include_secondary:
        helix_serial = 0
        sheet_serial = 0
        for ss, chain, start, end, start_name, end_name in _secondary_ranges(atom_list):
            chain = (chain or " ")[:1]
            if ss is SecondaryStructure.HELIX:
                helix_serial += 1
                lines.append(
                    f"HELIX  {helix_serial:3d} {helix_serial:>3} "
                    f"{_format_resname(start_name)} {chain} {start:4d}  "
                    f"{_format_resname(end_name)} {chain} {end:4d}  1"
                )
            else:
                sheet_serial += 1
                lines.append(
                    f"SHEET  {sheet_serial:3d} {'S' + str(sheet_serial):>3} 1 "
                    f"{_format_resname(start_name)} {chain}{start:4d}  "
                    f"{_format_resname(end_name)} {chain}{end:4d}  0"
                )

    for atom in atom_list:
        try:
            serial = int(atom.id) + 1
            name = _format_atom_name(atom.name, atom.element)
            resname = _format_resname(atom.residue_name)
            chain = (atom.chain or " ")[:1]
            resid = int(atom.residue_number)
            x, y, z = (float(value) for value in atom.position)
            element = _format_element(atom.element)
            record = "HETATM" if atom.is_hetero else "ATOM  "
            occ = float(atom.occupancy)
            temp = float(atom.temperature_factor)
        except (AttributeError, TypeError, ValueError) as exc:
            raise PdbWriterError("pdb_format_failed", "Invalid atom data", str(exc)) from exc

        line = (
            f"{record}"
            f"{serial % 100000:5d} "
            f"{name}"
            f" "
            f"{resname} "
            f"{chain}"
            f"{resid:4d}"
            f"    "
            f"{_format_coord(x)}{_format_coord(y)}{_format_coord(z)}"
            f"{occ:6.2f}{temp:6.2f}"
            f"          "
            f"{element:>2}"
        )
        lines.append(line)
    lines.append("END")
    return "\n".join(lines) + "\n"
