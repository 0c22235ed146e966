"""Query helpers for parsed atoms."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from pdbview.config import DEFAULT_MAX_QUERY_RESULTS
from pdbview.model.state import Atom

logger = logging.getLogger(__name__)

_FLAG_FILTERS = ("is_backbone", "is_ligand", "is_pocket", "is_hetero")


def _coerce_int(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _coerce_flag(value: object) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        return None
    return bool(value)


def query_atoms(
    atoms: Sequence[Atom],
    filters: Optional[Dict[str, object]],
    max_results: int = DEFAULT_MAX_QUERY_RESULTS,
) -> Dict[str, object]:
    """Filter atoms by simple string, range and flag filters.

    Parameters
    ----------
    atoms
        Atoms to filter.
    filters
        Query filters (resname_contains, atomname_contains, element_equals,
        chain_equals, secondary_structure, residue_min/residue_max and the
        is_backbone/is_ligand/is_pocket/is_hetero flags). Unparseable
        values are ignored.
    max_results
        Cap on the number of results returned. ``truncated`` is set when
        more atoms matched than were returned.

    Returns
    -------
    dict
        Query response payload with the matching atom ids.
    """

    if filters is None:
        filters = {}

    resname_contains = str(filters.get("resname_contains", "") or "").strip().lower()
    atomname_contains = str(filters.get("atomname_contains", "") or "").strip().lower()
    element_equals = str(filters.get("element_equals", "") or "").strip().lower()
    chain_equals = filters.get("chain_equals", None)
    chain_equals = None if chain_equals is None else str(chain_equals).strip()
    secondary = str(filters.get("secondary_structure", "") or "").strip().lower()
    residue_min = _coerce_int(filters.get("residue_min", None))
    residue_max = _coerce_int(filters.get("residue_max", None))
    flags = {
        name: _coerce_flag(filters.get(name, None)) for name in _FLAG_FILTERS
    }

    ids: List[int] = []
    for atom in atoms:
        if resname_contains and resname_contains not in atom.residue_name.lower():
            continue
        if atomname_contains and atomname_contains not in atom.name.lower():
            continue
        if element_equals and atom.element.lower() != element_equals:
            continue
        if chain_equals is not None and atom.chain != chain_equals:
            continue
        if secondary and atom.secondary_structure.value != secondary:
            continue
        if residue_min is not None and atom.residue_number < residue_min:
            continue
        if residue_max is not None and atom.residue_number > residue_max:
            continue
        if any(
            wanted is not None and getattr(atom, name) != wanted
            for name, wanted in flags.items()
        ):
            continue
        if len(ids) >= max_results:
            logger.debug("Query truncated at %d results", len(ids))
            return {"ok": True, "ids": ids, "count": len(ids), "truncated": True}
        ids.append(atom.id)

    logger.debug("Query returned %d results", len(ids))
    return {"ok": True, "ids": ids, "count": len(ids), "truncated": False}
