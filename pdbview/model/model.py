"""Model layer for pdbview."""

from __future__ import annotations

import base64
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from pdbview.config import (
    BOND_TOLERANCE,
    DEFAULT_MAX_QUERY_RESULTS,
    MAX_BOND_DEGREE,
    MIN_BOND_DISTANCE,
)
from pdbview.errors import ModelError
from pdbview.model.query import query_atoms
from pdbview.model.state import ModelState, Structure
from pdbview.render.cache import GeometryCache
from pdbview.render.scene import build_scene, prewarm_scene
from pdbview.render.styles import ColorMode, RenderStyle
from pdbview.services.loader import (
    StructureLoadResult,
    load_structure_file,
    load_structure_text,
)
from pdbview.services.summary import (
    build_structure_tables_with_timing,
    residue_sequence,
)

logger = logging.getLogger(__name__)


class Model:
    """Core application model and state store.

    Attributes
    ----------
    _state
        Mutable model state.
    _cpu_submit
        Optional CPU executor submit function for info tables.
    _submit
        Optional thread executor submit function for cache pre-warming.
    cache
        Geometry cache shared by every scene this model builds.
    """

    def __init__(
        self,
        cpu_submit: Optional[Callable[..., object]] = None,
        submit: Optional[Callable[..., object]] = None,
        cache: Optional[GeometryCache] = None,
        tolerance: float = BOND_TOLERANCE,
        max_degree: int = MAX_BOND_DEGREE,
        min_distance: float = MIN_BOND_DISTANCE,
    ) -> None:
        """Initialize the model.

        Parameters
        ----------
        cpu_submit
            Optional executor submission function for CPU-heavy work.
        submit
            Optional thread executor submission function; used to fill
            the geometry cache in the background after a load.
        cache
            Geometry cache to use; a new one is created when omitted.
        tolerance, max_degree, min_distance
            Bond inference parameters applied to every load.
        """

        self._lock = threading.Lock()
        self._state = ModelState()
        self._cpu_submit = cpu_submit
        self._submit = submit
        self.cache = cache if cache is not None else GeometryCache()
        self._bond_params = {
            "tolerance": tolerance,
            "max_degree": max_degree,
            "min_distance": min_distance,
        }

    def load_text(self, text: str, source: Optional[str] = None) -> Dict[str, object]:
        """Parse PDB text and make it the current structure.

        Parameters
        ----------
        text
            PDB text.
        source
            Optional label for the input.

        Returns
        -------
        dict
            Payload containing load metadata.

        Raises
        ------
        ModelError
            If ``text`` is not a string.
        """

        if not isinstance(text, str):
            raise ModelError("invalid_input", "PDB text must be a string")
        result = load_structure_text(text, source=source, **self._bond_params)
        return self._install(result)

    def load_file(self, path: str) -> Dict[str, object]:
        """Read and parse a PDB file and make it the current structure.

        Parameters
        ----------
        path
            Path to the PDB file.

        Returns
        -------
        dict
            Payload containing load metadata.

        Raises
        ------
        ModelError
            If the file is missing or unreadable.
        """

        result = load_structure_file(path, **self._bond_params)
        return self._install(result)

    def _install(self, result: StructureLoadResult) -> Dict[str, object]:
        structure = result.structure
        atoms_by_residue: Dict[Tuple[str, int], List[int]] = {}
        for atom in structure.atoms:
            atoms_by_residue.setdefault(atom.residue_key, []).append(atom.id)

        info_future = None
        if self._cpu_submit and not structure.is_empty:
            try:
                info_future = self._cpu_submit(build_structure_tables_with_timing, structure)
            except Exception:
                logger.exception("Failed to schedule structure info build")
        prewarm_future = None
        if self._submit and not structure.is_empty:
            try:
                prewarm_future = self._submit(prewarm_scene, structure, self.cache)
            except Exception:
                logger.exception("Failed to schedule geometry pre-warm")

        with self._lock:
            self._state.structure = structure
            self._state.source = result.source
            self._state.atoms_by_residue = atoms_by_residue
            self._state.pdb_text_b64 = result.pdb_b64
            self._state.structure_info = None
            self._state.structure_info_future = info_future
            self._state.prewarm_future = prewarm_future
            self._state.load_timings = result.timings
            self._state.warnings = list(result.warnings)
            self._state.loaded = True
        logger.debug(
            "Loaded %s: atoms=%d timings=%s",
            result.source or "<text>",
            result.natoms,
            {key: round(value, 4) for key, value in result.timings.items()},
        )
        payload = {
            "ok": True,
            "source": result.source,
            "natoms": result.natoms,
            "nresidues": result.nresidues,
            "nbonds": structure.bond_count,
            "empty": structure.is_empty,
            "secondary_structure_source": structure.secondary_structure_source.value,
            "annotations": [annotation.to_dict() for annotation in structure.annotations],
            "warnings": list(result.warnings),
            "pdb_b64": result.pdb_b64,
        }
        return payload

    def _require_structure(self) -> Structure:
        with self._lock:
            if not self._state.loaded or self._state.structure is None:
                raise ModelError("not_loaded", "No structure loaded")
            return self._state.structure

    @property
    def structure(self) -> Optional[Structure]:
        with self._lock:
            return self._state.structure

    def get_structure(self, include_atoms: bool = False) -> Dict[str, object]:
        """Return the current structure payload.

        Raises
        ------
        ModelError
            If no structure is loaded.
        """

        structure = self._require_structure()
        with self._lock:
            source = self._state.source
            warnings = list(self._state.warnings)
        return {
            "ok": True,
            "source": source,
            "warnings": warnings,
            "structure": structure.to_dict(include_atoms=include_atoms),
        }

    def get_atom_info(self, atom_id: int) -> Dict[str, object]:
        """Return atom data and its bonded neighbours.

        Parameters
        ----------
        atom_id
            Dense atom id.

        Returns
        -------
        dict
            Payload containing the atom.

        Raises
        ------
        ModelError
            If no structure is loaded or the id is out of range.
        """

        structure = self._require_structure()
        try:
            index = int(atom_id)
        except (TypeError, ValueError) as exc:
            raise ModelError("invalid_input", "atom id must be an integer") from exc
        if index < 0 or index >= structure.atom_count:
            raise ModelError("not_found", f"Atom {atom_id} not found")
        atom = structure.atoms[index]
        neighbours = sorted(
            bond.b if bond.a == index else bond.a
            for bond in structure.bonds
            if index in (bond.a, bond.b)
        )
        logger.debug("Atom info requested id=%s", index)
        return {"ok": True, "atom": atom.to_dict(), "bonded_to": neighbours}

    def get_residue_info(self, chain: str, residue_number: int) -> Dict[str, object]:
        """Return residue data and its atom ids.

        Parameters
        ----------
        chain
            Chain identifier.
        residue_number
            Residue sequence number.

        Returns
        -------
        dict
            Payload containing residue data.

        Raises
        ------
        ModelError
            If no structure is loaded or the residue is missing.
        """

        structure = self._require_structure()
        try:
            key = (str(chain or ""), int(residue_number))
        except (TypeError, ValueError) as exc:
            raise ModelError("invalid_input", "residue number must be an integer") from exc
        with self._lock:
            ids = list(self._state.atoms_by_residue.get(key, []))
        if not ids:
            raise ModelError("not_found", f"Residue {key[0]}:{key[1]} not found")
        first = structure.atoms[ids[0]]
        logger.debug("Residue info requested chain=%s resid=%s", key[0], key[1])
        return {
            "ok": True,
            "residue": {
                "chain": first.chain,
                "residue_number": first.residue_number,
                "residue_name": first.residue_name,
                "secondary_structure": first.secondary_structure.value,
                "atom_ids": ids,
            },
        }

    def query_atoms(
        self, filters: Dict[str, object], max_results: int = DEFAULT_MAX_QUERY_RESULTS
    ) -> Dict[str, object]:
        """Query atoms by filter criteria.

        Parameters
        ----------
        filters
            Filter payload.
        max_results
            Maximum number of results to return.

        Returns
        -------
        dict
            Query response payload.

        Raises
        ------
        ModelError
            If no structure is loaded.
        """

        structure = self._require_structure()
        return query_atoms(structure.atoms, filters, max_results=max_results)

    def get_sequence(self, chain: str) -> Dict[str, object]:
        """Return the one-letter sequence of a chain."""

        structure = self._require_structure()
        return {"ok": True, "chain": chain, "sequence": residue_sequence(structure, chain)}

    def get_structure_info(self) -> Dict[str, object]:
        """Return cached or newly built structure info tables.

        Returns
        -------
        dict
            Payload containing structure info tables.

        Raises
        ------
        ModelError
            If no structure is loaded or table generation fails.
        """

        self._require_structure()
        with self._lock:
            structure = self._state.structure
            cached = self._state.structure_info
            future = self._state.structure_info_future
            load_timings = dict(self._state.load_timings or {})
        if cached is not None:
            return {"ok": True, "tables": cached}
        if future is not None:
            try:
                tables, elapsed = future.result()
            except Exception as exc:
                with self._lock:
                    if self._state.structure_info_future is future:
                        self._state.structure_info_future = None
                raise ModelError(
                    "info_failed", "Failed to build structure info tables", str(exc)
                ) from exc
        else:
            tables, elapsed = build_structure_tables_with_timing(structure)
        logger.debug(
            "Timings: parse=%.3fs bonds=%.3fs pdb=%.3fs structure_info=%.3fs wall=%.3fs",
            load_timings.get("parse", 0.0),
            load_timings.get("bonds", 0.0),
            load_timings.get("pdb", 0.0),
            elapsed,
            load_timings.get("total", 0.0) + elapsed,
        )
        with self._lock:
            if self._state.structure is not structure:
                return {"ok": True, "tables": tables}
            self._state.structure_info = tables
            self._state.structure_info_future = None
        return {"ok": True, "tables": tables}

    def get_scene(
        self,
        style: str = RenderStyle.SPHERES.value,
        color_mode: str = ColorMode.ELEMENT.value,
    ) -> Dict[str, object]:
        """Build the scene for the current structure.

        Parameters
        ----------
        style
            Render style name.
        color_mode
            Color mode name.

        Returns
        -------
        dict
            Scene summary and geometry cache statistics.

        Raises
        ------
        ModelError
            If no structure is loaded or the style/color mode is unknown.
        """

        structure = self._require_structure()
        try:
            render_style = RenderStyle(style)
            mode = ColorMode(color_mode)
        except ValueError as exc:
            raise ModelError("invalid_input", "Unknown style or color mode", str(exc)) from exc
        scene = build_scene(structure, self.cache, style=render_style, color_mode=mode)
        return {"ok": True, "scene": scene.to_dict(), "cache": self.cache.stats()}

    def get_pdb_text(self) -> Dict[str, object]:
        """Return the base64-encoded normalized PDB text.

        Raises
        ------
        ModelError
            If no structure is loaded.
        """

        with self._lock:
            if not self._state.loaded or not self._state.pdb_text_b64:
                raise ModelError("not_loaded", "No PDB text loaded")
            return {"ok": True, "pdb_b64": self._state.pdb_text_b64}

    def get_pdb_string(self) -> str:
        payload = self.get_pdb_text()
        return base64.b64decode(payload["pdb_b64"]).decode("utf-8")

    def wait_for_background(self, timeout: Optional[float] = None) -> None:
        """Block until scheduled background work for the current load is done."""

        with self._lock:
            futures = [
                future
                for future in (self._state.structure_info_future, self._state.prewarm_future)
                if future is not None
            ]
        for future in futures:
            try:
                future.result(timeout=timeout)
            except Exception:
                logger.exception("Background task failed")
