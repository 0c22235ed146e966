from concurrent.futures import Future
import threading

import pytest

from pdbview.errors import ModelError
from pdbview.model import Model
from pdbview.worker import Worker


def _atom_line(serial, name, resname, chain, resseq, x, y, z, element="", record="ATOM"):
    return (
        f"{record:<6}{serial:5d} {name:<4} {resname:>3} {chain:1}{resseq:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{0.0:6.2f}          {element:>2}"
    )


TEXT = "\n".join(
    [
        "HELIX    1   1 ALA A    1  ALA A    1  1",
        _atom_line(1, " N  ", "ALA", "A", 1, 0.0, 0.0, 0.0, "N"),
        _atom_line(2, " CA ", "ALA", "A", 1, 1.458, 0.0, 0.0, "C"),
        _atom_line(3, " C  ", "ALA", "A", 1, 2.0, 1.42, 0.0, "C"),
        _atom_line(4, " O  ", "ALA", "A", 1, 1.25, 2.4, 0.0, "O"),
        _atom_line(5, " CB ", "ALA", "A", 1, 1.9, -1.2, 0.6, "C"),
        _atom_line(6, " CA ", "GLY", "B", 5, 20.0, 0.0, 0.0, "C"),
        _atom_line(7, "ZN  ", " ZN", "B", 101, 30.0, 0.0, 0.0, "ZN", record="HETATM"),
    ]
)


def _error_code(excinfo):
    return excinfo.value.code


def test_queries_before_load_fail():
    model = Model()
    for call in (
        lambda: model.get_atom_info(0),
        lambda: model.get_residue_info("A", 1),
        lambda: model.query_atoms({}),
        lambda: model.get_structure_info(),
        lambda: model.get_scene(),
        lambda: model.get_pdb_text(),
    ):
        with pytest.raises(ModelError) as excinfo:
            call()
        assert _error_code(excinfo) == "not_loaded"


def test_load_text_payload():
    payload = Model().load_text(TEXT, source="inline")
    assert payload["ok"] is True
    assert payload["source"] == "inline"
    assert payload["natoms"] == 7
    assert payload["nresidues"] == 3
    assert payload["empty"] is False
    assert payload["secondary_structure_source"] == "records"
    assert len(payload["annotations"]) == 6


def test_load_text_rejects_non_string():
    with pytest.raises(ModelError) as excinfo:
        Model().load_text(None)
    assert _error_code(excinfo) == "invalid_input"


def test_atom_and_residue_info():
    model = Model()
    model.load_text(TEXT)
    atom = model.get_atom_info(1)
    assert atom["atom"]["name"] == "CA"
    assert atom["bonded_to"] == [0, 2, 4]
    residue = model.get_residue_info("A", 1)["residue"]
    assert residue["atom_ids"] == [0, 1, 2, 3, 4]
    assert residue["residue_name"] == "ALA"
    assert residue["secondary_structure"] == "helix"
    with pytest.raises(ModelError) as excinfo:
        model.get_atom_info(99)
    assert _error_code(excinfo) == "not_found"
    with pytest.raises(ModelError) as excinfo:
        model.get_atom_info("x")
    assert _error_code(excinfo) == "invalid_input"
    with pytest.raises(ModelError) as excinfo:
        model.get_residue_info("A", 2)
    assert _error_code(excinfo) == "not_found"


def test_query_atoms_filters():
    model = Model()
    model.load_text(TEXT)
    assert model.query_atoms({"element_equals": "c"})["ids"] == [1, 2, 4, 5]
    assert model.query_atoms({"is_backbone": True})["ids"] == [0, 1, 2, 3, 5]
    assert model.query_atoms({"is_ligand": "true"})["ids"] == [6]
    assert model.query_atoms({"chain_equals": "B", "resname_contains": "gl"})["ids"] == [5]
    assert model.query_atoms({"secondary_structure": "helix", "is_pocket": True})["ids"] == [4]
    assert model.query_atoms({"residue_min": 2, "residue_max": "50"})["ids"] == [5]
    assert model.query_atoms({"residue_min": "abc"})["count"] == 7
    truncated = model.query_atoms({}, max_results=2)
    assert truncated["ids"] == [0, 1]
    assert truncated["truncated"] is True
    assert model.query_atoms({}, max_results=0) == {
        "ok": True, "ids": [], "count": 0, "truncated": True
    }
    assert model.query_atoms({}, max_results=7)["truncated"] is False


def test_structure_info_with_worker():
    with Worker(max_workers=2) as worker:
        model = Model(cpu_submit=worker.submit_cpu, submit=worker.submit)
        model.load_text(TEXT)
        info = model.get_structure_info()
        assert info["ok"] is True
        assert "chains" in info["tables"]
        assert model.get_structure_info()["tables"] is info["tables"]
        model.wait_for_background()
        assert model.cache.stats()["geometry"] > 0


class _GatedFuture(Future):
    def __init__(self):
        super().__init__()
        self.waiting = threading.Event()

    def result(self, timeout=None):
        self.waiting.set()
        return super().result(timeout)


def test_reload_discards_stale_structure_info():
    futures = []

    def cpu_submit(fn, *args):
        future = _GatedFuture()
        futures.append(future)
        return future

    model = Model(cpu_submit=cpu_submit)
    model.load_text(TEXT)
    results = []
    reader = threading.Thread(target=lambda: results.append(model.get_structure_info()))
    reader.start()
    assert futures[0].waiting.wait(5)
    model.load_text(TEXT, source="second")
    futures[0].set_result(("old tables", 0.0))
    futures[1].set_result(("new tables", 0.0))
    reader.join(5)
    assert results[0]["tables"] == "old tables"
    assert model.get_structure_info()["tables"] == "new tables"


def test_structure_info_without_worker():
    model = Model()
    model.load_text(TEXT)
    rows = model.get_structure_info()["tables"]["ligands"]["rows"]
    assert len(rows) == 1


def test_scene_and_cache_reuse():
    model = Model()
    model.load_text(TEXT)
    first = model.get_scene(style="sticks", color_mode="chain")
    assert first["scene"]["atom_nodes"] == 7
    entries = first["cache"]["geometry"]
    second = model.get_scene(style="sticks", color_mode="chain")
    assert second["cache"]["geometry"] == entries
    with pytest.raises(ModelError) as excinfo:
        model.get_scene(style="ribbons")
    assert _error_code(excinfo) == "invalid_input"


def test_pdb_text_and_sequence():
    model = Model()
    model.load_text(TEXT)
    text = model.get_pdb_string()
    assert text.endswith("END\n")
    assert "HETATM" in text
    assert model.get_sequence("A")["sequence"] == "A"


def test_empty_load():
    model = Model()
    payload = model.load_text("nothing to see here\n")
    assert payload["empty"] is True
    assert "No usable coordinate records found" in payload["warnings"]
    assert model.get_structure()["structure"]["natoms"] == 0
    assert model.get_structure_info()["tables"]["chains"]["rows"] == []


def test_load_file_errors():
    with pytest.raises(ModelError) as excinfo:
        Model().load_file("/nonexistent/file.pdb")
    assert _error_code(excinfo) == "file_not_found"
