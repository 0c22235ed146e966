import numpy as np
import pytest

from pdbview.errors import GeometryError
from pdbview.render.cache import GeometryCache
from pdbview.render.scene import bond_placement, build_scene, prewarm_scene
from pdbview.render.styles import ColorMode, RenderStyle, atom_appearance, chain_color
from pdbview.services.parser import parse_pdb


def _atom_line(serial, name, resname, chain, resseq, x, y, z, element=""):
    return (
        f"ATOM  {serial:5d} {name:<4} {resname:>3} {chain:1}{resseq:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{0.0:6.2f}          {element:>2}"
    )


PEPTIDE = "\n".join(
    [
        _atom_line(1, " N  ", "ALA", "A", 1, 0.0, 0.0, 0.0, "N"),
        _atom_line(2, " CA ", "ALA", "A", 1, 1.458, 0.0, 0.0, "C"),
        _atom_line(3, " C  ", "ALA", "A", 1, 2.0, 1.42, 0.0, "C"),
        _atom_line(4, " O  ", "ALA", "A", 1, 1.25, 2.4, 0.0, "O"),
        _atom_line(5, " CB ", "ALA", "B", 1, 9.0, 0.0, 0.0, "C"),
    ]
)


def _apply(matrix, point):
    return (matrix @ np.append(np.asarray(point, dtype=float), 1.0))[:3]


@pytest.mark.parametrize(
    "start, end",
    [
        ((0.0, 0.0, 0.0), (0.0, 0.0, 2.0)),
        ((1.0, 2.0, 3.0), (1.0, 5.0, 3.0)),
        ((0.0, 0.0, 0.0), (0.0, -3.0, 0.0)),
        ((-1.0, 0.5, 2.0), (0.3, -0.7, 1.1)),
    ],
)
def test_bond_placement_maps_unit_cylinder_onto_bond(start, end):
    placement = bond_placement(start, end)
    length = float(np.linalg.norm(np.subtract(end, start)))
    assert placement.length == pytest.approx(length)
    assert placement.scale == (1.0, placement.length, 1.0)
    rotation = placement.rotation
    assert np.allclose(rotation @ rotation.T, np.eye(3))
    assert np.linalg.det(rotation) == pytest.approx(1.0)
    assert np.allclose(_apply(placement.matrix, (0.0, -0.5, 0.0)), start)
    assert np.allclose(_apply(placement.matrix, (0.0, 0.5, 0.0)), end)
    assert np.allclose(placement.translation, np.add(start, end) / 2.0)


def test_bond_placement_rejects_degenerate_bond():
    with pytest.raises(GeometryError):
        bond_placement((1.0, 1.0, 1.0), (1.0, 1.0, 1.0))


def test_atom_appearance_by_style_and_mode():
    structure = parse_pdb(PEPTIDE)
    carbon = structure.atoms[1]
    radius, color = atom_appearance(carbon, RenderStyle.SPHERES, ColorMode.ELEMENT)
    assert radius == pytest.approx(1.4)
    assert color == (0.5, 0.5, 0.5, 1.0)
    radius, _ = atom_appearance(carbon, RenderStyle.STICKS, ColorMode.ELEMENT)
    assert radius == pytest.approx(1.4 * 0.3)
    radius, color = atom_appearance(carbon, "surface", "uniform", uniform_color=(0.0, 1.0, 0.0, 1.0))
    assert radius == pytest.approx(2.0 * 0.8)
    assert color == (0.0, 1.0, 0.0, 1.0)


def test_chain_color_is_stable():
    assert chain_color("A") == chain_color("A")
    assert all(0.0 <= channel <= 1.0 for channel in chain_color("Z"))


def test_build_scene_shares_geometry():
    structure = parse_pdb(PEPTIDE)
    cache = GeometryCache()
    scene = build_scene(structure, cache)
    assert len(scene.atoms) == structure.atom_count
    assert len(scene.bonds) == structure.bond_count == 3
    carbons = [node for node in scene.atoms if structure.atoms[node.atom_id].element == "C"]
    assert all(node.geometry is carbons[0].geometry for node in carbons)
    assert all(node.geometry is scene.bonds[0].geometry for node in scene.bonds)
    # N, C, O spheres plus one bond cylinder
    assert cache.stats()["geometry"] == 4
    assert scene.atoms[0].name == "atom_0"
    assert scene.to_dict()["atom_nodes"] == 5


def test_bond_nodes_scale_by_length():
    structure = parse_pdb(PEPTIDE)
    scene = build_scene(structure, GeometryCache())
    for node in scene.bonds:
        bond = next(b for b in structure.bonds if (b.a, b.b) == (node.a, node.b))
        assert node.placement.length == pytest.approx(bond.distance, rel=1e-5)


def test_chain_coloring_groups_by_chain():
    structure = parse_pdb(PEPTIDE)
    scene = build_scene(structure, GeometryCache(), color_mode=ColorMode.CHAIN)
    chain_a = {node.geometry.key for node in scene.atoms if structure.atoms[node.atom_id].chain == "A"}
    assert len(chain_a) == 1


def test_prewarm_scene_covers_build_scene():
    structure = parse_pdb(PEPTIDE)
    cache = GeometryCache()
    count = prewarm_scene(structure, cache, style=RenderStyle.CARTOON)
    build_scene(structure, cache, style=RenderStyle.CARTOON)
    assert cache.stats()["geometry"] == count


def test_empty_structure_builds_empty_scene():
    scene = build_scene(parse_pdb(""), GeometryCache())
    assert scene.atoms == ()
    assert scene.bonds == ()
