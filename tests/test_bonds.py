import itertools

import numpy as np
import pytest

from pdbview.model.state import Atom
from pdbview.services.bonds import bond_cutoff, bond_degrees, covalent_radius, infer_bonds


def _atoms(positions, elements=None):
    elements = elements or ["C"] * len(positions)
    return [
        Atom(
            id=i,
            element=element,
            name=element,
            chain="A",
            residue_name="ALA",
            residue_number=1,
            position=tuple(float(v) for v in np.float32(position)),
        )
        for i, (position, element) in enumerate(zip(positions, elements))
    ]


def _brute_force(atoms, tolerance=1.2, max_degree=4, min_distance=0.4):
    coords = np.array([atom.position for atom in atoms], dtype=np.float64)
    degree = [0] * len(atoms)
    pairs = []
    for i, j in itertools.combinations(range(len(atoms)), 2):
        if degree[i] >= max_degree or degree[j] >= max_degree:
            continue
        delta = coords[j] - coords[i]
        d = float(np.sqrt(np.dot(delta, delta)))
        if d < min_distance:
            continue
        if d <= bond_cutoff(atoms[i].element, atoms[j].element, tolerance):
            pairs.append((i, j))
            degree[i] += 1
            degree[j] += 1
    return pairs


def test_covalent_radius_table():
    assert covalent_radius("C") == 0.76
    assert covalent_radius("h") == 0.31
    assert covalent_radius("Fe") == 0.85
    assert bond_cutoff("C", "N") == pytest.approx((0.76 + 0.71) * 1.2)


def test_backbone_fragment_bonds():
    atoms = _atoms(
        [(0.0, 0.0, 0.0), (1.458, 0.0, 0.0), (2.0, 1.42, 0.0), (1.25, 2.4, 0.0)],
        ["N", "C", "C", "O"],
    )
    pairs = [(bond.a, bond.b) for bond in infer_bonds(atoms)]
    assert pairs == [(0, 1), (1, 2), (2, 3)]


def test_coincident_atoms_never_bond():
    atoms = _atoms([(0.0, 0.0, 0.0), (0.2, 0.0, 0.0)])
    assert infer_bonds(atoms) == []


def test_distance_floor_and_cutoff_bounds():
    # C-C cutoff is 1.824
    assert len(infer_bonds(_atoms([(0.0, 0.0, 0.0), (0.4, 0.0, 0.0)]))) == 1
    assert len(infer_bonds(_atoms([(0.0, 0.0, 0.0), (1.8, 0.0, 0.0)]))) == 1
    assert infer_bonds(_atoms([(0.0, 0.0, 0.0), (1.9, 0.0, 0.0)])) == []


def test_degree_cap_prefers_lower_ids():
    center = (0.0, 0.0, 0.0)
    neighbours = [
        (1.0, 0.0, 0.0),
        (-1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        (0.0, -1.0, 0.0),
        (0.0, 0.0, 1.0),
        (0.0, 0.0, -1.0),
    ]
    atoms = _atoms([center] + neighbours, ["S"] + ["H"] * 6)
    bonds = infer_bonds(atoms)
    from_center = [bond.b for bond in bonds if bond.a == 0]
    assert from_center == [1, 2, 3, 4]
    assert bond_degrees(bonds, len(atoms))[0] == 4


def test_custom_parameters():
    atoms = _atoms([(0.0, 0.0, 0.0), (1.9, 0.0, 0.0), (3.8, 0.0, 0.0)])
    assert len(infer_bonds(atoms, tolerance=1.3)) == 2
    assert len(infer_bonds(atoms, tolerance=1.3, max_degree=1)) == 1
    assert infer_bonds(atoms, max_degree=0) == []


def test_bonds_are_unique_and_degree_capped_on_dense_cloud():
    rng = np.random.default_rng(7)
    positions = rng.uniform(0.0, 8.0, size=(300, 3))
    elements = rng.choice(["C", "N", "O", "S", "H", "P", "Fe"], size=300).tolist()
    atoms = _atoms(positions, elements)
    bonds = infer_bonds(atoms)

    pairs = [(bond.a, bond.b) for bond in bonds]
    assert all(a < b for a, b in pairs)
    assert len(set(pairs)) == len(pairs)
    assert bond_degrees(bonds, len(atoms)).max() <= 4
    for bond in bonds:
        assert 0.4 <= bond.distance <= bond_cutoff(atoms[bond.a].element, atoms[bond.b].element)


def test_grid_search_matches_pairwise_scan():
    rng = np.random.default_rng(11)
    positions = rng.uniform(-12.0, 12.0, size=(400, 3))
    elements = rng.choice(["C", "C", "C", "N", "O", "H", "S"], size=400).tolist()
    atoms = _atoms(positions, elements)
    got = sorted((bond.a, bond.b) for bond in infer_bonds(atoms))
    assert got == sorted(_brute_force(atoms))
    assert got
