from concurrent.futures import ThreadPoolExecutor

from pdbview.model.state import AnnotationType, SecondaryStructureSource
from pdbview.services.parser import parse_pdb, parse_pdb_with_stats


def _atom_line(serial, name, resname, chain, resseq, x, y, z, element="", record="ATOM"):
    return (
        f"{record:<6}{serial:5d} {name:<4} {resname:>3} {chain:1}{resseq:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{0.0:6.2f}          {element:>2}"
    )


HEADER = "\n".join(
    [
        "HEADER    HYDROLASE                               12-JAN-99   1ABC              ",
        "EXPDTA    X-RAY DIFFRACTION                                                     ",
        "REMARK   2                                                                      ",
        "REMARK   2 RESOLUTION.    1.80 ANGSTROMS.                                       ",
        "SOURCE   2 ORGANISM_SCIENTIFIC: HOMO SAPIENS;                                   ",
    ]
)

PEPTIDE = "\n".join(
    [
        "HELIX    1   1 ALA A    1  GLY A    2  1",
        _atom_line(1, " N  ", "ALA", "A", 1, 0.0, 0.0, 0.0, "N"),
        _atom_line(2, " CA ", "ALA", "A", 1, 1.458, 0.0, 0.0, "C"),
        _atom_line(3, " C  ", "ALA", "A", 1, 2.0, 1.42, 0.0, "C"),
        _atom_line(4, " O  ", "ALA", "A", 1, 1.25, 2.4, 0.0, "O"),
        _atom_line(5, " N  ", "GLY", "A", 2, 3.33, 1.6, 0.0, "N"),
        _atom_line(6, "ZN  ", " ZN", "A", 101, 20.0, 20.0, 20.0, "", record="HETATM"),
        "TER",
        "END",
    ]
)


def _annotation_values(structure):
    return {annotation.type: annotation.value for annotation in structure.annotations}


def test_empty_and_unusable_inputs_return_placeholder_structure():
    for text in ("", "garbage\nmore garbage\n", "ATOM      1  N   ALA A   1"):
        structure = parse_pdb(text)
        assert structure.is_empty
        assert structure.bonds == ()
        assert len(structure.annotations) == 6
        assert set(_annotation_values(structure).values()) == {"N/A"}
        assert structure.secondary_structure_source is SecondaryStructureSource.NONE


def test_peptide_parse():
    structure = parse_pdb(PEPTIDE)
    assert structure.atom_count == 6
    assert [atom.id for atom in structure.atoms] == list(range(6))
    assert structure.residue_count == 3
    assert structure.atoms[5].element == "Zn"
    assert structure.atoms[5].is_ligand
    pairs = {(bond.a, bond.b) for bond in structure.bonds}
    assert {(0, 1), (1, 2), (2, 3), (2, 4)} <= pairs
    assert not any(5 in pair for pair in pairs)
    assert structure.secondary_structure_source is SecondaryStructureSource.RECORDS


def test_annotations_without_header_use_placeholders():
    values = _annotation_values(parse_pdb(PEPTIDE))
    assert values[AnnotationType.MOLECULAR_WEIGHT] == "84 Da"
    assert values[AnnotationType.RESOLUTION] == "Unknown"
    assert values[AnnotationType.EXPERIMENTAL_METHOD] == "Unknown"
    assert values[AnnotationType.ORGANISM] == "Unknown"
    assert values[AnnotationType.FUNCTION] == "Unknown"


def test_annotations_from_header_records():
    values = _annotation_values(parse_pdb(HEADER + "\n" + PEPTIDE))
    assert values[AnnotationType.RESOLUTION] == "1.80 Å"
    assert values[AnnotationType.EXPERIMENTAL_METHOD] == "X-RAY DIFFRACTION"
    assert values[AnnotationType.ORGANISM] == "HOMO SAPIENS"
    assert values[AnnotationType.FUNCTION] == "HYDROLASE"
    assert values[AnnotationType.DEPOSITION_DATE] == "12-JAN-99"


def test_annotation_order_is_fixed():
    kinds = [annotation.type for annotation in parse_pdb(PEPTIDE).annotations]
    assert kinds == [
        AnnotationType.RESOLUTION,
        AnnotationType.MOLECULAR_WEIGHT,
        AnnotationType.EXPERIMENTAL_METHOD,
        AnnotationType.ORGANISM,
        AnnotationType.FUNCTION,
        AnnotationType.DEPOSITION_DATE,
    ]


def test_parse_is_deterministic():
    first = parse_pdb(HEADER + "\n" + PEPTIDE)
    second = parse_pdb(HEADER + "\n" + PEPTIDE)
    assert first == second


def test_parse_is_safe_on_worker_threads():
    expected = parse_pdb(PEPTIDE)
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(parse_pdb, [PEPTIDE] * 16))
    assert all(result == expected for result in results)


def test_stats_report_counts():
    text = PEPTIDE + "\nATOM      9  CB  ALA A   1         nan   0.000   0.000"
    structure, stats = parse_pdb_with_stats(text)
    assert stats.coordinate_records == 7
    assert stats.dropped_atoms == 1
    assert stats.annotation_records == 1
    assert stats.indexed_residues == 2
    assert "bonds" in stats.timings
    assert structure.atom_count == 6


def test_bond_parameters_are_forwarded():
    structure = parse_pdb(PEPTIDE, max_degree=1)
    degrees = {}
    for bond in structure.bonds:
        degrees[bond.a] = degrees.get(bond.a, 0) + 1
        degrees[bond.b] = degrees.get(bond.b, 0) + 1
    assert max(degrees.values()) == 1


def test_structure_geometry_helpers():
    structure = parse_pdb(PEPTIDE)
    low, high = structure.bounding_box
    assert low == (0.0, 0.0, 0.0)
    assert high == (20.0, 20.0, 20.0)
    payload = structure.to_dict(include_atoms=False)
    assert payload["natoms"] == 6
    assert "atoms" not in payload
