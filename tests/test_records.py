from pdbview.services.records import (
    RecordKind,
    classify,
    field,
    iter_lines,
    parse_float_field,
    parse_int_field,
    scan_records,
)


def test_iter_lines_splits_on_any_line_ending():
    text = "ATOM 1\r\nHETATM 2\rHELIX 3\n\nSHEET 4"
    assert list(iter_lines(text)) == ["ATOM 1", "HETATM 2", "HELIX 3", "SHEET 4"]


def test_iter_lines_empty_input():
    assert list(iter_lines("")) == []


def test_classify_record_prefixes():
    assert classify("ATOM      1  N   ALA A   1") is RecordKind.ATOM
    assert classify("HETATM    1 ZN    ZN A 101") is RecordKind.HETATM
    assert classify("HELIX    1   1 ALA A   10  ALA A   12  1") is RecordKind.HELIX
    assert classify("SHEET    1   A 2 VAL A  20  VAL A  24  0") is RecordKind.SHEET
    assert classify("HELIX") is RecordKind.HELIX
    assert classify("REMARK   2 RESOLUTION.    2.00 ANGSTROMS.") is RecordKind.REMARK


def test_classify_ignores_unrelated_lines():
    assert classify("ATOMS ARE FUN") is RecordKind.IGNORED
    assert classify("HELIXES") is RecordKind.IGNORED
    assert classify("CRYST1   50.000") is RecordKind.IGNORED
    assert classify("END") is RecordKind.IGNORED
    assert classify("") is RecordKind.IGNORED


def test_scan_records_keeps_order_and_skips_unknown():
    text = "HEADER    TEST\nCRYST1\nATOM  1\nTER\nHETATM2\nEND\n"
    kinds = [kind for kind, _ in scan_records(text)]
    assert kinds == [RecordKind.HEADER, RecordKind.ATOM, RecordKind.HETATM]


def test_field_tolerates_short_lines():
    assert field("ATOM", 30, 38) == ""
    assert field("ATOM      1  CA ", 12, 16) == "CA"


def test_numeric_field_parsing():
    assert parse_int_field("42") == 42
    assert parse_int_field("-3") == -3
    assert parse_int_field("") is None
    assert parse_int_field("4A") is None
    assert parse_float_field("1.250") == 1.25
    assert parse_float_field("abc") is None
    assert parse_float_field("nan") is None
    assert parse_float_field("inf") is None
    assert parse_float_field("-inf") is None
