from pathlib import Path

import pytest

from molview.parsers.base import FileFormat
from molview.parsers.errors import StructuralParseFailure
from molview.parsers.mol import MOLParser, parse_atom_line, parse_v3000_atom

FIXTURES = Path(__file__).resolve().parent / "fixtures"

V3000 = """\
benzene fragment
  molview

  0  0  0     0  0            999 V3000
M  V30 BEGIN CTAB
M  V30 COUNTS 2 1 0 0 0
M  V30 BEGIN ATOM
M  V30 1 C 0.0000 1.4000 0.0000 0
M  V30 2 N 1.2124 0.7000 0.0000 0
M  V30 END ATOM
M  V30 BEGIN BOND
M  V30 1 1 1 2
M  V30 END BOND
M  V30 END CTAB
M  END
"""


class TestAtomLine:
    def test_fixed_columns(self):
        line = "   -0.8883    0.1670    0.0000 C   0  0  0  0  0  0"
        rec = parse_atom_line(line, 4)
        assert rec.atom_id == 4
        assert (rec.x, rec.y, rec.z) == (-0.8883, 0.167, 0.0)
        assert rec.element == "C"
        assert (rec.residue, rec.residue_number, rec.chain) == ("MOL", 1, "A")

    def test_short_line_skipped(self):
        assert parse_atom_line("    1.0000    2.0000", 1) is None

    def test_non_numeric_skipped(self):
        assert parse_atom_line("    1.0000    abcdef    0.0000 C   0", 1) is None

    def test_v3000_line(self):
        rec = parse_v3000_atom("M  V30 3 Cl 1.5 -2.5 0.25 0")
        assert rec.atom_id == 3
        assert rec.element == "Cl"
        assert (rec.x, rec.y, rec.z) == (1.5, -2.5, 0.25)

    def test_v3000_non_atom_line(self):
        assert parse_v3000_atom("M  V30 BEGIN ATOM") is None


class TestMOLParser:
    def test_fixture(self):
        s = MOLParser().parse_file(FIXTURES / "sample.mol")
        assert s.file_format == FileFormat.MOL
        assert s.name == "ethanol"
        assert s.description == "Imported from MOL format"
        assert [a.element for a in s.atoms] == ["C", "C", "O"]
        assert [a.id for a in s.atoms] == [1, 2, 3]
        assert s.atoms[2].coords == (1.4725, 0.4862, 0.0)

    def test_single_synthetic_residue(self):
        s = MOLParser().parse_file(FIXTURES / "sample.mol")
        assert s.chain_ids == ["A"]
        (residue,) = s.chains[0].residues
        assert (residue.id, residue.name) == (1, "MOL")
        assert residue.atoms == s.atoms

    def test_atom_count_bounds_block(self):
        content = (FIXTURES / "sample.mol").read_text().replace("  3  2  0", "  2  2  0", 1)
        s = MOLParser().parse(content)
        assert s.num_atoms == 2

    def test_blank_name(self):
        content = (FIXTURES / "sample.mol").read_text().replace("ethanol", "", 1)
        assert MOLParser().parse(content).name == "Unknown Molecule"

    def test_too_few_lines(self):
        with pytest.raises(StructuralParseFailure):
            MOLParser().parse("line1\nline2")

    def test_bad_counts_line(self):
        with pytest.raises(StructuralParseFailure):
            MOLParser().parse("name\nprog\n\nxx  2  0  0  0  0  0  0  0  0999 V2000\n")

    def test_zero_atoms(self):
        s = MOLParser().parse("name\nprog\n\n  0  0  0  0  0  0  0  0  0  0999 V2000\nM  END\n")
        assert s.num_atoms == 0
        assert s.chain_ids == ["A"]
        (residue,) = s.chains[0].residues
        assert (residue.id, residue.name, residue.atoms) == (1, "MOL", ())
        assert not s.is_fallback

    def test_v3000(self):
        s = MOLParser().parse(V3000)
        assert s.name == "benzene fragment"
        assert [(a.id, a.element) for a in s.atoms] == [(1, "C"), (2, "N")]
        assert s.atoms[1].coords == (1.2124, 0.7, 0.0)

    def test_validate(self):
        parser = MOLParser()
        assert parser.validate((FIXTURES / "sample.mol").read_text())
        assert parser.validate("name\nprog\n\n  3  2  0  0\n")
        assert not parser.validate("short")
        assert not parser.validate("just some prose without a counts line")

    def test_extensions(self):
        assert MOLParser.extensions() == [".mol", ".sdf"]
