from pathlib import Path

import pytest

from molview.parsers.base import FileFormat, Structure
from molview.parsers.mol2 import MOL2Parser, element_from_atom_name, parse_atom_line

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def sample() -> Structure:
    return MOL2Parser().parse_file(FIXTURES / "sample.mol2")


@pytest.mark.parametrize(
    "atom_name, element",
    [("CA1", "CA"), ("H12", "H"), ("N", "N"), ("O4", "O"), ("Cl", "Cl")],
)
def test_element_from_atom_name(atom_name, element):
    assert element_from_atom_name(atom_name) == element


class TestAtomLine:
    def test_minimal_columns(self):
        rec = parse_atom_line("1 C1 0.0 1.0 2.0 C.3")
        assert rec.atom_id == 1
        assert rec.element == "C"
        assert (rec.residue, rec.residue_number, rec.chain) == ("UNK", 1, "A")

    def test_too_few_tokens(self):
        assert parse_atom_line("1 C1 0.0 1.0 2.0") is None

    def test_bad_coordinate(self):
        assert parse_atom_line("1 C1 0.0 one 2.0 C.3") is None

    def test_non_numeric_subst_id(self):
        rec = parse_atom_line("1 C1 0.0 1.0 2.0 C.3 x LIG")
        assert rec.residue_number == 1
        assert rec.residue == "LIG"


class TestMOL2Parser:
    def test_metadata(self, sample: Structure):
        assert sample.file_format == FileFormat.MOL2
        assert sample.name == "alanine dipeptide"
        assert sample.description == "Imported from MOL2 format"

    def test_atoms(self, sample: Structure):
        assert sample.num_atoms == 4
        assert [a.id for a in sample.atoms] == [1, 2, 3, 4]
        first = sample.atoms[0]
        assert (first.name, first.element, first.residue, first.residue_number, first.chain) == (
            "N1", "N", "GLY3", 3, "B",
        )
        assert sample.atoms[1].element == "CA"
        assert sample.atoms[3].chain == "A"

    def test_chains(self, sample: Structure):
        assert sample.chain_ids == ["B", "A"]
        assert [r.id for r in sample.get_chain("B").residues] == [1, 3]
        assert [r.id for r in sample.get_chain("A").residues] == [1]

    def test_bond_section_ends_atoms(self):
        content = (
            "@<TRIPOS>MOLECULE\nm\n@<TRIPOS>ATOM\n1 C1 0 0 0 C.3\n"
            "@<TRIPOS>BOND\n1 1 2 1 0 0 0\n"
        )
        s = MOL2Parser().parse(content)
        # "1 1 2 1 0 0 0" would otherwise parse as an atom
        assert s.num_atoms == 1

    def test_default_name(self):
        s = MOL2Parser().parse("@<TRIPOS>ATOM\n1 C1 0.0 0.0 0.0 C.3\n")
        assert s.name == "Unknown Molecule"
        assert s.num_atoms == 1

    def test_no_atom_section(self):
        s = MOL2Parser().parse("@<TRIPOS>MOLECULE\nlonely\n")
        assert s.name == "lonely"
        assert s.num_atoms == 0

    def test_validate(self):
        assert MOL2Parser().validate("@<TRIPOS>MOLECULE\nx\n")
        assert not MOL2Parser().validate("HEADER    something else entirely")

    def test_extensions(self):
        assert MOL2Parser.extensions() == [".mol2"]
