"""molview.parsers: molecular structure file parsing.

Architecture:
    - base.py: Structure model (Structure, Chain, Residue, Atom) + StructureParser
    - builder.py: per-parse accumulator that groups atoms into residues/chains
    - pdb_format.py / mmcif.py / mol.py / mol2.py: one parser per format
    - registry.py: format -> parser, in detection order
    - detect.py: format detection and content validation
    - dispatch.py: detect -> validate -> parse, with fallback structures
    - dataset.py: StructureDataset (loads files, returns Structure objects)

Usage::

    from molview.parsers import parse_structure

    result = parse_structure(text, filename="1abc.pdb")
    s = result.structure
    for chain in s.chains:
        print(chain.id, chain.num_residues)
    for warning in result.warnings:
        print("warning:", warning)

    # Format detection alone
    from molview.parsers import detect_format
    detect_format(text, "ligand.mol2")  # FileFormat.MOL2

    # A specific parser
    from molview.parsers import CIFParser
    s = CIFParser().parse_file("1abc.cif.gz")
"""

from molview.parsers.base import (
    Atom,
    Chain,
    FileFormat,
    Residue,
    SecondaryStructure,
    Structure,
    StructureParser,
)
from molview.parsers.builder import AtomRecord, StructureBuilder
from molview.parsers.errors import (
    FormatMismatchError,
    MolviewError,
    StructuralParseFailure,
    UnknownFormatError,
)
from molview.parsers.pdb_format import PDBFormatParser
from molview.parsers.mmcif import CIFParser
from molview.parsers.mol import MOLParser
from molview.parsers.mol2 import MOL2Parser
from molview.parsers.registry import get_parser, parser_for_filename, register_parser, registered_parsers
from molview.parsers.detect import detect_format, validate_content
from molview.parsers.dispatch import ParseResult, parse_path, parse_protein_file, parse_structure
from molview.parsers.dataset import StructureDataset

__all__ = [
    # Model
    "Atom",
    "Chain",
    "FileFormat",
    "Residue",
    "SecondaryStructure",
    "Structure",
    "StructureParser",
    "AtomRecord",
    "StructureBuilder",
    # Errors
    "MolviewError",
    "UnknownFormatError",
    "FormatMismatchError",
    "StructuralParseFailure",
    # Concrete parsers
    "PDBFormatParser",
    "CIFParser",
    "MOLParser",
    "MOL2Parser",
    # Registry / detection
    "register_parser",
    "registered_parsers",
    "get_parser",
    "parser_for_filename",
    "detect_format",
    "validate_content",
    # Orchestration
    "ParseResult",
    "parse_structure",
    "parse_protein_file",
    "parse_path",
    "StructureDataset",
]
