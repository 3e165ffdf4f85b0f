"""Tripos MOL2 parser: a section state machine over ``@<TRIPOS>`` tags."""

from __future__ import annotations

import re
from typing import Optional

from molview.core.logging_utils import get_logger
from molview.parsers.base import (
    DEFAULT_CHAIN,
    UNKNOWN_RESIDUE,
    FileFormat,
    Structure,
    StructureParser,
    opt_float,
    opt_int,
)
from molview.parsers.builder import AtomRecord, StructureBuilder

logger = get_logger(__name__)

DEFAULT_NAME = "Unknown Molecule"
TAG_PREFIX = "@<TRIPOS>"
MIN_ATOM_TOKENS = 6

_DIGITS_RE = re.compile(r"[0-9]")


def element_from_atom_name(atom_name: str) -> str:
    """``CA1`` -> ``CA``, ``H12`` -> ``H``: drop digits, keep two characters."""
    return _DIGITS_RE.sub("", atom_name)[:2].strip()


def parse_atom_line(line: str) -> Optional[AtomRecord]:
    """Parse one ``@<TRIPOS>ATOM`` record.

    Columns: id, name, x, y, z, type, [subst_id, [subst_name, [chain]]].
    """
    tokens = line.split()
    if len(tokens) < MIN_ATOM_TOKENS:
        return None
    x = opt_float(tokens[2])
    y = opt_float(tokens[3])
    z = opt_float(tokens[4])
    if x is None or y is None or z is None:
        return None
    residue_number = opt_int(tokens[6]) if len(tokens) > 6 else None
    return AtomRecord(
        atom_id=opt_int(tokens[0]),
        element=element_from_atom_name(tokens[1]),
        x=x,
        y=y,
        z=z,
        residue=tokens[7] if len(tokens) > 7 else UNKNOWN_RESIDUE,
        residue_number=residue_number if residue_number is not None else 1,
        chain=tokens[8] if len(tokens) > 8 else DEFAULT_CHAIN,
        name=tokens[1],
    )


class MOL2Parser(StructureParser):
    """Parse Tripos MOL2 text (.mol2) into a Structure."""

    file_format = FileFormat.MOL2

    def sniff(self, content: str, first_line: str) -> bool:
        return TAG_PREFIX in content

    def _plausible(self, content: str) -> bool:
        return TAG_PREFIX in content

    def parse(self, content: str) -> Structure:
        builder = StructureBuilder()
        name = ""
        in_molecule = False
        in_atoms = False
        skipped = 0

        for raw in content.splitlines():
            line = raw.strip()

            if line.startswith(TAG_PREFIX):
                in_molecule = line == "@<TRIPOS>MOLECULE"
                in_atoms = line == "@<TRIPOS>ATOM"
                continue

            if not line:
                continue

            if in_molecule:
                name = line
                in_molecule = False
            elif in_atoms and not line.startswith("#"):
                record = parse_atom_line(line)
                if record is None:
                    skipped += 1
                else:
                    builder.add_record(record)

        if skipped:
            logger.debug("MOL2: skipped %d atom records", skipped)

        return builder.build(
            name=name or DEFAULT_NAME,
            description="Imported from MOL2 format",
            file_format=FileFormat.MOL2,
            raw_content=content,
        )

    @staticmethod
    def extensions() -> list[str]:
        return [".mol2"]
