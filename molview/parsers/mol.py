"""MDL Molfile parser (V2000 fixed columns, V3000 CTAB atom block).

A molfile has no chain or residue semantics, so every atom lands in one
synthetic residue ``MOL`` (id 1) of chain ``A``. That residue exists even
when the atom block is empty.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from molview.core.logging_utils import get_logger
from molview.parsers.base import (
    DEFAULT_CHAIN,
    FileFormat,
    Structure,
    StructureParser,
    opt_float,
    opt_int,
)
from molview.parsers.builder import AtomRecord, StructureBuilder
from molview.parsers.errors import StructuralParseFailure

logger = get_logger(__name__)

DEFAULT_NAME = "Unknown Molecule"
RESIDUE_NAME = "MOL"
COUNTS_LINE = 3
MIN_ATOM_LINE = 30

_COUNTS_RE = re.compile(r"^\s*\d+\s+\d+")


def parse_atom_line(line: str, atom_id: int) -> Optional[AtomRecord]:
    """Parse one V2000 atom-block line; None when too short or non-numeric."""
    line = line.rstrip()
    if len(line) < MIN_ATOM_LINE:
        return None
    x = opt_float(line[0:10])
    y = opt_float(line[10:20])
    z = opt_float(line[20:30])
    if x is None or y is None or z is None:
        return None
    element = line[31:34].strip()
    return AtomRecord(
        atom_id=atom_id,
        element=element,
        x=x,
        y=y,
        z=z,
        residue=RESIDUE_NAME,
        residue_number=1,
        chain=DEFAULT_CHAIN,
        name=element,
    )


def parse_v3000_atom(line: str) -> Optional[AtomRecord]:
    """Parse ``M  V30 <idx> <type> <x> <y> <z> ...``."""
    tokens = line.split()
    if len(tokens) < 7 or tokens[:2] != ["M", "V30"]:
        return None
    x = opt_float(tokens[4])
    y = opt_float(tokens[5])
    z = opt_float(tokens[6])
    if x is None or y is None or z is None:
        return None
    return AtomRecord(
        atom_id=opt_int(tokens[2]),
        element=tokens[3],
        x=x,
        y=y,
        z=z,
        residue=RESIDUE_NAME,
        residue_number=1,
        chain=DEFAULT_CHAIN,
        name=tokens[3],
    )


def _v3000_records(lines: Sequence[str]) -> list[Optional[AtomRecord]]:
    records: list[Optional[AtomRecord]] = []
    in_atoms = False
    for line in lines:
        stripped = line.strip()
        if stripped.endswith("BEGIN ATOM"):
            in_atoms = True
            continue
        if stripped.endswith("END ATOM"):
            break
        if in_atoms:
            records.append(parse_v3000_atom(stripped))
    return records


class MOLParser(StructureParser):
    """Parse MDL molfile text (.mol, .sdf first record) into a Structure."""

    file_format = FileFormat.MOL

    def sniff(self, content: str, first_line: str) -> bool:
        return "V2000" in content or "V3000" in content

    def _plausible(self, content: str) -> bool:
        if "V2000" in content or "V3000" in content:
            return True
        lines = content.splitlines()
        return len(lines) > COUNTS_LINE and _COUNTS_RE.match(lines[COUNTS_LINE]) is not None

    def parse(self, content: str) -> Structure:
        lines = content.splitlines()
        if len(lines) <= COUNTS_LINE:
            raise StructuralParseFailure(
                f"Invalid MOL file: {len(lines)} line(s), the counts line is line {COUNTS_LINE + 1}"
            )

        counts = lines[COUNTS_LINE]
        if "V3000" in counts:
            records = _v3000_records(lines[COUNTS_LINE + 1:])
        else:
            atom_count = opt_int(counts[0:3])
            if atom_count is None:
                raise StructuralParseFailure(f"Invalid MOL counts line: {counts!r}")
            block = lines[COUNTS_LINE + 1:COUNTS_LINE + 1 + atom_count]
            records = [parse_atom_line(line, k) for k, line in enumerate(block, start=1)]

        builder = StructureBuilder()
        builder.ensure_residue(DEFAULT_CHAIN, 1, RESIDUE_NAME)
        for record in records:
            if record is not None:
                builder.add_record(record)
        if builder.num_atoms < len(records):
            logger.debug("MOL: skipped %d atom lines", len(records) - builder.num_atoms)

        return builder.build(
            name=lines[0].strip() or DEFAULT_NAME,
            description="Imported from MOL format",
            file_format=FileFormat.MOL,
            raw_content=content,
        )

    @staticmethod
    def extensions() -> list[str]:
        return [".mol", ".sdf"]
