"""Legacy PDB format parser: pure Python, fixed-column records.

Reads ATOM/HETATM coordinates plus HEADER, TITLE, EXPDTA, REMARK 2,
HELIX, SHEET and SITE annotations. Column offsets follow the legacy PDB
convention exactly; no free-token splitting is used for these records.

Single Responsibility: only handles PDB format.
"""

from __future__ import annotations

import re
from typing import Optional

from molview.core.logging_utils import get_logger
from molview.parsers.base import (
    COORD_TRIPLE_RE,
    DEFAULT_CHAIN,
    UNKNOWN_RESIDUE,
    FileFormat,
    SecondaryStructure,
    Structure,
    StructureParser,
    opt_float,
    opt_int,
)
from molview.parsers.builder import AtomRecord, StructureBuilder

logger = get_logger(__name__)

DEFAULT_NAME = "Unknown Protein"

_FIRST_LINE_RECORDS = ("HEADER", "TITLE", "COMPND", "ATOM", "HETATM")

# ATOM + serial + atom name + residue name + chain letter + residue number,
# for headerless coordinate dumps.
_ATOM_RECORD_RE = re.compile(r"^ATOM\s+\d+\s+\S+\s+\S+\s+[A-Za-z]\s*-?\d+", re.M)

_RESOLUTION_RE = re.compile(r"(\d+\.\d+)\s*ANGSTROM", re.I)


def _element_from_name(atom_name: str) -> str:
    for c in atom_name:
        if c.isalpha():
            return c.upper()
    return ""


def parse_atom_line(line: str) -> Optional[AtomRecord]:
    """Parse one ATOM/HETATM record, or None when it has no usable coordinates.

    A missing or non-numeric serial is not fatal: the builder assigns the
    next free id.
    """
    x = opt_float(line[30:38])
    y = opt_float(line[38:46])
    z = opt_float(line[46:54])
    residue_number = opt_int(line[22:26])
    if x is None or y is None or z is None or residue_number is None:
        return None
    name = line[12:16].strip()
    return AtomRecord(
        atom_id=opt_int(line[6:11]),
        element=line[76:78].strip() or _element_from_name(name),
        x=x,
        y=y,
        z=z,
        residue=line[17:20].strip() or UNKNOWN_RESIDUE,
        residue_number=residue_number,
        chain=line[21:22].strip() or DEFAULT_CHAIN,
        name=name,
    )


def _parse_range(line: str, chain_cols: slice, start_cols: slice, end_cols: slice) -> Optional[tuple[str, int, int]]:
    start = opt_int(line[start_cols])
    end = opt_int(line[end_cols])
    if start is None or end is None:
        return None
    return line[chain_cols].strip() or DEFAULT_CHAIN, start, end


class PDBFormatParser(StructureParser):
    """Parse PDB-format text (.pdb, .ent) into a Structure."""

    file_format = FileFormat.PDB

    def sniff(self, content: str, first_line: str) -> bool:
        if first_line.startswith(_FIRST_LINE_RECORDS) and ("ATOM  " in content or "HETATM" in content):
            return True
        return _ATOM_RECORD_RE.search(content) is not None

    def _plausible(self, content: str) -> bool:
        if "ATOM" in content or "HETATM" in content:
            return True
        return COORD_TRIPLE_RE.search(content) is not None

    def parse(self, content: str) -> Structure:
        builder = StructureBuilder()
        name = ""
        title = ""
        method = None
        resolution = None
        release_date = None
        source = None
        skipped = 0

        for line in content.splitlines():
            if line.startswith("HEADER"):
                name = line[10:50].strip()
                release_date = line[50:59].strip() or None
                source = line[62:66].strip() or None

            elif line.startswith("TITLE"):
                title += line[10:].strip() + " "

            elif line.startswith("EXPDTA"):
                method = line[10:79].strip() or None

            elif line.startswith("REMARK"):
                if line[7:10].strip() == "2" and "RESOLUTION" in line.upper():
                    m = _RESOLUTION_RE.search(line)
                    if m:
                        resolution = float(m.group(1))

            elif line.startswith(("ATOM", "HETATM")):
                record = parse_atom_line(line)
                if record is None:
                    skipped += 1
                    continue
                builder.add_record(record)

            elif line.startswith("HELIX"):
                span = _parse_range(line, slice(19, 20), slice(21, 25), slice(33, 37))
                if span:
                    builder.mark_secondary(*span, SecondaryStructure.HELIX)

            elif line.startswith("SHEET"):
                span = _parse_range(line, slice(21, 22), slice(22, 26), slice(33, 37))
                if span:
                    builder.mark_secondary(*span, SecondaryStructure.SHEET)

            elif line.startswith("SITE"):
                residue_number = opt_int(line[23:27])
                if residue_number is not None:
                    builder.mark_functional(line[22:23].strip() or DEFAULT_CHAIN, residue_number, "binding")

        if skipped:
            logger.debug("PDB: skipped %d atom records without usable coordinates", skipped)

        return builder.build(
            name=name or DEFAULT_NAME,
            description=title.strip(),
            file_format=FileFormat.PDB,
            raw_content=content,
            source=source,
            resolution=resolution,
            experiment_method=method,
            release_date=release_date,
        )

    @staticmethod
    def extensions() -> list[str]:
        return [".pdb", ".ent"]
