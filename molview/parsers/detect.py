"""Format detection and content validation.

Detection evaluates evidence tiers top to bottom, first match wins:

1. Content signatures, asked of each registered parser in order
   (PDB, mmCIF, MOL, MOL2). PDB signatures therefore win ties, e.g. a
   file with a HEADER first line and ATOM records that also mentions
   ``_atom_site.`` is PDB.
2. The filename extension.
3. Any line holding three decimal numbers in a row is taken as PDB.

Both functions are pure and never raise on bad content.
"""

from __future__ import annotations

from typing import Optional

from molview.parsers.base import COORD_TRIPLE_RE, FileFormat
from molview.parsers.registry import get_parser, parser_for_filename, registered_parsers


def first_line(content: str) -> str:
    """First non-empty line, stripped."""
    for line in content.splitlines():
        line = line.strip()
        if line:
            return line
    return ""


def detect_format(content: str, filename: Optional[str] = None) -> Optional[FileFormat]:
    """Classify raw text as pdb, cif, mol or mol2; None when nothing matches."""
    content = content or ""
    head = first_line(content)

    for parser in registered_parsers():
        if parser.sniff(content, head):
            return parser.file_format

    if filename:
        parser = parser_for_filename(filename)
        if parser is not None:
            return parser.file_format

    for line in content.splitlines():
        if COORD_TRIPLE_RE.search(line):
            return FileFormat.PDB
    return None


def validate_content(content: str, file_format: FileFormat | str) -> bool:
    """True unless content is in flagrant mismatch with the claimed format."""
    return get_parser(file_format).validate(content or "")
