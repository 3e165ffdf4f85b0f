"""Messages for the embedded 3D viewer, and PDB re-serialization.

The viewer consumes ``{type, content, format, representation, colorScheme}``
messages. ``content`` is the original file text when it is available;
otherwise the structure is written out as fixed-column PDB records that
``PDBFormatParser`` reads back to the same atoms, secondary structure and
binding sites.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from itertools import groupby
from typing import Iterator, Optional

from molview.config import MolviewSettings, load_settings
from molview.core.logging_utils import get_logger
from molview.parsers.base import Chain, FileFormat, SecondaryStructure, Structure

logger = get_logger(__name__)

# PDB fixed columns: one-character chain id, four-character residue number.
CHAIN_LETTERS = string.ascii_uppercase + string.ascii_lowercase + string.digits
MIN_RESIDUE_NUMBER = -999
MAX_RESIDUE_NUMBER = 9999


@dataclass(frozen=True)
class ViewerSettings:
    representation: str = "cartoon"
    color_scheme: str = "structure"
    background_color: str = "#F8F9FA"

    @classmethod
    def from_settings(cls, settings: Optional[MolviewSettings] = None) -> "ViewerSettings":
        s = settings or load_settings()
        return cls(
            representation=s.representation,
            color_scheme=s.color_scheme,
            background_color=s.background_color,
        )


# ======================================================================
# PDB records
# ======================================================================

def _atom_name(name: str) -> str:
    name = name[:4]
    return name if len(name) == 4 else f" {name:<3}"


def _runs(chain: Chain, kind: SecondaryStructure) -> Iterator[tuple[str, int, str, int]]:
    """Consecutive residues of one kind, as (start name, start id, end name, end id)."""
    for tagged, group in groupby(chain.residues, key=lambda r: r.secondary_structure == kind):
        if tagged:
            run = list(group)
            yield run[0].name, run[0].id, run[-1].name, run[-1].id


def _chain_letters(structure: Structure) -> dict[str, str]:
    """One-character chain id per chain; longer ids take the first unused letter."""
    taken = {c for c in structure.chain_ids if len(c) == 1}
    free = (letter for letter in CHAIN_LETTERS if letter not in taken)
    letters: dict[str, str] = {}
    for cid in structure.chain_ids:
        if len(cid) == 1:
            letters[cid] = cid
            continue
        letter = next(free, None)
        if letter is None:
            letter = cid[:1] or "A"
            logger.warning("PDB dump: no free chain letter for %r, chains will merge under %r", cid, letter)
        else:
            logger.warning("PDB dump: chain %r written as %r", cid, letter)
        letters[cid] = letter
    return letters


def _atom_records(structure: Structure, letters: dict[str, str]) -> Iterator[str]:
    for a in structure.atoms:
        yield (
            f"ATOM  {a.id % 100000:>5} {_atom_name(a.name or a.element)} "
            f"{a.residue[:3]:>3} {letters.get(a.chain, a.chain[:1])}{a.residue_number:>4}    "
            f"{a.x:8.3f}{a.y:8.3f}{a.z:8.3f}{1.0:6.2f}{0.0:6.2f}          {a.element[:2]:>2}"
        )


def _annotation_records(structure: Structure, letters: dict[str, str]) -> Iterator[str]:
    helix = sheet = site = 0
    for chain in structure.chains:
        c = letters[chain.id]
        for r1, start, r2, end in _runs(chain, SecondaryStructure.HELIX):
            helix += 1
            yield f"HELIX  {helix:>3} {helix:>3} {r1[:3]:>3} {c} {start:>4}  {r2[:3]:>3} {c} {end:>4}"
        for r1, start, r2, end in _runs(chain, SecondaryStructure.SHEET):
            sheet += 1
            yield f"SHEET  {sheet:>3} {'S' + str(sheet):>3}{1:>2} {r1[:3]:>3} {c}{start:>4}  {r2[:3]:>3} {c}{end:>4}"
        for r in chain.residues:
            if r.is_functional:
                site += 1
                yield f"SITE   {site:>3} {'S' + str(site):>3} {1:>2} {r.name[:3]:>3} {c}{r.id:>4}"


def to_pdb_records(structure: Structure) -> str:
    """Synthesize a PDB text dump of a structure.

    Annotation records follow the ATOM block because the PDB parser only
    applies HELIX/SHEET/SITE to chains it has already seen.
    """
    wide = sum(
        1 for a in structure.atoms if not MIN_RESIDUE_NUMBER <= a.residue_number <= MAX_RESIDUE_NUMBER
    )
    if wide:
        logger.warning(
            "PDB dump: %d atoms have residue numbers outside %d..%d; their columns will be misaligned",
            wide, MIN_RESIDUE_NUMBER, MAX_RESIDUE_NUMBER,
        )
    letters = _chain_letters(structure)
    lines = [f"HEADER    {structure.name[:40]}"]
    lines.append(f"TITLE     {structure.description or 'No description'}")
    lines.extend(_atom_records(structure, letters))
    lines.extend(_annotation_records(structure, letters))
    lines.append("END")
    return "\n".join(lines) + "\n"


# ======================================================================
# Viewer messages
# ======================================================================

def viewer_content(structure: Structure) -> tuple[str, FileFormat]:
    """Raw text in its own format when present, else a synthesized PDB dump."""
    if structure.raw_content.strip():
        return structure.raw_content, structure.file_format
    return to_pdb_records(structure), FileFormat.PDB


def viewer_message(structure: Structure, settings: Optional[ViewerSettings] = None) -> dict:
    settings = settings or ViewerSettings.from_settings()
    content, file_format = viewer_content(structure)
    return {
        "type": "loadPDB",
        "content": content,
        "format": file_format.value,
        "representation": settings.representation,
        "colorScheme": settings.color_scheme,
    }


def update_messages(settings: ViewerSettings) -> list[dict]:
    """Messages that restyle an already-loaded structure."""
    return [
        {
            "type": "updateRepresentation",
            "representation": settings.representation,
            "colorScheme": settings.color_scheme,
        },
        {"type": "updateBackground", "color": settings.background_color},
    ]
