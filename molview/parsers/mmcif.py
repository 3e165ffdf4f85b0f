"""mmCIF parser: pure Python, no external dependencies.

Reads the ``_atom_site`` loop through a small loop-table state machine and
resolves columns through synonym groups, so both PDBx exports and looser
CIF dialects yield atoms. When the loop yields nothing, a crude
coordinate-triple scan recovers what it can.

Single Responsibility: only handles mmCIF format.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

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

DEFAULT_NAME = "Unknown Protein"
MIN_ROW_TOKENS = 5

# First present synonym wins.
ID_KEYS = ("id", "label_atom_id")
ELEMENT_KEYS = ("type_symbol", "label_element")
X_KEYS = ("Cartn_x", "x_coord")
Y_KEYS = ("Cartn_y", "y_coord")
Z_KEYS = ("Cartn_z", "z_coord")
RESIDUE_KEYS = ("label_comp_id", "comp_id")
SEQ_KEYS = ("label_seq_id", "seq_id", "auth_seq_id")
CHAIN_KEYS = ("auth_asym_id", "label_asym_id", "asym_id")
ATOM_NAME_KEYS = ("label_atom_id", "auth_atom_id")

_TOKEN_RE = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|[^\s]+")


# ======================================================================
# Low-level mmCIF tokenizer
# ======================================================================

def _unwrap_value(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and s.startswith("'") and s.endswith("'"):
        return s[1:-1]
    if len(s) >= 2 and s.startswith('"') and s.endswith('"'):
        return s[1:-1]
    if s in (".", "?"):
        return ""
    return s


def tokenize_row(line: str) -> list[str]:
    """Split a loop row on whitespace, keeping quoted values whole."""
    return [_unwrap_value(v) for v in _TOKEN_RE.findall(line)]


def _tag_value(lines: Sequence[str], tag: str) -> Optional[str]:
    """Value of a single ``_category.item`` tag, quotes stripped.

    Handles the value on the same line, quoted on the next line, or in a
    ``;``-delimited text field.
    """
    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line.startswith(tag):
            continue
        rest = line[len(tag):]
        if rest and not rest[0].isspace():
            continue
        value = " ".join(rest.split())
        if not value and i + 1 < len(lines):
            nxt = lines[i + 1].strip()
            if nxt.startswith(";"):
                parts = [nxt[1:].strip()]
                for follow in lines[i + 2:]:
                    if follow.startswith(";"):
                        break
                    parts.append(follow.strip())
                value = " ".join(p for p in parts if p)
            elif nxt[:1] in ("'", '"'):
                value = nxt
        value = value.replace("'", "").replace('"', "").strip()
        return value if value not in ("", ".", "?") else None
    return None


def _pick(tokens: Sequence[str], columns: dict[str, int], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        idx = columns.get(key)
        if idx is not None and idx < len(tokens) and tokens[idx]:
            return tokens[idx]
    return None


def parse_atom_site_row(tokens: Sequence[str], columns: dict[str, int]) -> Optional[AtomRecord]:
    """Resolve one ``_atom_site`` row, or None when it has no usable coordinates."""
    if len(tokens) < MIN_ROW_TOKENS:
        return None
    x = opt_float(_pick(tokens, columns, X_KEYS))
    y = opt_float(_pick(tokens, columns, Y_KEYS))
    z = opt_float(_pick(tokens, columns, Z_KEYS))
    if x is None or y is None or z is None:
        return None
    residue_number = opt_int(_pick(tokens, columns, SEQ_KEYS))
    return AtomRecord(
        atom_id=opt_int(_pick(tokens, columns, ID_KEYS)),
        element=_pick(tokens, columns, ELEMENT_KEYS) or "X",
        x=x,
        y=y,
        z=z,
        residue=_pick(tokens, columns, RESIDUE_KEYS) or UNKNOWN_RESIDUE,
        residue_number=residue_number if residue_number is not None else 1,
        chain=_pick(tokens, columns, CHAIN_KEYS) or DEFAULT_CHAIN,
        name=_pick(tokens, columns, ATOM_NAME_KEYS) or "",
    )


def _read_atom_site(lines: Sequence[str], builder: StructureBuilder) -> None:
    columns: dict[str, int] = {}
    in_atom_site = False
    skipped = 0
    i = 0
    n = len(lines)

    while i < n:
        line = lines[i].strip()

        if line == "loop_":
            headers = []
            j = i + 1
            while j < n and lines[j].strip().startswith("_"):
                headers.append(lines[j].split()[0])
                j += 1
            columns = {
                h[len("_atom_site."):]: k
                for k, h in enumerate(headers)
                if h.startswith("_atom_site.")
            }
            in_atom_site = bool(columns)
            i = j
            continue

        if not line or line.startswith("#"):
            i += 1
            continue

        if line.startswith(("_", "data_")):
            in_atom_site = False
        elif in_atom_site:
            record = parse_atom_site_row(tokenize_row(line), columns)
            if record is None:
                skipped += 1
            else:
                builder.add_record(record)
        i += 1

    if skipped:
        logger.debug("mmCIF: skipped %d atom_site rows", skipped)


def _scan_coordinates(lines: Sequence[str], builder: StructureBuilder) -> None:
    """Take the first run of three numbers on each data line as an atom."""
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith(("#", "_", "loop_")):
            continue
        tokens = line.split()
        for k in range(len(tokens) - 2):
            x, y, z = (opt_float(t) for t in tokens[k:k + 3])
            if x is not None and y is not None and z is not None:
                builder.add_atom(
                    atom_id=None,
                    element="C",
                    x=x,
                    y=y,
                    z=z,
                    residue=UNKNOWN_RESIDUE,
                    residue_number=1,
                    chain=DEFAULT_CHAIN,
                )
                break


# ======================================================================
# CIFParser: StructureParser for mmCIF
# ======================================================================

class CIFParser(StructureParser):
    """Parse mmCIF text (.cif, .mmcif) into a Structure."""

    file_format = FileFormat.CIF

    def sniff(self, content: str, first_line: str) -> bool:
        return (
            first_line.startswith("data_")
            or "_atom_site." in content
            or ("loop_" in content and "_atom_site." in content)
            or "_entry.id" in content
            or "_chem_comp." in content
        )

    def _plausible(self, content: str) -> bool:
        return "_" in content and ("loop_" in content or "data_" in content or "_atom" in content)

    def parse(self, content: str) -> Structure:
        lines = content.splitlines()
        builder = StructureBuilder()

        _read_atom_site(lines, builder)
        if builder.num_atoms == 0:
            logger.info("mmCIF: no atom_site rows found, scanning for coordinate triples")
            _scan_coordinates(lines, builder)

        name = _tag_value(lines, "_struct.title") or _tag_value(lines, "_entity.pdbx_description")
        resolution = _tag_value(lines, "_refine.ls_d_res_high") or _tag_value(lines, "_reflns.d_resolution_high")

        return builder.build(
            name=name or DEFAULT_NAME,
            description=_tag_value(lines, "_struct_keywords.text") or "",
            file_format=FileFormat.CIF,
            raw_content=content,
            source=_tag_value(lines, "_entry.id"),
            resolution=opt_float(resolution),
            experiment_method=_tag_value(lines, "_exptl.method"),
            release_date=_tag_value(lines, "_pdbx_database_status.recvd_initial_deposition_date"),
        )

    @staticmethod
    def extensions() -> list[str]:
        return [".cif", ".mmcif"]
