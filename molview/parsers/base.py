"""Structural model and parser interface shared by every format.

Hierarchy:
    Structure (top-level)
    ├── chains: tuple[Chain]          (first-seen order)
    │   └── residues: tuple[Residue]  (ascending id)
    │       └── atoms: tuple[Atom]    (parse order)
    └── atoms (flat view, parse order)

All model types are frozen. Parsers accumulate into a StructureBuilder
(see builder.py) and freeze once at the end of a parse call.
"""

from __future__ import annotations

import gzip
import math
import re
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import ClassVar, Iterator, Optional

MIN_CONTENT_LENGTH = 10
DEFAULT_CHAIN = "A"
UNKNOWN_RESIDUE = "UNK"

# Three decimal numbers in a row: the loose shape of an xyz coordinate.
COORD_TRIPLE_RE = re.compile(r"-?\d+\.\d+\s+-?\d+\.\d+\s+-?\d+\.\d+")

_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_INT_RE = re.compile(r"^[+-]?\d+$")


class FileFormat(str, Enum):
    PDB = "pdb"
    CIF = "cif"
    MOL = "mol"
    MOL2 = "mol2"

    def __str__(self) -> str:
        return self.value


class SecondaryStructure(str, Enum):
    HELIX = "helix"
    SHEET = "sheet"
    LOOP = "loop"

    def __str__(self) -> str:
        return self.value


# ======================================================================
# Field helpers
# ======================================================================

def opt_float(s: Optional[str]) -> Optional[float]:
    """Parse a finite float, or None. Rejects nan/inf and underscore literals."""
    if s is None:
        return None
    s = s.strip()
    if not _FLOAT_RE.match(s):
        return None
    value = float(s)
    return value if math.isfinite(value) else None


def opt_int(s: Optional[str]) -> Optional[int]:
    if s is None:
        return None
    s = s.strip()
    if not _INT_RE.match(s):
        return None
    return int(s)


def new_structure_id() -> str:
    """Opaque, timestamp-based id. Only uniqueness matters."""
    return f"{time.time_ns() // 1_000_000}-{uuid.uuid4().hex[:8]}"


def read_text(path: Path | str) -> str:
    """Read a structure file as text, transparently opening .gz files."""
    path = Path(path)
    if path.suffix == ".gz":
        with gzip.open(path, "rt", encoding="utf-8", errors="ignore") as f:
            return f.read()
    with open(path, "r", encoding="utf-8", errors="ignore", newline="") as f:
        return f.read()


# ======================================================================
# Value objects
# ======================================================================

@dataclass(frozen=True)
class Atom:
    """Single atom with coordinates and ownership."""

    id: int
    element: str
    x: float
    y: float
    z: float
    residue: str
    residue_number: int
    chain: str = DEFAULT_CHAIN
    name: str = ""

    @property
    def coords(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Residue:
    """One monomer unit inside a chain."""

    id: int
    name: str
    chain: str
    atoms: tuple[Atom, ...] = ()
    secondary_structure: SecondaryStructure = SecondaryStructure.LOOP
    is_functional: bool = False
    functional_type: Optional[str] = None

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)


@dataclass(frozen=True)
class Chain:
    """Polymer strand; residues are sorted by ascending id."""

    id: str
    residues: tuple[Residue, ...] = ()

    @property
    def num_residues(self) -> int:
        return len(self.residues)

    def get_residue(self, residue_id: int) -> Optional[Residue]:
        for r in self.residues:
            if r.id == residue_id:
                return r
        return None

    def __len__(self) -> int:
        return len(self.residues)

    def __iter__(self) -> Iterator[Residue]:
        return iter(self.residues)


@dataclass(frozen=True)
class Structure:
    """Root model of one parsed molecular file.

    ``raw_content`` always holds the verbatim input. ``is_fallback`` is set
    only on the raw-content-only structure built after a parser failure;
    a clean parse that found no atoms is not a fallback.
    """

    id: str
    name: str
    file_format: FileFormat
    raw_content: str
    description: str = ""
    chains: tuple[Chain, ...] = ()
    atoms: tuple[Atom, ...] = ()
    source: Optional[str] = None
    resolution: Optional[float] = None
    experiment_method: Optional[str] = None
    release_date: Optional[str] = None
    is_fallback: bool = False

    @property
    def num_chains(self) -> int:
        return len(self.chains)

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)

    @property
    def num_residues(self) -> int:
        return sum(len(c.residues) for c in self.chains)

    @property
    def residues(self) -> Iterator[Residue]:
        for c in self.chains:
            yield from c.residues

    @property
    def chain_ids(self) -> list[str]:
        return [c.id for c in self.chains]

    @property
    def functional_residue_count(self) -> int:
        return sum(1 for r in self.residues if r.is_functional)

    def get_chain(self, chain_id: str) -> Optional[Chain]:
        for c in self.chains:
            if c.id == chain_id:
                return c
        return None

    def secondary_structure_counts(self) -> dict[str, int]:
        """Residue tallies per secondary-structure class."""
        counts = {s.value: 0 for s in SecondaryStructure}
        for r in self.residues:
            counts[r.secondary_structure.value] += 1
        return counts

    def with_raw_content(self, raw_content: str) -> "Structure":
        return replace(self, raw_content=raw_content)

    def to_dict(self) -> dict:
        """Flat record for manifests and JSON output."""
        ss = self.secondary_structure_counts()
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "format": self.file_format.value,
            "source": self.source,
            "resolution": self.resolution,
            "experiment_method": self.experiment_method,
            "release_date": self.release_date,
            "chain_count": self.num_chains,
            "residue_count": self.num_residues,
            "atom_count": self.num_atoms,
            "helix_residues": ss["helix"],
            "sheet_residues": ss["sheet"],
            "loop_residues": ss["loop"],
            "functional_residues": self.functional_residue_count,
            "chain_ids": self.chain_ids,
        }

    def atoms_frame(self):
        """Atoms as a pandas DataFrame, one row per atom in parse order."""
        import pandas as pd

        columns = ["id", "name", "element", "x", "y", "z", "residue", "residue_number", "chain"]
        return pd.DataFrame(
            [[getattr(a, c) for c in columns] for a in self.atoms],
            columns=columns,
        )

    def __repr__(self) -> str:
        return (
            f"<Structure {self.name!r} format={self.file_format.value} "
            f"chains={self.num_chains} residues={self.num_residues} atoms={self.num_atoms}>"
        )


# ======================================================================
# Parser protocol
# ======================================================================

class StructureParser(ABC):
    """Turn the text of one format into a Structure.

    One parser per format. The detector asks each registered parser to
    ``sniff`` the content, the orchestrator gates parsing on ``validate``.
    """

    file_format: ClassVar[FileFormat]

    @abstractmethod
    def sniff(self, content: str, first_line: str) -> bool:
        """Content-signature check used by format detection."""
        ...

    def validate(self, content: str) -> bool:
        """Permissive plausibility check; rejects only flagrant mismatches."""
        if not content or len(content) < MIN_CONTENT_LENGTH:
            return False
        return self._plausible(content)

    @abstractmethod
    def _plausible(self, content: str) -> bool: ...

    @abstractmethod
    def parse(self, content: str) -> Structure:
        """Parse text into a Structure. May raise StructuralParseFailure."""
        ...

    def parse_file(self, path: Path | str) -> Structure:
        return self.parse(read_text(path))

    @staticmethod
    @abstractmethod
    def extensions() -> list[str]:
        """File extensions this parser handles (e.g. ['.pdb', '.ent'])."""
        ...
