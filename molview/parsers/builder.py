"""Per-parse accumulator that groups atoms into residues and chains.

A builder lives for a single parse call. Parsers feed it atoms in file
order, optionally tag residue ranges, and call ``build`` once to freeze
the result into an immutable Structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from molview.parsers.base import (
    DEFAULT_CHAIN,
    UNKNOWN_RESIDUE,
    Atom,
    Chain,
    FileFormat,
    Residue,
    SecondaryStructure,
    Structure,
    new_structure_id,
)


class AtomRecord(NamedTuple):
    """One successfully parsed atom line, before id assignment."""

    atom_id: Optional[int]
    element: str
    x: float
    y: float
    z: float
    residue: str
    residue_number: int
    chain: str
    name: str = ""


@dataclass
class _ResidueDraft:
    id: int
    name: str
    chain: str
    atoms: list[Atom] = field(default_factory=list)
    secondary_structure: Optional[SecondaryStructure] = None
    functional_type: Optional[str] = None

    def freeze(self) -> Residue:
        return Residue(
            id=self.id,
            name=self.name,
            chain=self.chain,
            atoms=tuple(self.atoms),
            secondary_structure=self.secondary_structure or SecondaryStructure.LOOP,
            is_functional=self.functional_type is not None,
            functional_type=self.functional_type,
        )


class StructureBuilder:
    """Chain id -> residue number -> draft residue, in first-seen order."""

    def __init__(self) -> None:
        self._atoms: list[Atom] = []
        self._chains: dict[str, dict[int, _ResidueDraft]] = {}
        self._used_ids: set[int] = set()

    @property
    def num_atoms(self) -> int:
        return len(self._atoms)

    def has_chain(self, chain_id: str) -> bool:
        return chain_id in self._chains

    def _claim_id(self, requested: Optional[int]) -> int:
        if requested is not None and requested not in self._used_ids:
            self._used_ids.add(requested)
            return requested
        candidate = len(self._atoms) + 1
        while candidate in self._used_ids:
            candidate += 1
        self._used_ids.add(candidate)
        return candidate

    def add_atom(
        self,
        *,
        atom_id: Optional[int],
        element: str,
        x: float,
        y: float,
        z: float,
        residue: str,
        residue_number: int,
        chain: str,
        name: str = "",
    ) -> Atom:
        """Append an atom and file it under its chain and residue.

        ``atom_id`` may be None or a duplicate; the next free sequential id
        is used instead.
        """
        chain = chain or DEFAULT_CHAIN
        residue = residue or UNKNOWN_RESIDUE
        atom = Atom(
            id=self._claim_id(atom_id),
            element=element,
            x=x,
            y=y,
            z=z,
            residue=residue,
            residue_number=residue_number,
            chain=chain,
            name=name,
        )
        self._atoms.append(atom)

        self.ensure_residue(chain, residue_number, residue).atoms.append(atom)
        return atom

    def ensure_residue(self, chain_id: str, residue_number: int, residue: str) -> _ResidueDraft:
        """Return the draft residue, creating it (and its chain) when unseen."""
        chain_id = chain_id or DEFAULT_CHAIN
        residues = self._chains.setdefault(chain_id, {})
        draft = residues.get(residue_number)
        if draft is None:
            draft = _ResidueDraft(id=residue_number, name=residue or UNKNOWN_RESIDUE, chain=chain_id)
            residues[residue_number] = draft
        return draft

    def add_record(self, record: AtomRecord) -> Atom:
        return self.add_atom(**record._asdict())

    def mark_secondary(self, chain_id: str, start: int, end: int, kind: SecondaryStructure) -> int:
        """Tag residues start..end (inclusive) of an already-seen chain.

        Returns the number of residues tagged. Unknown chains are ignored.
        """
        residues = self._chains.get(chain_id)
        if residues is None:
            return 0
        tagged = 0
        for draft in residues.values():
            if start <= draft.id <= end:
                draft.secondary_structure = kind
                tagged += 1
        return tagged

    def mark_functional(self, chain_id: str, residue_number: int, functional_type: str = "binding") -> bool:
        residues = self._chains.get(chain_id)
        if residues is None or residue_number not in residues:
            return False
        residues[residue_number].functional_type = functional_type
        return True

    def build(
        self,
        *,
        name: str,
        file_format: FileFormat,
        raw_content: str,
        description: str = "",
        **metadata,
    ) -> Structure:
        """Freeze into a Structure; untagged residues default to loop."""
        chains = tuple(
            Chain(
                id=cid,
                residues=tuple(d.freeze() for d in sorted(residues.values(), key=lambda d: d.id)),
            )
            for cid, residues in self._chains.items()
        )
        return Structure(
            id=new_structure_id(),
            name=name,
            description=description,
            chains=chains,
            atoms=tuple(self._atoms),
            file_format=file_format,
            raw_content=raw_content,
            **metadata,
        )
