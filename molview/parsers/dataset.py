"""StructureDataset: a lazily parsed collection of structure files.

Each file goes through the same detect -> validate -> parse pipeline as
a single upload (see dispatch.py), so a dataset holds ParseResults:
partially broken files show up as fallback structures with a warning
instead of aborting the whole scan. Files of unknown or mismatched
format raise when accessed, like a single parse would.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, Optional, overload

from molview.core.logging_utils import get_logger
from molview.core.manifest import Manifest
from molview.parsers.base import FileFormat, Structure
from molview.parsers.dispatch import ParseResult, parse_path
from molview.parsers.errors import MolviewError

logger = get_logger(__name__)


class StructureDataset:
    """A dataset of parsed molecular structures.

    Usage::

        from molview.parsers import StructureDataset

        ds = StructureDataset.from_directory("structures/", pattern="*.pdb")
        for structure in ds:
            print(structure.name, structure.num_atoms)

        # Keep warnings alongside the structure
        result = ds.result(0)
        print(result.warnings)

        # Filter
        helical = ds.filter(lambda s: s.secondary_structure_counts()["helix"] > 0)
    """

    def __init__(self, paths: list[Path], file_format: Optional[FileFormat] = None):
        self._paths = paths
        self._file_format = file_format
        self._cache: dict[int, ParseResult] = {}

    @classmethod
    def from_paths(cls, paths: list[str | Path], file_format: Optional[FileFormat] = None) -> "StructureDataset":
        """Create from a list of file paths (strings or Path objects)."""
        return cls([Path(p) for p in paths], file_format=file_format)

    @classmethod
    def from_directory(
        cls,
        directory: str | Path,
        pattern: str = "*.pdb",
        file_format: Optional[FileFormat] = None,
    ) -> "StructureDataset":
        """Create from all matching files under a directory (recursive)."""
        d = Path(directory)
        paths = sorted(p for p in d.rglob(pattern) if p.is_file())
        logger.info("StructureDataset: found %d files matching '%s' in %s", len(paths), pattern, d)
        return cls(paths, file_format=file_format)

    def __len__(self) -> int:
        return len(self._paths)

    @overload
    def __getitem__(self, idx: int) -> Structure: ...
    @overload
    def __getitem__(self, idx: slice) -> list[Structure]: ...

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return [self.result(i).structure for i in range(*idx.indices(len(self)))]
        return self.result(idx).structure

    def __iter__(self) -> Iterator[Structure]:
        for i in range(len(self)):
            yield self.result(i).structure

    def result(self, idx: int) -> ParseResult:
        """Parse (once) and return the full ParseResult for one file."""
        if idx < 0:
            idx = len(self) + idx
        if idx in self._cache:
            return self._cache[idx]
        path = self._paths[idx]
        try:
            result = parse_path(path, self._file_format)
        except MolviewError as e:
            logger.error("Failed to parse %s: %s", path, e)
            raise
        for warning in result.warnings:
            logger.warning("%s: %s", path.name, warning)
        self._cache[idx] = result
        return result

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def filter(self, predicate: Callable[[Structure], bool]) -> "StructureDataset":
        """Return a new dataset with only structures matching the predicate.

        Note: this triggers parsing of all structures.
        """
        indices = [i for i in range(len(self)) if predicate(self.result(i).structure)]
        ds = StructureDataset([self._paths[i] for i in indices], file_format=self._file_format)
        for new_idx, old_idx in enumerate(indices):
            ds._cache[new_idx] = self._cache[old_idx]
        return ds

    def to_list(self) -> list[Structure]:
        """Parse all structures and return as a list."""
        return [self.result(i).structure for i in range(len(self))]

    def summary(self) -> dict:
        """Parse all and return summary statistics."""
        results = [self.result(i) for i in range(len(self))]
        formats: dict[str, int] = {}
        for r in results:
            fmt = r.structure.file_format.value
            formats[fmt] = formats.get(fmt, 0) + 1
        return {
            "total": len(results),
            "formats": formats,
            "fallbacks": sum(1 for r in results if r.structure.is_fallback),
            "with_warnings": sum(1 for r in results if r.warnings),
            "total_atoms": sum(r.structure.num_atoms for r in results),
            "total_chains": sum(r.structure.num_chains for r in results),
            "total_residues": sum(r.structure.num_residues for r in results),
        }

    def to_manifest(self, show_progress: bool = False) -> Manifest:
        """Parse all files into a Manifest; unreadable formats become rows with a warning."""
        indices = range(len(self))
        if show_progress:
            from tqdm import tqdm
            indices = tqdm(indices, desc="Parsing structures", unit="file")

        records = []
        for i in indices:
            path = self._paths[i]
            try:
                result = self.result(i)
            except MolviewError as e:
                records.append({"path": str(path), "fallback": True, "warning": str(e)})
                continue
            row = result.structure.to_dict()
            records.append({
                "path": str(path),
                "format": row["format"],
                "name": row["name"],
                "source": row["source"],
                "chain_count": row["chain_count"],
                "residue_count": row["residue_count"],
                "atom_count": row["atom_count"],
                "helix_residues": row["helix_residues"],
                "sheet_residues": row["sheet_residues"],
                "loop_residues": row["loop_residues"],
                "functional_residues": row["functional_residues"],
                "fallback": result.structure.is_fallback,
                "warning": result.warnings[0] if result.warnings else None,
            })
        return Manifest.from_records(records)

    def __repr__(self) -> str:
        return f"<StructureDataset n={len(self)} paths={self._paths[:3]}...>"
