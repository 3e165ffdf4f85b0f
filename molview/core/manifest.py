from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

COLUMNS = [
    "path",
    "format",
    "name",
    "source",
    "chain_count",
    "residue_count",
    "atom_count",
    "helix_residues",
    "sheet_residues",
    "loop_residues",
    "functional_residues",
    "fallback",
    "warning",
]


@dataclass(frozen=True)
class Manifest:
    """A table of parsed structure files.

    Convention:
      - one row per input file
      - ``fallback`` marks files kept only as raw content
      - ``warning`` holds the first recoverable warning, or None
    """

    df: pd.DataFrame

    @staticmethod
    def from_records(records: Iterable[dict]) -> "Manifest":
        return Manifest(pd.DataFrame(list(records), columns=COLUMNS))

    def save(self, path: Path) -> None:
        """Write as parquet or CSV, chosen by the file suffix."""
        if path.suffix == ".parquet":
            self.save_parquet(path)
        else:
            self.save_csv(path)

    def save_parquet(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.df.to_parquet(path, index=False)

    def save_csv(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.df.to_csv(path, index=False)

    @staticmethod
    def load(path: Path) -> "Manifest":
        if path.suffix == ".parquet":
            return Manifest(pd.read_parquet(path))
        return Manifest(pd.read_csv(path))

    def count(self) -> int:
        return int(len(self.df))

    def total_atoms(self) -> Optional[int]:
        if "atom_count" not in self.df.columns:
            return None
        return int(self.df["atom_count"].fillna(0).sum())
