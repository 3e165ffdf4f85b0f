"""Parser registry (Open/Closed: register new formats without changes).

Registration order is detection order: the first parser whose signature
matches wins, so PDB is registered before mmCIF, MOL and MOL2.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Optional

from molview.parsers.base import FileFormat, StructureParser

_REGISTRY: dict[FileFormat, type[StructureParser]] = {}
_defaults_loaded = False


def register_parser(parser_cls: type[StructureParser]) -> None:
    """Register (or replace) the parser class for its declared format."""
    _REGISTRY[parser_cls.file_format] = parser_cls


def _ensure_registry() -> None:
    global _defaults_loaded
    if _defaults_loaded:
        return
    from molview.parsers.mmcif import CIFParser
    from molview.parsers.mol import MOLParser
    from molview.parsers.mol2 import MOL2Parser
    from molview.parsers.pdb_format import PDBFormatParser

    custom = dict(_REGISTRY)
    _REGISTRY.clear()
    for cls in (PDBFormatParser, CIFParser, MOLParser, MOL2Parser):
        _REGISTRY[cls.file_format] = custom.pop(cls.file_format, cls)
    _REGISTRY.update(custom)
    _defaults_loaded = True


def registered_parsers() -> list[StructureParser]:
    """Fresh parser instances in detection order."""
    _ensure_registry()
    return [cls() for cls in _REGISTRY.values()]


def get_parser(file_format: FileFormat | str) -> StructureParser:
    """Return a parser for a format tag ("pdb", "cif", "mol", "mol2")."""
    _ensure_registry()
    try:
        return _REGISTRY[FileFormat(file_format)]()
    except (KeyError, ValueError):
        available = [f.value for f in _REGISTRY]
        raise ValueError(f"No parser for format '{file_format}'. Supported: {available}") from None


def parser_for_filename(filename: str) -> Optional[StructureParser]:
    """Match a parser by file extension; a trailing ``.gz`` is ignored."""
    _ensure_registry()
    name = PurePath(filename).name.lower()
    if name.endswith(".gz"):
        name = name[:-3]
    by_ext = {ext.lower(): cls for cls in _REGISTRY.values() for ext in cls.extensions()}
    for ext in sorted(by_ext, key=len, reverse=True):
        if name.endswith(ext):
            return by_ext[ext]()
    return None
