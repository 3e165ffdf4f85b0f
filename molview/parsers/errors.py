"""Exceptions raised by the parsing pipeline.

Only UnknownFormatError and FormatMismatchError end a parse request.
StructuralParseFailure is raised by parsers and recovered by the
orchestrator into a fallback structure.
"""

from __future__ import annotations

from typing import Optional

SUPPORTED_FORMATS_HINT = "Please upload a PDB (.pdb), mmCIF (.cif), MOL (.mol), or MOL2 (.mol2) file."


class MolviewError(Exception):
    """Base class for molview errors."""


class UnknownFormatError(MolviewError, ValueError):
    """Content matched no known signature and the filename gave no hint."""

    def __init__(self, filename: Optional[str] = None):
        self.filename = filename
        super().__init__(f"Unknown or unsupported file format. {SUPPORTED_FORMATS_HINT}")


class FormatMismatchError(MolviewError, ValueError):
    """Content is implausible for the format it was claimed to be."""

    def __init__(self, expected: str, detected: Optional[str] = None):
        self.expected = expected
        self.detected = detected
        if detected and detected != expected:
            msg = (
                f"The file was expected to be a {expected.upper()} file but looks like "
                f"{detected.upper()}; its content is invalid for {expected.upper()}."
            )
        else:
            msg = f"The file appears to be a {expected.upper()} file but has invalid or corrupted content."
        super().__init__(msg)


class StructuralParseFailure(MolviewError):
    """A parser could not build a structure from otherwise valid-looking content."""
