"""Detect -> validate -> parse, with a raw-content fallback on parser failure.

Only UnknownFormatError and FormatMismatchError reach the caller. Any
exception raised inside a parser is logged and turned into a fallback
structure that keeps the raw text, so a viewer always has something to
attempt to display.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from molview.core.logging_utils import get_logger
from molview.parsers.base import FileFormat, Structure, new_structure_id, read_text
from molview.parsers.detect import detect_format, validate_content
from molview.parsers.errors import FormatMismatchError, UnknownFormatError
from molview.parsers.registry import get_parser

logger = get_logger(__name__)

FALLBACK_DESCRIPTION = "This file could not be fully parsed, but the viewer will attempt to render it directly."


@dataclass(frozen=True)
class ParseResult:
    """A structure plus any recoverable warnings raised while producing it."""

    structure: Structure
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.warnings


def fallback_structure(content: str, file_format: FileFormat, filename: Optional[str] = None) -> Structure:
    """Minimal structure carrying only the raw text."""
    return Structure(
        id=new_structure_id(),
        name=filename or f"Unreadable {file_format.value.upper()} File",
        description=FALLBACK_DESCRIPTION,
        file_format=file_format,
        raw_content=content,
        is_fallback=True,
    )


def _claimed_format(file_format: FileFormat | str | None, filename: Optional[str]) -> Optional[FileFormat]:
    if file_format is None:
        return None
    try:
        return FileFormat(file_format)
    except ValueError:
        raise UnknownFormatError(filename) from None


def parse_structure(
    content: str,
    filename: Optional[str] = None,
    file_format: FileFormat | str | None = None,
) -> ParseResult:
    """Parse molecular file text into a Structure.

    ``filename`` is only used for the extension fallback of detection and
    as the name of a fallback structure. ``file_format`` overrides
    detection; the content is still validated against it.

    Raises:
        UnknownFormatError: no signature, extension or coordinate pattern matched.
        FormatMismatchError: the content is implausible for the chosen format.
    """
    content = content or ""
    detected = detect_format(content, filename)
    chosen = _claimed_format(file_format, filename) or detected
    if chosen is None:
        raise UnknownFormatError(filename)

    if not validate_content(content, chosen):
        raise FormatMismatchError(chosen.value, detected.value if detected else None)

    try:
        structure = get_parser(chosen).parse(content)
    except Exception as e:
        logger.warning("Failed to parse %s as %s: %s", filename or "<content>", chosen.value, e)
        warning = (
            f"The {chosen.value.upper()} file could not be fully parsed ({e}); "
            "showing the raw content instead."
        )
        return ParseResult(fallback_structure(content, chosen, filename), (warning,))

    warnings: tuple[str, ...] = ()
    if structure.num_atoms == 0:
        warnings = (f"No atoms could be read from this {chosen.value.upper()} file.",)
    logger.debug("Parsed %r", structure)
    return ParseResult(structure, warnings)


async def parse_protein_file(content: str, filename: Optional[str] = None) -> ParseResult:
    """Awaitable entry point for non-blocking callers; parsing itself is synchronous."""
    return parse_structure(content, filename)


def parse_path(path: Path | str, file_format: FileFormat | str | None = None) -> ParseResult:
    """Read a file from disk and parse it."""
    path = Path(path)
    return parse_structure(read_text(path), path.name, file_format)
