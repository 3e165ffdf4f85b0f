"""Plain-language structure summaries from an external text endpoint.

The endpoint is a black box: it receives a chat-style prompt built from
``summary_record`` and answers with free text, which is split into four
sections. Any transport or decoding failure yields a placeholder summary
rather than an exception.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from http.client import HTTPException
from typing import Any, Optional
from urllib.request import Request, urlopen

from molview.config import load_settings
from molview.core.logging_utils import get_logger
from molview.parsers.base import Structure

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a helpful biology educator who explains molecular structures in simple terms."
NOT_AVAILABLE = "Information not available"


@dataclass(frozen=True)
class SummaryText:
    name: str
    description: str
    structural_features: str
    functional_regions: str
    biological_significance: str


def summary_record(structure: Structure) -> dict:
    """The structure facts a summarizer needs."""
    ss = structure.secondary_structure_counts()
    return {
        "name": structure.name,
        "description": structure.description,
        "format": structure.file_format.value,
        "chain_count": structure.num_chains,
        "residue_count": structure.num_residues,
        "atom_count": structure.num_atoms,
        "helix_residues": ss["helix"],
        "sheet_residues": ss["sheet"],
        "loop_residues": ss["loop"],
        "functional_residues": structure.functional_residue_count,
    }


def build_prompt(record: dict) -> str:
    return "\n".join([
        f"Generate a plain-language summary of a {record['format'].upper()} structure "
        "with the following characteristics:",
        f"Name: {record['name']}",
        f"Description: {record['description'] or 'Not provided'}",
        f"Number of chains: {record['chain_count']}",
        f"Number of residues: {record['residue_count']}",
        f"Number of atoms: {record['atom_count']}",
        f"File format: {record['format']}",
        "Secondary structure composition:",
        f"- Alpha helices: {record['helix_residues']} residues",
        f"- Beta sheets: {record['sheet_residues']} residues",
        f"- Loops: {record['loop_residues']} residues",
        f"Functional regions: {record['functional_residues']} residues identified as functional",
        "",
        "Please provide:",
        "1. A brief description of what this molecule is and its biological role",
        "2. An explanation of its structural features in simple terms",
        "3. A description of the functional regions and their importance",
        "4. The biological significance of this molecule",
        "",
        "Keep the language accessible to high school or undergraduate biology students.",
    ])


def _find_section(sections: list[str], keyword: str, default: str) -> str:
    for s in sections:
        if keyword in s.lower():
            return s
    return default


def split_sections(name: str, completion: str) -> SummaryText:
    """Split a completion on blank lines and pick sections by keyword."""
    sections = [s.strip() for s in completion.split("\n\n") if s.strip()]
    return SummaryText(
        name=name,
        description=sections[0] if sections else "No description available",
        structural_features=_find_section(sections, "structural", "No structural features identified"),
        functional_regions=_find_section(sections, "functional", "No functional regions identified"),
        biological_significance=_find_section(
            sections, "biological", "No biological significance information available"
        ),
    )


def fallback_summary(name: str) -> SummaryText:
    return SummaryText(
        name=name,
        description="Failed to generate summary",
        structural_features=NOT_AVAILABLE,
        functional_regions=NOT_AVAILABLE,
        biological_significance=NOT_AVAILABLE,
    )


def export_summary_as_txt(summary: SummaryText) -> str:
    return "\n".join([
        f"MOLECULAR STRUCTURE SUMMARY: {summary.name}",
        "",
        "DESCRIPTION",
        summary.description,
        "",
        "STRUCTURAL FEATURES",
        summary.structural_features,
        "",
        "FUNCTIONAL REGIONS",
        summary.functional_regions,
        "",
        "BIOLOGICAL SIGNIFICANCE",
        summary.biological_significance,
    ])


def _request(url: str, payload: dict, timeout: float) -> Optional[dict]:
    """POST JSON and return the decoded response, or None."""
    headers = {"User-Agent": "molview/1.0", "Content-Type": "application/json"}
    req = Request(url, method="POST", headers=headers, data=json.dumps(payload).encode("utf-8"))
    try:
        with urlopen(req, timeout=timeout) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except (OSError, HTTPException, ValueError) as e:
        logger.warning("Summary request to %s failed: %s", url, e)
        return None


class LLMSummarizer:
    """Client for the chat-completion text endpoint."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None) -> None:
        settings = load_settings()
        self.url = url or settings.summary_url
        self.timeout = timeout if timeout is not None else settings.summary_timeout

    def payload(self, structure: Structure) -> dict[str, Any]:
        return {
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(summary_record(structure))},
            ]
        }

    def summarize(self, structure: Structure) -> SummaryText:
        data = _request(self.url, self.payload(structure), self.timeout)
        completion = data.get("completion") if isinstance(data, dict) else None
        if not isinstance(completion, str) or not completion.strip():
            return fallback_summary(structure.name)
        return split_sections(structure.name, completion)
