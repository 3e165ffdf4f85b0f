from pathlib import Path

import pytest

from molview import summary
from molview.parsers.dispatch import parse_path
from molview.summary import (
    LLMSummarizer,
    SummaryText,
    build_prompt,
    export_summary_as_txt,
    fallback_summary,
    split_sections,
    summary_record,
)

FIXTURES = Path(__file__).resolve().parent / "fixtures"

COMPLETION = (
    "Hemoglobin carries oxygen in the blood.\n\n"
    "Its structural features include four chains rich in helices.\n\n"
    "The functional heme pocket binds oxygen.\n\n"
    "Its biological role is essential for respiration."
)


@pytest.fixture
def structure():
    return parse_path(FIXTURES / "sample.pdb").structure


class TestRecordAndPrompt:
    def test_summary_record(self, structure):
        record = summary_record(structure)
        assert record["name"] == "OXYGEN TRANSPORT"
        assert record["format"] == "pdb"
        assert record["chain_count"] == 2
        assert record["residue_count"] == 7
        assert record["atom_count"] == 9
        assert (record["helix_residues"], record["sheet_residues"], record["loop_residues"]) == (2, 2, 3)
        assert record["functional_residues"] == 1

    def test_prompt_mentions_counts(self, structure):
        prompt = build_prompt(summary_record(structure))
        assert prompt.startswith("Generate a plain-language summary of a PDB structure")
        assert "Number of atoms: 9" in prompt
        assert "- Alpha helices: 2 residues" in prompt
        assert "Functional regions: 1 residues identified as functional" in prompt

    def test_prompt_without_description(self, structure):
        record = dict(summary_record(structure), description="")
        assert "Description: Not provided" in build_prompt(record)


class TestSplitSections:
    def test_keyword_sections(self):
        s = split_sections("Hb", COMPLETION)
        assert s.name == "Hb"
        assert s.description == "Hemoglobin carries oxygen in the blood."
        assert s.structural_features.startswith("Its structural features")
        assert s.functional_regions.startswith("The functional heme")
        assert s.biological_significance.startswith("Its biological role")

    def test_missing_sections_use_defaults(self):
        s = split_sections("x", "Just one paragraph.")
        assert s.description == "Just one paragraph."
        assert s.structural_features == "No structural features identified"
        assert s.functional_regions == "No functional regions identified"
        assert s.biological_significance == "No biological significance information available"

    def test_empty_completion(self):
        assert split_sections("x", "  \n\n ").description == "No description available"


class TestLLMSummarizer:
    def test_payload(self, structure):
        payload = LLMSummarizer(url="http://example.invalid").payload(structure)
        roles = [m["role"] for m in payload["messages"]]
        assert roles == ["system", "user"]
        assert "Number of chains: 2" in payload["messages"][1]["content"]

    def test_summarize(self, structure, monkeypatch):
        calls = []

        def fake_request(url, payload, timeout):
            calls.append((url, timeout))
            return {"completion": COMPLETION}

        monkeypatch.setattr(summary, "_request", fake_request)
        result = LLMSummarizer(url="http://example.invalid", timeout=5).summarize(structure)
        assert calls == [("http://example.invalid", 5)]
        assert result.name == "OXYGEN TRANSPORT"
        assert result.functional_regions.startswith("The functional heme")

    @pytest.mark.parametrize("response", [None, {}, {"completion": ""}, {"completion": 42}, ["x"]])
    def test_bad_response_falls_back(self, structure, monkeypatch, response):
        monkeypatch.setattr(summary, "_request", lambda url, payload, timeout: response)
        result = LLMSummarizer(url="http://example.invalid").summarize(structure)
        assert result == fallback_summary("OXYGEN TRANSPORT")

    def test_settings_defaults(self, monkeypatch):
        monkeypatch.setenv("MOLVIEW_SUMMARY_URL", "http://configured.invalid/")
        monkeypatch.setenv("MOLVIEW_SUMMARY_TIMEOUT", "12.5")
        s = LLMSummarizer()
        assert s.url == "http://configured.invalid/"
        assert s.timeout == 12.5

    @pytest.mark.parametrize("body", [b"\xff\xfe{}", b"not json", b""])
    def test_undecodable_body_falls_back(self, structure, monkeypatch, body):
        class FakeResponse:
            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

            def read(self):
                return body

        monkeypatch.setattr(summary, "urlopen", lambda req, timeout: FakeResponse())
        result = LLMSummarizer(url="http://example.invalid", timeout=1).summarize(structure)
        assert result == fallback_summary("OXYGEN TRANSPORT")

    def test_unreachable_endpoint(self, structure):
        result = LLMSummarizer(url="http://127.0.0.1:9/", timeout=1).summarize(structure)
        assert result.description == "Failed to generate summary"


def test_export_summary_as_txt():
    text = export_summary_as_txt(SummaryText("Hb", "d", "s", "f", "b"))
    assert text.splitlines() == [
        "MOLECULAR STRUCTURE SUMMARY: Hb",
        "",
        "DESCRIPTION",
        "d",
        "",
        "STRUCTURAL FEATURES",
        "s",
        "",
        "FUNCTIONAL REGIONS",
        "f",
        "",
        "BIOLOGICAL SIGNIFICANCE",
        "b",
    ]
