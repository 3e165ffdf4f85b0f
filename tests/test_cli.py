import json
import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from molview import summary
from molview.cli import app
from molview.core.manifest import Manifest

FIXTURES = Path(__file__).resolve().parent / "fixtures"

runner = CliRunner()


@pytest.fixture
def pdb_file() -> str:
    return str(FIXTURES / "sample.pdb")


class TestDetect:
    @pytest.mark.parametrize("name, tag", [("sample.pdb", "pdb"), ("sample.cif", "cif"), ("sample.mol2", "mol2")])
    def test_detect(self, name, tag):
        result = runner.invoke(app, ["detect", str(FIXTURES / name)])
        assert result.exit_code == 0
        assert result.stdout.strip() == tag

    def test_unknown(self, tmp_path: Path):
        path = tmp_path / "notes.txt"
        path.write_text("just some prose")
        result = runner.invoke(app, ["detect", str(path)])
        assert result.exit_code == 1


class TestParse:
    def test_summary_line(self, pdb_file):
        result = runner.invoke(app, ["parse", pdb_file])
        assert result.exit_code == 0
        assert "OXYGEN TRANSPORT [pdb]" in result.stdout
        assert "atoms=9" in result.stdout
        assert "helix=2 sheet=2 loop=3" in result.stdout

    def test_json(self, pdb_file):
        result = runner.invoke(app, ["parse", pdb_file, "--json"])
        assert result.exit_code == 0
        record = json.loads(result.stdout)
        assert record["atom_count"] == 9
        assert record["chain_ids"] == ["A", "B"]
        assert record["resolution"] == 1.74

    def test_format_mismatch(self, pdb_file):
        result = runner.invoke(app, ["parse", pdb_file, "--format", "mol2"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_fallback_warns(self, tmp_path: Path):
        path = tmp_path / "broken.mol"
        path.write_text("ethanol\n  3  2  0  0  0  0  0  0  0  0999 V2000")
        result = runner.invoke(app, ["parse", str(path)])
        assert result.exit_code == 0
        assert "Warning:" in result.output
        assert "atoms=0" in result.output


def test_export_pdb(tmp_path: Path):
    out = tmp_path / "out" / "ethanol.pdb"
    result = runner.invoke(app, ["export-pdb", str(FIXTURES / "sample.mol"), str(out)])
    assert result.exit_code == 0
    text = out.read_text()
    assert text.startswith("HEADER    ethanol")
    assert text.count("\nATOM  ") == 3


def test_viewer_message(pdb_file):
    result = runner.invoke(app, ["viewer-message", pdb_file, "--representation", "ribbon"])
    assert result.exit_code == 0
    msg = json.loads(result.stdout)
    assert msg["type"] == "loadPDB"
    assert msg["format"] == "pdb"
    assert msg["representation"] == "ribbon"
    assert msg["content"].startswith("HEADER")


def test_scan(tmp_path: Path):
    src = tmp_path / "in"
    src.mkdir()
    for name in ("sample.pdb", "sample.cif", "sample.mol", "sample.mol2"):
        shutil.copy(FIXTURES / name, src / name)
    out = tmp_path / "manifest.csv"
    result = runner.invoke(app, ["scan", str(src), "--out", str(out), "--pattern", "sample.*", "--no-progress"])
    assert result.exit_code == 0
    m = Manifest.load(out)
    assert m.count() == 4
    assert m.total_atoms() == 21


class TestSummarize:
    def test_dry_run(self, pdb_file):
        result = runner.invoke(app, ["summarize", pdb_file, "--dry-run"])
        assert result.exit_code == 0
        assert "Number of residues: 7" in result.stdout

    def test_with_endpoint(self, pdb_file, monkeypatch):
        monkeypatch.setattr(
            summary,
            "_request",
            lambda url, payload, timeout: {"completion": "A protein.\n\nStructural notes."},
        )
        result = runner.invoke(app, ["summarize", pdb_file, "--url", "http://example.invalid"])
        assert result.exit_code == 0
        assert result.stdout.startswith("MOLECULAR STRUCTURE SUMMARY: OXYGEN TRANSPORT")
        assert "Structural notes." in result.stdout
