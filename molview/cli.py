from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from molview.core.logging_utils import get_logger
from molview.parsers.base import read_text
from molview.parsers.dataset import StructureDataset
from molview.parsers.detect import detect_format
from molview.parsers.dispatch import ParseResult, parse_path
from molview.parsers.errors import MolviewError
from molview.render import ViewerSettings, to_pdb_records, viewer_message
from molview.summary import LLMSummarizer, build_prompt, export_summary_as_txt, summary_record

logger = get_logger(__name__)
app = typer.Typer(no_args_is_help=True)


def _parse_or_exit(path: Path, file_format: Optional[str]) -> ParseResult:
    try:
        result = parse_path(path, file_format)
    except MolviewError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return result


@app.command("detect")
def detect(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Structure file.")):
    """Print the detected format tag."""
    fmt = detect_format(read_text(path), path.name)
    if fmt is None:
        typer.echo("unknown", err=True)
        raise typer.Exit(code=1)
    typer.echo(fmt.value)


@app.command("parse")
def parse(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Structure file."),
    file_format: Optional[str] = typer.Option(None, "--format", help="Override detection: pdb, cif, mol or mol2."),
    as_json: bool = typer.Option(False, "--json", help="Print the full structure record as JSON."),
):
    """Parse a file and print a summary line (or JSON record)."""
    s = _parse_or_exit(path, file_format).structure
    if as_json:
        typer.echo(json.dumps(s.to_dict(), indent=2))
        return
    ss = s.secondary_structure_counts()
    typer.echo(
        f"{s.name} [{s.file_format.value}] chains={s.num_chains} residues={s.num_residues} "
        f"atoms={s.num_atoms} helix={ss['helix']} sheet={ss['sheet']} loop={ss['loop']} "
        f"functional={s.functional_residue_count}"
    )


@app.command("export-pdb")
def export_pdb(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Structure file."),
    out: Path = typer.Argument(..., help="Output .pdb path."),
):
    """Write the structure back out as PDB records."""
    s = _parse_or_exit(path, None).structure
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(to_pdb_records(s), encoding="utf-8")
    logger.info("Wrote %d atoms to %s", s.num_atoms, out)


@app.command("viewer-message")
def viewer_message_cmd(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Structure file."),
    representation: Optional[str] = typer.Option(None, help="cartoon, ball-and-stick, space-filling or ribbon."),
    color_scheme: Optional[str] = typer.Option(None, help="chain, residue, structure or custom."),
):
    """Print the JSON message that loads this file into the viewer."""
    s = _parse_or_exit(path, None).structure
    defaults = ViewerSettings.from_settings()
    settings = ViewerSettings(
        representation=representation or defaults.representation,
        color_scheme=color_scheme or defaults.color_scheme,
        background_color=defaults.background_color,
    )
    typer.echo(json.dumps(viewer_message(s, settings)))


@app.command("scan")
def scan(
    directory: Path = typer.Argument(..., exists=True, file_okay=False, help="Directory to scan."),
    out: Path = typer.Option(..., help="Output manifest (.csv or .parquet)."),
    pattern: str = typer.Option("*.pdb", help="Glob pattern, matched recursively."),
    progress: bool = typer.Option(True, help="Show a progress bar."),
):
    """Parse every matching file and write a manifest."""
    ds = StructureDataset.from_directory(directory, pattern=pattern)
    manifest = ds.to_manifest(show_progress=progress)
    manifest.save(out)
    logger.info("Wrote manifest to %s (count=%d, atoms=%s)", out, manifest.count(), manifest.total_atoms())


@app.command("summarize")
def summarize(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Structure file."),
    dry_run: bool = typer.Option(False, help="Print the prompt instead of calling the endpoint."),
    url: Optional[str] = typer.Option(None, help="Summary endpoint (default: MOLVIEW_SUMMARY_URL)."),
):
    """Generate a plain-language summary of a structure."""
    s = _parse_or_exit(path, None).structure
    if dry_run:
        typer.echo(build_prompt(summary_record(s)))
        return
    typer.echo(export_summary_as_txt(LLMSummarizer(url=url).summarize(s)))


if __name__ == "__main__":
    app()
