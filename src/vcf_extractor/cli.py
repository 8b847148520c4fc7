"""vcf-extractor: Ion Torrent VCF extraction and filtering CLI."""

import logging
import re
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from . import __version__
from .config import (
    AssayMode,
    ConfigValidationError,
    ExtractorConfig,
    load_config,
    validate_options,
)
from .extractor import VCFExtractor
from .filters import FilterKind, build_filter_selection, read_lookup_file
from .query import QueryToolError
from .report import render_report
from .rows import MalformedRowError
from .tally import render_tally, tally_runs


def version_callback(value: bool) -> None:
    if value:
        print(__version__)
        raise typer.Exit()


app = typer.Typer(
    name="vcf-extractor",
    help="Extract, normalize and filter variant calls from Ion Torrent VCF files",
)
console = Console()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = None,
) -> None:
    pass


def setup_logging(verbose: bool, quiet: bool) -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("vcf_extractor").setLevel(level)


def _split_terms(value: str | None) -> list[str]:
    if not value:
        return []
    return [term for term in re.split(r"[\s,]+", value) if term]


def _write_output(text: str, output: Path | None) -> None:
    if output:
        output.write_text(text)
        console.print(f"Writing data to '{output}'")
    else:
        console.print(text, end="", markup=False, highlight=False, soft_wrap=True)


def _print_filter_status(config: ExtractorConfig) -> None:
    def state(enabled: bool) -> str:
        return "[bold green]On[/bold green]" if enabled else "[bold red]Off[/bold red]"

    console.print(f"[cyan]INFO:[/cyan] OVAT filter status: {state(config.only_annotated)}")
    console.print(f"[cyan]INFO:[/cyan] Hotspot ID filter status: {state(config.only_hotspot)}")
    console.print(
        f"[cyan]INFO:[/cyan] NOCALLs output to results: {state(not config.drop_nocall)}"
    )
    console.print(
        f"[cyan]INFO:[/cyan] Reference calls output to results: {state(not config.drop_ref)}"
    )


@app.command()
def extract(
    vcf_path: Path = typer.Argument(..., help="Ion Torrent or Ion Reporter VCF file"),
    annot: bool = typer.Option(
        False, "--annot", "-a", help="Add Ion Reporter and Oncomine annotations to the output"
    ),
    cfdna: bool = typer.Option(
        False, "--cfdna", "-c", help="Data is from a high-sensitivity cfDNA assay"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write output to a file instead of STDOUT"
    ),
    pos: str | None = typer.Option(
        None, "--pos", "-p", help="Only output variants at these positions ('chr#:position')"
    ),
    hotspot_id: str | None = typer.Option(
        None, "--id", "-i", help="Only output variants with these hotspot IDs (e.g. COSM476)"
    ),
    gene: str | None = typer.Option(
        None, "--gene", "-g", help="Comma separated gene symbols; requires --annot"
    ),
    lookup: Path | None = typer.Option(
        None, "--lookup", "-l", help="File of positions or hotspot IDs to query"
    ),
    fuzzy: int = typer.Option(
        0, "--fuzzy", "-f", help="Strip this many digits (max 3) from position queries"
    ),
    noref: bool = typer.Option(False, "--noref", "-n", help="Remove reference calls"),
    nocall: bool = typer.Option(False, "--nocall", "-N", help="Remove NOCALL entries"),
    ovat: bool = typer.Option(
        False, "--ovat", "-O", help="Only report Oncomine annotated variants"
    ),
    hotspots_only: bool = typer.Option(
        False, "--hs", "-H", help="Only report variants with a hotspot ID"
    ),
    config_file: Path | None = typer.Option(
        None, "--config", help="TOML configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Minimal output"),
) -> None:
    """Output a table of the variant calls in a VCF, optionally filtered."""
    setup_logging(verbose, quiet)

    if not vcf_path.exists():
        console.print(f"[red]Error: VCF file not found: {vcf_path}[/red]")
        raise typer.Exit(1)

    overrides = {
        key: value
        for key, value in {
            "drop_ref": noref,
            "drop_nocall": nocall,
            "include_annotations": annot,
            "only_annotated": ovat,
            "only_hotspot": hotspots_only,
        }.items()
        if value
    }
    if cfdna:
        overrides["assay_mode"] = AssayMode.HIGH_SENSITIVITY.value
    if fuzzy:
        overrides["fuzzy_digits"] = fuzzy

    positions = _split_terms(pos)
    hotspot_ids = _split_terms(hotspot_id)
    genes = _split_terms(gene)

    try:
        if config_file:
            config = load_config(config_file, overrides)
        else:
            config = ExtractorConfig(**overrides)

        if lookup:
            if positions or hotspot_ids:
                raise ConfigValidationError(
                    "You can not use individual filters with the lookup file option"
                )
            kind, terms = read_lookup_file(lookup)
            if kind is FilterKind.HOTSPOT_ID:
                hotspot_ids = terms
            else:
                positions = terms

        if hotspot_ids and config.high_sensitivity:
            raise ConfigValidationError(
                "Can not use hotspot ID lookup with the high-sensitivity assay mode"
            )

        selection = build_filter_selection(positions, hotspot_ids, genes, config.fuzzy_digits)
        validate_options(config, gene_filter=bool(genes))
    except (ConfigValidationError, OSError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if verbose:
        _print_filter_status(config)
        console.print(f"[cyan]INFO:[/cyan] Applied filters: {selection.describe()}")

    extractor = VCFExtractor(config)
    try:
        extraction, result = extractor.extract_filtered(vcf_path, selection)
    except (ConfigValidationError, QueryToolError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    except MalformedRowError as e:
        console.print(f"[red]Error: Malformed vcf-query output, {e}[/red]")
        raise typer.Exit(1) from None
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    report = render_report(result, config, extraction.header.oncomine_annotation)
    _write_output(report, output)

    if extraction.warnings and verbose:
        console.print()
        for warning in extraction.warnings:
            console.print(f"[yellow]WARN:[/yellow] {warning}")


@app.command()
def tally(
    vcf_paths: list[Path] = typer.Argument(..., help="VCF files, one per run"),
    coverage: int = typer.Option(
        450, "--coverage", "-c", help="Only count variants with more than this coverage"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file (default: <N>_Run_Variant_Tally.tsv)"
    ),
    preview: bool = typer.Option(
        False, "--preview", "-p", help="Write output only to STDOUT to preview the results"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Minimal output"),
) -> None:
    """Report how often each variant is detected across a set of runs."""
    setup_logging(verbose, quiet)

    missing = [path for path in vcf_paths if not path.exists()]
    if missing:
        console.print(f"[red]Error: VCF file not found: {missing[0]}[/red]")
        raise typer.Exit(1)

    if coverage < 0:
        console.print(f"[red]Error: coverage cutoff must not be negative, got {coverage}[/red]")
        raise typer.Exit(1)

    config = ExtractorConfig(drop_ref=True, drop_nocall=True, coverage_cutoff=coverage)
    extractor = VCFExtractor(config)

    tables = []
    try:
        for vcf_path in vcf_paths:
            if not quiet:
                console.print(f"Processing {vcf_path.name}...")
            tables.append(extractor.extract(vcf_path).records)
    except (ConfigValidationError, QueryToolError, MalformedRowError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    tallies = tally_runs(tables, config.coverage_cutoff)
    text = render_tally(tallies, len(vcf_paths), config.coverage_cutoff)

    if preview:
        _write_output(text, None)
    else:
        _write_output(text, output or Path(f"{len(vcf_paths)}_Run_Variant_Tally.tsv"))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
