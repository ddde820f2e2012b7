"""trialderive CLI application entry point.

Usage:
    trialderive version
    trialderive derive <data-dir> --config study.json --output out/
    trialderive adsl <data-dir> --output out/
    trialderive validate <dataset-file> --name ADLB
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from trialderive.log import setup_logging
from trialderive.models.errors import StructuralInputError

app = typer.Typer(
    name="trialderive",
    help="Derive ADaM analysis datasets (study day, baseline, change) from SDTM.",
    no_args_is_help=True,
)

console = Console()


def _fail(message: str) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    return typer.Exit(code=1)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log DEBUG messages to the console"),
    ] = False,
) -> None:
    """Configure console logging for every command."""
    setup_logging("DEBUG" if verbose else "INFO")


@app.command()
def version() -> None:
    """Show the current version."""
    from trialderive import __version__

    console.print(f"trialderive {__version__}")


@app.command()
def derive(
    data_dir: Annotated[
        Path,
        typer.Argument(help="Directory of SDTM datasets (.sas7bdat, .xpt, or .csv)"),
    ],
    config_path: Annotated[
        Path,
        typer.Option("--config", "-c", help="Study configuration JSON"),
    ],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Directory for the analysis datasets"),
    ],
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write DEBUG logs to this file"),
    ] = None,
) -> None:
    """Build ADSL and the configured BDS datasets, then validate and export them.

    A file named adsl.* in the data directory is used as-is instead of
    building ADSL from DM. Exits with code 1 if any dataset failed.
    """
    from trialderive.cli.display import (
        display_batch_report,
        display_validation_issues,
        display_validation_summary,
    )
    from trialderive.io import XPTValidationError, read_study_folder, write_dataset
    from trialderive.models.config import load_study_config
    from trialderive.pipeline import run_analysis
    from trialderive.validation import ValidationEngine, ValidationReport

    if log_file is not None:
        setup_logging("INFO", log_file)

    try:
        config = load_study_config(config_path)
    except (FileNotFoundError, ValidationError) as e:
        raise _fail(f"Invalid study config: {e}") from e

    console.print(f"\n[bold blue][1/3][/bold blue] Reading datasets from {data_dir}...")
    try:
        sdtm = read_study_folder(data_dir)
    except (FileNotFoundError, ValueError) as e:
        raise _fail(str(e)) from e
    adsl = sdtm.pop("adsl", None)

    console.print("[bold blue][2/3][/bold blue] Deriving analysis datasets...")
    datasets, report = run_analysis(config, sdtm, adsl)
    console.print()
    display_batch_report(report, console)

    console.print(f"\n[bold blue][3/3][/bold blue] Validating and writing to {output}...")
    engine = ValidationEngine(config)
    results = engine.validate_all(datasets)
    display_validation_summary(
        ValidationReport.from_results(config.study_id, results, list(datasets)), console
    )
    display_validation_issues(results, console=console)

    write_failed = False
    for name, df in datasets.items():
        try:
            write_dataset(df, output, name, formats=config.export.formats)
        except XPTValidationError as e:
            console.print(f"[bold red]Could not write {name}:[/bold red] {escape(str(e))}")
            write_failed = True

    if report.failure_count or write_failed:
        raise typer.Exit(code=1)
    console.print(f"\n[green]Datasets written to {output}[/green]")


@app.command()
def adsl(
    data_dir: Annotated[
        Path,
        typer.Argument(help="Directory containing DM (and optionally DS)"),
    ],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Directory for adsl.csv / adsl.xpt"),
    ],
) -> None:
    """Build the subject-level dataset ADSL only."""
    from trialderive.adam import build_adsl
    from trialderive.io import XPTValidationError, read_study_folder, write_dataset

    try:
        sdtm = read_study_folder(data_dir)
    except (FileNotFoundError, ValueError) as e:
        raise _fail(str(e)) from e
    if "dm" not in sdtm:
        raise _fail(f"No DM dataset found in {data_dir}")

    try:
        built = build_adsl(sdtm["dm"], sdtm.get("ds"))
    except StructuralInputError as e:
        raise _fail(str(e)) from e
    df = built.data
    for err in built.errors:
        console.print(f"[yellow]Rejected {', '.join(err.subject_ids)}: {escape(str(err))}[/yellow]")

    try:
        paths = write_dataset(df, output, "ADSL")
    except XPTValidationError as e:
        raise _fail(f"Could not write ADSL: {e}") from e
    console.print(f"[green]ADSL: {len(df)} subjects -> {', '.join(map(str, paths))}[/green]")


@app.command()
def validate(
    dataset_file: Annotated[
        Path,
        typer.Argument(help="Analysis dataset file (.csv, .xpt, or .sas7bdat)"),
    ],
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Dataset name (defaults to the file stem)"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Study configuration JSON"),
    ] = None,
) -> None:
    """Run the conformance rules against one analysis dataset.

    Exits with code 1 if any ERROR finding is raised.
    """
    from trialderive.cli.display import display_validation_issues, display_validation_summary
    from trialderive.io import read_dataset
    from trialderive.models.config import StudyConfig, load_study_config
    from trialderive.validation import ValidationEngine, ValidationReport

    try:
        df = read_dataset(dataset_file)
    except (FileNotFoundError, ValueError) as e:
        raise _fail(str(e)) from e

    dataset = (name or dataset_file.stem).upper()
    if config_path is not None:
        try:
            config = load_study_config(config_path)
        except (FileNotFoundError, ValidationError) as e:
            raise _fail(f"Invalid study config: {e}") from e
    else:
        study_ids = df["STUDYID"].dropna().unique() if "STUDYID" in df.columns else []
        config = StudyConfig(study_id=str(study_ids[0]) if len(study_ids) else "UNKNOWN")

    results = ValidationEngine(config).validate_dataset(dataset, df)
    report = ValidationReport.from_results(config.study_id, results, [dataset])
    display_validation_summary(report, console)
    display_validation_issues(results, console=console)

    if not report.passed:
        raise typer.Exit(code=1)
