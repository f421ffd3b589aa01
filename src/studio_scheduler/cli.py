"""CLI entry point for the studio scheduler."""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from .exceptions import ConfigError
from .exporters import get_exporter, load_schedule_json
from .loader import load_historic_csv
from .scheduler import (
    ConfigLoader,
    PerformanceAnalyzer,
    ScheduledClass,
    review_schedule,
    suggest_schedule,
)

app = typer.Typer(
    name="studio-scheduler",
    help="Build and check weekly fitness class schedules from historic attendance",
    add_completion=False,
)
console = Console()


class OutputFormat(str, Enum):
    """Output format options."""

    json = "json"
    csv = "csv"
    excel = "excel"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(config_dir: Path) -> ConfigLoader:
    try:
        return ConfigLoader(config_dir)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _load_records(input_file: Path, verbose: bool):
    if not input_file.exists():
        console.print(f"[bold red]Error:[/bold red] File not found: {input_file}")
        raise typer.Exit(1)

    with console.status("[bold green]Loading attendance data..."):
        result = load_historic_csv(input_file)

    console.print(f"\n[bold]Historic data:[/bold] {input_file.name}")
    console.print(f"  Records loaded: {result.total_records}")
    if result.warnings:
        console.print(f"  [yellow]Rows skipped: {len(result.warnings)}[/yellow]")
        if verbose:
            for warning in result.warnings[:20]:
                console.print(f"    [yellow]• {warning}[/yellow]")
    return result.records


def _show_schedule_summary(schedule: list[ScheduledClass], review) -> None:
    metrics = review.metrics

    overview = Table(title="Schedule", show_header=False)
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", style="green")
    overview.add_row("Total Classes", str(metrics.total_classes))
    overview.add_row("Morning / Evening", f"{metrics.morning_classes} / {metrics.evening_classes}")
    overview.add_row("Shift Balance", f"{metrics.shift_balance}%")
    overview.add_row("Trainers", str(metrics.unique_trainers))
    overview.add_row("Avg Trainer Hours", f"{metrics.avg_trainer_hours:g}")
    overview.add_row("Expected Participants", f"{metrics.total_participants:g}")
    overview.add_row("Expected Revenue", f"{metrics.total_revenue:,.0f}")
    console.print(overview)

    if metrics.by_location:
        location_table = Table(title="Classes by Location")
        location_table.add_column("Location", style="cyan")
        location_table.add_column("Classes", style="green")
        for location, count in metrics.by_location.items():
            location_table.add_row(location, str(count))
        console.print(location_table)

    if metrics.trainers_below_target:
        console.print(
            f"\n[yellow]Trainers below weekly target:[/yellow] "
            f"{', '.join(metrics.trainers_below_target)}"
        )


def _show_problems(review) -> None:
    if review.validation.conflicts:
        console.print(f"\n[bold red]Conflicts ({len(review.validation.conflicts)}):[/bold red]")
        for conflict in review.validation.conflicts:
            console.print(f"  [red]• {conflict}[/red]")

    warnings = review.trainer_violations + review.shift_trainer_violations
    if warnings:
        console.print(f"\n[bold yellow]Warnings ({len(warnings)}):[/bold yellow]")
        for warning in warnings:
            console.print(f"  [yellow]• {warning}[/yellow]")


@app.command()
def analyze(
    input_file: Annotated[
        Path,
        typer.Argument(help="Path to the historic attendance CSV"),
    ],
    location: Annotated[
        Optional[str],
        typer.Option("-l", "--location", help="Only show this location"),
    ] = None,
    min_average: Annotated[
        float,
        typer.Option("--min-average", help="Minimum average participants"),
    ] = 5.0,
    by_teacher: Annotated[
        bool,
        typer.Option("--by-teacher", help="Rank teacher combinations separately"),
    ] = False,
    limit: Annotated[
        int,
        typer.Option("-n", "--limit", help="Rows to show"),
    ] = 20,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Show detailed output"),
    ] = False,
) -> None:
    """Show the top-performing historic classes."""
    _configure_logging(verbose)
    records = _load_records(input_file, verbose)

    analyzer = PerformanceAnalyzer(records)
    top = analyzer.get_top_performing_classes(
        location=location, min_average=min_average, by_teacher=by_teacher
    )
    if not top:
        console.print("[bold yellow]No classes meet the thresholds[/bold yellow]")
        raise typer.Exit(0)

    table = Table(title="Top Performing Classes")
    table.add_column("Class", style="cyan", max_width=36)
    table.add_column("Location", style="blue")
    table.add_column("Day", style="magenta")
    table.add_column("Time")
    if by_teacher:
        table.add_column("Teacher", style="yellow")
    table.add_column("Avg", style="green")
    table.add_column("Count")

    for agg in top[:limit]:
        row = [agg.class_format, agg.location, agg.day, agg.time]
        if by_teacher:
            row.append(agg.teacher)
        row += [f"{agg.avg_participants:g}", str(agg.frequency)]
        table.add_row(*row)

    if len(top) > limit:
        console.print(f"  Showing {limit} of {len(top)}")
    console.print(table)


@app.command()
def optimize(
    input_file: Annotated[
        Path,
        typer.Argument(help="Path to the historic attendance CSV"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Output file or directory path"),
    ] = None,
    format: Annotated[
        OutputFormat,
        typer.Option("-f", "--format", help="Output format"),
    ] = OutputFormat.json,
    config_dir: Annotated[
        Path,
        typer.Option("--config", help="Directory with studios.json, teachers.json, rules.json"),
    ] = Path("reference"),
    iteration: Annotated[
        Optional[int],
        typer.Option("--iteration", help="Iteration number used in class ids"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Show detailed output"),
    ] = False,
) -> None:
    """Build a weekly schedule from historic attendance."""
    _configure_logging(verbose)
    config = _load_config(config_dir)
    records = _load_records(input_file, verbose)

    options = config.build_options(iteration=iteration)
    with console.status("[bold green]Building schedule..."):
        outcome = suggest_schedule(
            records,
            teachers=config.teachers.roster,
            options=options,
            constructor=config.build_constructor(),
        )

    schedule = outcome.schedule
    if not schedule:
        console.print("[bold yellow]Warning:[/bold yellow] No classes could be scheduled")
        raise typer.Exit(1)

    review = review_schedule(
        schedule,
        studios=config.studios.table,
        new_trainers=options.new_trainers,
        weekly_hour_target=options.weekly_hour_target,
        roster=config.teachers.roster,
        max_weekly_hours=options.max_weekly_hours,
        new_trainer_weekly_hours=options.new_trainer_weekly_hours,
    )
    _show_schedule_summary(schedule, review)
    _show_problems(review)

    output = output or Path("output/schedule.json")
    exporter = get_exporter(format.value)
    if format == OutputFormat.csv:
        output_path = output if output.is_dir() or not output.suffix else output.parent / output.stem
    else:
        output_path = output if output.suffix else output.with_suffix(
            ".xlsx" if format == OutputFormat.excel else ".json"
        )

    with console.status(f"[bold green]Exporting to {format.value}..."):
        exporter.export(schedule, output_path, outcome.validation)

    console.print(f"\n[bold green]✓[/bold green] Schedule exported to: {output_path}")


@app.command()
def validate(
    schedule_file: Annotated[
        Path,
        typer.Argument(help="Schedule JSON written by the optimize command"),
    ],
    config_dir: Annotated[
        Path,
        typer.Option("--config", help="Directory with studios.json, teachers.json, rules.json"),
    ] = Path("reference"),
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Show detailed output"),
    ] = False,
) -> None:
    """Check a schedule for studio conflicts and trainer rule violations."""
    _configure_logging(verbose)
    if not schedule_file.exists():
        console.print(f"[bold red]Error:[/bold red] File not found: {schedule_file}")
        raise typer.Exit(1)

    config = _load_config(config_dir)
    try:
        schedule = load_schedule_json(schedule_file)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    options = config.build_options()
    review = review_schedule(
        schedule,
        studios=config.studios.table,
        new_trainers=options.new_trainers,
        weekly_hour_target=options.weekly_hour_target,
        roster=config.teachers.roster,
        max_weekly_hours=options.max_weekly_hours,
        new_trainer_weekly_hours=options.new_trainer_weekly_hours,
    )

    console.print(f"\n[bold]Validation Results for:[/bold] {schedule_file.name}")
    if review.validation.is_valid:
        console.print("[bold green]✓ No studio conflicts[/bold green]")
    else:
        console.print("[bold red]✗ Schedule has conflicts[/bold red]")

    if verbose:
        _show_schedule_summary(schedule, review)
    _show_problems(review)

    if not review.validation.is_valid:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
