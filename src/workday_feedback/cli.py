"""CLI entry point for workday-feedback."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from workday_feedback import __version__
from workday_feedback.errors import InputNotFound, OutputError
from workday_feedback.models import IngestReport
from workday_feedback.pipeline import collect_feedback, group_by_recipient
from workday_feedback.report import write_markdown
from workday_feedback.utils import configure_logging, default_cutoff

app = typer.Typer(
    name="workday-feedback",
    help="Convert Workday peer feedback exports (XLSX) into a Markdown report.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
log_console = Console(stderr=True)
logger = logging.getLogger("workday_feedback.cli")


def _err(msg: str) -> None:
    log_console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"workday-feedback v{__version__}")
        raise typer.Exit()


def _log_level(quiet: bool, verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def _print_summary(report: IngestReport, recipients: int) -> None:
    tbl = RichTable(title="Feedback Summary", show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Result")

    tbl.add_row("Files read", str(report.files_read))
    if report.files_failed:
        tbl.add_row("Files failed", f"[red]{report.files_failed}[/red]")
    tbl.add_row("Rows in", str(report.rows_in))
    tbl.add_row("Header rows", str(report.header_rows))
    tbl.add_row("Skipped rows", str(report.skipped_rows))
    tbl.add_row("Records", str(report.records_out))
    tbl.add_row("Records since cutoff", str(report.records_kept))
    tbl.add_row("Recipients", str(recipients))
    console.print(tbl)


# ── convert command ──────────────────────────────────────────────


@app.command()
def convert(
    file: Path = typer.Option(
        ..., "--file", "-f",
        help="Feedback file or folder of .xlsx exports.",
    ),
    since: datetime | None = typer.Option(
        None, "--since", "-s",
        formats=["%Y-%m-%d"],
        help="Earliest feedback date to keep (default: six months ago).",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o",
        help="Write the Markdown here instead of a temporary file.",
    ),
    skip_empty: bool = typer.Option(
        False, "--skip-empty",
        help="Leave out recipients with no feedback since the cutoff.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Only show warnings and errors.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging.",
    ),
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Convert a Workday feedback export (file or folder) to Markdown."""
    configure_logging(log_console, level=_log_level(quiet, verbose))

    cutoff = since.date() if since is not None else default_cutoff()
    logger.info("Cutoff date: %s", cutoff.isoformat())

    if not quiet:
        console.print(Panel(
            f"[bold]workday-feedback[/bold] v{__version__}\n"
            f"Input:  {escape(str(file))}\nSince:  {cutoff.isoformat()}",
            title="Peer Feedback", border_style="blue",
        ))

    report = IngestReport()
    try:
        records = collect_feedback(file, report=report)
        if report.files_failed and not report.files_read:
            _err(f"No readable spreadsheets ({report.files_failed} failed): {file}")
            raise typer.Exit(code=2)
        groups = group_by_recipient(records, cutoff, skip_empty=skip_empty)
        report.records_kept = sum(len(group) for group in groups.values())
        out_path = write_markdown(groups, output=output)
    except typer.Exit:
        raise
    except InputNotFound as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except OutputError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    if not quiet:
        _print_summary(report, len(groups))
    logger.info("Markdown file written in %s", out_path)
