#!/usr/bin/env python3
"""
CLI interface for the bank statement parser.
"""
import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .core.detectors import TemplateDetector, detect_template
from .core.errors import PasswordError, StatementError
from .core.runner import parse_statement
from .export import to_json, write_csv
from .formatting import kind_color, mutation_text, tag_description
from .models.schema import StatementResult

app = typer.Typer(help="Indonesian bank statement parser")
console = Console()


def ask_password_prompt() -> str:
    return typer.prompt(
        "The PDF is password protected. Please enter password to continue",
        hide_input=True, default="", show_default=False
    )


def ask_retry_password_prompt() -> str:
    return typer.prompt(
        "The password is incorrect. Please enter the correct password to continue",
        hide_input=True, default="", show_default=False
    )


def render_result(result: StatementResult):
    """Print transactions and per-page diagnostics."""
    table = Table(title=f"{result.template_id} ({result.year})")
    table.add_column("Tanggal")
    table.add_column("Keterangan")
    table.add_column("Mutasi", justify="right")
    table.add_column("Saldo", justify="right")

    for record in result.transactions:
        color = kind_color(record)
        table.add_row(
            record.date_text,
            tag_description(record.description),
            f"[{color}]{mutation_text(record)}[/{color}]",
            str(record.balance)
        )
    console.print(table)

    for page in result.pages:
        if page.skipped:
            console.print(f"[yellow]Page {page.page_num}: skipped ({page.reason})[/yellow]")
        elif page.records:
            console.print(f"Page {page.page_num}: {page.records} transactions via {page.strategy}")
        else:
            console.print(f"[yellow]Page {page.page_num}: {page.reason}[/yellow]")


@app.command()
def parse(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    template: str = typer.Option("bca_statement", "--format", "-f", help="Template ID to use"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Output CSV file path"),
    password: Optional[str] = typer.Option(None, "--password", help="PDF password"),
    year_fallback: Optional[int] = typer.Option(None, "--year-fallback", help="Year used when the statement period is unreadable"),
    debug_overlay: Optional[Path] = typer.Option(None, "--debug-overlay", help="Create debug overlay images"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Parse a bank statement PDF into transactions."""

    if not pdf_path.exists():
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)

    try:
        # Parsing may prompt for a password, so it runs outside the spinner
        result = parse_statement(
            pdf_path,
            template,
            password=password,
            ask_password=ask_password_prompt,
            ask_retry_password=ask_retry_password_prompt,
            fallback_year=year_fallback,
            verbose=verbose
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("Writing output...", total=None)

            if output:
                progress.update(task, description="Writing JSON...")
                output.write_text(to_json(result))
            if csv_path:
                progress.update(task, description="Writing CSV...")
                write_csv(result.transactions, csv_path)

            if debug_overlay:
                from .tools.debug_overlay import create_debug_overlay
                progress.update(task, description="Creating debug overlay...")
                create_debug_overlay(pdf_path, template, debug_overlay, password=password)

        if output or csv_path:
            for path in (output, csv_path):
                if path:
                    console.print(f"[green]✓ Parsed {len(result.transactions)} transactions! Output written to: {path}[/green]")
        else:
            render_result(result)

        if debug_overlay:
            console.print(f"[blue]Debug overlay created in: {debug_overlay}[/blue]")

    except PasswordError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(2)
    except (StatementError, OSError) as e:
        console.print(f"[red]Error parsing PDF: {e}[/red]")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(1)


@app.command()
def detect(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    password: Optional[str] = typer.Option(None, "--password", help="PDF password")
):
    """Detect which template matches a PDF file."""
    try:
        template = detect_template(pdf_path, password=password)
    except StatementError as e:
        console.print(f"[red]Error detecting template: {e}[/red]")
        raise typer.Exit(1)

    if not template:
        console.print("[red]No matching template found[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Detected template: {template}[/green]")


@app.command()
def formats():
    """List the available statement templates."""
    detector = TemplateDetector()
    for template_id in detector.list_templates():
        config = detector.get_template(template_id)
        console.print(f"{template_id}\t{config.get('label', '')}\t{config.get('bank', '')}")


if __name__ == "__main__":
    app()
