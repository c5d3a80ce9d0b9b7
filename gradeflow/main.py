"""
GradeFlow CLI - AI worksheet grading

Command-line interface for grading worksheets with Gemini and reviewing results.
"""

import typer
from pathlib import Path
from typing import Optional
import sys
from datetime import datetime

from rich.markup import escape
from rich.table import Table

from gradeflow import __version__
from gradeflow.config import get_config
from gradeflow.domain.models import FeedbackTone, Worksheet, WorksheetStatus
from gradeflow.pipelines.grade import create_grading_pipeline
from gradeflow.pipelines.worksheet import WorksheetStore, process_worksheet
from gradeflow.report import WorksheetReportGenerator, export_grades_csv
from gradeflow.services.llm.base import CompletionError
from gradeflow.services.llm.gemini import GeminiClient
from gradeflow.utils.images import is_image_file
from gradeflow.utils.logging import console, setup_logging

# Initialize Typer app
app = typer.Typer(
    name="gradeflow",
    help="GradeFlow - AI-powered worksheet grading and feedback",
    add_completion=False,
    rich_markup_mode="rich"
)


def _configure_logging(verbose: bool) -> None:
    setup_logging("DEBUG" if verbose else get_config().log_level)


def _results_store(results_dir: Optional[Path]) -> WorksheetStore:
    return WorksheetStore(results_dir or get_config().results_dir)


@app.command()
def grade(
    input_file: Path = typer.Argument(
        ...,
        help="Worksheet text file (OCR output) or scanned image",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True
    ),
    subject: Optional[str] = typer.Option(None, "--subject", "-s", help="Worksheet subject"),
    grade_level: Optional[str] = typer.Option(None, "--grade-level", "-g", help="Student grade level"),
    student: Optional[str] = typer.Option(None, "--student", "-n", help="Student name"),
    rubric: Optional[str] = typer.Option(None, "--rubric", "-r", help="Grading rubric text"),
    rubric_file: Optional[Path] = typer.Option(
        None,
        "--rubric-file",
        help="File containing the grading rubric",
        exists=True,
        dir_okay=False,
        readable=True
    ),
    tone: Optional[str] = typer.Option(
        None,
        "--tone",
        "-t",
        help="Feedback tone: encouraging, strict or funny"
    ),
    results_dir: Optional[Path] = typer.Option(
        None,
        "--results-dir",
        "-o",
        help="Directory where the graded worksheet JSON is saved"
    ),
    no_feedback: bool = typer.Option(
        False,
        "--no-feedback",
        help="Only grade, skip feedback generation"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """
    Grade a single worksheet and generate feedback.

    Examples:

        # Grade OCR text of a math worksheet
        gradeflow grade ada_worksheet.txt --subject math --grade-level 3 --student Ada

        # Grade a scanned image with strict feedback
        gradeflow grade scan.jpg --subject science --tone strict
    """
    _configure_logging(verbose)

    try:
        config = get_config()
        pipeline = create_grading_pipeline(config)

        if rubric_file:
            rubric = rubric_file.read_text(encoding="utf-8")

        if tone and FeedbackTone.resolve(tone).value != tone.strip().lower():
            console.print(f"[yellow]Unknown tone '{escape(tone)}', using encouraging.[/yellow]")

        if is_image_file(input_file):
            worksheet = Worksheet(image_path=str(input_file))
        else:
            worksheet = Worksheet(text=input_file.read_text(encoding="utf-8"))

        worksheet.student_name = student
        worksheet.subject = subject
        worksheet.grade_level = grade_level
        worksheet.rubric = rubric

        console.print("\n[bold cyan]GradeFlow Grading[/bold cyan]")
        if not config.gemini.has_api_key:
            console.print("[yellow]GEMINI_API_KEY not set - results will be mock data.[/yellow]")

        if no_feedback:
            outcome = pipeline.grade(
                text=worksheet.text,
                subject=subject,
                grade_level=grade_level,
                rubric=rubric,
                student_name=student,
                image_path=worksheet.image_path
            )
            worksheet.update(
                status=WorksheetStatus.GRADED,
                processing_stage="completed",
                progress=100,
                grading_results=outcome.result,
                completed_at=datetime.now()
            )
        else:
            with console.status("Grading worksheet..."):
                process_worksheet(worksheet, pipeline, tone=tone)

        saved_to = _results_store(results_dir).save(worksheet)

        if worksheet.status == WorksheetStatus.ERROR:
            console.print(f"\n[red]Grading Error:[/red] {escape(worksheet.error or '')}")
            raise typer.Exit(1)

        _display_worksheet(worksheet)
        console.print(f"\nSaved to {saved_to}")

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Grading interrupted by user.[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"\n[red]Unexpected error:[/red] {escape(str(e))}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


@app.command(name="check-api")
def check_api(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """Check that the Gemini API key works."""
    _configure_logging(verbose)
    config = get_config()

    if not config.gemini.has_api_key:
        console.print("[red]GEMINI_API_KEY not configured.[/red]")
        raise typer.Exit(1)

    result = GeminiClient(config.gemini).check_connection()

    if result["status"] == "success":
        console.print(f"[green]Gemini API is working[/green] ({result['test_result']})")
        console.print(f"  Model: {config.gemini.model}")
        console.print(f"  Response: {escape(result['response'].strip())}")
    else:
        console.print(f"[red]Gemini API failed:[/red] {escape(result['error'])}")
        raise typer.Exit(1)


@app.command()
def models(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """List the Gemini models available to the configured key."""
    _configure_logging(verbose)
    config = get_config()

    if not config.gemini.has_api_key:
        console.print("[red]GEMINI_API_KEY not configured.[/red]")
        raise typer.Exit(1)

    try:
        available = GeminiClient(config.gemini).list_models()
    except CompletionError as e:
        console.print(f"[red]Failed to list Gemini models:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Available Gemini models")
    table.add_column("Name", style="cyan")
    table.add_column("Display name")
    table.add_column("Methods")

    for model in available:
        table.add_row(
            model.get("name", ""),
            model.get("displayName", ""),
            ", ".join(model.get("supportedGenerationMethods", []))
        )

    console.print(table)


@app.command()
def report(
    output: Path = typer.Option(
        Path("grading_report.html"),
        "--output",
        "-o",
        help="HTML file to write"
    ),
    results_dir: Optional[Path] = typer.Option(
        None,
        "--results-dir",
        "-d",
        help="Directory of saved worksheet results"
    ),
    title: str = typer.Option("Worksheet Grading Report", "--title", help="Report title")
):
    """Generate an HTML report of all saved worksheets."""
    worksheets = _results_store(results_dir).list_worksheets()

    if not worksheets:
        console.print("[yellow]No saved worksheets found.[/yellow]")
        raise typer.Exit(1)

    path = WorksheetReportGenerator().generate_report(worksheets, output, title=title)
    console.print(f"[green]Report written to {path}[/green] ({len(worksheets)} worksheets)")


@app.command()
def export(
    output: Path = typer.Option(Path("grades.csv"), "--output", "-o", help="CSV file to write"),
    results_dir: Optional[Path] = typer.Option(
        None,
        "--results-dir",
        "-d",
        help="Directory of saved worksheet results"
    )
):
    """Export grades of all graded worksheets to CSV."""
    worksheets = _results_store(results_dir).list_worksheets()
    rows = export_grades_csv(worksheets, output)
    console.print(f"[green]Exported {rows} grades to {output}[/green]")


@app.command()
def version():
    """Show GradeFlow version information."""
    console.print("\n[bold cyan]GradeFlow - AI worksheet grading[/bold cyan]")
    console.print(f"Version: {__version__}\n")


def _display_worksheet(worksheet: Worksheet) -> None:
    """Display grading results and feedback for one worksheet."""
    grading = worksheet.grading_results

    console.print(f"\n[bold]Results for {escape(worksheet.student_name or 'Unknown student')}:[/bold]")
    console.print(f"  Score: {grading.total_score}% ({grading.grade_letter})")
    console.print(f"  Points: {grading.points_earned}/{grading.points_possible}")
    console.print(f"  Source: {grading.source.value}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Score", justify="right")
    table.add_column("Feedback")

    for question in grading.questions:
        style = "green" if question.is_correct else ("yellow" if question.partial_credit else "red")
        table.add_row(
            str(question.number),
            escape(question.question),
            f"[{style}]{question.score}/{question.max_score}[/{style}]",
            escape(question.feedback)
        )

    console.print(table)

    if worksheet.feedback:
        console.print("\n[bold]Feedback:[/bold]")
        console.print(f"  {escape(worksheet.feedback.summary)}")
        console.print(f"  [green]{escape(worksheet.feedback.praise)}[/green]")
        console.print(f"  {escape(worksheet.feedback.improvements)}")
        console.print(f"  Next: {escape(worksheet.feedback.next_steps)}")
        console.print(f"  [italic]{escape(worksheet.feedback.encouragement)}[/italic]")


# Global error handler
def _handle_exception(exc_type, exc_value, exc_traceback):
    """Global exception handler for better error display."""
    if issubclass(exc_type, KeyboardInterrupt):
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        return

    console.print(f"\n[red]Unexpected error:[/red] {escape(str(exc_value))}")
    sys.__excepthook__(exc_type, exc_value, exc_traceback)


# Set global exception handler
sys.excepthook = _handle_exception


if __name__ == "__main__":
    app()
