"""Typer CLI for Keyword Journey.

Commands for related-keyword search, buyer-journey classification, insight
generation, report export and running the API server or dashboard.
"""

import asyncio
import json
import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

console = Console()
app = typer.Typer(
    name="keyword-journey",
    help="Keyword Journey -- Naver keyword statistics with buyer-journey analysis.",
    add_completion=False,
    no_args_is_help=True,
)

STAT_COLUMNS = [
    ("monthlyPcQcCnt", "PC 검색"),
    ("monthlyMobileQcCnt", "모바일 검색"),
    ("monthlyAvePcClkCnt", "PC 클릭"),
    ("monthlyAveMobileClkCnt", "모바일 클릭"),
    ("compIdx", "경쟁도"),
]


def _setup_logging(verbose: bool = False, level_name: str = "INFO") -> None:
    """Configure root logging; ``--verbose`` wins over LOG_LEVEL / ``app.log_level``."""
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    return asyncio.run(coro)


def _get_journey_app():
    from keyword_journey.app import KeywordJourneyApp
    journey_app = KeywordJourneyApp()
    journey_app.initialize()
    return journey_app


def _spinner(description: str) -> Progress:
    progress = Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console)
    progress.add_task(description=description, total=None)
    return progress


def _read_keyword_file(path: Path) -> list[str]:
    with open(path, "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip()]


def _print_keyword_table(rows: list[dict], title: str) -> None:
    from keyword_journey.utils.helpers import format_stat

    has_stage = any(row.get("buyerJourney") for row in rows)
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("키워드", style="cyan", min_width=20)
    if has_stage:
        table.add_column("구매여정 단계", min_width=10)
    for _, label in STAT_COLUMNS:
        table.add_column(label, justify="right")

    for row in rows:
        cells = [str(row.get("relKeyword", ""))]
        if has_stage:
            cells.append(row.get("buyerJourney", "-"))
        for key, _ in STAT_COLUMNS:
            value = row.get(key, "")
            cells.append(str(value) if key == "compIdx" else format_stat(value))
        table.add_row(*cells)
    console.print(table)


def _print_stage_summary(rows: list[dict]) -> None:
    from keyword_journey.modules.reporting.stage_metrics import calculate_stage_data
    from keyword_journey.utils.helpers import format_stat

    table = Table(title="단계별 요약", show_header=True, header_style="bold magenta")
    table.add_column("단계", style="cyan")
    table.add_column("키워드 수", justify="right")
    table.add_column("검색수 합계", justify="right")
    table.add_column("클릭수 합계", justify="right")
    for stage in calculate_stage_data(rows):
        table.add_row(
            stage["name"],
            str(stage["count"]),
            format_stat(stage["searchTotal"], integer=True),
            format_stat(stage["clickTotal"], integer=True),
        )
    console.print(table)


def _print_analysis_message(analysis) -> None:
    colors = {"openai": "green", "dummy": "yellow", "fallback": "red"}
    color = colors.get(analysis.source, "white")
    console.print("[" + color + "]" + analysis.source + "[/" + color + "] " + analysis.message)
    if analysis.error:
        console.print("[red]✘[/red] " + analysis.error)


async def _search_and_classify(journey_app, keyword: str, model: str):
    from keyword_journey.modules.buyer_journey.service import annotate_keywords

    rows = await journey_app.stats_service.fetch_keywords(keyword, include_detail=True)
    keywords = [str(row.get("relKeyword", "")) for row in rows]
    analysis = await journey_app.journey_service.analyze(keywords, model)
    return annotate_keywords(rows, analysis.results), analysis


# ------------------------------------------------------------------
# search
# ------------------------------------------------------------------
@app.command()
def search(
    keyword: str = typer.Argument(..., help="Seed keyword."),
    detail: bool = typer.Option(True, "--detail/--no-detail", help="Request detailed statistics."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Look up related keywords and their monthly statistics."""
    journey_app = _get_journey_app()
    _setup_logging(verbose, journey_app.log_level)
    with _spinner("Fetching related keywords..."):
        rows = _run_async(journey_app.stats_service.fetch_keywords(keyword, include_detail=detail))
    if not journey_app.stats_service.is_configured:
        console.print("[yellow]⚠[/yellow] Naver API credentials not configured. Showing dummy data.")
    _print_keyword_table(rows, "Related keywords: " + keyword)


# ------------------------------------------------------------------
# classify
# ------------------------------------------------------------------
@app.command()
def classify(
    keywords: Optional[list[str]] = typer.Argument(None, help="Keywords to classify."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="OpenAI model name."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Text file with one keyword per line."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response payload."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Classify keywords into buyer-journey stages."""
    items = list(keywords or [])
    if file is not None:
        items.extend(_read_keyword_file(file))
    if not items:
        console.print("[red]✘[/red] Keywords are required.")
        raise typer.Exit(code=1)

    journey_app = _get_journey_app()
    _setup_logging(verbose, journey_app.log_level)
    model = model or journey_app.default_model
    with _spinner("Classifying " + str(len(items)) + " keywords..."):
        analysis = _run_async(journey_app.journey_service.analyze(items, model))

    if as_json:
        console.print_json(json.dumps(analysis.to_response(), ensure_ascii=False))
        return

    table = Table(title="Buyer journey", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("키워드", style="cyan")
    table.add_column("단계")
    for idx, result in enumerate(analysis.results, 1):
        stage = result.stage.value if result.classified else "[dim]" + result.stage.value + "[/dim]"
        table.add_row(str(idx), result.keyword, stage)
    console.print(table)
    _print_analysis_message(analysis)


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------
@app.command()
def analyze(
    keyword: str = typer.Argument(..., help="Seed keyword."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="OpenAI model name."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write a report; format from suffix (.html, .json, .csv)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Search related keywords, classify them and summarize by stage."""
    console.print(Panel("[bold cyan]Buyer Journey Analysis: " + keyword + "[/bold cyan]"))
    journey_app = _get_journey_app()
    _setup_logging(verbose, journey_app.log_level)
    model = model or journey_app.default_model

    with _spinner("Searching and classifying..."):
        rows, analysis = _run_async(_search_and_classify(journey_app, keyword, model))

    _print_keyword_table(rows, "Keywords: " + keyword)
    _print_stage_summary(rows)
    _print_analysis_message(analysis)

    if output is not None:
        _write_report(output, rows, keyword, model=analysis.model)


def _write_report(output: Path, rows: list[dict], keyword: str, model: Optional[str] = None,
                  insights: Optional[dict] = None) -> None:
    from keyword_journey.modules.reporting.report_renderer import JourneyReportRenderer

    renderer = JourneyReportRenderer()
    suffix = output.suffix.lower()
    if suffix == ".html":
        output.write_text(renderer.render_html(rows, keyword, insights=insights, model=model), encoding="utf-8")
    elif suffix == ".json":
        output.write_text(renderer.render_json(rows, keyword, insights=insights), encoding="utf-8")
    elif suffix == ".csv":
        output.write_bytes(renderer.render_csv_bytes(rows))
    else:
        console.print("[red]✘[/red] Unsupported report format: " + (suffix or "(none)"))
        raise typer.Exit(code=1)
    console.print("[green]✔[/green] Report written to " + str(output))


# ------------------------------------------------------------------
# insights
# ------------------------------------------------------------------
@app.command()
def insights(
    keyword: str = typer.Argument(..., help="Seed keyword."),
    insight_type: str = typer.Option(
        "marketing", "--type", "-t", help="marketing | budget | landing | da | sa"
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Classification model."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write an HTML/JSON report."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Generate an AI marketing insight for a seed keyword's journey."""
    from keyword_journey.modules.insights.prompts import INSIGHT_TYPES

    if insight_type not in INSIGHT_TYPES:
        console.print("[red]✘[/red] Invalid insight type. Choose from: " + ", ".join(INSIGHT_TYPES))
        raise typer.Exit(code=1)

    journey_app = _get_journey_app()
    _setup_logging(verbose, journey_app.log_level)
    model = model or journey_app.default_model

    async def _run():
        rows, analysis = await _search_and_classify(journey_app, keyword, model)
        insight = await journey_app.insight_generator.generate(rows, insight_type)
        return rows, analysis, insight

    with _spinner("Generating " + insight_type + " insight..."):
        try:
            rows, analysis, insight = _run_async(_run())
        except Exception as exc:
            console.print("[red]✘[/red] Failed to generate insights: " + str(exc))
            raise typer.Exit(code=1)

    _print_analysis_message(analysis)
    if isinstance(insight, (dict, list)):
        console.print_json(json.dumps(insight, ensure_ascii=False))
    else:
        console.print(str(insight))

    if output is not None:
        _write_report(output, rows, keyword, model=analysis.model, insights={insight_type: insight})


# ------------------------------------------------------------------
# serve
# ------------------------------------------------------------------
@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from keyword_journey.api import create_app

    journey_app = _get_journey_app()
    _setup_logging(verbose, journey_app.log_level)
    api_cfg = journey_app.section("api")
    host = host or api_cfg.get("host", "0.0.0.0")
    port = port or int(api_cfg.get("port", 8000))
    console.print("[bold cyan]Serving API on " + host + ":" + str(port) + "...[/bold cyan]")
    log_level = "debug" if verbose else journey_app.log_level.lower()
    uvicorn.run(create_app(journey_app), host=host, port=port, log_level=log_level)


# ------------------------------------------------------------------
# dashboard
# ------------------------------------------------------------------
@app.command()
def dashboard(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Streamlit server port."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Launch the Streamlit dashboard."""
    from keyword_journey.app import PROJECT_ROOT

    journey_app = _get_journey_app()
    _setup_logging(verbose, journey_app.log_level)
    port = port or int(journey_app.section("dashboard").get("port", 8501))
    console.print("[bold cyan]Launching dashboard on port " + str(port) + "...[/bold cyan]")
    subprocess.run(
        [sys.executable, "-m", "streamlit", "run", str(PROJECT_ROOT / "dashboard" / "app.py"),
         "--server.port", str(port)],
        check=False,
    )


# ------------------------------------------------------------------
# status
# ------------------------------------------------------------------
@app.command()
def status(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show provider credentials and configuration status."""
    journey_app = _get_journey_app()
    _setup_logging(verbose, journey_app.log_level)
    console.print(Panel("[bold cyan]System Status[/bold cyan]"))

    table = Table(title="Component Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", min_width=15)
    table.add_column("Status", min_width=10)
    table.add_column("Details", max_width=50)

    labels = {
        "ok": "[green]✔ OK[/green]",
        "warning": "[yellow]⚠ Warning[/yellow]",
        "error": "[red]✘ Error[/red]",
    }
    for name, info in journey_app.get_status().items():
        table.add_row(name.title(), labels.get(info["status"], info["status"]), info["details"])
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
