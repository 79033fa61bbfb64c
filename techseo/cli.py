"""Typer CLI application for technical SEO health reporting.

Provides commands to import crawls, detect issues, and print or export
scored, prioritized recommendation reports.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from techseo.app import DEFAULT_CONFIG_PATH
from techseo.utils.helpers import extract_domain, truncate_text, url_path

console = Console()
app = typer.Typer(
    name="techseo",
    help="Technical SEO health -- crawl issue aggregation, scoring & recommendations.",
    add_completion=False,
    no_args_is_help=True,
)

_SEVERITY_STYLES = {"high": "red", "medium": "yellow", "low": "blue"}


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _get_app(config: str):
    """Lazy-import, initialise and return a TechnicalSEOApp."""
    from techseo.app import TechnicalSEOApp
    seo_app = TechnicalSEOApp(config_path=config)
    seo_app.initialize()
    return seo_app


def _load_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        console.print("[red]✘[/red] Could not read " + str(path) + ": " + str(exc))
        raise typer.Exit(code=1)


def _print_report(report: dict, title: str = "Technical SEO Health") -> None:
    """Pretty-print an aggregation report using Rich."""
    score = report.get("health_score", 0)
    grade = report.get("grade", "?")
    color = "green" if score >= 80 else ("yellow" if score >= 60 else "red")
    counts = report.get("severity_counts", {})

    console.print(Panel(
        f"[bold {color}]{score}/100 ({grade})[/bold {color}]\n"
        f"{report.get('total_issues', 0)} issues: "
        f"[red]{counts.get('high', 0)} high[/red], "
        f"[yellow]{counts.get('medium', 0)} medium[/yellow], "
        f"[blue]{counts.get('low', 0)} low[/blue]",
        title=title,
    ))

    recs = report.get("recommendations", [])
    if not recs:
        console.print("[green]✔[/green] No technical issues found.")
        return

    for severity in ("high", "medium", "low"):
        bucket = [r for r in recs if r.get("severity") == severity]
        if not bucket:
            continue
        style = _SEVERITY_STYLES[severity]
        table = Table(
            title=severity.title() + " Priority",
            show_header=True,
            header_style="bold " + style,
        )
        table.add_column("Issue", style="cyan", min_width=20)
        table.add_column("Count", justify="right")
        table.add_column("Recommendations", max_width=60)
        table.add_column("Sample pages", max_width=40)

        for rec in bucket:
            pages = [url_path(u) for u in rec.get("affected_urls", [])]
            more = rec.get("additional_affected", 0)
            if more:
                pages.append(f"...and {more} more")
            table.add_row(
                rec.get("title", "") + "\n[dim]" + truncate_text(rec.get("description", ""), 60) + "[/dim]",
                str(rec.get("count", 0)),
                "\n".join("- " + b for b in rec.get("recommendations", [])),
                "\n".join(pages),
            )
        console.print(table)


# ------------------------------------------------------------------
# score
# ------------------------------------------------------------------
@app.command()
def score(
    issues_file: Path = typer.Argument(..., help="JSON file with a list of issues (or {'issues': [...]})."),
    max_urls: int = typer.Option(3, "--max-urls", help="Affected URLs shown per group."),
    severity_policy: str = typer.Option("first_seen", "--severity-policy", help="first_seen or max."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON report."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Aggregate and score an issues file without touching the database."""
    _setup_logging(verbose)
    from techseo.modules.technical_audit.aggregator import IssueAggregationEngine

    data = _load_json(issues_file)
    issues = data.get("issues", []) if isinstance(data, dict) else data
    if not isinstance(issues, list):
        console.print("[red]✘[/red] Expected a list of issues.")
        raise typer.Exit(code=1)

    try:
        engine = IssueAggregationEngine(max_affected_urls=max_urls, severity_policy=severity_policy)
    except ValueError as exc:
        console.print("[red]✘[/red] " + str(exc))
        raise typer.Exit(code=1)

    report = engine.aggregate_dict(issues)
    if as_json:
        typer.echo(json.dumps(report, indent=2))
    else:
        _print_report(report, title="Health Score: " + issues_file.name)


# ------------------------------------------------------------------
# import-crawl
# ------------------------------------------------------------------
@app.command("import-crawl")
def import_crawl(
    pages_file: Path = typer.Argument(..., help="JSON file with crawled pages (or {'domain', 'pages'})."),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Domain the pages belong to."),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Store crawled pages as a new crawl."""
    _setup_logging(verbose)
    data = _load_json(pages_file)
    if isinstance(data, dict):
        pages = data.get("pages", [])
        domain = domain or data.get("domain")
    else:
        pages = data
    if not isinstance(pages, list):
        console.print("[red]✘[/red] Expected a list of pages.")
        raise typer.Exit(code=1)
    if not domain:
        first_url = next((p.get("url") for p in pages if isinstance(p, dict) and p.get("url")), "")
        domain = extract_domain(first_url) if first_url else "unknown"

    service = _get_app(config).get_service()
    crawl_id = service.create_crawl(domain, [p for p in pages if isinstance(p, dict)])
    console.print("[green]✔[/green] Crawl " + str(crawl_id) + " stored for " + domain
                  + " (" + str(len(pages)) + " pages).")


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------
@app.command()
def analyze(
    crawl_id: int = typer.Argument(..., help="Crawl id to analyze."),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Detect technical issues on a stored crawl and score it."""
    _setup_logging(verbose)
    service = _get_app(config).get_service()
    try:
        result = service.analyze_crawl(crawl_id)
    except ValueError as exc:
        console.print("[red]✘[/red] " + str(exc))
        raise typer.Exit(code=1)

    console.print(
        "[green]✔[/green] Crawl " + str(crawl_id) + ": "
        + str(result["issues_found"]) + " issues on "
        + str(result["pages_analyzed"]) + " pages, health score "
        + str(result["health_score"]) + "."
    )


# ------------------------------------------------------------------
# schema
# ------------------------------------------------------------------
@app.command()
def schema(
    crawl_id: int = typer.Argument(..., help="Crawl id to check."),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Validate JSON-LD and microdata structured data on a stored crawl."""
    _setup_logging(verbose)
    service = _get_app(config).get_service()
    try:
        results = service.validate_schema_markup(crawl_id)
    except ValueError as exc:
        console.print("[red]✘[/red] " + str(exc))
        raise typer.Exit(code=1)

    table = Table(title="Structured Data", show_header=True, header_style="bold magenta")
    table.add_column("Page", style="cyan", max_width=40)
    table.add_column("Types")
    table.add_column("Status", min_width=10)
    table.add_column("Errors", max_width=50)
    for result in results:
        if not result["has_schema"]:
            label = "[yellow]⚠ None[/yellow]"
        elif result["is_valid"]:
            label = "[green]✔ Valid[/green]"
        else:
            label = "[red]✘ Invalid[/red]"
        table.add_row(
            url_path(result["url"]),
            ", ".join(result["schema_types"]),
            label,
            "\n".join(result["validation_errors"]),
        )
    console.print(table)


# ------------------------------------------------------------------
# report
# ------------------------------------------------------------------
@app.command()
def report(
    crawl_id: int = typer.Argument(..., help="Crawl id to report on."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Export the report to this file."),
    fmt: str = typer.Option("json", "--format", "-f", help="Export format: json or html."),
    max_urls: Optional[int] = typer.Option(None, "--max-urls", help="Affected URLs shown per group."),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Print (and optionally export) the health report for a crawl."""
    _setup_logging(verbose)
    seo_app = _get_app(config)
    service = seo_app.get_service()
    if max_urls is not None:
        service.engine = seo_app.get_engine(max_affected_urls=max_urls)

    try:
        data = service.build_report(crawl_id)
    except ValueError as exc:
        console.print("[red]✘[/red] " + str(exc))
        raise typer.Exit(code=1)

    _print_report(data, title="Crawl " + str(crawl_id) + ": " + data["crawl"]["domain"])

    if output is not None:
        try:
            path = service.export_report(data, str(output), fmt=fmt)
        except ValueError as exc:
            console.print("[red]✘[/red] " + str(exc))
            raise typer.Exit(code=1)
        console.print("[green]✔[/green] Report saved to " + path)


# ------------------------------------------------------------------
# setup
# ------------------------------------------------------------------
@app.command()
def setup(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Create the database tables and data directories."""
    _setup_logging(verbose)
    console.print(Panel("[bold cyan]Technical SEO Setup[/bold cyan]"))

    console.print("\n[bold]Step 1: Configuration[/bold]")
    if Path(config).exists():
        console.print("[green]✔[/green] " + config + " found.")
    else:
        console.print("[yellow]⚠[/yellow] " + config + " not found. Using defaults.")

    console.print("\n[bold]Step 2: Database Initialization[/bold]")
    try:
        seo_app = _get_app(config)
        console.print("[green]✔[/green] Database tables created.")
    except Exception as exc:
        console.print("[red]✘[/red] Database error: " + str(exc))
        raise typer.Exit(code=1)

    console.print("\n[bold]Step 3: Data Directories[/bold]")
    Path(seo_app.export_dir).mkdir(parents=True, exist_ok=True)
    console.print("[green]✔[/green] " + seo_app.export_dir + "/")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Run [bold]techseo status[/bold] to verify system health.")


# ------------------------------------------------------------------
# status
# ------------------------------------------------------------------
@app.command()
def status(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show database and configuration status."""
    _setup_logging(verbose)
    seo_app = _get_app(config)

    table = Table(title="Component Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", min_width=20)
    table.add_column("Status", min_width=10)
    table.add_column("Details", max_width=50)

    labels = {"ok": "[green]✔ OK[/green]", "warning": "[yellow]⚠ Warning[/yellow]"}
    for name, info in seo_app.get_status().items():
        label = labels.get(info["status"], "[red]✘ Error[/red]")
        table.add_row(name.replace("_", " ").title(), label, str(info["details"])[:50])

    crawls = seo_app.get_service().list_crawls()
    table.add_row("Crawls", "[green]✔ OK[/green]", str(len(crawls)) + " stored")
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
