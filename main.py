#!/usr/bin/env python3
"""flowsmith CLI - requirements to n8n workflow graphs.

Usage:
    # Browse the template catalog
    python main.py search "order payment" --category e-commerce
    python main.py recommend "lead scoring" "crm sync"
    python main.py stats

    # Full run: messages -> blueprint -> graphs
    python main.py run --input ./requirements.json --security-level standard
    python main.py run --input "Automate order processing and connect to Stripe"

    # Check a compiled graph document
    python main.py validate ./outputs/run_20250101_120000/1_main-workflow.json
"""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from blueprint import BlueprintSynthesizer, RandomTimeSavingsEstimator
from builder import deserialize, validate_structure
from config import configure_logging, settings
from contracts import (
    BlueprintConfig,
    Difficulty,
    GraphOptions,
    RiskTolerance,
    SearchFilters,
    SecurityLevel,
    TemplateCategory,
    Timeline,
    WorkflowTemplate,
)
from errors import FlowsmithError
from librarian import TemplateStore, load_default_store
from orchestrator import AutomationPipeline


console = Console()


def read_messages(input_value: str) -> List[Any]:
    """Read the message feed from a file or literal text.

    A JSON list (of strings or ``{category?, text}`` records) is used as is;
    any other text becomes one message per non-empty line.
    """
    path = Path(input_value)
    content = path.read_text(encoding="utf-8") if path.is_file() else input_value

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, list):
        return data
    return [line.strip() for line in content.splitlines() if line.strip()]


def open_store() -> TemplateStore:
    try:
        return load_default_store(settings.get_templates_path())
    except FlowsmithError as e:
        console.print(f"[red]Error loading templates:[/red] {e}")
        sys.exit(1)


def template_table(title: str, templates: List[WorkflowTemplate]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Difficulty")
    table.add_column("Popularity", justify="right")
    table.add_column("Tags", style="dim")
    for t in templates:
        table.add_row(t.id, t.name, t.category.value, t.difficulty.value, str(t.popularity), ", ".join(t.tags))
    return table


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose (DEBUG) logging")
def cli(verbose: bool):
    """flowsmith: requirements to n8n workflow graphs.

    Matches requirements against a catalog of workflow templates and
    compiles custom automations into importable n8n JSON.
    """
    configure_logging("DEBUG" if verbose else None)


@cli.command()
@click.argument("query", required=False, default="")
@click.option("--category", type=click.Choice([c.value for c in TemplateCategory]), default=None)
@click.option("--difficulty", type=click.Choice([d.value for d in Difficulty]), default=None)
@click.option("--tag", "tags", multiple=True, help="Tag filter, any of (repeatable)")
@click.option("--integration", default=None, help="Required integration service")
def search(query: str, category: Optional[str], difficulty: Optional[str], tags, integration: Optional[str]):
    """Search templates; every query word must match."""
    store = open_store()
    filters = SearchFilters(
        category=category,
        difficulty=difficulty,
        tags=list(tags),
        integration=integration,
    )
    results = store.search(query, filters)
    if not results:
        console.print("[yellow]No templates found.[/yellow]")
        return
    console.print(template_table(f"{len(results)} template(s)", results))


@cli.command()
@click.argument("texts", nargs=-1, required=True)
@click.option("--limit", type=int, default=settings.recommendation_display_limit, show_default=True)
def recommend(texts, limit: int):
    """Rank templates against requirement keywords."""
    store = open_store()
    results = store.recommend(list(texts), limit=limit)
    if not results:
        console.print("[yellow]No matching templates.[/yellow]")
        return
    console.print(template_table("Recommended templates", results))


@cli.command()
def stats():
    """Show template catalog statistics."""
    store = open_store()
    summary = store.stats()
    console.print(Panel.fit(
        f"[bold]Templates:[/bold] {summary.total}\n"
        f"[bold]Categories:[/bold] {summary.categories}\n"
        f"[bold]Tags:[/bold] {summary.tags}\n"
        f"[bold]Integrations:[/bold] {summary.integrations}\n"
        f"[bold]Average popularity:[/bold] {summary.avg_popularity:.1f}",
        title="Template catalog",
        border_style="blue",
    ))
    table = Table(title="By category")
    table.add_column("Category", style="cyan")
    table.add_column("Templates", justify="right")
    for category in store.categories():
        table.add_row(category.value, str(len(store.get_by_category(category))))
    console.print(table)


@cli.command()
@click.option("--input", "-i", "input_value", required=True, help="JSON/text file or literal message text")
@click.option("--output", "-o", "output_dir", default=None, help="Output directory (default: ./outputs)")
@click.option(
    "--security-level",
    type=click.Choice([s.value for s in SecurityLevel]),
    default=settings.default_security_level,
    show_default=True,
)
@click.option("--error-handling/--no-error-handling", default=settings.include_error_handling)
@click.option("--monitoring/--no-monitoring", default=settings.add_monitoring)
@click.option("--retries/--no-retries", default=False, help="Retry failed integration calls")
@click.option("--timeline", type=click.Choice([t.value for t in Timeline]), default=Timeline.NORMAL.value)
@click.option(
    "--risk-tolerance",
    type=click.Choice([r.value for r in RiskTolerance]),
    default=RiskTolerance.MEDIUM.value,
)
@click.option("--seed", type=int, default=None, help="Seed for the time-savings estimate")
def run(
    input_value: str,
    output_dir: Optional[str],
    security_level: str,
    error_handling: bool,
    monitoring: bool,
    retries: bool,
    timeline: str,
    risk_tolerance: str,
    seed: Optional[int],
):
    """Generate a blueprint and compile workflow graphs."""
    console.print(Panel.fit(
        "[bold blue]flowsmith[/bold blue]\n"
        "[dim]Requirements to n8n workflow graphs[/dim]",
        border_style="blue"
    ))

    messages = read_messages(input_value)
    if not messages:
        console.print("[red]Error: Input is empty[/red]")
        sys.exit(1)
    console.print(f"[dim]Messages:[/dim] {len(messages)}")

    pipeline = AutomationPipeline(
        store=open_store(),
        synthesizer=BlueprintSynthesizer(estimator=RandomTimeSavingsEstimator(seed)),
        output_dir=output_dir,
    )
    options = GraphOptions(
        include_error_handling=error_handling,
        add_monitoring=monitoring,
        enable_retries=retries,
        include_logging=error_handling,
        security_level=security_level,
    )
    config = BlueprintConfig(timeline=timeline, risk_tolerance=risk_tolerance)
    result = pipeline.run(messages, config=config, options=options)

    console.print("\n" + "=" * 60)

    if result.get("status") == "error":
        console.print(f"[red]Error:[/red] {result.get('error')}")
        sys.exit(1)

    blueprint = result["blueprint"]
    roi = blueprint["roi_projection"]
    console.print(f"[green]Status:[/green] {result['status']}")
    console.print(f"[green]Run ID:[/green] {result['run_id']}")
    console.print(f"[green]Phase:[/green] {result['phase']}")
    console.print(f"[green]Completeness:[/green] {result['completeness']:.0%}")
    console.print(f"[green]Blueprint:[/green] {blueprint['title']}")
    console.print(
        f"[green]Cost:[/green] ${blueprint['cost_estimation']['total']['first_year']:,} first year, "
        f"payback {roi['payback_period_months']} months, three-year ROI {roi['three_year_roi']}%"
    )

    console.print(f"\n[bold]Graphs ({len(result['graphs'])}):[/bold]")
    for graph in result["graphs"]:
        console.print(f"  - {graph['name']} ({len(graph['nodes'])} nodes)")

    if result["recommendations"]:
        console.print("\n[bold]Related templates:[/bold]")
        for t in result["recommendations"]:
            console.print(f"  - {t['name']} [dim]({t['id']})[/dim]")

    if result.get("output_path"):
        console.print(f"\n[bold]Output saved to:[/bold] {result['output_path']}")

    console.print("\n" + "=" * 60)


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
def validate(graph_file: str):
    """Check a serialized workflow graph for structural problems."""
    try:
        graph = deserialize(Path(graph_file).read_text(encoding="utf-8"))
    except FlowsmithError as e:
        console.print(f"[red]Invalid graph:[/red] {e}")
        sys.exit(1)

    problems = validate_structure(graph)
    if problems:
        console.print(f"[red]{len(problems)} problem(s) in '{graph.name}':[/red]")
        for problem in problems:
            console.print(f"  - {problem}")
        sys.exit(1)
    console.print(f"[green]OK:[/green] '{graph.name}' ({len(graph.nodes)} nodes, {graph.edge_count()} edges)")


if __name__ == "__main__":
    cli()
