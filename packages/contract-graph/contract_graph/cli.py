"""
Contract Graph CLI

Command-line interface over the dependency graph engine.
State lives in the publication log (replayed on every invocation).
"""

import json
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from .application.service import DependencyGraphService
from .common.observability import setup_logging
from .config import settings
from .domain.exceptions import ContractGraphError
from .domain.models import DependencyTreeNode

app = typer.Typer(
    name="contract-graph",
    help="Contract registry dependency graph - publish, dependencies, impact analysis",
    add_completion=False,
)

console = Console()


@app.callback()
def _root(
    ctx: typer.Context,
    log: Path | None = typer.Option(
        None, "--log", "-l", help="Publication log path (default: CONTRACT_GRAPH_PUBLICATION_LOG_PATH)"
    ),
):
    """Load the graph from the publication log."""
    cfg = settings.model_copy(update={"publication_log_path": log}) if log is not None else settings
    try:
        ctx.obj = DependencyGraphService.from_settings(cfg)
    except ContractGraphError as e:
        console.print(f"[bold red]❌ Failed to load graph:[/bold red] {e}")
        raise typer.Exit(code=1)


@app.command()
def publish(
    ctx: typer.Context,
    interface_file: Path = typer.Argument(..., help="Interface description (JSON)"),
    version: str = typer.Option(..., "--version", "-v", help="Version label"),
    contract_id: str | None = typer.Option(None, "--contract", "-c", help="Contract ID (default: from file)"),
):
    """
    Publish a contract version.

    Rejected publishes (malformed / duplicate / cycle) leave the graph unchanged.
    """
    service: DependencyGraphService = ctx.obj

    try:
        description = json.loads(interface_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[bold red]❌ Cannot read interface file:[/bold red] {e}")
        raise typer.Exit(code=1)

    if contract_id is None:
        contract_id = description.get("contract_id", "") if isinstance(description, dict) else ""

    try:
        result = service.publish(contract_id, version, description)
    except ContractGraphError as e:
        console.print(f"[bold red]❌ Publish failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not result.ok:
        console.print(f"[bold red]❌ Publish rejected:[/bold red] {result.error.message}")
        raise typer.Exit(code=1)

    console.print(f"[bold green]✅ Published[/bold green] {contract_id}@{version} (epoch {result.epoch})")
    for edge in result.edges:
        console.print(f"  → {edge.to_contract_id} [dim]({edge.kind.value})[/dim]")


@app.command()
def deps(
    ctx: typer.Context,
    contract: str = typer.Argument(..., help="Contract ID"),
    version: str | None = typer.Option(None, "--version", "-v", help="Version label (default: latest)"),
):
    """List direct dependencies."""
    service: DependencyGraphService = ctx.obj
    try:
        records = service.dependencies(contract, version)
    except ContractGraphError as e:
        _fail(e)

    if not records:
        console.print("[yellow]No dependencies found.[/yellow]")
        return

    table = Table(title="Dependencies")
    table.add_column("Contract", style="cyan")
    table.add_column("Kind")
    table.add_column("Constraint")
    table.add_column("Status")
    for r in records:
        status = "resolved" if r.resolved else "[red]unresolved[/red]"
        table.add_row(r.to_contract_id, r.kind.value, r.constraint, status)
    console.print(table)


@app.command()
def dependents(
    ctx: typer.Context,
    contract: str = typer.Argument(..., help="Contract ID"),
    version: str | None = typer.Option(None, "--version", "-v", help="Version label"),
):
    """List direct dependents."""
    service: DependencyGraphService = ctx.obj
    try:
        records = service.dependents(contract, version)
    except ContractGraphError as e:
        _fail(e)

    if not records:
        console.print("[yellow]No dependents found.[/yellow]")
        return

    table = Table(title="Dependents")
    table.add_column("Version", style="cyan")
    table.add_column("Kind")
    for r in records:
        table.add_row(r.from_version.node_id, r.kind.value)
    console.print(table)


@app.command()
def impact(
    ctx: typer.Context,
    contract: str = typer.Argument(..., help="Contract ID"),
    version: str | None = typer.Option(None, "--version", "-v", help="Version label (default: latest)"),
):
    """Impact analysis: every version affected if this contract changes."""
    service: DependencyGraphService = ctx.obj
    try:
        records = service.impact(contract, version)
    except ContractGraphError as e:
        _fail(e)

    if not records:
        console.print("[green]No impacted versions.[/green]")
        return

    table = Table(title="Impact Analysis")
    table.add_column("Depth", justify="right")
    table.add_column("Version", style="cyan")
    for r in records:
        table.add_row(str(r.depth), r.version.node_id)
    console.print(table)


@app.command()
def tree(
    ctx: typer.Context,
    contract: str = typer.Argument(..., help="Contract ID"),
    version: str | None = typer.Option(None, "--version", "-v", help="Version label (default: latest)"),
    depth: int | None = typer.Option(None, "--depth", "-d", min=0, help="Tree depth to display"),
):
    """Display the dependency tree."""
    service: DependencyGraphService = ctx.obj
    try:
        root = service.dependency_tree(contract, version, max_depth=depth)
    except ContractGraphError as e:
        _fail(e)

    rendered = Tree(f"[bold]{root.name}[/bold] ({root.contract_id}@{root.version_label})")
    _add_children(rendered, root)
    console.print(rendered)


@app.command()
def export(ctx: typer.Context):
    """Export the full graph as JSON (nodes + edges)."""
    service: DependencyGraphService = ctx.obj
    typer.echo(service.export().to_json())


@app.command()
def stats(ctx: typer.Context):
    """Show graph statistics."""
    service: DependencyGraphService = ctx.obj
    graph = service.stats()

    table = Table(title="Graph Status", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Epoch", str(graph.epoch))
    table.add_row("Contracts", str(graph.contracts))
    table.add_row("Versions", str(graph.versions))
    table.add_row("Edges", str(graph.edges))
    table.add_row("Unresolved Targets", str(graph.unresolved_targets))
    console.print(table)


def _add_children(branch: Tree, node: DependencyTreeNode) -> None:
    for child in node.dependencies:
        label = f"[bold]{child.name}[/bold] [cyan]({child.constraint})[/cyan] [dim]{child.kind.value}[/dim]"
        if not child.resolved:
            label += f" [red]{escape('[Unresolved]')}[/red]"
        elif child.truncated:
            label += " [dim]…[/dim]"
        _add_children(branch.add(label), child)


def _fail(error: ContractGraphError) -> NoReturn:
    console.print(f"[bold red]❌ {error.message}[/bold red]")
    raise typer.Exit(code=1)


def main():
    """Main entry point."""
    setup_logging(level=settings.log_level, format=settings.log_format)
    app()


if __name__ == "__main__":
    main()
