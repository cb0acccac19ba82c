"""CLI interface for gaslens."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from gaslens import __version__
from gaslens.config import GasLensConfig
from gaslens.constants import HEURISTIC_NOTICE
from gaslens.models.report import AnalysisResult
from gaslens.rules import get_all_rules
from gaslens.static.analyzer import GasAnalyzer
from gaslens.static.applicator import ApplyError
from gaslens.static.metrics import build_recommendations, compute_metrics

console = Console()

SEVERITY_COLORS = {
    "critical": "red",
    "high": "orange1",
    "medium": "yellow",
    "low": "blue",
}

IMPACT_COLORS = {
    "high": "red",
    "medium": "yellow",
    "low": "blue",
}

RECOMMENDATION_COLORS = {
    "warning": "yellow",
    "success": "green",
    "info": "cyan",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _print_result_console(path: Path, result: AnalysisResult, show_heatmap: bool) -> None:
    """Print an analysis result in human readable form."""
    title = result.contract_name or path.name
    console.print(f"\n[bold]Gas analysis of {title}[/bold] ({path})\n")

    # Summary table
    table = Table(title="Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Gas", style="magenta", justify="right")
    table.add_row("Estimated total", f"{result.total_gas_cost:,}")
    table.add_row("Potential savings", f"{result.total_savings:,}")
    table.add_row("[bold]Optimized total[/bold]", f"[bold]{result.optimized_gas_cost:,}[/bold]")
    console.print(table)

    if result.function_breakdown:
        breakdown = Table(title="Per function")
        breakdown.add_column("Function", style="cyan")
        breakdown.add_column("Gas", style="magenta", justify="right")
        for name, cost in sorted(result.function_breakdown.items(), key=lambda item: -item[1]):
            breakdown.add_row(name, f"{cost:,}")
        console.print(breakdown)

    if show_heatmap and result.heatmap_data:
        heatmap = Table(title="Heatmap")
        heatmap.add_column("Line", justify="right")
        heatmap.add_column("Gas", justify="right")
        heatmap.add_column("Intensity")
        heatmap.add_column("Operations")
        for point in result.heatmap_data:
            color = SEVERITY_COLORS.get(point.severity.value, "white")
            bar = "█" * max(1, round(point.intensity * 20))
            heatmap.add_row(
                str(point.line),
                f"{point.gas_cost:,}",
                f"[{color}]{bar}[/{color}]",
                escape(point.description),
            )
        console.print(heatmap)

    if result.optimizations:
        console.print("\n[bold]Optimizations:[/bold]")
        for suggestion in result.optimizations:
            color = IMPACT_COLORS.get(suggestion.impact.value, "white")
            fix = "auto-fix" if suggestion.auto_fix_available else "manual"
            console.print(
                f"\n[{color}]● {suggestion.id}[/{color}] [bold]{escape(suggestion.title)}[/bold] "
                f"(line {suggestion.range.start_line}, saves ~{suggestion.savings:,} gas, "
                f"{suggestion.difficulty.value}, {fix})"
            )
            console.print(f"  {escape(suggestion.description)}")
    else:
        console.print("\n[bold green]✓ No optimizations found[/bold green]")

    recommendations = build_recommendations(result)
    if recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for recommendation in recommendations:
            color = RECOMMENDATION_COLORS.get(recommendation.type.value, "white")
            console.print(
                f"  [{color}]{recommendation.title}[/{color}]: {recommendation.message}"
            )

    console.print(f"\n[dim]{HEURISTIC_NOTICE}[/dim]\n")


def _print_result_json(path: Path, result: AnalysisResult) -> None:
    """Print an analysis result as JSON."""
    metrics = compute_metrics(result)
    report = result.to_dict()
    report["file"] = str(path)
    report["tool_version"] = __version__
    report["notice"] = HEURISTIC_NOTICE
    report["metrics"] = {
        "total_cost": metrics.total_cost,
        "potential_savings": metrics.potential_savings,
        "savings_percentage": round(metrics.savings_percentage, 2),
        "optimization_count": metrics.optimization_count,
        "easy_optimizations": metrics.easy_optimizations,
        "medium_optimizations": metrics.medium_optimizations,
        "hard_optimizations": metrics.hard_optimizations,
        "high_impact_optimizations": metrics.high_impact_optimizations,
        "average_savings_per_optimization": round(metrics.average_savings_per_optimization, 2),
    }
    report["recommendations"] = [
        {
            "type": r.type.value,
            "title": r.title,
            "message": r.message,
            "priority": r.priority,
        }
        for r in build_recommendations(result)
    ]
    console.print_json(data=report)


@click.group()
@click.version_option(version=__version__, prog_name="gaslens")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="TOML file with a [tool.gaslens] table",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """gaslens - Estimate gas costs and suggest optimizations for Solidity contracts."""
    _configure_logging(verbose)
    ctx.obj = GasLensConfig.load(config_path) if config_path else GasLensConfig()


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o",
    "--output",
    type=click.Choice(["console", "json"]),
    default="console",
    help="Output format",
)
@click.option("--heatmap", is_flag=True, help="Show the per-line cost heatmap")
@click.pass_obj
def analyze(config: GasLensConfig, path: str, output: str, heatmap: bool) -> None:
    """Estimate gas costs of a Solidity file.

    Examples:
        gaslens analyze contracts/Token.sol
        gaslens analyze contracts/Token.sol --heatmap
        gaslens analyze contracts/Token.sol -o json
    """
    try:
        path_obj = Path(path)
        result = GasAnalyzer(config).analyze_file(path_obj)

        if output == "json":
            _print_result_json(path_obj, result)
        else:
            _print_result_console(path_obj, result, heatmap)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        sys.exit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("suggestion_id")
@click.option("--write", is_flag=True, help="Write the rewritten source back to PATH")
@click.option("--force", is_flag=True, help="Apply suggestions that are not marked auto-fix")
@click.pass_obj
def optimize(config: GasLensConfig, path: str, suggestion_id: str, write: bool, force: bool) -> None:
    """Apply one suggestion from 'gaslens analyze' to a Solidity file.

    Without --write the rewritten source is printed to stdout.

    Examples:
        gaslens optimize contracts/Token.sol GL-001@12:27
        gaslens optimize contracts/Token.sol GL-201@40:9 --write
    """
    try:
        path_obj = Path(path)
        source = path_obj.read_text(encoding="utf-8")
        analyzer = GasAnalyzer(config)
        before = analyzer.analyze(source, str(path_obj))

        suggestion = next((o for o in before.optimizations if o.id == suggestion_id), None)
        if suggestion is None:
            console.print(f"[bold red]Error:[/bold red] No suggestion {suggestion_id} in {path}")
            sys.exit(1)

        if not suggestion.auto_fix_available and not force:
            console.print(
                f"[yellow]{suggestion_id} needs manual review; pass --force to apply it anyway[/yellow]"
            )
            sys.exit(1)

        rewritten = analyzer.apply_optimization(suggestion, source)
        if rewritten is ApplyError.STALE_RANGE:
            console.print(
                f"[bold red]Error:[/bold red] {suggestion_id} no longer matches the source; "
                "re-run analyze"
            )
            sys.exit(1)

        after = analyzer.analyze(rewritten, str(path_obj))

        if write:
            path_obj.write_text(rewritten, encoding="utf-8")
            console.print(f"[bold green]✓ Applied {suggestion_id}[/bold green] to {path}")
        else:
            click.echo(rewritten, nl=False)

        err = Console(stderr=True)
        err.print(
            f"Estimated total: {before.total_gas_cost:,} → {after.total_gas_cost:,} gas "
            f"[dim]({HEURISTIC_NOTICE})[/dim]"
        )

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        sys.exit(1)


@cli.command(name="rules")
def list_rules() -> None:
    """List available optimization rules."""
    table = Table(title="Optimization rules")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category", style="magenta")
    table.add_column("Difficulty")
    table.add_column("Description", style="dim")

    for rule in sorted(get_all_rules(), key=lambda r: r.rule_id):
        table.add_row(
            rule.rule_id,
            rule.rule.name,
            rule.rule.category.value,
            rule.rule.difficulty.value,
            rule.rule.description,
        )

    console.print(table)


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
