"""hooklint CLI - hook resolution and dead-method checks for plugin projects."""
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from hooklint.analyzer.classifier import AnalysisSession, Classification, Outcome, PolicyOptions
from hooklint.analyzer.diagnostics import Finding, collect_findings, render_finding
from hooklint.analyzer.errors import SnapshotError, UnknownProviderError
from hooklint.analyzer.hook_catalog import HookCatalog
from hooklint.analyzer.hook_checks import check_all
from hooklint.analyzer.program_model import MethodSymbol, SnapshotProgram, load_snapshot
from hooklint.analyzer.providers import available_versions, load_catalog
from hooklint.config import __version__, get_config
from hooklint.utils.safe_console import SafeConsole

app = typer.Typer(
    name="hooklint",
    help="Hook resolution and dead-method checks for game-server plugins",
    add_completion=False,
)
console = SafeConsole()


def _settings():
    try:
        return get_config()
    except ValueError as e:
        console.error(str(e))
        raise typer.Exit(2)


def _catalog(config_dir: Optional[Path], catalog_version: Optional[str]) -> HookCatalog:
    settings = _settings()
    version = catalog_version or settings.catalog_version
    directory = config_dir or settings.config_dir
    try:
        return load_catalog(version, directory)
    except UnknownProviderError as e:
        console.error(str(e))
        raise typer.Exit(2)


def _classify(session: AnalysisSession, methods: List[MethodSymbol], jobs: int,
              show_progress: bool) -> List[Classification]:
    """Classify on a worker pool; Ctrl-C cancels pending reachability scans."""
    cancel = threading.Event()
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        transient=True,
        console=console,
        disable=not show_progress,
    )
    with progress, ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
        task = progress.add_task("Classifying methods...", total=len(methods))
        futures = [pool.submit(session.classify, method, cancel) for method in methods]
        try:
            for _ in as_completed(futures):
                progress.advance(task)
        except KeyboardInterrupt:
            cancel.set()
            console.print("[yellow]Interrupted: remaining methods are reported as not evaluated[/yellow]")
    return [future.result() for future in futures]


def _print_findings_table(findings: List[Finding]):
    table = Table(title="Findings", show_header=True, header_style="bold magenta")
    table.add_column("Severity")
    table.add_column("Code", style="cyan")
    table.add_column("Method", style="yellow")
    table.add_column("Location", style="magenta", no_wrap=False)
    table.add_column("Message", no_wrap=False)
    for finding in findings:
        location = str(finding.location) if finding.location else "-"
        table.add_row(
            console.severity(finding.severity, finding.severity),
            finding.code,
            escape(finding.method_name),
            escape(location),
            escape(finding.message.split("\n")[0]),
        )
    console.print(table)


def _print_summary(classifications: List[Classification]):
    counts = Counter(c.outcome for c in classifications)
    table = Table(title="Summary", show_header=True, header_style="bold cyan", box=None)
    table.add_column("Outcome", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for outcome in Outcome:
        if counts.get(outcome):
            table.add_row(outcome.value, str(counts[outcome]))
    console.print(table)


@app.command()
def check(
    snapshot: Path = typer.Argument(..., help="Program snapshot (JSON) exported from the plugin project"),
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", "-c", help="Hook configuration folder"),
    catalog_version: Optional[str] = typer.Option(None, "--catalog-version", "-v", help="Catalog provider version"),
    max_suggestions: Optional[int] = typer.Option(None, "--max-suggestions", min=1, help="Suggestions per unused method"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Worker threads"),
    all_classes: bool = typer.Option(False, "--all-classes", help="Analyze every class, not only plugin classes"),
    output_format: str = typer.Option("table", "--format", "-f", help="Output format: 'table' or 'text'"),
    no_progress: bool = typer.Option(False, "--no-progress", help="Hide the progress bar"),
):
    """Classify every method in SNAPSHOT and report findings (exit 1 if any)."""
    if output_format not in ("table", "text"):
        console.error(f"Invalid format '{output_format}'. Use 'table' or 'text'.")
        raise typer.Exit(2)

    settings = _settings()
    catalog = _catalog(config_dir, catalog_version)

    try:
        program: SnapshotProgram = load_snapshot(snapshot)
    except SnapshotError as e:
        console.error(str(e))
        raise typer.Exit(2)

    options = PolicyOptions(
        max_suggestions=max_suggestions or settings.max_suggestions,
        plugin_base_types=() if all_classes else settings.plugin_base_types,
    )
    session = AnalysisSession(catalog=catalog, program=program, options=options)
    methods = list(program.methods())

    console.print(f"[bold blue]Analyzing snapshot:[/bold blue] {escape(str(snapshot))}")
    console.print(f"[dim]{len(catalog)} hooks ({catalog.version}), {len(methods)} methods[/dim]\n")

    classifications = _classify(session, methods, jobs or settings.jobs, show_progress=not no_progress)
    findings = collect_findings(classifications, check_all(methods, session))

    if findings:
        if output_format == "text":
            for finding in findings:
                console.print(render_finding(finding), markup=False, highlight=False)
                console.print()
        else:
            _print_findings_table(findings)
    else:
        console.print("[bold green]No findings[/bold green]")

    _print_summary(classifications)

    if findings:
        raise typer.Exit(1)


@app.command()
def catalog(
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", "-c", help="Hook configuration folder"),
    catalog_version: Optional[str] = typer.Option(None, "--catalog-version", "-v", help="Catalog provider version"),
    show_hooks: bool = typer.Option(False, "--hooks", help="List every catalogued hook"),
):
    """Show what the hook catalog contains."""
    hooks = _catalog(config_dir, catalog_version)

    stats = Table(title=f"Hook Catalog ({hooks.version})", show_header=True, header_style="bold cyan")
    stats.add_column("Metric", style="cyan")
    stats.add_column("Count", justify="right", style="green")
    stats.add_row("Hooks", str(len(hooks)))
    stats.add_row("Hook names", str(len(hooks.names())))
    stats.add_row("Plugins providing hooks", str(len(hooks.plugin_names())))
    stats.add_row("Unity messages", str(len(hooks.unity_descriptors())))
    stats.add_row("Deprecated hooks", str(len(hooks.deprecated_descriptors())))
    stats.add_row("Warnings", str(len(hooks.warnings)))
    console.print(stats)

    if show_hooks:
        table = Table(title="Hooks")
        table.add_column("Signature", style="cyan", no_wrap=False)
        table.add_column("Source", style="magenta")
        for descriptor in hooks.live_descriptors(include_unity=True) + hooks.deprecated_descriptors():
            table.add_row(escape(descriptor.signature.render(with_return=True)), descriptor.source.describe())
        console.print(table)

    console.print(f"[dim]Available catalog versions: {', '.join(available_versions())}[/dim]")


@app.command()
def suggest(
    name: str = typer.Argument(..., help="Method name to look up"),
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", "-c", help="Hook configuration folder"),
    catalog_version: Optional[str] = typer.Option(None, "--catalog-version", "-v", help="Catalog provider version"),
    limit: int = typer.Option(5, "--limit", "-n", min=1, help="Maximum number of suggestions"),
):
    """Rank catalogued hooks by similarity to NAME."""
    hooks = _catalog(config_dir, catalog_version)
    session = AnalysisSession(catalog=hooks, program=SnapshotProgram())
    matches = session.suggest(name, limit)

    if not matches:
        console.print(f"[yellow]No hooks similar to '{escape(name)}'[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Hooks similar to {escape(name)}")
    table.add_column("Hook", style="cyan", no_wrap=False)
    table.add_column("Tier", style="yellow")
    table.add_column("Score", justify="right", style="green")
    for match in matches:
        table.add_row(escape(match.rendered), match.tier.name, f"{match.score:.0f}")
    console.print(table)


@app.command()
def version():
    """Print the hooklint version."""
    console.print(f"hooklint {__version__}")


if __name__ == "__main__":
    app()
