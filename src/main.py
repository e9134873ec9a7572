"""result-janitor CLI - find calls whose result is silently discarded."""
import json
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table
from rich.markup import escape

# Add project root to path so `python src/main.py` works from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Import Windows-safe Console wrapper
from src.utils.safe_console import SafeConsole

from src.analyzer.auditor import AuditReport, ProjectAuditor
from src.analyzer.cache import FindingsCache
from src.analyzer.rules import BUILTIN_RULES, parse_target
from src.config import Config, __version__, get_config

app = typer.Typer(
    name="result-janitor",
    help="Find calls to pure functions whose result is thrown away",
    add_completion=False
)
# Use SafeConsole for Windows Unicode compatibility
console = SafeConsole()
# Progress and diagnostics, kept off stdout so JSON output stays parseable
err_console = SafeConsole(stderr=True)

# Cache management sub-command
cache_app = typer.Typer(name="cache", help="Manage the findings cache")

EXIT_CLEAN = 0
EXIT_FINDINGS = 1
EXIT_USAGE = 2


class Language(str, Enum):
    python = "python"
    javascript = "javascript"
    typescript = "typescript"


class OutputFormat(str, Enum):
    table = "table"
    json = "json"


def load_config(project_root: Path) -> Config:
    """Load project configuration or exit with a usage error.

    Returns:
        Config for ``project_root``
    """
    if not project_root.exists():
        console.error(f"Project path does not exist: {project_root}")
        raise typer.Exit(EXIT_USAGE)

    try:
        return get_config(project_root)
    except ValueError as e:
        console.error(f"Invalid configuration: {e}")
        raise typer.Exit(EXIT_USAGE)


def _display_path(file_path: str, project_root: Path) -> str:
    try:
        return str(Path(file_path).relative_to(project_root))
    except ValueError:
        return file_path


def _print_table(report: AuditReport, project_root: Path):
    """Render findings as a rich table followed by a one-line summary."""
    if report.findings:
        table = Table(title="Discarded Results", show_header=True, header_style="bold cyan")
        table.add_column("Location", style="cyan", no_wrap=True)
        table.add_column("Rule", style="magenta")
        table.add_column("Call", style="bold")
        table.add_column("In", style="dim")

        for finding in report.findings:
            location = f"{_display_path(finding.file_path, project_root)}:{finding.line}:{finding.column}"
            table.add_row(
                escape(location),
                finding.rule_id,
                escape(f"{finding.callee}()"),
                escape(finding.function),
            )

        console.print(table)

        files = len({finding.file_path for finding in report.findings})
        console.print(
            f"\n[bold red]✗ {len(report.findings)} discarded result(s)[/bold red] "
            f"in {files} file(s) ({report.files_analyzed} checked)"
        )
    else:
        console.success(f"No discarded results ({report.files_analyzed} file(s) checked)")

    if report.files_from_cache:
        console.print(f"[dim]⚡ {report.files_from_cache} file(s) served from cache[/dim]")

    if report.skipped_files:
        console.warning(f"{len(report.skipped_files)} file(s) skipped (use --verbose for details)")


def _print_json(report: AuditReport, project_root: Path):
    payload = {
        "version": __version__,
        "files_analyzed": report.files_analyzed,
        "findings": [
            {**finding.to_dict(), "file_path": _display_path(finding.file_path, project_root)}
            for finding in report.findings
        ],
        "skipped": [
            {"file_path": _display_path(path, project_root), "reason": reason}
            for path, reason in report.skipped_files
        ],
    }
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def check(
    paths: Optional[List[Path]] = typer.Argument(None, help="Files or directories to check (default: project root)"),
    project_root: Path = typer.Option(Path("."), "--root", help="Project root holding .env and the cache"),
    languages: Optional[List[Language]] = typer.Option(None, "--language", "-l", help="Only check these languages (repeatable)"),
    rule_ids: Optional[List[str]] = typer.Option(None, "--rule", "-r", help="Only run these rule ids (repeatable)"),
    targets: Optional[List[str]] = typer.Option(None, "--target", "-t", help="Extra target 'module.path[:fn1,fn2]' (repeatable)"),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", "-f", help="Output format"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore and don't update the findings cache"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print every checked and skipped file"),
):
    """Report calls whose result is discarded.

    Exits with 1 when findings exist, 0 when the code is clean and 2 on
    configuration or usage errors.
    """
    project_root = project_root.resolve()
    config = load_config(project_root)

    try:
        extra_targets = [parse_target(raw) for raw in targets or []]
        rules = config.rules(extra_targets=extra_targets, only=rule_ids)
    except ValueError as e:
        console.error(str(e))
        raise typer.Exit(EXIT_USAGE)

    if not rules:
        console.error("No rules selected")
        raise typer.Exit(EXIT_USAGE)

    check_paths = [path.resolve() for path in paths] if paths else [project_root]
    for path in check_paths:
        if not path.exists():
            console.error(f"Path does not exist: {path}")
            raise typer.Exit(EXIT_USAGE)

    def on_file(file_path: Path, status: str):
        if verbose:
            style = "dim" if status in ("checked", "cached") else "yellow"
            err_console.print(f"[{style}]{status:>13}[/{style}] {escape(_display_path(str(file_path), project_root))}")

    cache = None if no_cache else FindingsCache(config.cache_dir)
    try:
        auditor = ProjectAuditor(
            rules,
            languages=[language.value for language in languages] if languages else None,
            excluded_dirs=config.excluded_dirs + [config.cache_dir.name],
            cache=cache,
        )
        if output_format == OutputFormat.table and not verbose and err_console.is_terminal:
            with err_console.status("[bold blue]Checking…[/bold blue]"):
                report = auditor.audit(check_paths, on_file=on_file)
        else:
            report = auditor.audit(check_paths, on_file=on_file)
    finally:
        if cache is not None:
            cache.close()

    if output_format == OutputFormat.json:
        _print_json(report, project_root)
    else:
        _print_table(report, project_root)

    if verbose:
        for path, reason in report.skipped_files:
            err_console.warning(f"Skipped {_display_path(path, project_root)}: {reason}")

    raise typer.Exit(EXIT_FINDINGS if report.findings else EXIT_CLEAN)


@app.command("rules")
def list_rules():
    """List the preset rules and the functions each one watches."""
    table = Table(title="Preset Rules", show_header=True, header_style="bold cyan")
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Targets", style="green")
    table.add_column("Description")

    for rule in BUILTIN_RULES:
        targets = "\n".join(f"{language}: {target}" for language, target in rule.targets.items())
        table.add_row(rule.id, escape(targets), escape(rule.description))

    console.print(table)
    console.print("\n[dim]Custom targets: --target 'module.path[:fn1,fn2]' or RESULT_JANITOR_TARGETS[/dim]")


# =========================================================================
# CACHE MANAGEMENT COMMANDS
# =========================================================================

@cache_app.command("clear")
def cache_clear(
    project_path: Path = typer.Argument(Path("."), help="Project root path"),
):
    """Clear the findings cache for a project.

    This forces every file to be checked again on the next run.
    """
    project_path = project_path.resolve()
    config = load_config(project_path)

    with FindingsCache(config.cache_dir) as cache:
        cache.clear_cache()

    console.success(f"Cache cleared for {project_path}")


@cache_app.command("stats")
def cache_stats(
    project_path: Path = typer.Argument(Path("."), help="Project root path"),
):
    """Display cache statistics for a project."""
    project_path = project_path.resolve()
    config = load_config(project_path)

    with FindingsCache(config.cache_dir) as cache:
        stats = cache.get_cache_stats()

    # Display stats in a table
    table = Table(title=f"Cache Statistics: {escape(str(project_path))}", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")

    table.add_row("Total Files Cached", str(stats['total_files']))
    table.add_row("Findings Cached", str(stats['findings_cached']))

    console.print(table)


# Register cache sub-command
app.add_typer(cache_app)


def _version_callback(value: bool):
    if value:
        console.print(f"result-janitor {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """result-janitor - Find calls to pure functions whose result is thrown away."""
    pass


if __name__ == "__main__":
    app()
