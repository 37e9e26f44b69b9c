"""dockopt CLI — Typer application with check, rules, and init commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from dockopt import __version__

app = typer.Typer(
    name="dockopt",
    help="Find cache, size and hygiene problems in Dockerfiles.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=debug)],
        force=True,
    )


def _read_dockerfile(dockerfile: str) -> str:
    if dockerfile == "-":
        return sys.stdin.read()
    path = Path(dockerfile)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]Error:[/bold red] cannot read {dockerfile}: {exc}")
        raise typer.Exit(code=2) from exc


def _dockerignore_present(dockerfile: str, configured: Optional[bool]) -> bool:
    if configured is not None:
        return configured
    base = Path.cwd() if dockerfile == "-" else Path(dockerfile).resolve().parent
    return (base / ".dockerignore").is_file()


# ── check ─────────────────────────────────────────────────────────────────────


@app.command()
def check(
    dockerfile: str = typer.Argument("Dockerfile", help="Path to a Dockerfile, or - for stdin"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .dockopt.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | text | structured | json | sarif"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    fail_on: Optional[str] = typer.Option(None, "--fail-on", help="Severity threshold: none | warning | error"),
    disable: Optional[List[str]] = typer.Option(None, "--disable", "-d", help="Rule id to disable (repeatable)"),
    dockerignore: Optional[bool] = typer.Option(
        None, "--dockerignore/--no-dockerignore",
        help="Declare whether a .dockerignore exists (default: detect)",
    ),
    workers: Optional[int] = typer.Option(None, "--workers", help="Evaluate rules on N threads"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output with timing"),
) -> None:
    """Analyze a Dockerfile and report findings."""
    from dockopt.analyzer.engine import analyze
    from dockopt.config.loader import ConfigError, load_config
    from dockopt.config.schema import FAIL_ON_LEVELS, OUTPUT_FORMATS
    from dockopt.dockerfile.parser import DockerfileError
    from dockopt.output import FORMAT_MODES, format_findings, json_report, sarif, terminal
    from dockopt.rules.models import AnalysisOptions
    from dockopt.rules.registry import RuleLoadError, build_registry

    _setup_logging(verbose, debug)
    root = Path.cwd()

    # --- Load config ---
    try:
        cfg = load_config(root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    # --- CLI overrides ---
    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    if fail_on:
        if fail_on not in FAIL_ON_LEVELS:
            console.print(f"[bold red]Invalid fail-on level:[/bold red] {fail_on}")
            raise typer.Exit(code=2)
        cfg.analysis.fail_on = fail_on  # type: ignore[assignment]
    if disable:
        cfg.rules.disable.extend(disable)
    if workers is not None:
        if workers < 1:
            console.print(f"[bold red]Invalid worker count:[/bold red] {workers}")
            raise typer.Exit(code=2)
        cfg.analysis.workers = workers

    # --- Build rules ---
    try:
        registry = build_registry(cfg, root)
    except RuleLoadError as exc:
        console.print(f"[bold red]Rule error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if verbose or debug:
        console.print(f"[dim]Rules enabled: {len(registry.enabled_rules())}[/dim]")

    text_in = _read_dockerfile(dockerfile)
    options = AnalysisOptions(
        dockerignore_present=_dockerignore_present(
            dockerfile, dockerignore if dockerignore is not None else cfg.analysis.dockerignore
        )
    )

    # --- Run analysis ---
    try:
        result = analyze(text_in, cfg, registry, options=options)
    except DockerfileError as exc:
        console.print(f"[bold red]Parse error:[/bold red] {dockerfile}: {exc}")
        raise typer.Exit(code=2) from exc

    if debug:
        console.print(f"[dim]Analysis duration: {result.duration_ms:.0f}ms[/dim]")

    # --- Output ---
    source = "stdin" if dockerfile == "-" else dockerfile
    report_text: Optional[str] = None

    if cfg.output.format == "terminal":
        terminal.render(result, source=source, show_summary=cfg.output.show_summary)
    elif cfg.output.format in FORMAT_MODES:
        report_text = format_findings(result.findings, cfg.output.format)
    elif cfg.output.format == "json":
        report_text = json_report.render(result)
    elif cfg.output.format == "sarif":
        report_text = sarif.render(result, artifact=source, registry=registry)

    if report_text is not None and not output:
        print(report_text)

    # --- Write to file ---
    if output:
        if report_text is None:
            # terminal format has no file form; write the full JSON report
            report_text = json_report.render(result)
        Path(output).write_text(report_text + "\n", encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")

    # --- Exit code ---
    if result.blocked:
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


# ── rules ─────────────────────────────────────────────────────────────────────


@app.command()
def rules(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .dockopt.toml"),
) -> None:
    """List available rules and whether they are enabled."""
    from dockopt.config.loader import ConfigError, load_config
    from dockopt.rules.registry import RuleLoadError, build_registry

    root = Path.cwd()
    try:
        registry = build_registry(load_config(root, config), root)
    except (ConfigError, RuleLoadError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    table = Table(title="dockopt rules", border_style="dim")
    table.add_column("Rule", style="cyan")
    table.add_column("Severity")
    table.add_column("Enabled", justify="center")
    table.add_column("Description")
    for rule in registry.all_rules:
        table.add_row(
            rule.id,
            rule.severity,
            "✓" if rule.enabled else "-",
            rule.description + (" (custom)" if rule.is_custom else ""),
        )
    Console().print(table)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .dockopt.toml in the current directory."""
    from dockopt.config.defaults import DEFAULT_TOML
    from dockopt.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"dockopt {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """dockopt — find cache, size and hygiene problems in Dockerfiles."""
