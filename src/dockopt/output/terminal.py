"""Rich terminal reporter — colour, severity pills, suggestions."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from dockopt.findings.aggregator import group_by_severity
from dockopt.findings.models import AnalysisResult

_SEVERITY_STYLE = {
    "error": "bold white on red",
    "warning": "bold black on yellow",
    "info": "bold black on bright_cyan",
}


def _severity_pill(severity: str) -> Text:
    return Text(f" {severity.upper()} ", style=_SEVERITY_STYLE.get(severity, ""))


def render(
    result: AnalysisResult,
    *,
    source: str = "Dockerfile",
    show_summary: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print analysis results to the terminal using Rich."""
    console = console or Console()

    if not result.findings:
        console.print()
        console.print(f"[bold green]✅ No findings — {source} looks good.[/bold green]")
        if show_summary:
            _print_summary(console, result)
        return

    console.print()
    table = Table(
        title=f"dockopt: {source}",
        show_lines=True,
        title_style="bold",
        border_style="dim",
    )
    table.add_column("Severity", justify="center", width=11)
    table.add_column("Line", justify="right", style="green")
    table.add_column("Rule", style="cyan", min_width=20)
    table.add_column("Finding", min_width=30)

    for group in group_by_severity(result.findings).values():
        for finding in group:
            message = Text(finding.message)
            if finding.suggestion:
                message.append(f"\n→ {finding.suggestion}", style="dim")
            table.add_row(
                _severity_pill(finding.severity),
                ", ".join(str(n) for n in finding.lines),
                finding.rule_id,
                message,
            )

    console.print(table)

    if show_summary:
        _print_summary(console, result)

    console.print()
    if result.blocked:
        console.print(
            f"[bold red]❌ Findings at or above '{result.fail_on}' severity.[/bold red]"
        )
    else:
        console.print("[bold yellow]⚠️  Findings below the fail threshold.[/bold yellow]")


def _print_summary(console: Console, result: AnalysisResult) -> None:
    console.print()
    console.print(f"[dim]Rules run:[/dim]     {result.rules_run}")
    console.print(f"[dim]Errors:[/dim]        {len(result.by_severity('error'))}")
    console.print(f"[dim]Warnings:[/dim]      {len(result.by_severity('warning'))}")
    console.print(f"[dim]Info:[/dim]          {len(result.by_severity('info'))}")
    console.print(f"[dim]Suppressed:[/dim]    {len(result.suppressed)}")
    if result.failures:
        console.print(f"[dim]Rule failures:[/dim] {len(result.failures)}")
    console.print(f"[dim]Duration:[/dim]      {result.duration_ms:.0f}ms")
