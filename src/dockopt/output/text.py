"""Plain-text reporter — one line per finding, errors first."""

from __future__ import annotations

from typing import Iterable, List

from dockopt.findings.aggregator import group_by_severity
from dockopt.findings.models import Finding


def format_line(finding: Finding) -> str:
    return f"{finding.line}: [{finding.severity}] {finding.rule_id} — {finding.message}"


def render(findings: Iterable[Finding]) -> str:
    """Return findings grouped by severity (error, warning, info)."""
    lines: List[str] = []
    for group in group_by_severity(findings).values():
        lines.extend(format_line(f) for f in group)
    return "\n".join(lines)
