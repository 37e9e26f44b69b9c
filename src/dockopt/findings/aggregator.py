"""Finding ordering and severity gating."""

from __future__ import annotations

from typing import Dict, Iterable, List

from dockopt.config.schema import SEVERITY_ORDER, severity_at_or_above
from dockopt.findings.models import Finding


def order_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Sort by (line, rule id) and drop exact duplicates.

    Two rules flagging the same line stay separate; findings are additive.
    """
    unique = dict.fromkeys(findings)
    return sorted(unique, key=lambda f: f.sort_key)


def group_by_severity(findings: Iterable[Finding]) -> Dict[str, List[Finding]]:
    """Group findings, most severe first, preserving order within a group."""
    groups: Dict[str, List[Finding]] = {
        sev: [] for sev in sorted(SEVERITY_ORDER, key=SEVERITY_ORDER.get, reverse=True)
    }
    for f in findings:
        groups.setdefault(f.severity, []).append(f)
    return groups


def is_blocking(finding: Finding, fail_on: str) -> bool:
    return severity_at_or_above(finding.severity, fail_on)


def blocking(findings: Iterable[Finding], fail_on: str) -> List[Finding]:
    return [f for f in findings if is_blocking(f, fail_on)]
