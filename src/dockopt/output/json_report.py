"""Structured (JSON) reporter for machine consumption."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from dockopt import __version__
from dockopt.findings.models import AnalysisResult, Finding


def finding_record(finding: Finding) -> Dict[str, Any]:
    """One finding as a JSON-serialisable record."""
    record: Dict[str, Any] = {
        "line": finding.line,
        "lines": list(finding.lines),
        "severity": finding.severity,
        "ruleId": finding.rule_id,
        "message": finding.message,
    }
    if finding.suggestion is not None:
        record["suggestion"] = finding.suggestion
    return record


def to_records(findings: Iterable[Finding]) -> List[Dict[str, Any]]:
    return [finding_record(f) for f in findings]


def render_findings(findings: Iterable[Finding]) -> str:
    """Return the ordered finding records as a JSON array."""
    return json.dumps(to_records(findings), indent=2, ensure_ascii=False)


def to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """Convert AnalysisResult to a JSON-serialisable dict."""
    return {
        "version": __version__,
        "total_findings": result.total_findings,
        "blocked": result.blocked,
        "fail_on": result.fail_on,
        "findings": to_records(result.findings),
        "suppressed": [
            {"ruleId": s.rule_id, "line": s.line_no, "source": s.source}
            for s in result.suppressed
        ],
        "warnings": [
            {"ruleId": w.rule_id, "line": w.line_no, "message": w.message}
            for w in result.warnings
        ],
        "rule_failures": [
            {"ruleId": f.rule_id, "error": f.error} for f in result.failures
        ],
        "parse_warnings": result.parse_warnings,
        "rules_run": result.rules_run,
        "duration_ms": result.duration_ms,
    }


def render(result: AnalysisResult) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result), indent=2, ensure_ascii=False)
