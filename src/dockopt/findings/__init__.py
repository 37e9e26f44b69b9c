"""Finding models, ordering, and redaction."""

from dockopt.findings.aggregator import blocking, group_by_severity, order_findings
from dockopt.findings.models import (
    AnalysisResult,
    Finding,
    RawFinding,
    RuleEvaluationWarning,
    RuleFailure,
    Suppression,
)
from dockopt.findings.redactor import redact

__all__ = [
    "AnalysisResult",
    "Finding",
    "RawFinding",
    "RuleEvaluationWarning",
    "RuleFailure",
    "Suppression",
    "blocking",
    "group_by_severity",
    "order_findings",
    "redact",
]
