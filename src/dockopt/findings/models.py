"""Finding data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class RawFinding:
    """A single hit yielded by a rule check (before the engine stamps it)."""

    lines: Tuple[int, ...]
    message: str
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class Undecided:
    """Yielded by a rule check that cannot classify a trigger."""

    line_no: int
    message: str


@dataclass(frozen=True)
class RuleEvaluationWarning:
    """A rule could not classify a trigger and emitted nothing for it."""

    rule_id: str
    line_no: int
    message: str


@dataclass(frozen=True)
class RuleFailure:
    """A rule raised during evaluation; its findings were discarded."""

    rule_id: str
    error: str


@dataclass(frozen=True)
class Finding:
    """One reported issue, attributed to a rule and one or more lines."""

    rule_id: str
    severity: str
    message: str
    lines: Tuple[int, ...]
    suggestion: Optional[str] = None

    @property
    def line(self) -> int:
        return self.lines[0] if self.lines else 0

    @property
    def sort_key(self) -> Tuple[int, str, str]:
        return (self.line, self.rule_id, self.message)


@dataclass(frozen=True)
class Suppression:
    """Audit record of a suppressed finding."""

    rule_id: str
    line_no: int
    source: str  # e.g. '# dockopt-ignore[running-as-root]'


@dataclass
class AnalysisResult:
    """Complete result of one analysis run."""

    findings: List[Finding] = field(default_factory=list)
    suppressed: List[Suppression] = field(default_factory=list)
    warnings: List[RuleEvaluationWarning] = field(default_factory=list)
    failures: List[RuleFailure] = field(default_factory=list)
    parse_warnings: List[str] = field(default_factory=list)
    rules_run: int = 0
    fail_on: str = "error"
    blocked: bool = False
    duration_ms: float = 0.0

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    def by_severity(self, severity: str) -> List[Finding]:
        return [f for f in self.findings if f.severity == severity]
