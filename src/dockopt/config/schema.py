"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Set

Severity = Literal["info", "warning", "error"]
FailOn = Literal["none", "warning", "error"]
OutputFormat = Literal["terminal", "text", "structured", "json", "sarif"]

SEVERITIES = ("info", "warning", "error")
FAIL_ON_LEVELS = ("none", "warning", "error")
OUTPUT_FORMATS = ("terminal", "text", "structured", "json", "sarif")

SEVERITY_ORDER: dict[str, int] = {
    "info": 0,
    "warning": 1,
    "error": 2,
}


def severity_at_or_above(finding_sev: str, threshold: str) -> bool:
    """Return True if *finding_sev* is at or above *threshold*.

    A threshold of ``none`` is never reached.
    """
    if threshold == "none":
        return False
    return SEVERITY_ORDER.get(finding_sev, 0) >= SEVERITY_ORDER.get(threshold, 0)


@dataclass
class AnalysisConfig:
    fail_on: FailOn = "error"  # exit 1 on findings at or above this level
    workers: int = 1  # >1 evaluates rules on a thread pool
    dockerignore: Optional[bool] = None  # None = look for .dockerignore next to the Dockerfile


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True


@dataclass
class RulesConfig:
    enable: List[str] = field(default_factory=list)  # empty = all enabled
    disable: List[str] = field(default_factory=list)
    custom_dir: str = ".dockopt-rules"


@dataclass
class DockoptConfig:
    version: str = "1.0"
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)

    @property
    def disabled_rules(self) -> Set[str]:
        return set(self.rules.disable)
