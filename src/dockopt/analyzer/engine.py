"""Core analysis engine — orchestrates the full pipeline.

text → tokenize → parse → build_layers → evaluate → suppress → gate.

Parse errors are fatal and propagate. Rule errors are not: each rule runs
in isolation and a raising rule is recorded as a ``RuleFailure``.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

from dockopt.analyzer.suppression import SuppressionChecker
from dockopt.config.schema import DockoptConfig
from dockopt.dockerfile.layers import build_layers
from dockopt.dockerfile.models import Document
from dockopt.dockerfile.parser import parse_text
from dockopt.findings.aggregator import blocking, order_findings
from dockopt.findings.models import (
    AnalysisResult,
    Finding,
    RawFinding,
    RuleEvaluationWarning,
    RuleFailure,
    Suppression,
    Undecided,
)
from dockopt.rules.builtin import builtin_rules
from dockopt.rules.models import AnalysisOptions, LayerMap, Rule
from dockopt.rules.registry import RuleRegistry

logger = logging.getLogger(__name__)

_RuleOutcome = Tuple[List[Finding], List[RuleEvaluationWarning], Optional[RuleFailure]]


@dataclass
class Evaluation:
    """Output of one ``evaluate`` call."""

    findings: List[Finding] = field(default_factory=list)
    warnings: List[RuleEvaluationWarning] = field(default_factory=list)
    failures: List[RuleFailure] = field(default_factory=list)


def _run_rule(
    rule: Rule, document: Document, layers: LayerMap, options: AnalysisOptions
) -> _RuleOutcome:
    findings: List[Finding] = []
    warnings: List[RuleEvaluationWarning] = []
    try:
        for item in rule.evaluate(document, layers, options):
            if isinstance(item, RawFinding):
                findings.append(
                    Finding(
                        rule_id=rule.id,
                        severity=rule.severity,
                        message=item.message,
                        lines=item.lines,
                        suggestion=item.suggestion,
                    )
                )
            elif isinstance(item, Undecided):
                warnings.append(RuleEvaluationWarning(rule.id, item.line_no, item.message))
    except Exception as exc:
        logger.warning("rule %s failed: %s", rule.id, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
        return [], [], RuleFailure(rule.id, f"{type(exc).__name__}: {exc}")
    for w in warnings:
        logger.debug("rule %s undecided at line %d: %s", w.rule_id, w.line_no, w.message)
    return findings, warnings, None


def evaluate(
    document: Document,
    layers: LayerMap,
    rules: Union[RuleRegistry, Iterable[Rule]],
    options: Optional[AnalysisOptions] = None,
    *,
    workers: int = 1,
) -> Evaluation:
    """Run every enabled rule and return findings sorted by (line, rule id).

    With ``workers > 1`` rules run on a thread pool; the result is identical.
    """
    opts = options or AnalysisOptions()
    if isinstance(rules, RuleRegistry):
        selected = rules.enabled_rules()
    else:
        selected = [r for r in rules if r.enabled]

    if workers > 1 and len(selected) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda r: _run_rule(r, document, layers, opts), selected))
    else:
        outcomes = [_run_rule(r, document, layers, opts) for r in selected]

    result = Evaluation()
    raw: List[Finding] = []
    for findings, warnings, failure in outcomes:
        raw.extend(findings)
        result.warnings.extend(warnings)
        if failure is not None:
            result.failures.append(failure)
    result.findings = order_findings(raw)
    result.warnings.sort(key=lambda w: (w.line_no, w.rule_id))
    return result


def default_registry(config: Optional[DockoptConfig] = None) -> RuleRegistry:
    """Built-in rules filtered by *config* (no custom rule loading)."""
    registry = RuleRegistry(builtin_rules())
    registry.apply_config(config or DockoptConfig())
    return registry


def analyze(
    text: str,
    config: Optional[DockoptConfig] = None,
    registry: Optional[RuleRegistry] = None,
    *,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResult:
    """Execute the full pipeline on Dockerfile *text*. Returns an AnalysisResult.

    Raises ``DockerfileError`` when the text cannot be parsed.
    """
    start = time.perf_counter()
    cfg = config or DockoptConfig()
    reg = registry if registry is not None else default_registry(cfg)

    document = parse_text(text)
    for warning in document.warnings:
        logger.debug("line %d: %s", warning.line_no, warning.message)

    layers = build_layers(document)
    evaluation = evaluate(document, layers, reg, options, workers=cfg.analysis.workers)

    checker = SuppressionChecker()
    checker.register_text(text)
    findings: List[Finding] = []
    suppressed: List[Suppression] = []
    for finding in evaluation.findings:
        sup = checker.is_suppressed(finding)
        if sup is not None:
            suppressed.append(sup)
            continue
        findings.append(finding)

    elapsed = (time.perf_counter() - start) * 1000

    return AnalysisResult(
        findings=findings,
        suppressed=suppressed,
        warnings=evaluation.warnings,
        failures=evaluation.failures,
        parse_warnings=[f"line {w.line_no}: {w.message}" for w in document.warnings],
        rules_run=len(reg.enabled_rules()),
        fail_on=cfg.analysis.fail_on,
        blocked=bool(blocking(findings, cfg.analysis.fail_on)),
        duration_ms=round(elapsed, 2),
    )
