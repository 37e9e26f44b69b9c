"""Tests for the analysis engine: evaluation, isolation, gating, suppression."""

import pytest

from dockopt.analyzer.engine import analyze, default_registry, evaluate
from dockopt.config.schema import DockoptConfig
from dockopt.dockerfile.layers import build_layers
from dockopt.dockerfile.parser import DockerfileError, StageReferenceError, parse_text
from dockopt.findings.models import RawFinding
from dockopt.rules.builtin import builtin_rules
from dockopt.rules.models import AnalysisOptions, Rule
from dockopt.rules.registry import RuleRegistry


def _boom(document, layers, options):
    raise RuntimeError("rule exploded")
    yield  # pragma: no cover


def _first_line(document, layers, options):
    yield RawFinding(lines=(1,), message="first line")


FAULTY = Rule(id="faulty", name="Faulty", description="always raises", severity="error", check=_boom)


def _evaluate(text, rules, **kwargs):
    doc = parse_text(text)
    return evaluate(doc, build_layers(doc), rules, AnalysisOptions(), **kwargs)


class TestEvaluate:
    def test_ordered_by_line_then_rule(self, noisy_dockerfile):
        findings = _evaluate(noisy_dockerfile, builtin_rules()).findings
        keys = [(f.line, f.rule_id) for f in findings]
        assert keys == sorted(keys)

    def test_deterministic(self, noisy_dockerfile):
        first = _evaluate(noisy_dockerfile, builtin_rules())
        second = _evaluate(noisy_dockerfile, builtin_rules())
        assert first.findings == second.findings

    def test_workers_give_same_result(self, noisy_dockerfile):
        serial = _evaluate(noisy_dockerfile, builtin_rules())
        parallel = _evaluate(noisy_dockerfile, builtin_rules(), workers=4)
        assert serial.findings == parallel.findings

    @pytest.mark.parametrize("rule", builtin_rules(), ids=lambda r: r.id)
    def test_rules_are_independent(self, rule, noisy_dockerfile):
        alone = _evaluate(noisy_dockerfile, [rule]).findings
        together = _evaluate(noisy_dockerfile, builtin_rules()).findings
        assert alone == [f for f in together if f.rule_id == rule.id]

    def test_failing_rule_is_isolated(self, bad_dockerfile):
        result = _evaluate(bad_dockerfile, [FAULTY, *builtin_rules()])
        assert [f.rule_id for f in result.failures] == ["faulty"]
        assert "rule exploded" in result.failures[0].error
        assert any(f.rule_id == "running-as-root" for f in result.findings)

    def test_disabled_rules_skipped(self, bad_dockerfile):
        rules = builtin_rules()
        for r in rules:
            r.enabled = r.id == "running-as-root"
        result = _evaluate(bad_dockerfile, rules)
        assert {f.rule_id for f in result.findings} == {"running-as-root"}

    def test_registry_accepted(self, bad_dockerfile):
        registry = RuleRegistry([Rule(
            id="first", name="First", description="", severity="info", check=_first_line,
        )])
        result = _evaluate(bad_dockerfile, registry)
        assert [(f.rule_id, f.lines, f.severity) for f in result.findings] == [
            ("first", (1,), "info"),
        ]

    def test_undecided_becomes_warning(self):
        result = _evaluate("ARG V\nFROM node:$V\nCMD x\n", builtin_rules())
        assert [(w.rule_id, w.line_no) for w in result.warnings] == [
            ("base-image-tag-unpinned", 2),
        ]
        assert all(f.rule_id != "base-image-tag-unpinned" for f in result.findings)


class TestAnalyze:
    def test_bad_dockerfile_blocks(self, bad_dockerfile):
        result = analyze(bad_dockerfile)
        ids = [(f.line, f.rule_id) for f in result.findings]
        assert (3, "cache-busting-order") in ids
        assert (6, "running-as-root") in ids
        assert result.blocked is True

    def test_good_dockerfile_is_clean(self, good_dockerfile):
        result = analyze(good_dockerfile, options=AnalysisOptions(dockerignore_present=True))
        assert result.findings == []
        assert result.blocked is False

    def test_multistage(self, multistage_dockerfile):
        result = analyze(multistage_dockerfile, options=AnalysisOptions(dockerignore_present=True))
        assert [(f.line, f.rule_id) for f in result.findings] == [(12, "missing-healthcheck")]

    def test_fail_on_threshold(self, bad_dockerfile):
        cfg = DockoptConfig()
        cfg.analysis.fail_on = "none"
        assert analyze(bad_dockerfile, cfg).blocked is False
        cfg.analysis.fail_on = "warning"
        cfg.rules.disable = ["running-as-root"]
        assert analyze(bad_dockerfile, cfg).blocked is True

    def test_disabled_by_config(self, bad_dockerfile):
        cfg = DockoptConfig()
        cfg.rules.disable = ["running-as-root"]
        result = analyze(bad_dockerfile, cfg)
        assert result.blocked is False
        assert result.rules_run == len(default_registry()) - 1

    def test_parse_error_propagates(self):
        with pytest.raises(StageReferenceError):
            analyze("FROM alpine:3.19 AS a\nCOPY --from=b /x /x\nFROM alpine:3.19 AS b\n")
        with pytest.raises(DockerfileError):
            analyze("RUN true\n")

    def test_heredoc_run_analyzed(self):
        result = analyze(
            "# syntax=docker/dockerfile:1.6\n"
            "FROM debian:12\n"
            "RUN <<EOF\n"
            "apt-get update\n"
            "apt-get install -y curl\n"
            "EOF\n"
            "USER nobody\n"
            "CMD [\"sh\"]\n",
            options=AnalysisOptions(dockerignore_present=True),
        )
        ids = [(f.line, f.rule_id) for f in result.findings]
        assert (3, "apt-install-recommends") in ids
        assert all(f.rule_id != "running-as-root" for f in result.findings)

    def test_parse_warnings_reported(self):
        result = analyze("FROM alpine:3.19\nMAINTAINER me\n")
        assert len(result.parse_warnings) == 1
        assert result.parse_warnings[0].startswith("line 2:")

    def test_suppression_applied(self, bad_dockerfile):
        text = bad_dockerfile.replace(
            'CMD ["node"', '# dockopt-ignore[running-as-root]\nCMD ["node"'
        )
        result = analyze(text)
        assert all(f.rule_id != "running-as-root" for f in result.findings)
        assert [s.rule_id for s in result.suppressed] == ["running-as-root"]
        assert result.blocked is False

    def test_custom_pattern_rule(self, bad_dockerfile):
        registry = default_registry()
        registry.register(Rule(
            id="no-expose-3000",
            name="Port 3000",
            description="Exposes the dev port",
            severity="warning",
            pattern=r"\b3000\b",
            instructions=["expose"],
        ))
        result = analyze(bad_dockerfile, registry=registry)
        custom = [f for f in result.findings if f.rule_id == "no-expose-3000"]
        assert [f.lines for f in custom] == [(5,)]
        assert custom[0].message == "Exposes the dev port"
