"""SARIF v2.1.0 reporter — GitHub Code Scanning and other SARIF viewers."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from dockopt import __version__
from dockopt.findings.models import AnalysisResult
from dockopt.rules.registry import RuleRegistry

_SEVERITY_MAP = {
    "error": "error",
    "warning": "warning",
    "info": "note",
}

SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"


def to_dict(
    result: AnalysisResult,
    artifact: str = "Dockerfile",
    registry: Optional[RuleRegistry] = None,
) -> Dict[str, Any]:
    """Convert AnalysisResult to a SARIF v2.1.0 dict."""
    rules: List[Dict[str, Any]] = []
    seen_rules: set[str] = set()
    results: List[Dict[str, Any]] = []

    for f in result.findings:
        # Rule definition (only once per rule id)
        if f.rule_id not in seen_rules:
            seen_rules.add(f.rule_id)
            rule = registry.get(f.rule_id) if registry is not None else None
            rules.append({
                "id": f.rule_id,
                "name": rule.name if rule else f.rule_id,
                "shortDescription": {"text": rule.name if rule else f.rule_id},
                "fullDescription": {"text": rule.description if rule else f.message},
                "defaultConfiguration": {
                    "level": _SEVERITY_MAP.get(f.severity, "warning"),
                },
            })

        entry: Dict[str, Any] = {
            "ruleId": f.rule_id,
            "level": _SEVERITY_MAP.get(f.severity, "warning"),
            "message": {"text": f.message},
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": artifact},
                        "region": {"startLine": max(line, 1)},
                    }
                }
                for line in f.lines
            ],
        }
        if f.suggestion:
            entry["properties"] = {"suggestion": f.suggestion}
        results.append(entry)

    return {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "dockopt",
                        "version": __version__,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }


def render(
    result: AnalysisResult,
    artifact: str = "Dockerfile",
    registry: Optional[RuleRegistry] = None,
) -> str:
    """Return SARIF JSON string."""
    return json.dumps(to_dict(result, artifact, registry), indent=2)
