"""Report formatters."""

from __future__ import annotations

from typing import Iterable

from dockopt.findings.models import Finding
from dockopt.output import json_report, text

FORMAT_MODES = ("text", "structured")


def format_findings(findings: Iterable[Finding], mode: str = "text") -> str:
    """Render *findings* as ``text`` or ``structured`` (JSON) output."""
    if mode == "text":
        return text.render(findings)
    if mode == "structured":
        return json_report.render_findings(findings)
    raise ValueError(f"unknown format mode: {mode!r}")


__all__ = ["FORMAT_MODES", "format_findings"]
