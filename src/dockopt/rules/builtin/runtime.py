"""Runtime metadata rules."""

from __future__ import annotations

from typing import Iterator

from dockopt.dockerfile.models import Document, InstructionKind
from dockopt.findings.models import RawFinding
from dockopt.rules.models import AnalysisOptions, LayerMap, Rule, RuleOutput


def _check_healthcheck(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    final = document.final_stage
    if final is None:
        return
    for stage in document.lineage(final):
        if stage.of_kind(InstructionKind.HEALTHCHECK):
            return
    yield RawFinding(
        lines=(final.line_no,),
        message=f"Final stage '{final.name}' defines no HEALTHCHECK",
        suggestion="HEALTHCHECK --interval=30s --timeout=3s CMD curl -f http://localhost/health || exit 1",
    )


MISSING_HEALTHCHECK = Rule(
    id="missing-healthcheck",
    name="Missing HEALTHCHECK",
    description="The final stage has no HEALTHCHECK instruction.",
    severity="info",
    check=_check_healthcheck,
)

ALL_RUNTIME_RULES = [MISSING_HEALTHCHECK]
