"""Inline suppression comments.

Dockerfile comments must stand on their own line, so a suppression
comment always applies to the next instruction:

  - ``# dockopt-ignore`` suppresses ALL rules on the next instruction.
  - ``# dockopt-ignore[rule-a, rule-b]`` suppresses only those rules.

Blank lines and other comments between the marker and the instruction
are allowed.
"""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, Optional, Tuple

from dockopt.findings.models import Finding, Suppression

_SUPPRESS_RE = re.compile(
    r"^#\s*dockopt-ignore"
    r"(?:\[([A-Za-z0-9_,\s-]+)\])?"  # optional [rule-a, rule-b]
    r"\s*$"
)


def parse_suppression(line_content: str) -> Tuple[bool, Optional[FrozenSet[str]]]:
    """Parse a line for a ``# dockopt-ignore`` comment.

    Returns:
        (is_suppression, rule_ids). *rule_ids* is None to suppress ALL
        rules, or a frozenset of specific IDs.
    """
    m = _SUPPRESS_RE.match(line_content.strip())
    if m is None:
        return False, None
    scope = m.group(1)
    if scope:
        return True, frozenset(r.strip() for r in scope.split(",") if r.strip())
    return True, None


class SuppressionChecker:
    """Map instruction lines to the suppression comment above them."""

    def __init__(self) -> None:
        # line_no -> specific rules (None = all)
        self._lines: Dict[int, Optional[FrozenSet[str]]] = {}

    def register_text(self, text: str) -> None:
        pending: Optional[Tuple[Optional[FrozenSet[str]]]] = None
        for line_no, raw in enumerate(text.splitlines(), 1):
            stripped = raw.strip()
            if not stripped:
                continue
            if stripped.startswith("#"):
                is_marker, rule_ids = parse_suppression(stripped)
                if is_marker:
                    pending = (rule_ids,)
                continue
            if pending is not None:
                self._lines[line_no] = pending[0]
                pending = None

    def is_suppressed(self, finding: Finding) -> Optional[Suppression]:
        """Return a Suppression record if *finding* is silenced, else None."""
        for line_no in finding.lines:
            if line_no not in self._lines:
                continue
            rule_ids = self._lines[line_no]
            if rule_ids is None:
                return Suppression(finding.rule_id, line_no, "# dockopt-ignore")
            if finding.rule_id in rule_ids:
                return Suppression(
                    finding.rule_id, line_no, f"# dockopt-ignore[{finding.rule_id}]"
                )
        return None
