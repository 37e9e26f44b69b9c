"""Rule data model — a check function or a regex, plus metadata."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from dockopt.config.schema import Severity
from dockopt.dockerfile.layers import Layer
from dockopt.dockerfile.models import Document
from dockopt.findings.models import RawFinding, Undecided

LayerMap = Dict[int, List[Layer]]
RuleOutput = Union[RawFinding, Undecided]


@dataclass(frozen=True)
class AnalysisOptions:
    """Caller-supplied facts the Dockerfile itself cannot tell us."""

    dockerignore_present: bool = False


CheckFn = Callable[[Document, LayerMap, AnalysisOptions], Iterable[RuleOutput]]


@dataclass
class Rule:
    """A single analysis rule.

    Built-in rules carry a ``check`` function over the parsed model. Custom
    rules loaded from YAML carry a regex ``pattern`` matched against the
    argument text of the listed ``instructions`` (all kinds when omitted).
    """

    id: str
    name: str
    description: str
    severity: Severity
    check: Optional[CheckFn] = field(default=None, repr=False, compare=False)
    pattern: Optional[str] = None
    instructions: Optional[List[str]] = None
    suggestion: Optional[str] = None
    enabled: bool = True

    # --- cached compiled pattern ---
    _compiled_pattern: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def compiled_pattern(self) -> Optional[re.Pattern[str]]:
        if self.pattern is None:
            return None
        if self._compiled_pattern is None:
            self._compiled_pattern = re.compile(self.pattern)
        return self._compiled_pattern

    @property
    def is_custom(self) -> bool:
        return self.check is None

    def evaluate(
        self, document: Document, layers: LayerMap, options: AnalysisOptions
    ) -> Iterator[RuleOutput]:
        if self.check is not None:
            yield from self.check(document, layers, options)
        elif self.compiled_pattern is not None:
            yield from self._match_pattern(self.compiled_pattern, document)

    def _match_pattern(
        self, cp: re.Pattern[str], document: Document
    ) -> Iterator[RawFinding]:
        kinds = {k.upper() for k in self.instructions} if self.instructions else None
        for instruction in document.instructions:
            if kinds is not None and instruction.kind.value not in kinds:
                continue
            if cp.search(instruction.value):
                yield RawFinding(
                    lines=(instruction.line_no,),
                    message=self.description or self.name,
                    suggestion=self.suggestion,
                )
