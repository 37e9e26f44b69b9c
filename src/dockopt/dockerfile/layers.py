"""Layer model — cache-creating instructions annotated with volatility.

Only RUN, COPY and ADD create layers. Volatility is a coarse, heuristic
estimate of how often a layer's build-context inputs change.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatch
from typing import Dict, FrozenSet, List, Optional, Tuple

from dockopt.dockerfile.models import Document, Instruction, InstructionKind

_LAYER_KINDS = {InstructionKind.RUN, InstructionKind.COPY, InstructionKind.ADD}

_VARIABLE_RE = re.compile(r"\$(?:\{([A-Za-z_][A-Za-z0-9_]*)[^}]*\}|([A-Za-z_][A-Za-z0-9_]*))")

# Dependency manifests and lock files
MANIFEST_PATTERNS: Tuple[str, ...] = (
    "package*.json",
    "*.lock",
    "go.mod",
    "go.sum",
    "requirements*.txt",
    "Gemfile*",
    "pyproject.toml",
    "Pipfile*",
    "pnpm-lock.yaml",
    "composer.json",
    "Cargo.toml",
)

# Sources that pull in the whole build context
_CONTEXT_SOURCES = {".", "./", "*", "./*", "./."}


class Volatility(str, Enum):
    FIXED = "fixed"
    LOW_CHANGE = "low-change"
    HIGH_CHANGE = "high-change"


_RANK = {Volatility.FIXED: 0, Volatility.LOW_CHANGE: 1, Volatility.HIGH_CHANGE: 2}


@dataclass(frozen=True)
class Layer:
    """A cache boundary derived from one RUN/COPY/ADD instruction."""

    instruction: Instruction
    inputs: Tuple[str, ...] = ()  # COPY/ADD source globs
    variables: FrozenSet[str] = frozenset()  # $VARS referenced by RUN
    volatility: Volatility = Volatility.FIXED
    from_stage: Optional[str] = None  # COPY --from value

    @property
    def kind(self) -> InstructionKind:
        return self.instruction.kind

    @property
    def line_no(self) -> int:
        return self.instruction.line_no

    @property
    def reads_context(self) -> bool:
        """True for COPY/ADD from the build context."""
        return self.kind != InstructionKind.RUN and self.from_stage is None

    @property
    def copies_whole_context(self) -> bool:
        return self.reads_context and any(is_context_source(s) for s in self.inputs)


def is_context_source(path: str) -> bool:
    return path in _CONTEXT_SOURCES


def classify_source(path: str) -> Volatility:
    """Classify one COPY/ADD source. First matching heuristic wins."""
    basename = path.rstrip("/").rsplit("/", 1)[-1]
    if any(fnmatch(basename, pat) for pat in MANIFEST_PATTERNS):
        return Volatility.LOW_CHANGE
    if is_context_source(path) or path.endswith(("/", "/.", "/*")):
        return Volatility.HIGH_CHANGE
    return Volatility.FIXED


def classify_sources(paths: Tuple[str, ...]) -> Volatility:
    """Return the highest volatility across *paths*."""
    result = Volatility.FIXED
    for path in paths:
        vol = classify_source(path)
        if _RANK[vol] > _RANK[result]:
            result = vol
    return result


def referenced_variables(shell_text: str) -> FrozenSet[str]:
    """Lexical scan for ``$VAR`` / ``${VAR}``, not a shell parser."""
    return frozenset(a or b for a, b in _VARIABLE_RE.findall(shell_text))


def copy_sources(instruction: Instruction) -> Tuple[str, ...]:
    """Source operands of COPY/ADD (everything but the destination)."""
    args = instruction.arguments
    return tuple(args[:-1]) if len(args) > 1 else ()


def build_layer(instruction: Instruction) -> Layer:
    if instruction.kind == InstructionKind.RUN:
        return Layer(
            instruction=instruction,
            variables=referenced_variables(instruction.value),
        )
    sources = copy_sources(instruction)
    from_stage = instruction.flag("from")
    if from_stage is not None:
        volatility = Volatility.FIXED
    else:
        volatility = classify_sources(sources)
    return Layer(
        instruction=instruction,
        inputs=sources,
        volatility=volatility,
        from_stage=from_stage,
    )


def build_layers(document: Document) -> Dict[int, List[Layer]]:
    """Map each stage index to its ordered list of layers."""
    return {
        stage.index: [build_layer(i) for i in stage.instructions if i.kind in _LAYER_KINDS]
        for stage in document.stages
    }
