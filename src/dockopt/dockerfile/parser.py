"""Dockerfile parser — ``RawLine`` tokens to an immutable ``Document``.

The parser either returns a complete, internally consistent document or
raises; partially built documents never escape.
"""

from __future__ import annotations

import json
import re
import shlex
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from dockopt.dockerfile.lexer import tokenize
from dockopt.dockerfile.models import (
    Document,
    ImageRef,
    Instruction,
    InstructionKind,
    ParseWarning,
    RawLine,
    RawLineKind,
    Stage,
)

_FLAG_RE = re.compile(r"^--([A-Za-z][\w-]*)(?:=(\S*))?(?:\s+|$)")
_STAGE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_.-]*$")

# Instructions whose leading --flags are parsed
_FLAGGED = {
    InstructionKind.FROM,
    InstructionKind.RUN,
    InstructionKind.COPY,
    InstructionKind.ADD,
    InstructionKind.HEALTHCHECK,
}
# Instructions that accept a JSON array form
_EXEC_FORM = {
    InstructionKind.RUN,
    InstructionKind.CMD,
    InstructionKind.ENTRYPOINT,
    InstructionKind.COPY,
    InstructionKind.ADD,
    InstructionKind.SHELL,
    InstructionKind.VOLUME,
}
_DEPRECATED = {"MAINTAINER"}


class DockerfileError(Exception):
    """Base class for fatal Dockerfile parse errors."""

    def __init__(self, line: int, reason: str) -> None:
        super().__init__(f"line {line}: {reason}")
        self.line = line
        self.reason = reason


class DockerfileSyntaxError(DockerfileError):
    """Raised for an instruction line that cannot be parsed."""


class StageReferenceError(DockerfileError):
    """Raised when ``COPY --from`` does not name an earlier stage."""

    def __init__(self, line: int, reference: str, reason: str) -> None:
        super().__init__(line, reason)
        self.reference = reference


def split_flags(text: str) -> Tuple[Tuple[Tuple[str, str], ...], str]:
    """Peel leading ``--name=value`` options off *text*."""
    flags: List[Tuple[str, str]] = []
    rest = text
    while True:
        m = _FLAG_RE.match(rest)
        if m is None:
            break
        flags.append((m.group(1).lower(), m.group(2) or ""))
        rest = rest[m.end():]
    return tuple(flags), rest.strip()


def split_arguments(value: str, exec_allowed: bool) -> Tuple[Tuple[str, ...], bool]:
    """Return ``(arguments, is_exec_form)`` for an instruction value."""
    if exec_allowed and value.startswith("[") and value.endswith("]"):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, list) and all(isinstance(a, str) for a in decoded):
            return tuple(decoded), True
    try:
        return tuple(shlex.split(value, posix=True)), False
    except ValueError:
        return tuple(value.split()), False


def key_value_pairs(instruction: Instruction) -> List[Tuple[str, Optional[str]]]:
    """Extract ``(name, value)`` pairs from an ENV, ARG or LABEL instruction.

    ``value`` is None for ``ARG NAME`` with no default.
    """
    args = instruction.arguments
    if not args:
        return []
    if instruction.kind == InstructionKind.ENV and "=" not in args[0]:
        # legacy form: ENV KEY value with spaces
        parts = instruction.value.split(None, 1)
        return [(parts[0], parts[1].strip() if len(parts) > 1 else "")]
    pairs: List[Tuple[str, Optional[str]]] = []
    for token in args:
        name, sep, val = token.partition("=")
        pairs.append((name, val if sep else None))
    return pairs


@dataclass
class _StageBuilder:
    index: int
    name: str
    has_alias: bool
    base: ImageRef
    line_no: int
    parent: Optional[int] = None
    instructions: List[Instruction] = field(default_factory=list)


class DockerfileParser:
    """Build a ``Document`` from lexer output.

    Usage::

        document = DockerfileParser(tokenize(text)).parse()
    """

    def __init__(self, lines: Iterable[RawLine]) -> None:
        self._lines = list(lines)

    def parse(self) -> Document:
        stages: List[_StageBuilder] = []
        names: Dict[str, int] = {}
        global_args: List[Instruction] = []
        directives: List[Tuple[str, str]] = []
        warnings: List[ParseWarning] = []

        for raw in self._lines:
            if raw.kind == RawLineKind.PRAGMA:
                name, _, value = raw.text.partition("=")
                directives.append((name, value))
                continue
            if raw.kind == RawLineKind.UNPARSED:
                raise DockerfileSyntaxError(raw.line_no, "no instruction keyword")

            parts = raw.text.split(None, 1)
            keyword = parts[0].upper()
            rest = parts[1] if len(parts) > 1 else ""
            try:
                kind = InstructionKind(keyword)
            except ValueError:
                reason = "deprecated" if keyword in _DEPRECATED else "unknown instruction"
                warnings.append(ParseWarning(raw.line_no, f"{reason} {keyword} skipped"))
                continue

            stage_index = len(stages) - 1 if stages else None
            if kind == InstructionKind.FROM:
                stage_index = len(stages)
            instruction = self._build_instruction(raw, kind, rest.strip(), stage_index)

            if kind == InstructionKind.FROM:
                stages.append(self._open_stage(instruction, len(stages), names))
                continue
            if not stages:
                if kind != InstructionKind.ARG:
                    raise DockerfileSyntaxError(
                        raw.line_no, f"{kind.value} before the first FROM"
                    )
                global_args.append(instruction)
                continue
            stages[-1].instructions.append(instruction)

        built = tuple(self._close_stage(s, names, warnings) for s in stages)
        return Document(
            stages=built,
            global_args=tuple(global_args),
            directives=tuple(directives),
            warnings=tuple(warnings),
        )

    # ---- helpers ----

    @staticmethod
    def _build_instruction(
        raw: RawLine, kind: InstructionKind, rest: str, stage_index: Optional[int]
    ) -> Instruction:
        flags: Tuple[Tuple[str, str], ...] = ()
        if kind in _FLAGGED:
            flags, rest = split_flags(rest)
        operands = rest
        if kind in (InstructionKind.COPY, InstructionKind.ADD):
            # heredoc bodies are file contents, not source paths
            operands = rest.split("\n", 1)[0]
        arguments, is_exec = split_arguments(operands, kind in _EXEC_FORM)
        return Instruction(
            kind=kind,
            value=rest,
            arguments=arguments,
            line_no=raw.line_no,
            end_line=raw.end_line,
            stage_index=stage_index,
            flags=flags,
            is_exec_form=is_exec,
        )

    @staticmethod
    def _open_stage(
        instruction: Instruction, index: int, names: Dict[str, int]
    ) -> _StageBuilder:
        args = instruction.arguments
        line = instruction.line_no
        if not args:
            raise DockerfileSyntaxError(line, "FROM requires an image")
        if len(args) == 1:
            alias = None
        elif len(args) == 3 and args[1].lower() == "as":
            alias = args[2]
        else:
            raise DockerfileSyntaxError(line, f"malformed FROM: {instruction.value}")

        if alias is not None:
            if not _STAGE_NAME_RE.match(alias):
                raise DockerfileSyntaxError(line, f"invalid stage name {alias!r}")
            if alias.lower() in names:
                raise DockerfileSyntaxError(line, f"duplicate stage name {alias!r}")

        image = args[0]
        parent = names.get(image.lower())
        name = alias if alias is not None else str(index)
        if alias is not None:
            names[alias.lower()] = index
        return _StageBuilder(
            index=index,
            name=name,
            has_alias=alias is not None,
            base=ImageRef.parse(image),
            line_no=line,
            parent=parent,
        )

    @staticmethod
    def _close_stage(
        stage: _StageBuilder, names: Dict[str, int], warnings: List[ParseWarning]
    ) -> Stage:
        copies_from: Set[int] = set()
        external: List[str] = []
        for instruction in stage.instructions:
            if instruction.kind not in (InstructionKind.COPY, InstructionKind.ADD):
                continue
            ref = instruction.flag("from")
            if ref is None:
                continue
            line = instruction.line_no
            if not ref or "$" in ref:
                warnings.append(ParseWarning(line, f"unresolved --from={ref}"))
                continue
            if ref.isdigit():
                target = int(ref)
            elif any(c in ref for c in "/:@"):
                external.append(ref)
                continue
            elif ref.lower() in names:
                target = names[ref.lower()]
            else:
                raise StageReferenceError(line, ref, f"--from={ref} names no stage")
            if target == stage.index:
                raise StageReferenceError(line, ref, f"--from={ref} refers to its own stage")
            if target > stage.index:
                raise StageReferenceError(
                    line, ref, f"--from={ref} refers to a later stage"
                )
            copies_from.add(target)

        return Stage(
            index=stage.index,
            name=stage.name,
            base=stage.base,
            line_no=stage.line_no,
            instructions=tuple(stage.instructions),
            has_alias=stage.has_alias,
            parent=stage.parent,
            copies_from=frozenset(copies_from),
            external_sources=tuple(external),
        )


def parse(lines: Iterable[RawLine]) -> Document:
    """Parse lexer output into a ``Document``."""
    return DockerfileParser(lines).parse()


def parse_text(text: str) -> Document:
    """Tokenize and parse Dockerfile *text*."""
    return parse(tokenize(text))
