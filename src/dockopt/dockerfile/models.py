"""Data models for the parsed Dockerfile."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class InstructionKind(str, Enum):
    FROM = "FROM"
    RUN = "RUN"
    COPY = "COPY"
    ADD = "ADD"
    WORKDIR = "WORKDIR"
    USER = "USER"
    ENV = "ENV"
    ARG = "ARG"
    EXPOSE = "EXPOSE"
    HEALTHCHECK = "HEALTHCHECK"
    CMD = "CMD"
    ENTRYPOINT = "ENTRYPOINT"
    LABEL = "LABEL"
    VOLUME = "VOLUME"
    ONBUILD = "ONBUILD"
    STOPSIGNAL = "STOPSIGNAL"
    SHELL = "SHELL"


class RawLineKind(str, Enum):
    INSTRUCTION = "instruction"
    PRAGMA = "pragma"
    UNPARSED = "unparsed"


@dataclass(frozen=True, slots=True)
class RawLine:
    """One logical line produced by the lexer."""

    line_no: int  # first physical line
    end_line: int
    text: str
    kind: RawLineKind = RawLineKind.INSTRUCTION


@dataclass(frozen=True)
class ImageRef:
    """A base image reference: ``name[:tag][@digest]``."""

    raw: str
    name: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @classmethod
    def parse(cls, ref: str) -> "ImageRef":
        name, _, digest = ref.partition("@")
        tag: Optional[str] = None
        # A colon before the last slash is a registry port, not a tag
        slash = name.rfind("/")
        colon = name.rfind(":")
        if colon > slash:
            name, tag = name[:colon], name[colon + 1:]
        return cls(raw=ref, name=name, tag=tag or None, digest=digest or None)

    @property
    def is_scratch(self) -> bool:
        return self.name.lower() == "scratch"

    @property
    def is_variable(self) -> bool:
        return "$" in self.raw

    @property
    def is_pinned(self) -> bool:
        """True if the reference names a specific version or digest."""
        if self.digest:
            return True
        return self.tag is not None and self.tag.lower() != "latest"


@dataclass(frozen=True)
class Instruction:
    """A single parsed Dockerfile instruction (possibly multi-line)."""

    kind: InstructionKind
    value: str  # argument text after the keyword and flags
    arguments: Tuple[str, ...]
    line_no: int
    end_line: int
    stage_index: Optional[int]  # None for global ARGs before the first FROM
    flags: Tuple[Tuple[str, str], ...] = ()
    is_exec_form: bool = False

    def flag(self, name: str) -> Optional[str]:
        """Return the value of ``--name=value``, or None."""
        for key, val in self.flags:
            if key == name:
                return val
        return None

    @property
    def command_text(self) -> str:
        """Argument text with exec form flattened to a single string."""
        return " ".join(self.arguments) if self.is_exec_form else self.value

    @property
    def body(self) -> Tuple[str, Tuple[Tuple[str, str], ...], Tuple[str, ...]]:
        """Location-independent identity used to compare instructions."""
        return (self.kind.value, self.flags, self.arguments)


@dataclass(frozen=True)
class Stage:
    """One ``FROM``-delimited build stage."""

    index: int
    name: str  # the AS alias, or str(index)
    base: ImageRef
    line_no: int
    instructions: Tuple[Instruction, ...] = ()
    has_alias: bool = False
    parent: Optional[int] = None  # set when FROM names an earlier stage
    copies_from: FrozenSet[int] = frozenset()
    external_sources: Tuple[str, ...] = ()

    def of_kind(self, *kinds: InstructionKind) -> Tuple[Instruction, ...]:
        return tuple(i for i in self.instructions if i.kind in kinds)


@dataclass(frozen=True)
class ParseWarning:
    """A line the parser skipped without aborting."""

    line_no: int
    message: str


@dataclass(frozen=True)
class Document:
    """The whole parsed Dockerfile."""

    stages: Tuple[Stage, ...] = ()
    global_args: Tuple[Instruction, ...] = ()
    directives: Tuple[Tuple[str, str], ...] = ()
    warnings: Tuple[ParseWarning, ...] = ()

    @property
    def final_stage(self) -> Optional[Stage]:
        return self.stages[-1] if self.stages else None

    @property
    def instructions(self) -> Tuple[Instruction, ...]:
        out = list(self.global_args)
        for stage in self.stages:
            out.extend(stage.instructions)
        return tuple(out)

    def directive(self, name: str) -> Optional[str]:
        for key, val in self.directives:
            if key == name:
                return val
        return None

    def referenced_stages(self) -> FrozenSet[int]:
        """Indices of stages that later stages copy from or build on."""
        refs: set[int] = set()
        for stage in self.stages:
            refs.update(stage.copies_from)
            if stage.parent is not None:
                refs.add(stage.parent)
        return frozenset(refs)

    def lineage(self, stage: Stage) -> Tuple[Stage, ...]:
        """Return *stage* followed by its chain of parent stages."""
        chain = [stage]
        while chain[-1].parent is not None:
            chain.append(self.stages[chain[-1].parent])
        return tuple(chain)
