"""Runtime user and secret exposure rules."""

from __future__ import annotations

import re
from typing import Iterator, Optional

from dockopt.dockerfile.models import Document, Instruction, InstructionKind, Stage
from dockopt.dockerfile.parser import key_value_pairs
from dockopt.findings.models import RawFinding, Undecided
from dockopt.findings.redactor import redact
from dockopt.rules.models import AnalysisOptions, LayerMap, Rule, RuleOutput

_SECRET_NAME_RE = re.compile(r"(?i)(password|passwd|token|secret|api[_-]?key)")
# Conventional names for a path or location of a secret, not the secret itself
_REFERENCE_SUFFIX_RE = re.compile(r"(?i)_(file|path|dir|url|uri|name)$")

_FLAG_VALUES = {"true", "false", "yes", "no", "on", "off"}

_ROOT_USERS = {"root", "0"}
_ROOT, _NON_ROOT, _UNKNOWN = "root", "non-root", "unknown"


def _user_state(instruction: Instruction) -> str:
    value = instruction.arguments[0] if instruction.arguments else ""
    if not value or "$" in value:
        return _UNKNOWN
    user = value.split(":", 1)[0]
    return _ROOT if user.lower() in _ROOT_USERS else _NON_ROOT


def _last_entry(stage: Stage) -> Optional[Instruction]:
    entries = stage.of_kind(InstructionKind.CMD, InstructionKind.ENTRYPOINT)
    return entries[-1] if entries else None


def _runtime_user(document: Document, stage: Stage, entry: Optional[Instruction]) -> tuple:
    """Return ``(state, user_instruction)`` in effect when *entry* starts.

    Walks the parent-stage chain from the outermost ancestor.
    """
    chain = list(reversed(document.lineage(stage)))
    state = _NON_ROOT if "nonroot" in chain[0].base.raw.lower() else _ROOT
    last_user: Optional[Instruction] = None
    for s in chain:
        for instruction in s.instructions:
            if entry is not None and s is stage and instruction.line_no > entry.line_no:
                break
            if instruction.kind == InstructionKind.USER:
                state = _user_state(instruction)
                last_user = instruction
    return state, last_user


def _check_root(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    referenced = document.referenced_stages()
    for stage in document.stages:
        # stages consumed by later COPY --from / FROM are not shipped
        if stage.index in referenced:
            continue
        entry = _last_entry(stage)
        state, user = _runtime_user(document, stage, entry)
        if state == _UNKNOWN:
            if user is None:
                yield Undecided(stage.line_no, "runtime user cannot be resolved statically")
            else:
                yield Undecided(user.line_no, f"USER {user.value} cannot be resolved statically")
            continue
        if state == _NON_ROOT:
            continue
        line = entry.line_no if entry is not None else stage.line_no
        where = f"before {entry.kind.value}" if entry is not None else "in the final image"
        yield RawFinding(
            lines=(line,),
            message=f"Stage '{stage.name}' runs as root: no non-root USER {where}",
            suggestion=(
                "RUN addgroup --system app && adduser --system --ingroup app app\n"
                "USER app"
            ),
        )


def _check_secret_env(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    for instruction in document.instructions:
        if instruction.kind not in (InstructionKind.ENV, InstructionKind.ARG):
            continue
        for name, value in key_value_pairs(instruction):
            if not _SECRET_NAME_RE.search(name) or _REFERENCE_SUFFIX_RE.search(name):
                continue
            # no default, empty, or a reference to another variable
            if not value or "$" in value:
                continue
            # settings such as TOKEN_TTL=3600 or SECRETS_ENABLED=true
            if value.isdigit() or value.lower() in _FLAG_VALUES:
                continue
            yield RawFinding(
                lines=(instruction.line_no,),
                message=(
                    f"{instruction.kind.value} {name} assigns a literal value "
                    f"({redact(value)}) that is stored in the image metadata"
                ),
                suggestion=(
                    "Pass secrets with RUN --mount=type=secret,id=<id> at build time "
                    "or inject them as runtime environment variables"
                ),
            )


RUNNING_AS_ROOT = Rule(
    id="running-as-root",
    name="Container Runs As Root",
    description="No non-root USER is set before CMD/ENTRYPOINT in a shipped stage.",
    severity="error",
    check=_check_root,
)

HARDCODED_SECRET_LIKE_ENV = Rule(
    id="hardcoded-secret-like-env",
    name="Hardcoded Secret In ENV/ARG",
    description="ENV or ARG with a secret-like name is assigned a literal value.",
    severity="error",
    check=_check_secret_env,
)

ALL_SECURITY_RULES = [RUNNING_AS_ROOT, HARDCODED_SECRET_LIKE_ENV]
