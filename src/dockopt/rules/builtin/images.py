"""Base image and stage structure rules."""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Tuple

from dockopt.dockerfile.models import Document, ImageRef, Stage
from dockopt.dockerfile.parser import key_value_pairs
from dockopt.findings.models import RawFinding, Undecided
from dockopt.rules.models import AnalysisOptions, LayerMap, Rule, RuleOutput

_VAR_RE = re.compile(r"\$(?:\{([A-Za-z_][A-Za-z0-9_]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def _expand(ref: str, defaults: Dict[str, Optional[str]]) -> Optional[str]:
    """Substitute global ARG defaults into *ref*; None if any stay unresolved."""
    unresolved = False

    def repl(m: re.Match[str]) -> str:
        nonlocal unresolved
        value = defaults.get(m.group(1) or m.group(2))
        if value is None:
            unresolved = True
            return ""
        return value

    expanded = _VAR_RE.sub(repl, ref)
    return None if unresolved or "$" in expanded else expanded


def _global_defaults(document: Document) -> Dict[str, Optional[str]]:
    defaults: Dict[str, Optional[str]] = {}
    for arg in document.global_args:
        for name, value in key_value_pairs(arg):
            defaults[name] = value or None
    return defaults


def _check_unpinned(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    defaults = _global_defaults(document)
    for stage in document.stages:
        base = stage.base
        if stage.parent is not None or base.is_scratch:
            continue
        if base.is_variable:
            expanded = _expand(base.raw, defaults)
            if expanded is None:
                yield Undecided(stage.line_no, f"base image {base.raw} depends on a build arg")
                continue
            base = ImageRef.parse(expanded)
        if base.is_pinned:
            continue
        if base.tag is None:
            message = f"Base image '{base.name}' has no tag and resolves to 'latest'"
        else:
            message = f"Base image '{base.raw}' uses the mutable 'latest' tag"
        yield RawFinding(
            lines=(stage.line_no,),
            message=message,
            suggestion=f"FROM {base.name}:<version>  (or pin a digest with @sha256:...)",
        )


def _stage_key(stage: Stage) -> Tuple[object, ...]:
    return (stage.base.raw.lower(), tuple(i.body for i in stage.instructions))


def _check_duplicate_stages(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    groups: Dict[Tuple[object, ...], List[Stage]] = {}
    for stage in document.stages:
        groups.setdefault(_stage_key(stage), []).append(stage)

    for stages in groups.values():
        if len(stages) < 2:
            continue
        names = ", ".join(f"'{s.name}'" for s in stages)
        yield RawFinding(
            lines=tuple(s.line_no for s in stages),
            message=(
                f"Stages {names} repeat the same base image '{stages[0].base.raw}' "
                "and identical instructions"
            ),
            suggestion=(
                "Build the shared steps once in a named stage and reuse it with "
                "FROM <stage> or COPY --from=<stage>"
            ),
        )


BASE_IMAGE_TAG_UNPINNED = Rule(
    id="base-image-tag-unpinned",
    name="Unpinned Base Image",
    description="FROM references an image without a version tag or with 'latest'.",
    severity="warning",
    check=_check_unpinned,
)

REDUNDANT_DUPLICATE_STAGE = Rule(
    id="redundant-duplicate-stage",
    name="Duplicate Build Stage",
    description="Two or more stages share a base image and identical instruction bodies.",
    severity="warning",
    check=_check_duplicate_stages,
)

ALL_IMAGE_RULES = [BASE_IMAGE_TAG_UNPINNED, REDUNDANT_DUPLICATE_STAGE]
