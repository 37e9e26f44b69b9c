"""Layer cache and image size rules."""

from __future__ import annotations

from typing import Iterator, Optional

from dockopt.dockerfile.layers import Layer, Volatility
from dockopt.dockerfile.models import Document, InstructionKind
from dockopt.dockerfile.shell import (
    APT_INSTALL_RE,
    NO_RECOMMENDS_RE,
    is_cache_cleanup,
    is_dependency_install,
    is_install,
)
from dockopt.findings.models import RawFinding
from dockopt.rules.models import AnalysisOptions, LayerMap, Rule, RuleOutput

_REMOTE_PREFIXES = ("http://", "https://", "git@", "git://")
_ARCHIVE_SUFFIXES = (".tar", ".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz")


def _short(command: str, limit: int = 40) -> str:
    command = " ".join(command.split())
    return command if len(command) <= limit else command[: limit - 3] + "..."


def _check_cache_busting(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    for stage in document.stages:
        broad: Optional[Layer] = None
        manifest_copied = False
        # dependencies already installed from a manifest-only COPY
        manifest_installed = False
        for layer in layers.get(stage.index, []):
            if layer.reads_context and layer.volatility == Volatility.HIGH_CHANGE:
                broad = broad or layer
                continue
            if layer.reads_context and layer.volatility == Volatility.LOW_CHANGE:
                manifest_copied = manifest_copied or broad is None
                continue
            if layer.kind != InstructionKind.RUN:
                continue
            command = layer.instruction.command_text
            if broad is None:
                if manifest_copied and is_dependency_install(command):
                    manifest_installed = True
                continue
            if not is_install(command):
                continue
            if is_dependency_install(command):
                if manifest_installed:
                    continue
                suggestion = (
                    "COPY only the dependency manifests (e.g. package*.json, "
                    "requirements.txt) first, install, then COPY the rest of the source"
                )
            else:
                suggestion = "Move the package install above the broad COPY so it stays cached"
            yield RawFinding(
                lines=(broad.line_no, layer.line_no),
                message=(
                    f"Broad COPY on line {broad.line_no} precedes '{_short(command)}'; "
                    "any source change invalidates the install layer"
                ),
                suggestion=suggestion,
            )
            broad = None


def _check_separate_cleanup(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    for stage in document.stages:
        stage_layers = layers.get(stage.index, [])
        for prev, nxt in zip(stage_layers, stage_layers[1:]):
            if prev.kind != InstructionKind.RUN or nxt.kind != InstructionKind.RUN:
                continue
            prev_cmd = prev.instruction.command_text
            next_cmd = nxt.instruction.command_text
            if not is_install(prev_cmd) or is_install(next_cmd):
                continue
            if not is_cache_cleanup(next_cmd):
                continue
            yield RawFinding(
                lines=(prev.line_no, nxt.line_no),
                message=(
                    f"Cache cleanup on line {nxt.line_no} runs in its own layer; the "
                    f"files it deletes still ship in the layer from line {prev.line_no}"
                ),
                suggestion="Chain install and cleanup in one RUN: <install> && <cleanup>",
            )


def _check_dockerignore(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    if options.dockerignore_present:
        return
    for stage in document.stages:
        for layer in layers.get(stage.index, []):
            if layer.copies_whole_context:
                yield RawFinding(
                    lines=(layer.line_no,),
                    message=(
                        "The whole build context is copied and no .dockerignore was "
                        "found; .git, node_modules and local secrets may end up in the image"
                    ),
                    suggestion="Add a .dockerignore listing .git, node_modules, build output and .env files",
                )
                return


def _check_add(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    for stage in document.stages:
        for layer in layers.get(stage.index, []):
            if layer.kind != InstructionKind.ADD or layer.from_stage is not None:
                continue
            if not layer.inputs:
                continue
            if any(src.startswith(_REMOTE_PREFIXES) or src.endswith(_ARCHIVE_SUFFIXES)
                   for src in layer.inputs):
                continue
            yield RawFinding(
                lines=(layer.line_no,),
                message="ADD of local files; COPY is explicit and has no archive or URL side effects",
                suggestion=f"COPY {layer.instruction.value}",
            )


def _check_apt_recommends(
    document: Document, layers: LayerMap, options: AnalysisOptions
) -> Iterator[RuleOutput]:
    for stage in document.stages:
        for layer in layers.get(stage.index, []):
            if layer.kind != InstructionKind.RUN:
                continue
            command = layer.instruction.command_text
            if APT_INSTALL_RE.search(command) and not NO_RECOMMENDS_RE.search(command):
                yield RawFinding(
                    lines=(layer.line_no,),
                    message="apt-get install pulls recommended packages the image may not need",
                    suggestion="apt-get install -y --no-install-recommends <packages>",
                )


CACHE_BUSTING_ORDER = Rule(
    id="cache-busting-order",
    name="Cache-Busting Instruction Order",
    description="A broad COPY precedes a dependency install that could depend on manifests only.",
    severity="warning",
    check=_check_cache_busting,
)

SEPARATE_CLEANUP_LAYER = Rule(
    id="separate-cleanup-layer",
    name="Cleanup In Separate Layer",
    description="Package cache cleanup runs in a RUN after the install instead of the same one.",
    severity="warning",
    check=_check_separate_cleanup,
)

MISSING_DOCKERIGNORE_SIGNAL = Rule(
    id="missing-dockerignore-signal",
    name="Whole Context Copied Without .dockerignore",
    description="COPY . . with no .dockerignore next to the Dockerfile.",
    severity="info",
    check=_check_dockerignore,
)

PREFER_COPY_OVER_ADD = Rule(
    id="prefer-copy-over-add",
    name="ADD Used For Local Files",
    description="ADD copies local, non-archive sources where COPY would do.",
    severity="info",
    check=_check_add,
)

APT_INSTALL_RECOMMENDS = Rule(
    id="apt-install-recommends",
    name="apt-get Without --no-install-recommends",
    description="apt-get install also installs recommended packages.",
    severity="info",
    check=_check_apt_recommends,
)

ALL_CACHING_RULES = [
    CACHE_BUSTING_ORDER,
    SEPARATE_CLEANUP_LAYER,
    MISSING_DOCKERIGNORE_SIGNAL,
    PREFER_COPY_OVER_ADD,
    APT_INSTALL_RECOMMENDS,
]
