"""Dockerfile front end — lexer, parser, models, layer model."""

from dockopt.dockerfile.layers import Layer, Volatility, build_layers, classify_source
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
from dockopt.dockerfile.parser import (
    DockerfileError,
    DockerfileSyntaxError,
    StageReferenceError,
    parse,
    parse_text,
)

__all__ = [
    "DockerfileError",
    "DockerfileSyntaxError",
    "Document",
    "ImageRef",
    "Instruction",
    "InstructionKind",
    "Layer",
    "ParseWarning",
    "RawLine",
    "RawLineKind",
    "Stage",
    "StageReferenceError",
    "Volatility",
    "build_layers",
    "classify_source",
    "parse",
    "parse_text",
    "tokenize",
]
