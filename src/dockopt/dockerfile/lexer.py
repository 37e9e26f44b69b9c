"""Dockerfile lexer — physical lines to logical ``RawLine`` tokens.

Never raises. Handles BOM, CRLF, parser directives (``# syntax=``,
``# escape=``), line continuations with comment and blank lines inside
them, heredocs (``RUN <<EOF``), and lines with no instruction keyword
(tagged ``UNPARSED``).
"""

from __future__ import annotations

import re
from typing import List, Tuple

from dockopt.dockerfile.models import RawLine, RawLineKind

_DIRECTIVE_RE = re.compile(r"^#\s*(syntax|escape)\s*=\s*(\S+)\s*$", re.IGNORECASE)
_KEYWORD_RE = re.compile(r"^[A-Za-z]+(?:\s|$)")
# <<EOF, <<-EOF, <<"EOF", <<'EOF'; not the <<< here-string
_HEREDOC_RE = re.compile(r"(?<!<)<<(?!<)(-?)([\"']?)([A-Za-z_][A-Za-z0-9_]*)\2")
_HEREDOC_KEYWORDS = {"RUN", "COPY", "ADD"}

DEFAULT_ESCAPE = "\\"


def _strip_bom(text: str) -> str:
    """Remove a leading UTF-8 BOM if present."""
    return text[1:] if text.startswith("\ufeff") else text


def _normalise(line: str) -> str:
    """Strip trailing CR (CRLF → LF)."""
    return line.rstrip("\r")


def _is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def _read_heredocs(logical: str, physical: List[str], idx: int) -> Tuple[str, int]:
    """Append the bodies of heredocs opened on *logical*.

    Returns the extended text and the index of the last physical line
    consumed. An unterminated heredoc runs to the end of the file.
    """
    if logical.split(None, 1)[0].upper() not in _HEREDOC_KEYWORDS:
        return logical, idx
    parts = [logical]
    for m in _HEREDOC_RE.finditer(logical):
        strip_tabs, word = m.group(1) == "-", m.group(3)
        while idx + 1 < len(physical):
            idx += 1
            line = physical[idx]
            parts.append(line)
            if (line.lstrip("\t") if strip_tabs else line).rstrip() == word:
                break
    return "\n".join(parts), idx


def tokenize(text: str) -> List[RawLine]:
    """Split Dockerfile *text* into logical lines.

    Continued lines are merged and attributed to their first physical line.
    """
    physical = [_normalise(line) for line in _strip_bom(text).splitlines()]
    total = len(physical)
    escape = DEFAULT_ESCAPE
    tokens: List[RawLine] = []
    in_header = True
    idx = 0

    while idx < total:
        line = physical[idx]
        stripped = line.strip()

        # --- parser directives are only honoured before the first instruction ---
        if in_header:
            m = _DIRECTIVE_RE.match(stripped)
            if m:
                name, value = m.group(1).lower(), m.group(2)
                if name == "escape" and value in ("\\", "`"):
                    escape = value
                tokens.append(
                    RawLine(idx + 1, idx + 1, f"{name}={value}", RawLineKind.PRAGMA)
                )
                idx += 1
                continue

        if _is_skippable(line):
            idx += 1
            continue

        in_header = False
        start = idx
        parts: List[str] = []

        # --- merge continuation lines ---
        while True:
            body = physical[idx].rstrip()
            if not body.endswith(escape):
                parts.append(body)
                break
            parts.append(body[: -len(escape)])
            nxt = idx + 1
            while nxt < total and _is_skippable(physical[nxt]):
                nxt += 1
            if nxt >= total:
                break
            idx = nxt

        logical = " ".join(p.strip() for p in parts if p.strip())
        kind = RawLineKind.INSTRUCTION if _KEYWORD_RE.match(logical) else RawLineKind.UNPARSED
        if kind == RawLineKind.INSTRUCTION:
            logical, idx = _read_heredocs(logical, physical, idx)
        tokens.append(RawLine(start + 1, idx + 1, logical, kind))
        idx += 1

    return tokens
