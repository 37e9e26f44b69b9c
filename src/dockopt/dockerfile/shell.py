"""Best-effort pattern matching over RUN shell text.

These are lexical heuristics, not a shell grammar: quoting, functions and
variable expansion are not interpreted.
"""

from __future__ import annotations

import re

# Language-level dependency installs that read manifest files
DEPENDENCY_INSTALL_RE = re.compile(
    r"\b(?:"
    r"npm\s+(?:install|ci|i)\b"
    r"|yarn(?:\s+install\b|\s*$|\s*(?:&&|;|\|\|))"
    r"|pnpm\s+(?:install|i)\b"
    r"|pip3?\s+install\b"
    r"|poetry\s+install\b"
    r"|pipenv\s+install\b"
    r"|bundle\s+install\b"
    r"|go\s+mod\s+download\b"
    r"|composer\s+install\b"
    r"|cargo\s+fetch\b"
    r"|mvn\b[^&;|]*\bdependency:go-offline\b"
    r")",
    re.IGNORECASE,
)

# System package manager installs
PACKAGE_INSTALL_RE = re.compile(
    r"\b(?:apt-get|apt)\s+(?:-\S+\s+)*install\b"
    r"|\bapk\s+(?:-\S+\s+)*add\b"
    r"|\b(?:yum|dnf|microdnf|zypper)\s+(?:-\S+\s+)*install\b",
    re.IGNORECASE,
)

CACHE_CLEANUP_RE = re.compile(
    r"\bapt-get\s+clean\b"
    r"|\brm\s+-(?:rf|fr|r)\s+/var/lib/apt/lists"
    r"|\brm\s+-(?:rf|fr|r)\s+/var/cache/(?:apt|apk|yum|dnf)"
    r"|\b(?:yum|dnf)\s+clean\s+all\b"
    r"|\bapk\s+cache\s+clean\b"
    r"|\bnpm\s+cache\s+clean\b"
    r"|\byarn\s+cache\s+clean\b"
    r"|\bpip3?\s+cache\s+purge\b"
    r"|\brm\s+-(?:rf|fr|r)\s+\S*/\.cache\b",
    re.IGNORECASE,
)

APT_INSTALL_RE = re.compile(r"\bapt-get\s+(?:-\S+\s+)*install\b", re.IGNORECASE)
NO_RECOMMENDS_RE = re.compile(r"--no-install-recommends\b")


def is_dependency_install(shell_text: str) -> bool:
    return DEPENDENCY_INSTALL_RE.search(shell_text) is not None


def is_package_install(shell_text: str) -> bool:
    return PACKAGE_INSTALL_RE.search(shell_text) is not None


def is_install(shell_text: str) -> bool:
    return is_dependency_install(shell_text) or is_package_install(shell_text)


def is_cache_cleanup(shell_text: str) -> bool:
    return CACHE_CLEANUP_RE.search(shell_text) is not None
