"""Built-in rules — aggregate all categories."""

import dataclasses
from typing import List

from dockopt.rules.builtin.caching import ALL_CACHING_RULES
from dockopt.rules.builtin.images import ALL_IMAGE_RULES
from dockopt.rules.builtin.runtime import ALL_RUNTIME_RULES
from dockopt.rules.builtin.security import ALL_SECURITY_RULES
from dockopt.rules.models import Rule

ALL_BUILTIN_RULES: list[Rule] = [
    *ALL_IMAGE_RULES,
    *ALL_CACHING_RULES,
    *ALL_SECURITY_RULES,
    *ALL_RUNTIME_RULES,
]


def builtin_rules() -> List[Rule]:
    """Fresh copies of the built-in rules, safe to enable/disable per run."""
    return [dataclasses.replace(r) for r in ALL_BUILTIN_RULES]


__all__ = ["ALL_BUILTIN_RULES", "builtin_rules"]
