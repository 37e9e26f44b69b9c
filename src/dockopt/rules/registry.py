"""Rule registry — holds built-in and custom rules, applies config filters."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from dockopt.config.schema import SEVERITIES, DockoptConfig
from dockopt.rules.models import Rule


class RuleLoadError(Exception):
    """Raised when a custom rule file is malformed."""


class RuleRegistry:
    """An explicit, caller-constructed set of rules handed to the engine."""

    def __init__(self, rules: Optional[List[Rule]] = None) -> None:
        self._rules: Dict[str, Rule] = {}
        if rules:
            self.register_many(rules)

    # ---- registration ----

    def register(self, rule: Rule) -> None:
        self._rules[rule.id] = rule

    def register_many(self, rules: List[Rule]) -> None:
        for r in rules:
            self.register(r)

    # ---- queries ----

    @property
    def all_rules(self) -> List[Rule]:
        return list(self._rules.values())

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def enabled_rules(self) -> List[Rule]:
        return [r for r in self._rules.values() if r.enabled]

    def __len__(self) -> int:
        return len(self._rules)

    # ---- config filtering ----

    def apply_config(self, config: DockoptConfig) -> None:
        """Enable / disable rules based on config.rules."""
        enable_list = config.rules.enable
        disable_list = config.rules.disable

        for rule in self._rules.values():
            # If an explicit enable-list exists, only those are enabled
            if enable_list:
                rule.enabled = rule.id in enable_list
            # Disable list always takes precedence
            if rule.id in disable_list:
                rule.enabled = False

    # ---- custom rule loading ----

    def load_custom_rules(self, directory: Path) -> int:
        """Load YAML rule files from *directory*. Returns count loaded."""
        count = 0
        if not directory.is_dir():
            return 0
        for path in sorted(directory.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                count += self._load_yaml_rules(path)
        return count

    def _load_yaml_rules(self, path: Path) -> int:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise RuleLoadError(f"Failed to parse {path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            if not isinstance(entry, dict) or "id" not in entry or "pattern" not in entry:
                raise RuleLoadError(f"{path}: each rule needs an 'id' and a 'pattern'")
            severity = entry.get("severity", "warning")
            if severity not in SEVERITIES:
                raise RuleLoadError(f"{path}: rule {entry['id']} has invalid severity {severity!r}")
            instructions = entry.get("instructions")
            if isinstance(instructions, str):
                instructions = [instructions]
            rule = Rule(
                id=entry["id"],
                name=entry.get("name", entry["id"]),
                description=entry.get("description", ""),
                severity=severity,
                pattern=entry["pattern"],
                instructions=instructions,
                suggestion=entry.get("suggestion"),
            )
            try:
                _ = rule.compiled_pattern
            except re.error as exc:
                raise RuleLoadError(f"{path}: rule {rule.id} has an invalid pattern: {exc}") from exc
            self.register(rule)
            count += 1
        return count


def build_registry(config: DockoptConfig, root: Path) -> RuleRegistry:
    """Create a fully populated, config-filtered rule registry."""
    from dockopt.rules.builtin import builtin_rules

    registry = RuleRegistry(builtin_rules())

    # Custom rules from .dockopt-rules/
    registry.load_custom_rules(root / config.rules.custom_dir)

    # Apply enable/disable from config
    registry.apply_config(config)

    # Force-compile patterns now (not inside the evaluation loop)
    for rule in registry.enabled_rules():
        _ = rule.compiled_pattern

    return registry
