"""Rule engine inputs: models, registry, built-in rules."""

from dockopt.rules.models import AnalysisOptions, Rule
from dockopt.rules.registry import RuleLoadError, RuleRegistry, build_registry

__all__ = ["AnalysisOptions", "Rule", "RuleLoadError", "RuleRegistry", "build_registry"]
