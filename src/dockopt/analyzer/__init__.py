"""Analyzer: engine and inline suppression."""

from dockopt.analyzer.engine import Evaluation, analyze, default_registry, evaluate
from dockopt.analyzer.suppression import SuppressionChecker, parse_suppression

__all__ = [
    "Evaluation",
    "SuppressionChecker",
    "analyze",
    "default_registry",
    "evaluate",
    "parse_suppression",
]
