"""Supervisor heuristics: models, registry, built-in rules."""

from diffscribe.rules.models import Rule
from diffscribe.rules.registry import RuleLoadError, RuleRegistry, build_registry

__all__ = ["Rule", "RuleLoadError", "RuleRegistry", "build_registry"]
