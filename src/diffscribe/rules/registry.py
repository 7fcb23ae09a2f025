"""Rule registry: loads built-in and custom rules, applies config filters."""

from __future__ import annotations

import dataclasses
import re
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from loguru import logger

from diffscribe.config.schema import DiffScribeConfig
from diffscribe.rules.models import Rule

CUSTOM_RULES_DIR = ".diffscribe-rules"
_KINDS = ("path", "notable")


class RuleLoadError(Exception):
    """Raised when a custom rule file cannot be read or is malformed."""


class RuleRegistry:
    """Central store for supervisor heuristics."""

    def __init__(self) -> None:
        self._rules: Dict[str, Rule] = {}

    # ---- registration ----

    def register(self, rule: Rule) -> None:
        self._rules[rule.id] = rule

    def register_many(self, rules: list[Rule]) -> None:
        for r in rules:
            self.register(r)

    # ---- queries ----

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def enabled_rules(self) -> List[Rule]:
        return [r for r in self._rules.values() if r.enabled]

    def path_rules(self) -> List[Rule]:
        return [r for r in self.enabled_rules() if r.kind == "path"]

    def notable_rules(self) -> List[Rule]:
        return [r for r in self.enabled_rules() if r.kind == "notable"]

    def match_path(self, filepath: str) -> List[Rule]:
        """Return path rules whose pattern occurs in *filepath*."""
        return [r for r in self.path_rules() if r.matches(filepath)]

    def is_notable(self, line: str) -> bool:
        return any(r.matches(line) for r in self.notable_rules())

    # ---- config filtering ----

    def apply_config(self, config: DiffScribeConfig) -> None:
        """Enable / disable rules based on config.rules."""
        enable_list = config.rules.enable
        disable_list = config.rules.disable

        for rule in self._rules.values():
            if enable_list:
                rule.enabled = rule.id in enable_list
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
        except (OSError, yaml.YAMLError) as exc:
            raise RuleLoadError(f"Failed to read {path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            if not isinstance(entry, dict) or "id" not in entry or "pattern" not in entry:
                raise RuleLoadError(f"{path}: every rule needs an 'id' and a 'pattern'")
            kind = entry.get("kind", "notable")
            if kind not in _KINDS:
                raise RuleLoadError(f"{path}: rule {entry['id']} has unknown kind {kind!r}")
            self.register(
                Rule(
                    id=entry["id"],
                    name=entry.get("name", entry["id"]),
                    kind=kind,
                    pattern=entry["pattern"],
                    description=entry.get("description", ""),
                    ignore_case=bool(entry.get("ignore_case", False)),
                )
            )
            count += 1
        logger.debug(f"Loaded {count} custom rule(s) from {path}")
        return count


def build_registry(config: DiffScribeConfig, repo_root: Optional[Path] = None) -> RuleRegistry:
    """Create a fully populated, config-filtered rule registry."""
    from diffscribe.rules.builtin import ALL_BUILTIN_RULES

    registry = RuleRegistry()
    # copies, so enabling/disabling never touches the module-level rules
    registry.register_many([dataclasses.replace(r) for r in ALL_BUILTIN_RULES])

    if repo_root is not None:
        registry.load_custom_rules(repo_root / CUSTOM_RULES_DIR)

    registry.apply_config(config)

    # Compile patterns now, not inside the render loop
    for rule in registry.enabled_rules():
        try:
            _ = rule.compiled_pattern
        except re.error as exc:
            raise RuleLoadError(f"Rule {rule.id} has an invalid pattern: {exc}") from exc

    return registry
