"""Configuration schema: dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

ModeName = Literal["full", "hunks", "supervisor"]

MODES: tuple[str, ...] = ("full", "hunks", "supervisor")


@dataclass
class ExportConfig:
    mode: ModeName = "hunks"
    output_dir: str = "diffscribe"
    single_file: bool = True  # join several commits into one Markdown file
    unified_context: int = 3
    include_renames: bool = True
    max_commits: int = 50


@dataclass
class RenderConfig:
    max_file_bytes: int = 2_000_000
    detect_binary: bool = True
    max_workers: int = 4


@dataclass
class SupervisorConfig:
    large_change_threshold: int = 500
    max_notable_lines: int = 3


@dataclass
class RulesConfig:
    enable: List[str] = field(default_factory=list)  # empty = all enabled
    disable: List[str] = field(default_factory=list)


@dataclass
class HistoryConfig:
    enabled: bool = False
    path: str = ".diffscribe/history.json"
    max_entries: int = 1000
    max_age_days: int = 30


@dataclass
class DiffScribeConfig:
    version: str = "1.0"
    export: ExportConfig = field(default_factory=ExportConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
