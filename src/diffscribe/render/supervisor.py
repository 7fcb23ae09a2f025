"""Supervisor mode: a compact summary for automated review.

Risk indicators and notable lines are best-effort pattern matches driven by
the rule registry; they are not a parser of any language.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from diffscribe.git.diff_parser import count_changes
from diffscribe.git.models import CommitMeta, DiffFile, FileStatus, LineType
from diffscribe.render.options import RenderOptions
from diffscribe.rules.registry import RuleRegistry


@dataclass
class FileHighlights:
    path: str
    status: FileStatus
    additions: int
    deletions: int
    hunks: int
    notable: List[str] = field(default_factory=list)


@dataclass
class SupervisorSummary:
    files_changed: int = 0
    additions: int = 0
    deletions: int = 0
    risk_indicators: List[str] = field(default_factory=list)
    key_changes: List[FileHighlights] = field(default_factory=list)

    @property
    def has_risks(self) -> bool:
        return bool(self.risk_indicators)


def risk_indicators(
    files: Sequence[DiffFile], registry: RuleRegistry, large_change_threshold: int
) -> List[str]:
    indicators: List[str] = []
    for f in files:
        if registry.match_path(f.path):
            indicators.append(f"Sensitive file modified: {f.path}")
        if f.additions > large_change_threshold:
            indicators.append(f"Large change in {f.path}: +{f.additions} lines")
    return indicators


def notable_lines(file: DiffFile, registry: RuleRegistry, limit: int) -> List[str]:
    """First *limit* added lines of *file* that match a notable rule."""
    found: List[str] = []
    if limit <= 0:
        return found
    for hunk in file.hunks:
        for kind, text in hunk.iter_lines():
            if kind != LineType.ADDED:
                continue
            line = text.strip()
            if line and registry.is_notable(line):
                found.append(line)
                if len(found) >= limit:
                    return found
    return found


def summarize(
    files: Sequence[DiffFile], registry: RuleRegistry, options: RenderOptions
) -> SupervisorSummary:
    totals = count_changes(files)
    summary = SupervisorSummary(
        files_changed=len(files),
        additions=totals.additions,
        deletions=totals.deletions,
        risk_indicators=risk_indicators(files, registry, options.large_change_threshold),
    )
    for f in files:
        if not f.hunks and f.status not in (FileStatus.ADDED, FileStatus.DELETED):
            continue
        summary.key_changes.append(
            FileHighlights(
                path=f.path,
                status=f.status,
                additions=f.additions,
                deletions=f.deletions,
                hunks=len(f.hunks),
                notable=notable_lines(f, registry, options.max_notable_lines),
            )
        )
    return summary


def render_supervisor(
    meta: CommitMeta,
    files: Sequence[DiffFile],
    options: RenderOptions,
    registry: RuleRegistry,
    summary: Optional[SupervisorSummary] = None,
) -> str:
    summary = summary or summarize(files, registry, options)
    lines: List[str] = [
        f"# {meta.short_hash} - {meta.title}",
        f"Author: {meta.author or 'Unknown'} | Date: {meta.date or '-'}",
        "",
        "## Summary",
        f"- Files: {summary.files_changed}",
        f"- Lines: +{summary.additions} -{summary.deletions}",
    ]

    if summary.risk_indicators:
        lines += ["", "## Risk Indicators"]
        lines += [f"- {risk}" for risk in summary.risk_indicators]

    lines += ["", "## Key Changes"]
    for item in summary.key_changes:
        lines.append(
            f"- **{item.path}** ({item.status.value}): "
            f"+{item.additions} -{item.deletions} in {item.hunks} hunks"
        )
        lines += [f"  - {change}" for change in item.notable]

    return "\n".join(lines)
