"""Analysis history: past supervisor summaries and how they relate.

Each supervisor export can record an :class:`AnalysisRecord`. Later exports
look up related records (same files, close in time, same author, same risk
flag) so a reviewer can see what touched the same ground recently.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Set

from loguru import logger

from diffscribe.git.models import CommitMeta
from diffscribe.render.supervisor import SupervisorSummary

DAY_SECONDS = 24 * 60 * 60

FILE_WEIGHT = 0.4
TIME_WEIGHT = 0.3
AUTHOR_WEIGHT = 0.2
RISK_WEIGHT = 0.1
TIME_WINDOW = 7 * DAY_SECONDS
RELEVANCE_THRESHOLD = 0.1
MAX_RELATED = 10


class HistoryError(Exception):
    """Raised for history limits, files or records that cannot be used."""


@dataclass
class AnalysisRecord:
    commit_hash: str
    author: str
    title: str
    timestamp: float  # seconds since the epoch
    files: List[str] = field(default_factory=list)
    additions: int = 0
    deletions: int = 0
    risk_indicators: List[str] = field(default_factory=list)

    @property
    def has_risks(self) -> bool:
        return bool(self.risk_indicators)

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:7]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_summary(
        cls, meta: CommitMeta, summary: SupervisorSummary, timestamp: float
    ) -> "AnalysisRecord":
        return cls(
            commit_hash=meta.hash or "",
            author=meta.author,
            title=meta.title,
            timestamp=timestamp,
            files=[item.path for item in summary.key_changes],
            additions=summary.additions,
            deletions=summary.deletions,
            risk_indicators=list(summary.risk_indicators),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisRecord":
        try:
            return cls(
                commit_hash=str(data["commit_hash"]),
                author=str(data.get("author", "")),
                title=str(data.get("title", "")),
                timestamp=float(data["timestamp"]),
                files=[str(f) for f in data.get("files", [])],
                additions=int(data.get("additions", 0)),
                deletions=int(data.get("deletions", 0)),
                risk_indicators=[str(r) for r in data.get("risk_indicators", [])],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise HistoryError(f"Malformed history record: {exc}") from exc


class RelatedAnalysis(NamedTuple):
    record: AnalysisRecord
    relevance: float


@dataclass
class HistoryStats:
    total: int = 0
    unique_files: int = 0
    unique_authors: int = 0
    oldest: Optional[float] = None
    newest: Optional[float] = None


class AnalysisHistory:
    """Bounded, in-memory store of analysis records keyed by commit hash.

    Records older than *max_age_days* are pruned whenever one is added; past
    *max_entries*, the oldest go first. Use :meth:`open` to load from and
    save back to a JSON file::

        with AnalysisHistory.open(path) as history:
            history.add(record)
    """

    def __init__(
        self,
        max_entries: int = 1000,
        max_age_days: float = 30,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not isinstance(max_entries, int) or isinstance(max_entries, bool) or max_entries <= 0:
            raise HistoryError(f"max_entries must be a positive integer, got {max_entries!r}")
        if not isinstance(max_age_days, (int, float)) or isinstance(max_age_days, bool):
            raise HistoryError(f"max_age_days must be a number, got {max_age_days!r}")
        if max_age_days < 0:
            raise HistoryError(f"max_age_days must not be negative, got {max_age_days}")
        self.max_entries = max_entries
        self.max_age = max_age_days * DAY_SECONDS
        self._clock = clock
        self._records: Dict[str, AnalysisRecord] = {}
        self._by_file: Dict[str, Set[str]] = {}
        self._by_author: Dict[str, Set[str]] = {}
        self.path: Optional[Path] = None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, commit_hash: object) -> bool:
        return commit_hash in self._records

    # ── mutation ──

    def add(self, record: AnalysisRecord) -> None:
        """Store *record*, replacing any earlier record for the same commit."""
        if record.commit_hash in self._records:
            self._unindex(self._records[record.commit_hash])
        self._records[record.commit_hash] = record
        for path in record.files:
            self._by_file.setdefault(path, set()).add(record.commit_hash)
        self._by_author.setdefault(record.author, set()).add(record.commit_hash)
        self.prune()

    def prune(self) -> int:
        """Drop expired records, then the oldest beyond the size limit."""
        now = self._clock()
        doomed = [h for h, r in self._records.items() if now - r.timestamp > self.max_age]
        remaining = len(self._records) - len(doomed)
        if remaining > self.max_entries:
            survivors = sorted(
                (r for r in self._records.values() if r.commit_hash not in doomed),
                key=lambda r: r.timestamp,
            )
            doomed += [r.commit_hash for r in survivors[: remaining - self.max_entries]]
        for commit_hash in doomed:
            self._unindex(self._records.pop(commit_hash))
        if doomed:
            logger.debug(f"Pruned {len(doomed)} history records")
        return len(doomed)

    def clear(self) -> None:
        self._records.clear()
        self._by_file.clear()
        self._by_author.clear()

    def _unindex(self, record: AnalysisRecord) -> None:
        for path in record.files:
            hashes = self._by_file.get(path)
            if hashes is not None:
                hashes.discard(record.commit_hash)
                if not hashes:
                    del self._by_file[path]
        hashes = self._by_author.get(record.author)
        if hashes is not None:
            hashes.discard(record.commit_hash)
            if not hashes:
                del self._by_author[record.author]

    # ── lookup ──

    def get(self, commit_hash: str) -> Optional[AnalysisRecord]:
        record = self._records.get(commit_hash)
        if record is not None:
            return record
        # Accept an abbreviated hash when it is unambiguous.
        matches = [r for h, r in self._records.items() if h.startswith(commit_hash)]
        return matches[0] if commit_hash and len(matches) == 1 else None

    def related(self, commit_hash: str) -> List[RelatedAnalysis]:
        """Records most related to *commit_hash*, best first (at most 10)."""
        current = self.get(commit_hash)
        if current is None:
            return []

        scores: Dict[str, float] = {}

        def bump(other: str, amount: float) -> None:
            if other != current.commit_hash:
                scores[other] = scores.get(other, 0.0) + amount

        for path in current.files:
            for other in self._by_file.get(path, ()):
                bump(other, FILE_WEIGHT)

        for other, record in self._records.items():
            gap = abs(record.timestamp - current.timestamp)
            if gap < TIME_WINDOW:
                bump(other, (1 - gap / TIME_WINDOW) * TIME_WEIGHT)

        for other in self._by_author.get(current.author, ()):
            bump(other, AUTHOR_WEIGHT)

        for other, record in self._records.items():
            if record.has_risks == current.has_risks:
                bump(other, RISK_WEIGHT)

        ranked = sorted(
            (RelatedAnalysis(self._records[h], s) for h, s in scores.items()
             if s >= RELEVANCE_THRESHOLD),
            key=lambda item: (-item.relevance, -item.record.timestamp),
        )
        return ranked[:MAX_RELATED]

    def query(
        self,
        files: Optional[Sequence[str]] = None,
        author: Optional[str] = None,
        since: Optional[float] = None,
        until: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[AnalysisRecord]:
        """Records matching every given criterion, newest first."""
        results: Iterable[AnalysisRecord] = self._records.values()
        if files:
            wanted = set(files)
            results = [r for r in results if wanted.intersection(r.files)]
        if author is not None:
            results = [r for r in results if r.author == author]
        if since is not None:
            results = [r for r in results if r.timestamp >= since]
        if until is not None:
            results = [r for r in results if r.timestamp <= until]
        ordered = sorted(results, key=lambda r: r.timestamp, reverse=True)
        return ordered[:limit] if limit is not None else ordered

    def stats(self) -> HistoryStats:
        timestamps = [r.timestamp for r in self._records.values()]
        return HistoryStats(
            total=len(self._records),
            unique_files=len(self._by_file),
            unique_authors=len(self._by_author),
            oldest=min(timestamps) if timestamps else None,
            newest=max(timestamps) if timestamps else None,
        )

    def summary(self, commit_hash: str) -> str:
        """One short paragraph describing what relates to *commit_hash*."""
        current = self.get(commit_hash)
        if current is None:
            return "No history recorded for this commit."
        related = self.related(commit_hash)
        if not related:
            return f"No related analyses found for commit {current.short_hash}."

        lines = [f"Found {len(related)} related analyses for commit {current.short_hash}."]
        overlapping = sum(1 for item in related if set(item.record.files) & set(current.files))
        if overlapping:
            lines.append(f"- {overlapping} related commits modified the same files")
        risky = sum(1 for item in related if item.record.has_risks)
        if risky:
            lines.append(f"- {risky} related commits had risk indicators")
        same_author = sum(1 for item in related if item.record.author == current.author)
        if same_author:
            lines.append(f"- {same_author} related commits by the same author")
        return "\n".join(lines)

    # ── persistence ──

    def export_records(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in sorted(self._records.values(), key=lambda r: r.timestamp)]

    def import_records(self, records: Iterable[Dict[str, Any]]) -> None:
        """Replace the store with *records* (as produced by :meth:`export_records`)."""
        self.clear()
        for data in records:
            self.add(AnalysisRecord.from_dict(data))

    def load(self, path: Path) -> None:
        path = Path(path)
        self.path = path
        if not path.exists():
            self.clear()
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise HistoryError(f"Cannot read history file {path}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("records"), list):
            raise HistoryError(f"History file {path} has no 'records' list")
        self.import_records(data["records"])
        logger.debug(f"Loaded {len(self)} history records from {path}")

    def save(self, path: Optional[Path] = None) -> None:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise HistoryError("No history file path to save to")
        payload = {"version": 1, "records": self.export_records()}
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise HistoryError(f"Cannot write history file {target}: {exc}") from exc
        logger.debug(f"Saved {len(self)} history records to {target}")

    @classmethod
    def open(
        cls,
        path: Path,
        max_entries: int = 1000,
        max_age_days: float = 30,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "AnalysisHistory":
        history = cls(max_entries, max_age_days, clock=clock)
        history.load(path)
        return history

    def close(self) -> None:
        """Save to the file this history was opened from, then forget the records."""
        if self.path is not None:
            self.save()
        self.clear()

    def __enter__(self) -> "AnalysisHistory":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
