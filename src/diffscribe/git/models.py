"""Data models for diff parsing."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple


class LineType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"


_LINE_TYPES = {"+": LineType.ADDED, "-": LineType.REMOVED, " ": LineType.CONTEXT}


def line_type(raw: str) -> Optional[LineType]:
    """Classify a raw hunk line by its leading character."""
    return _LINE_TYPES.get(raw[:1])


@dataclass(frozen=True, slots=True)
class Hunk:
    """One contiguous change region, as declared by its ``@@`` header."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    header: str = ""
    lines: Tuple[str, ...] = ()  # raw lines, leading ' ', '+' or '-' kept

    def iter_lines(self) -> Iterator[Tuple[LineType, str]]:
        """Yield (type, text) pairs with the leading marker stripped."""
        for raw in self.lines:
            kind = line_type(raw)
            if kind is not None:
                yield kind, raw[1:]

    @property
    def additions(self) -> int:
        return sum(1 for raw in self.lines if raw.startswith("+"))

    @property
    def deletions(self) -> int:
        return sum(1 for raw in self.lines if raw.startswith("-"))


@dataclass(frozen=True)
class DiffFile:
    """One changed path in a diff, with its parsed hunks."""

    old_path: str
    new_path: str
    status: FileStatus = FileStatus.MODIFIED
    is_binary: bool = False
    hunks: Tuple[Hunk, ...] = ()
    rename_from: Optional[str] = None
    rename_to: Optional[str] = None
    header: str = ""

    @property
    def path(self) -> str:
        return self.new_path or self.old_path

    @property
    def extension(self) -> str:
        """Lower-case extension without the dot, '' when there is none."""
        name = posixpath.basename(self.path)
        _, dot, ext = name.rpartition(".")
        return ext.lower() if dot else ""

    @property
    def additions(self) -> int:
        return sum(h.additions for h in self.hunks)

    @property
    def deletions(self) -> int:
        return sum(h.deletions for h in self.hunks)

    @property
    def change_size(self) -> int:
        return self.additions + self.deletions


@dataclass(frozen=True)
class CommitMeta:
    """Identifies a change set. ``hash`` is None for staged changes."""

    title: str
    author: str = ""
    date: str = ""
    hash: Optional[str] = None

    @classmethod
    def staged(cls, date: str = "") -> "CommitMeta":
        return cls(title="Staged Changes", date=date)

    @property
    def is_staged(self) -> bool:
        return not self.hash

    @property
    def short_hash(self) -> str:
        return self.hash[:7] if self.hash else "staged"
