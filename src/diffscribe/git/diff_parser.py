"""Unified diff parser.

Splits multi-file ``git diff`` output into one :class:`DiffFile` per
``diff --git`` block, each carrying its parsed hunks. The parser never
raises: blocks without a usable ``diff --git`` line and ``@@`` lines that do
not match the hunk grammar are dropped, so a corrupt trailing section never
hides the files parsed before it.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from loguru import logger

from diffscribe.git.models import DiffFile, FileStatus, Hunk

# --- Regex patterns for diff parsing ---

_BLOCK_SPLIT_RE = re.compile(r"\n(?=diff --git )")
_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.+) b/(.+)$")
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_BINARY_RE = re.compile(r"^Binary files .* differ$")
_BINARY_PATCH = "GIT binary patch"
_NEW_FILE_RE = re.compile(r"^new file mode ")
_DELETED_FILE_RE = re.compile(r"^deleted file mode ")
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_COPY_FROM_RE = re.compile(r"^copy from (.+)$")
_COPY_TO_RE = re.compile(r"^copy to (.+)$")

_HUNK_LINE_PREFIXES = (" ", "+", "-")


class ChangeCounts(NamedTuple):
    additions: int
    deletions: int


class ChangedLines(NamedTuple):
    old: List[int]
    new: List[int]


@dataclass
class _HeaderInfo:
    old_path: str
    new_path: str
    status: FileStatus = FileStatus.MODIFIED
    is_binary: bool = False
    rename_from: Optional[str] = None
    rename_to: Optional[str] = None


def _normalise(line: str) -> str:
    """Strip a trailing CR so CRLF diffs match the header patterns."""
    return line.rstrip("\r")


class DiffParser:
    """Parse unified diff text into an ordered list of DiffFile records.

    Usage::

        files = DiffParser(diff_text).parse()
        for f in files:
            print(f.path, f.status, len(f.hunks))
    """

    def __init__(self, diff_text: str) -> None:
        self._text = diff_text

    def parse(self) -> List[DiffFile]:
        files: List[DiffFile] = []
        for block in _BLOCK_SPLIT_RE.split(self._text):
            if not block.strip():
                continue
            parsed = self._parse_block(block)
            if parsed is not None:
                files.append(parsed)
        return files

    def _parse_block(self, block: str) -> Optional[DiffFile]:
        lines = block.split("\n")
        start = next(
            (i for i, line in enumerate(lines) if line.startswith("diff --git ")),
            None,
        )
        if start is None:
            logger.debug("Skipping diff block without a 'diff --git' line")
            return None
        m = _DIFF_HEADER_RE.match(_normalise(lines[start]))
        if m is None:
            logger.debug(f"Skipping unparseable diff header: {lines[start]!r}")
            return None

        lines = lines[start:]
        body_start = next(
            (i for i, line in enumerate(lines) if line.startswith("@@")),
            len(lines),
        )
        header_lines = lines[:body_start]
        info = self._parse_header(m.group(1), m.group(2), header_lines)

        return DiffFile(
            old_path=info.old_path,
            new_path=info.new_path,
            status=info.status,
            is_binary=info.is_binary,
            hunks=tuple(parse_hunks(lines[body_start:])),
            rename_from=info.rename_from,
            rename_to=info.rename_to,
            header="\n".join(header_lines),
        )

    @staticmethod
    def _parse_header(old_path: str, new_path: str, header_lines: Sequence[str]) -> _HeaderInfo:
        info = _HeaderInfo(old_path=old_path, new_path=new_path)
        for raw in header_lines[1:]:
            line = _normalise(raw)
            if _NEW_FILE_RE.match(line):
                info.status = FileStatus.ADDED
            elif _DELETED_FILE_RE.match(line):
                info.status = FileStatus.DELETED
            elif (rm := _RENAME_FROM_RE.match(line)):
                info.status = FileStatus.RENAMED
                info.rename_from = info.old_path = rm.group(1)
            elif (rt := _RENAME_TO_RE.match(line)):
                info.rename_to = info.new_path = rt.group(1)
            elif (cf := _COPY_FROM_RE.match(line)):
                info.status = FileStatus.COPIED
                info.old_path = cf.group(1)
            elif (ct := _COPY_TO_RE.match(line)):
                info.new_path = ct.group(1)
            elif _BINARY_RE.match(line) or line.startswith(_BINARY_PATCH):
                info.is_binary = True
        return info


def parse_hunks(lines: Iterable[str]) -> List[Hunk]:
    """Collect hunks from the body lines of one file block."""
    hunks: List[Hunk] = []
    current: Optional[Hunk] = None
    body: List[str] = []

    def flush() -> None:
        if current is not None:
            hunks.append(_with_lines(current, body))

    for line in lines:
        if line.startswith("@@"):
            flush()
            body = []
            hm = _HUNK_HEADER_RE.match(line)
            if hm is None:
                logger.debug(f"Skipping malformed hunk header: {line!r}")
                current = None
                continue
            current = Hunk(
                old_start=int(hm.group(1)),
                old_count=int(hm.group(2)) if hm.group(2) is not None else 1,
                new_start=int(hm.group(3)),
                new_count=int(hm.group(4)) if hm.group(4) is not None else 1,
                header=_normalise(line),
            )
        elif current is not None and line.startswith(_HUNK_LINE_PREFIXES):
            body.append(line)
        # anything else ("\ No newline at end of file", trailing blank) is ignored

    flush()
    return hunks


def _with_lines(hunk: Hunk, body: List[str]) -> Hunk:
    return Hunk(
        old_start=hunk.old_start,
        old_count=hunk.old_count,
        new_start=hunk.new_start,
        new_count=hunk.new_count,
        header=hunk.header,
        lines=tuple(body),
    )


def parse_diff(diff_text: str) -> List[DiffFile]:
    """Shortcut for ``DiffParser(diff_text).parse()``."""
    return DiffParser(diff_text).parse()


# --- Derived operations ---


def count_changes(files: Iterable[DiffFile]) -> ChangeCounts:
    """Total added and removed lines across *files*."""
    additions = deletions = 0
    for f in files:
        additions += f.additions
        deletions += f.deletions
    return ChangeCounts(additions, deletions)


def changed_line_numbers(hunks: Iterable[Hunk]) -> ChangedLines:
    """Return the removed "before" and added "after" line numbers.

    Context lines advance both cursors, additions only the new cursor and
    removals only the old one.
    """
    old: List[int] = []
    new: List[int] = []
    for hunk in hunks:
        old_ln = hunk.old_start
        new_ln = hunk.new_start
        for raw in hunk.lines:
            if raw.startswith("-"):
                old.append(old_ln)
                old_ln += 1
            elif raw.startswith("+"):
                new.append(new_ln)
                new_ln += 1
            else:
                old_ln += 1
                new_ln += 1
    return ChangedLines(old, new)


def has_substantial_changes(file: DiffFile, threshold: int = 10) -> bool:
    return file.change_size >= threshold


def filter_by_status(files: Iterable[DiffFile], statuses: Iterable[FileStatus]) -> List[DiffFile]:
    wanted = set(statuses)
    return [f for f in files if f.status in wanted]


def group_by_extension(files: Iterable[DiffFile]) -> Dict[str, List[DiffFile]]:
    """Group files by lower-case extension ('' for none), keeping order."""
    groups: Dict[str, List[DiffFile]] = defaultdict(list)
    for f in files:
        groups[f.extension].append(f)
    return dict(groups)


def sort_by_change_size(files: Iterable[DiffFile]) -> List[DiffFile]:
    """Largest change first. Ties keep their diff order."""
    return sorted(files, key=lambda f: f.change_size, reverse=True)


def extract_context(hunk: Hunk, context_size: int = 3) -> List[str]:
    """Return changed lines of *hunk* with up to *context_size* context lines around each run."""
    lines = hunk.lines
    keep: set[int] = set()
    for i, raw in enumerate(lines):
        if raw.startswith(("+", "-")):
            keep.update(range(max(0, i - context_size), min(len(lines), i + context_size + 1)))
    return [lines[i] for i in sorted(keep)]
