"""Line annotation reconstructor.

Merges a file's hunks with its full "before"/"after" blobs so every line of
the file comes out tagged added, removed or unchanged. The result is cut
short once its rendered size passes the byte budget.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from loguru import logger

from diffscribe.git.models import DiffFile, FileStatus, Hunk, LineType
from diffscribe.reconstruct.filetypes import looks_binary, omits_content
from diffscribe.reconstruct.models import AnnotatedLine, LineTag, Reconstruction, Strategy

_HUNK_TAGS = {
    LineType.ADDED: LineTag.ADDED,
    LineType.REMOVED: LineTag.REMOVED,
    LineType.CONTEXT: LineTag.UNCHANGED,
}


def split_lines(content: str) -> List[str]:
    """Split a blob on LF. A final newline does not start an extra line."""
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _cursor_start(start: int, count: int) -> int:
    # A zero-length side names the line *before* the change.
    return start if count else start + 1


def hunk_lines(hunks: Iterable[Hunk]) -> Iterator[AnnotatedLine]:
    """The hunks' own recorded lines, numbered with the two-cursor walk."""
    for hunk in hunks:
        old_ln = _cursor_start(hunk.old_start, hunk.old_count)
        new_ln = _cursor_start(hunk.new_start, hunk.new_count)
        for kind, text in hunk.iter_lines():
            if kind == LineType.REMOVED:
                yield AnnotatedLine(old_ln, LineTag.REMOVED, text)
                old_ln += 1
            elif kind == LineType.ADDED:
                yield AnnotatedLine(new_ln, LineTag.ADDED, text)
                new_ln += 1
            else:
                yield AnnotatedLine(new_ln, _HUNK_TAGS[kind], text)
                old_ln += 1
                new_ln += 1


def _tag_all(content: str, tag: LineTag) -> Iterator[AnnotatedLine]:
    for n, text in enumerate(split_lines(content), 1):
        yield AnnotatedLine(n, tag, text)


def _index_hunks(hunks: Sequence[Hunk]) -> Tuple[Set[int], Dict[int, List[AnnotatedLine]]]:
    """Return the added after-line numbers and the removed lines keyed by
    the after-line number they precede."""
    added: Set[int] = set()
    removed_before: Dict[int, List[AnnotatedLine]] = defaultdict(list)

    for hunk in hunks:
        old_ln = _cursor_start(hunk.old_start, hunk.old_count)
        new_ln = _cursor_start(hunk.new_start, hunk.new_count)
        pending: List[AnnotatedLine] = []
        for kind, text in hunk.iter_lines():
            if kind == LineType.REMOVED:
                pending.append(AnnotatedLine(old_ln, LineTag.REMOVED, text))
                old_ln += 1
                continue
            if pending:
                removed_before[new_ln].extend(pending)
                pending = []
            if kind == LineType.ADDED:
                added.add(new_ln)
            else:
                old_ln += 1
            new_ln += 1
        if pending:
            removed_before[new_ln].extend(pending)

    return added, removed_before


def _merge(hunks: Sequence[Hunk], after: str) -> Iterator[AnnotatedLine]:
    added, removed_before = _index_hunks(hunks)
    after_lines = split_lines(after)

    for n, text in enumerate(after_lines, 1):
        yield from removed_before.pop(n, ())
        yield AnnotatedLine(n, LineTag.ADDED if n in added else LineTag.UNCHANGED, text)

    # removals at end of file (len + 1), plus any past it from a short blob
    for n in sorted(removed_before):
        yield from removed_before[n]


def _changed_regions(hunks: Sequence[Hunk], after: str) -> Iterator[AnnotatedLine]:
    ranges = [(h.new_start, h.new_start + h.new_count) for h in hunks]
    for n, text in enumerate(split_lines(after), 1):
        changed = any(start <= n < end for start, end in ranges)
        yield AnnotatedLine(n, LineTag.CHANGED if changed else LineTag.UNCHANGED, text)


def _annotate(
    file: DiffFile, before: Optional[str], after: Optional[str]
) -> Tuple[Strategy, Iterable[AnnotatedLine]]:
    if file.status == FileStatus.ADDED:
        if after is None:
            return Strategy.HUNKS, hunk_lines(file.hunks)
        return Strategy.FULL, _tag_all(after, LineTag.ADDED)

    if file.status == FileStatus.DELETED:
        if before is None:
            return Strategy.HUNKS, hunk_lines(file.hunks)
        return Strategy.FULL, _tag_all(before, LineTag.REMOVED)

    if after is None:
        return Strategy.HUNKS, hunk_lines(file.hunks)
    if before is None:
        return Strategy.CHANGED_REGION, _changed_regions(file.hunks, after)
    return Strategy.FULL, _merge(file.hunks, after)


def apply_budget(
    lines: Iterable[AnnotatedLine], max_bytes: int, strategy: Strategy = Strategy.FULL
) -> Reconstruction:
    """Keep lines while their rendered size (plus one newline each) fits *max_bytes*."""
    kept: List[AnnotatedLine] = []
    total = 0
    it = iter(lines)
    for line in it:
        total += len(line.render().encode("utf-8")) + 1
        if total > max_bytes:
            omitted = 1 + sum(1 for _ in it)
            return Reconstruction(
                lines=tuple(kept),
                strategy=strategy,
                truncated=True,
                truncated_at=line.line_number,
                omitted=omitted,
            )
        kept.append(line)
    return Reconstruction(lines=tuple(kept), strategy=strategy)


def reconstruct(
    file: DiffFile,
    before: Optional[str],
    after: Optional[str],
    max_bytes: int,
    *,
    detect_binary: bool = True,
) -> Reconstruction:
    """Annotate every line of *file*.

    Args:
        file: the parsed diff record.
        before: full "before" content, or None when it could not be fetched.
        after: full "after" content, or None when it could not be fetched.
        max_bytes: byte budget for the rendered lines.
        detect_binary: also treat blobs containing NUL bytes as binary.

    Returns:
        A Reconstruction. Binary files yield no lines unless their path is on
        the text allow-list.
    """
    if max_bytes <= 0:
        raise ValueError(f"max_bytes must be positive, got {max_bytes}")

    if omits_content(file):
        return Reconstruction(strategy=Strategy.BINARY)
    if detect_binary and any(c is not None and looks_binary(c) for c in (before, after)):
        logger.debug(f"{file.path}: blob content looks binary")
        return Reconstruction(strategy=Strategy.BINARY)

    strategy, lines = _annotate(file, before, after)
    if strategy != Strategy.FULL:
        logger.debug(f"{file.path}: content unavailable, using {strategy.value} reconstruction")
    return apply_budget(lines, max_bytes, strategy)
