"""Reconstruction output models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class LineTag(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"  # inside a changed region; used when the "before" blob is missing


MARKERS = {
    LineTag.UNCHANGED: " ",
    LineTag.ADDED: "+",
    LineTag.REMOVED: "-",
    LineTag.CHANGED: "!",
}


class Strategy(str, Enum):
    FULL = "full"  # both blobs merged with the hunks
    CHANGED_REGION = "changed_region"  # "after" blob only, hunk ranges marked '!'
    HUNKS = "hunks"  # no usable blob, hunk bodies verbatim
    BINARY = "binary"  # nothing emitted


@dataclass(frozen=True, slots=True)
class AnnotatedLine:
    """One output line.

    ``line_number`` is in the "after" file, or the "before" file for removals.
    """

    line_number: int
    tag: LineTag
    text: str

    @property
    def marker(self) -> str:
        return MARKERS[self.tag]

    def render(self) -> str:
        return f"{self.marker}{self.text}"


def truncation_marker(line_number: int, omitted: int) -> str:
    return f"... (truncated at line {line_number}, {omitted} lines omitted)"


@dataclass(frozen=True)
class Reconstruction:
    """Annotated lines for one file, possibly cut short by the byte budget."""

    lines: Tuple[AnnotatedLine, ...] = ()
    strategy: Strategy = Strategy.FULL
    truncated: bool = False
    truncated_at: Optional[int] = None
    omitted: int = 0

    @property
    def is_binary(self) -> bool:
        return self.strategy == Strategy.BINARY

    def render_lines(self) -> List[str]:
        out = [line.render() for line in self.lines]
        if self.truncated and self.truncated_at is not None:
            out.append(truncation_marker(self.truncated_at, self.omitted))
        return out

    def to_text(self) -> str:
        return "\n".join(self.render_lines())
