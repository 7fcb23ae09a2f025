"""Rule data model: pattern stored as string, compiled on first use."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal, Optional

RuleKind = Literal["path", "notable"]


@dataclass
class Rule:
    """A single supervisor heuristic.

    ``path`` rules match a changed file's path and raise a risk indicator;
    ``notable`` rules match added lines worth quoting in the summary.
    """

    id: str
    name: str
    kind: RuleKind
    pattern: str
    description: str = ""
    ignore_case: bool = False
    enabled: bool = True

    _compiled_pattern: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def compiled_pattern(self) -> re.Pattern[str]:
        if self._compiled_pattern is None:
            flags = re.IGNORECASE if self.ignore_case else 0
            self._compiled_pattern = re.compile(self.pattern, flags)
        return self._compiled_pattern

    def matches(self, text: str) -> bool:
        return self.compiled_pattern.search(text) is not None
