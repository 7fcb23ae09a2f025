"""Render options and their validation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from diffscribe.config.schema import DiffScribeConfig


class Mode(str, Enum):
    FULL = "full"
    HUNKS = "hunks"
    SUPERVISOR = "supervisor"


class RenderOptionsError(ValueError):
    """Raised for render options that would produce degenerate output."""


def parse_mode(value: Union[Mode, str]) -> Mode:
    try:
        return Mode(value)
    except ValueError:
        choices = ", ".join(m.value for m in Mode)
        raise RenderOptionsError(f"Unknown mode {value!r} (expected one of: {choices})") from None


def _require_int(name: str, value: object, *, minimum: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise RenderOptionsError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        bound = "positive" if minimum == 1 else f"at least {minimum}"
        raise RenderOptionsError(f"{name} must be {bound}, got {value}")


@dataclass(frozen=True)
class RenderOptions:
    """Per-render settings. Validated on construction."""

    max_file_bytes: int = 2_000_000
    detect_binary: bool = True
    mode: Mode = Mode.HUNKS
    max_workers: int = 4
    large_change_threshold: int = 500
    max_notable_lines: int = 3

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", parse_mode(self.mode))
        _require_int("max_file_bytes", self.max_file_bytes, minimum=1)
        _require_int("max_workers", self.max_workers, minimum=1)
        _require_int("large_change_threshold", self.large_change_threshold, minimum=0)
        _require_int("max_notable_lines", self.max_notable_lines, minimum=0)
        if not isinstance(self.detect_binary, bool):
            raise RenderOptionsError(
                f"detect_binary must be true or false, got {self.detect_binary!r}"
            )

    @classmethod
    def from_config(
        cls, config: DiffScribeConfig, mode: Optional[Union[Mode, str]] = None
    ) -> "RenderOptions":
        return cls(
            max_file_bytes=config.render.max_file_bytes,
            detect_binary=config.render.detect_binary,
            mode=mode if mode is not None else config.export.mode,
            max_workers=config.render.max_workers,
            large_change_threshold=config.supervisor.large_change_threshold,
            max_notable_lines=config.supervisor.max_notable_lines,
        )
