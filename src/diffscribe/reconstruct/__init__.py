"""Line annotation reconstruction: engine, models, file-type tables."""

from diffscribe.reconstruct.engine import apply_budget, hunk_lines, reconstruct, split_lines
from diffscribe.reconstruct.filetypes import (
    is_likely_text,
    language_for,
    looks_binary,
    omits_content,
)
from diffscribe.reconstruct.models import (
    AnnotatedLine,
    LineTag,
    Reconstruction,
    Strategy,
    truncation_marker,
)

__all__ = [
    "AnnotatedLine",
    "LineTag",
    "Reconstruction",
    "Strategy",
    "apply_budget",
    "hunk_lines",
    "is_likely_text",
    "language_for",
    "looks_binary",
    "omits_content",
    "reconstruct",
    "split_lines",
    "truncation_marker",
]
