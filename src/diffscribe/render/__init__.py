"""Markdown rendering: options, the fetch/reconstruct pipeline, and modes."""

from diffscribe.render.markdown import render
from diffscribe.render.options import Mode, RenderOptions, RenderOptionsError, parse_mode
from diffscribe.render.pipeline import reconstruct_file, reconstruct_files
from diffscribe.render.supervisor import SupervisorSummary, render_supervisor, summarize

__all__ = [
    "Mode",
    "RenderOptions",
    "RenderOptionsError",
    "SupervisorSummary",
    "parse_mode",
    "reconstruct_file",
    "reconstruct_files",
    "render",
    "render_supervisor",
    "summarize",
]
