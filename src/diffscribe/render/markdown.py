"""Markdown renderer for the full and hunks modes, and the ``render`` entry point."""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from diffscribe.git.adapter import BlobFetcher
from diffscribe.git.models import CommitMeta, DiffFile, FileStatus
from diffscribe.reconstruct.filetypes import language_for, omits_content
from diffscribe.reconstruct.models import Reconstruction
from diffscribe.render.options import Mode, RenderOptions, parse_mode
from diffscribe.render.pipeline import reconstruct_files
from diffscribe.render.supervisor import render_supervisor
from diffscribe.rules.registry import RuleRegistry

NO_FILES_CHANGED = "No files changed."
FILES_CHANGED = "Files Changed"
BINARY_FILE_OMITTED = "Binary file - content omitted"
NO_CHANGES_IN_HUNKS = "No changes in hunks."


def render(
    meta: CommitMeta,
    files: Sequence[DiffFile],
    mode: Optional[Union[Mode, str]] = None,
    options: Optional[RenderOptions] = None,
    fetcher: Optional[BlobFetcher] = None,
    *,
    registry: Optional[RuleRegistry] = None,
) -> str:
    """Render *files* of change set *meta* as Markdown.

    *mode* defaults to ``options.mode``. *fetcher* supplies full blobs for
    full mode; without one every file falls back to its hunk lines. Files
    are rendered in the order given.
    """
    options = options or RenderOptions()
    mode = parse_mode(mode) if mode is not None else options.mode

    if mode == Mode.SUPERVISOR:
        if registry is None:
            from diffscribe.config.schema import DiffScribeConfig
            from diffscribe.rules.registry import build_registry

            registry = build_registry(DiffScribeConfig())
        return render_supervisor(meta, files, options, registry)

    lines = _document_header(meta)
    if not files:
        lines += ["", NO_FILES_CHANGED]
        return "\n".join(lines)

    lines += ["", f"## {FILES_CHANGED}"]

    if mode == Mode.FULL:
        wanted = [f for f in files if _needs_body(f)]
        rebuilt = iter(reconstruct_files(wanted, meta, options, fetcher))
        for f in files:
            _file_header(f, lines)
            if _needs_body(f):
                _render_full(next(rebuilt), lines)
            else:
                _render_no_body(f, lines)
    else:
        for f in files:
            _file_header(f, lines)
            if _needs_body(f):
                _render_hunks(f, lines)
            else:
                _render_no_body(f, lines)

    return "\n".join(lines)


def _document_header(meta: CommitMeta) -> List[str]:
    prefix = "" if meta.is_staged else f"Commit {meta.short_hash} - "
    lines = [f"# {prefix}{meta.title}"]
    if meta.author or meta.date:
        lines.append("")
        if meta.author:
            lines.append(f"- **Author**: {meta.author}")
        if meta.date:
            lines.append(f"- **Date**: {meta.date}")
        if meta.hash:
            lines.append(f"- **Hash**: {meta.hash}")
    return lines


def _file_header(file: DiffFile, lines: List[str]) -> None:
    lines += ["", f"### {file.path}", f"- **Status**: {file.status.value}"]
    if file.rename_from and file.rename_to:
        lines.append(f"- **Rename**: {file.rename_from} → {file.rename_to}")
    language = language_for(file.path)
    if language:
        lines.append(f"- **Language**: {language}")


def _needs_body(file: DiffFile) -> bool:
    if omits_content(file):
        return False
    return bool(file.hunks) or file.status in (FileStatus.ADDED, FileStatus.DELETED)


def _render_no_body(file: DiffFile, lines: List[str]) -> None:
    if omits_content(file):
        lines += ["", f"**{BINARY_FILE_OMITTED}**"]
    else:
        lines += ["", NO_CHANGES_IN_HUNKS]


def _render_full(result: Reconstruction, lines: List[str]) -> None:
    if result.is_binary:
        lines += ["", f"**{BINARY_FILE_OMITTED}**"]
        return
    lines += ["", "```diff", *result.render_lines(), "```"]


def _render_hunks(file: DiffFile, lines: List[str]) -> None:
    lines += ["", "```diff"]
    if file.status == FileStatus.ADDED:
        added, removed = file.additions, 0
        lines += [f"@@ -0,0 +1,{added} @@", f"... (new file with {added} lines)"]
    elif file.status == FileStatus.DELETED:
        added, removed = 0, file.deletions
        lines += [f"@@ -1,{removed} +0,0 @@", f"... (file deleted with {removed} lines)"]
    else:
        added = removed = 0
        for hunk in file.hunks:
            lines.append(hunk.header)
            for raw in hunk.lines:
                if raw.startswith("+"):
                    lines.append(raw)
                    added += 1
                elif raw.startswith("-"):
                    lines.append(raw)
                    removed += 1
    lines += ["```", f"*Changes: +{added} -{removed}*"]
