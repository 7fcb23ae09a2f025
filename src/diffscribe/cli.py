"""diffscribe CLI: Typer application with export, render, stats, history, and init commands."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console

from diffscribe import __version__

app = typer.Typer(
    name="diffscribe",
    help="Render git commits and staged changes as annotated Markdown.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _fail(label: str, exc: Exception) -> typer.Exit:
    console.print(f"[bold red]{label}:[/bold red] {exc}")
    return typer.Exit(code=2)


def _resolve_repo_root() -> Path:
    """Find the git repo root, exit 2 on failure."""
    from diffscribe.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError as exc:
        raise _fail("Error", exc) from exc


def _load(repo_root: Path, config: Optional[str]):
    from diffscribe.config.loader import ConfigError, load_config

    try:
        return load_config(repo_root, config)
    except ConfigError as exc:
        raise _fail("Config error", exc) from exc


def _options(cfg, mode: Optional[str]):
    from diffscribe.render.options import RenderOptions, RenderOptionsError

    try:
        return RenderOptions.from_config(cfg, mode)
    except RenderOptionsError as exc:
        raise _fail("Invalid options", exc) from exc


def _registry(cfg, repo_root: Optional[Path]):
    from diffscribe.rules.registry import RuleLoadError, build_registry

    try:
        return build_registry(cfg, repo_root)
    except RuleLoadError as exc:
        raise _fail("Rule error", exc) from exc


def _now() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


# ── export ────────────────────────────────────────────────────────────────────


@app.command()
def export(
    revs: Optional[List[str]] = typer.Argument(None, help="Commits to export (default: HEAD)"),
    staged: bool = typer.Option(False, "--staged", help="Export staged changes"),
    last: Optional[int] = typer.Option(
        None, "--last", "-n", help="Also export the N most recent commits"
    ),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="full | hunks | supervisor"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Output directory"),
    single_file: Optional[bool] = typer.Option(
        None, "--single-file/--split", help="Join several change sets into one file"
    ),
    stdout: bool = typer.Option(False, "--stdout", help="Print Markdown instead of writing files"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .diffscribe.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Render commits (or the staged change set) to Markdown files."""
    from diffscribe.git.adapter import (
        GitBlobFetcher,
        GitError,
        get_commit_diff,
        get_commit_meta,
        get_staged_diff,
        list_commits,
    )
    from diffscribe.git.diff_parser import parse_diff
    from diffscribe.git.models import CommitMeta
    from diffscribe.history import AnalysisHistory, AnalysisRecord, HistoryError
    from diffscribe.log import setup_logging
    from diffscribe.output import terminal
    from diffscribe.output.writer import RenderedDocument, join_documents, write_documents
    from diffscribe.render.markdown import render
    from diffscribe.render.options import Mode
    from diffscribe.render.supervisor import render_supervisor, summarize

    setup_logging(verbose, debug, console)
    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config)
    options = _options(cfg, mode)
    registry = _registry(cfg, repo_root)
    fetcher = GitBlobFetcher(repo_root)

    targets: List[Optional[str]] = [None] if staged else []
    targets += list(revs or [])
    if last:
        try:
            recent = list_commits(repo_root, last)
        except GitError as exc:
            raise _fail("Git error", exc) from exc
        targets += [short for short, _ in reversed(recent)]
    if not targets:
        targets = ["HEAD"]
    if len(targets) > cfg.export.max_commits:
        logger.warning(f"Exporting only the first {cfg.export.max_commits} change sets")
        targets = targets[: cfg.export.max_commits]

    history = None
    if options.mode == Mode.SUPERVISOR and cfg.history.enabled:
        try:
            history = AnalysisHistory.open(
                repo_root / cfg.history.path,
                cfg.history.max_entries,
                cfg.history.max_age_days,
            )
        except HistoryError as exc:
            raise _fail("History error", exc) from exc

    docs: List[RenderedDocument] = []
    skipped: List[str] = []
    diff_opts = dict(
        unified=cfg.export.unified_context, include_renames=cfg.export.include_renames
    )
    for seq, rev in enumerate(targets, start=1):
        try:
            if rev is None:
                meta = CommitMeta.staged(_now())
                diff_text = get_staged_diff(repo_root, **diff_opts)
            else:
                meta = get_commit_meta(repo_root, rev)
                diff_text = get_commit_diff(repo_root, rev, **diff_opts)
        except GitError as exc:
            raise _fail("Git error", exc) from exc

        label = "staged changes" if rev is None else meta.short_hash
        if not diff_text.strip():
            skipped.append(label)
            continue

        files = parse_diff(diff_text)
        logger.info(f"Rendering {label}: {len(files)} files in {options.mode.value} mode")
        if options.mode == Mode.SUPERVISOR:
            summary = summarize(files, registry, options)
            text = render_supervisor(meta, files, options, registry, summary)
            if history is not None and not meta.is_staged:
                history.add(AnalysisRecord.from_summary(meta, summary, datetime.now().timestamp()))
        else:
            text = render(meta, files, options=options, fetcher=fetcher, registry=registry)
        docs.append(RenderedDocument(seq, meta, text))

    if history is not None:
        try:
            history.save()
        except HistoryError as exc:
            raise _fail("History error", exc) from exc

    if stdout:
        if docs:
            print(join_documents(docs))
        terminal.render_export_summary([], skipped, printed=len(docs), console=console)
        raise typer.Exit(code=0)

    out_dir = Path(output_dir or cfg.export.output_dir)
    if not out_dir.is_absolute():
        out_dir = repo_root / out_dir
    join = cfg.export.single_file if single_file is None else single_file
    try:
        written = write_documents(docs, out_dir, single_file=join)
    except OSError as exc:
        raise _fail("Write error", exc) from exc
    terminal.render_export_summary(written, skipped, console=console)


# ── render ────────────────────────────────────────────────────────────────────


@app.command("render")
def render_cmd(
    diff_file: str = typer.Argument(..., help="Saved diff file, or - for stdin"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="full | hunks | supervisor"),
    title: str = typer.Option("Saved diff", "--title", "-t", help="Document title"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .diffscribe.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output"),
) -> None:
    """Render a saved diff to stdout. Full mode falls back to hunk bodies."""
    from diffscribe.git.diff_parser import parse_diff
    from diffscribe.git.models import CommitMeta
    from diffscribe.log import setup_logging
    from diffscribe.render.markdown import render

    setup_logging(verbose, debug, console)
    cfg = _load(Path.cwd(), config)
    options = _options(cfg, mode)
    registry = _registry(cfg, None)

    if diff_file == "-":
        diff_text = sys.stdin.read()
    else:
        try:
            diff_text = Path(diff_file).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise _fail("Error", exc) from exc

    files = parse_diff(diff_text)
    print(render(CommitMeta(title=title), files, options=options, registry=registry))


# ── stats ─────────────────────────────────────────────────────────────────────


@app.command()
def stats(
    rev: str = typer.Argument("HEAD", help="Commit to inspect"),
    staged: bool = typer.Option(False, "--staged", help="Inspect staged changes instead"),
    by_extension: bool = typer.Option(False, "--by-extension", "-e", help="Group by extension"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .diffscribe.toml"),
) -> None:
    """Show files of a change set ranked by change size."""
    from diffscribe.git.adapter import GitError, get_commit_diff, get_commit_meta, get_staged_diff
    from diffscribe.git.diff_parser import parse_diff
    from diffscribe.git.models import CommitMeta
    from diffscribe.output import terminal

    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config)
    diff_opts = dict(
        unified=cfg.export.unified_context, include_renames=cfg.export.include_renames
    )
    try:
        if staged:
            meta = CommitMeta.staged(_now())
            diff_text = get_staged_diff(repo_root, **diff_opts)
        else:
            meta = get_commit_meta(repo_root, rev)
            diff_text = get_commit_diff(repo_root, rev, **diff_opts)
    except GitError as exc:
        raise _fail("Git error", exc) from exc

    terminal.render_stats(meta, parse_diff(diff_text), by_extension=by_extension)


# ── history ───────────────────────────────────────────────────────────────────


@app.command()
def history(
    rev: str = typer.Argument("HEAD", help="Commit to look up"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .diffscribe.toml"),
) -> None:
    """Show past supervisor analyses related to a commit."""
    from diffscribe.git.adapter import GitError, get_commit_meta
    from diffscribe.history import AnalysisHistory, HistoryError
    from diffscribe.output import terminal

    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config)
    try:
        meta = get_commit_meta(repo_root, rev)
    except GitError as exc:
        raise _fail("Git error", exc) from exc

    try:
        store = AnalysisHistory.open(
            repo_root / cfg.history.path, cfg.history.max_entries, cfg.history.max_age_days
        )
    except HistoryError as exc:
        raise _fail("History error", exc) from exc

    commit = str(meta.hash)
    terminal.render_related(
        meta.short_hash, store.related(commit), store.summary(commit), console=Console()
    )


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .diffscribe.toml in the repo root."""
    from diffscribe.config.defaults import DEFAULT_TOML
    from diffscribe.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root()
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"diffscribe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """diffscribe: git change sets as Markdown for reviewers and tools."""
