"""Git subprocess wrapper: diffs, commit metadata, and blob retrieval."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, NamedTuple, Optional, Protocol, Tuple

from loguru import logger

from diffscribe.git.models import CommitMeta, DiffFile, FileStatus

# Skip unmerged/unknown entries; keep added, copied, modified, renamed, type-changed, broken.
_DIFF_FILTER = "--diff-filter=ACMRTUXB"
# Read limit for one blob; the byte budget itself is applied to the annotated output.
MAX_BLOB_BYTES = 50 * 1024 * 1024


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git_bytes(args: list[str], cwd: Path, timeout: int = 30) -> bytes:
    """Run a git command and return raw stdout. Raises GitError on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", "replace").strip()
        raise GitError(f"git error: {stderr or f'exit code {result.returncode}'}")
    return result.stdout


def _run_git(args: list[str], cwd: Path, timeout: int = 30) -> str:
    """Run a git command and return stdout decoded as UTF-8.

    Carriage returns are kept as they are; only line feeds end a line.
    """
    return _run_git_bytes(args, cwd, timeout).decode("utf-8", "replace")


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def _diff_options(unified: int, include_renames: bool) -> list[str]:
    opts = [f"--unified={unified}", "--no-color", _DIFF_FILTER]
    if include_renames:
        opts.append("--find-renames")
    return opts


def get_commit_diff(
    repo_root: Path, rev: str, *, unified: int = 3, include_renames: bool = True
) -> str:
    """Return the patch introduced by commit *rev* (no commit header)."""
    return _run_git(
        ["show", rev, "--pretty=format:", *_diff_options(unified, include_renames)],
        cwd=repo_root,
    )


def get_staged_diff(
    repo_root: Path, *, unified: int = 3, include_renames: bool = True
) -> str:
    """Return the unified diff of staged changes (--cached)."""
    return _run_git(
        ["diff", "--cached", *_diff_options(unified, include_renames)],
        cwd=repo_root,
    )


def get_commit_meta(repo_root: Path, rev: str) -> CommitMeta:
    """Return hash, title, date and author of *rev*."""
    out = _run_git(["show", "-s", "--format=%H|%h|%ci|%an|%s", rev], cwd=repo_root)
    # subject goes last so a '|' inside it survives the split
    parts = out.strip().split("|", 4)
    if len(parts) != 5:
        raise GitError(f"unexpected git show output for {rev}")
    full, _short, date, author, subject = parts
    return CommitMeta(
        title=subject or "No commit message",
        author=author or "Unknown",
        date=date,
        hash=full or rev,
    )


def list_commits(repo_root: Path, max_count: int = 50) -> List[Tuple[str, str]]:
    """Return (short hash, subject) pairs for the most recent commits."""
    out = _run_git(
        ["rev-list", f"--max-count={min(max_count, 1000)}", "--oneline", "HEAD"],
        cwd=repo_root,
    )
    commits: List[Tuple[str, str]] = []
    for line in out.split("\n"):
        if line.strip():
            short, _, subject = line.partition(" ")
            commits.append((short, subject))
    return commits


# --- Content-retrieval gateway ---


class BlobRef(NamedTuple):
    """A file at a revision. An empty revision names the index (staging area)."""

    revision: str
    path: str

    @property
    def spec(self) -> str:
        return f"{self.revision}:{self.path}"


class BlobFetcher(Protocol):
    """An interface for reading file content at a revision."""

    def fetch_blob(self, ref: BlobRef, max_bytes: int) -> Optional[str]:
        """Return the blob content, or None when it cannot be retrieved.

        Not-found, oversized and timed-out reads all return None; callers
        never need to tell them apart.
        """
        ...


class GitBlobFetcher:
    """Reads blobs with ``git show <rev>:<path>``."""

    def __init__(self, repo_root: Path, timeout: int = 30) -> None:
        self.repo_root = repo_root
        self.timeout = timeout

    def fetch_blob(self, ref: BlobRef, max_bytes: int) -> Optional[str]:
        try:
            raw = _run_git_bytes(["show", ref.spec], cwd=self.repo_root, timeout=self.timeout)
        except GitError as exc:
            logger.debug(f"Blob {ref.spec} unavailable: {exc}")
            return None
        if len(raw) > max_bytes:
            logger.debug(f"Blob {ref.spec} exceeds the read limit")
            return None
        return raw.decode("utf-8", "replace")


def blob_refs(file: DiffFile, meta: CommitMeta) -> Tuple[Optional[BlobRef], Optional[BlobRef]]:
    """Return the (before, after) refs for *file* in the change set *meta*.

    Commits compare ``<hash>^`` with ``<hash>``; staged changes compare
    ``HEAD`` with the index. Renamed and copied files read their "before"
    blob from the old path.
    """
    if meta.is_staged:
        before_rev, after_rev = "HEAD", ""
    else:
        before_rev, after_rev = f"{meta.hash}^", str(meta.hash)

    before = None if file.status == FileStatus.ADDED else BlobRef(before_rev, file.old_path)
    after = None if file.status == FileStatus.DELETED else BlobRef(after_rev, file.new_path)
    return before, after
