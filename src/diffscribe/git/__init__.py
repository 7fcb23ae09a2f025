"""Git interface layer: adapter, diff parsing, models."""

from diffscribe.git.adapter import (
    BlobFetcher,
    BlobRef,
    GitBlobFetcher,
    GitError,
    blob_refs,
    get_commit_diff,
    get_commit_meta,
    get_repo_root,
    get_staged_diff,
    list_commits,
)
from diffscribe.git.diff_parser import (
    DiffParser,
    changed_line_numbers,
    count_changes,
    group_by_extension,
    parse_diff,
    sort_by_change_size,
)
from diffscribe.git.models import CommitMeta, DiffFile, FileStatus, Hunk, LineType

__all__ = [
    "BlobFetcher",
    "BlobRef",
    "CommitMeta",
    "DiffFile",
    "DiffParser",
    "FileStatus",
    "GitBlobFetcher",
    "GitError",
    "Hunk",
    "LineType",
    "blob_refs",
    "changed_line_numbers",
    "count_changes",
    "get_commit_diff",
    "get_commit_meta",
    "get_repo_root",
    "get_staged_diff",
    "group_by_extension",
    "list_commits",
    "parse_diff",
    "sort_by_change_size",
]
