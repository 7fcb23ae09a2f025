"""Lookup tables for language names and the text-file allow-list.

Some diff tools flag text files without an extension (Dockerfile, dotfiles)
as binary; paths matching these tables are reconstructed anyway.
"""

from __future__ import annotations

import posixpath
import re

from diffscribe.git.models import DiffFile

LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "py": "python",
    "rb": "ruby",
    "php": "php",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "cs": "csharp",
    "go": "go",
    "rs": "rust",
    "kt": "kotlin",
    "swift": "swift",
    "md": "markdown",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "json": "json",
    "xml": "xml",
    "yml": "yaml",
    "yaml": "yaml",
    "sh": "bash",
    "bash": "bash",
    "sql": "sql",
}

TEXT_EXTENSIONS: frozenset[str] = frozenset({
    "js", "ts", "jsx", "tsx", "json", "md", "txt", "html", "css", "scss", "sass",
    "py", "rb", "php", "java", "c", "cpp", "h", "hpp", "cs", "go", "rs", "kt",
    "swift", "sh", "bash", "zsh", "fish", "ps1", "xml", "yml", "yaml", "toml",
    "ini", "conf", "config", "env", "gitignore", "dockerignore", "editorconfig",
    "vue", "svelte", "astro", "sql", "graphql", "gql", "prisma", "proto",
    "dockerfile", "makefile", "rakefile", "gemfile", "podfile", "gradle",
})

TEXT_FILENAME_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^dockerfile",
        r"^makefile",
        r"^rakefile",
        r"^gemfile",
        r"^podfile",
        r"^readme",
        r"^license",
        r"^changelog",
        r"^contributing",
        r"^authors",
        r"^todo",
        r"^\..*rc$",
        r"^\..*config$",
    )
)

# git treats a blob as binary when its first 8000 bytes contain a NUL
_BINARY_SNIFF_LEN = 8000


def _split_name(path: str) -> tuple[str, str]:
    name = posixpath.basename(path).lower()
    _, dot, ext = name.rpartition(".")
    return name, (ext if dot else "")


def language_for(path: str) -> str:
    """Language name for *path*, the bare extension when unknown, '' without one."""
    _, ext = _split_name(path)
    return LANGUAGES.get(ext, ext)


def is_likely_text(path: str) -> bool:
    name, ext = _split_name(path)
    if ext in TEXT_EXTENSIONS or name in TEXT_EXTENSIONS:
        return True
    return any(p.search(name) for p in TEXT_FILENAME_PATTERNS)


def looks_binary(content: str) -> bool:
    return "\x00" in content[:_BINARY_SNIFF_LEN]


def omits_content(file: DiffFile) -> bool:
    """True for files git flags as binary whose path is not on the text allow-list."""
    return file.is_binary and not is_likely_text(file.path)
