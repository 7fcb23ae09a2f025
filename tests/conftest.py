"""Shared test fixtures: sample diffs, blob fetchers, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import Dict, Optional

import pytest

from diffscribe.git.adapter import BlobRef


@pytest.fixture
def sample_diff_modified() -> str:
    """One context-wrapped addition in an existing file."""
    return textwrap.dedent("""\
        diff --git a/x.txt b/x.txt
        index 1234567..abcdef0 100644
        --- a/x.txt
        +++ b/x.txt
        @@ -1,2 +1,3 @@
         line1
        +new line
         line2
    """)


@pytest.fixture
def sample_diff_added() -> str:
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    return textwrap.dedent("""\
        diff --git a/old.py b/old.py
        deleted file mode 100644
        index e69de29..0000000
        --- a/old.py
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -import os
        -print(os.getcwd())
    """)


@pytest.fixture
def sample_diff_replace() -> str:
    """A removal and an addition on the same line, inside a five-line file."""
    return textwrap.dedent("""\
        diff --git a/app.py b/app.py
        index 1234567..abcdef0 100644
        --- a/app.py
        +++ b/app.py
        @@ -2,3 +2,3 @@ def main():
         a = 1
        -b = 2
        +b = 3
         c = 4
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_multi(sample_diff_modified, sample_diff_added, sample_diff_deleted) -> str:
    return sample_diff_modified + sample_diff_added + sample_diff_deleted


@pytest.fixture
def sample_diff_env_file() -> str:
    return textwrap.dedent("""\
        diff --git a/.env b/.env
        new file mode 100644
        index 0000000..abc1234
        --- /dev/null
        +++ b/.env
        @@ -0,0 +1,2 @@
        +DATABASE_URL=postgres://localhost/db
        +DEBUG=1
    """)


class DictFetcher:
    """In-memory blob store keyed by ``rev:path``; records every request."""

    def __init__(self, blobs: Optional[Dict[str, str]] = None) -> None:
        self.blobs = dict(blobs or {})
        self.requests: list[str] = []

    def fetch_blob(self, ref: BlobRef, max_bytes: int) -> Optional[str]:
        self.requests.append(ref.spec)
        content = self.blobs.get(ref.spec)
        if content is not None and len(content.encode("utf-8")) > max_bytes:
            return None
        return content


@pytest.fixture
def dict_fetcher():
    return DictFetcher


def _git(*args: str, cwd: Path) -> None:
    subprocess.run(["git", *args], cwd=cwd, capture_output=True, check=True)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    _git("config", "user.email", "test@test.com", cwd=tmp_path)
    _git("config", "user.name", "Test", cwd=tmp_path)
    _git("config", "commit.gpgsign", "false", cwd=tmp_path)
    _git("config", "core.autocrlf", "false", cwd=tmp_path)
    (tmp_path / "README.md").write_text("# Test\n")
    _git("add", ".", cwd=tmp_path)
    _git("commit", "-m", "init", cwd=tmp_path)
    return tmp_path


@pytest.fixture
def git_commit():
    """Helper: write *files*, stage them, and commit with *message*."""

    def commit(repo: Path, files: Dict[str, str], message: str) -> None:
        for name, content in files.items():
            target = repo / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        _git("add", ".", cwd=repo)
        _git("commit", "-m", message, cwd=repo)

    return commit
