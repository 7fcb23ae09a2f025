"""Tests for the line annotation reconstructor."""

import pytest

from diffscribe.git.diff_parser import parse_diff
from diffscribe.git.models import DiffFile, FileStatus, Hunk
from diffscribe.reconstruct.engine import apply_budget, hunk_lines, reconstruct, split_lines
from diffscribe.reconstruct.filetypes import (
    is_likely_text,
    language_for,
    looks_binary,
    omits_content,
)
from diffscribe.reconstruct.models import LineTag, Strategy, truncation_marker

BIG = 10_000_000


def _numbered(n: int) -> str:
    return "".join(f"line {i}\n" for i in range(1, n + 1))


class TestSplitLines:
    def test_trailing_newline_no_extra_line(self):
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_no_trailing_newline(self):
        assert split_lines("a\nb") == ["a", "b"]

    def test_empty(self):
        assert split_lines("") == []

    def test_blank_lines_kept(self):
        assert split_lines("a\n\nb\n") == ["a", "", "b"]


class TestAddedAndDeleted:
    def test_added_file_numbers_every_line(self):
        f = DiffFile("new.py", "new.py", status=FileStatus.ADDED)
        result = reconstruct(f, None, _numbered(5), BIG)
        assert result.strategy == Strategy.FULL
        assert [line.line_number for line in result.lines] == [1, 2, 3, 4, 5]
        assert all(line.tag == LineTag.ADDED for line in result.lines)
        assert not result.truncated

    def test_added_file_ignores_before(self):
        f = DiffFile("new.py", "new.py", status=FileStatus.ADDED)
        result = reconstruct(f, "stale\n", "fresh\n", BIG)
        assert result.render_lines() == ["+fresh"]

    def test_deleted_file_tags_before(self, sample_diff_deleted):
        [f] = parse_diff(sample_diff_deleted)
        result = reconstruct(f, "import os\nprint(os.getcwd())\n", None, BIG)
        assert result.render_lines() == ["-import os", "-print(os.getcwd())"]
        assert [line.line_number for line in result.lines] == [1, 2]

    def test_added_without_content_falls_back_to_hunks(self, sample_diff_added):
        [f] = parse_diff(sample_diff_added)
        result = reconstruct(f, None, None, BIG)
        assert result.strategy == Strategy.HUNKS
        assert result.render_lines()[0] == "+def greet(name):"
        assert [line.line_number for line in result.lines] == [1, 2, 3]


class TestModifiedMerge:
    def test_insert_between_context(self, sample_diff_modified):
        [f] = parse_diff(sample_diff_modified)
        result = reconstruct(f, "line1\nline2\n", "line1\nnew line\nline2\n", BIG)
        assert result.render_lines() == [" line1", "+new line", " line2"]

    def test_replacement_emits_removal_before_addition(self, sample_diff_replace):
        [f] = parse_diff(sample_diff_replace)
        before = "def main():\na = 1\nb = 2\nc = 4\nreturn\n"
        after = "def main():\na = 1\nb = 3\nc = 4\nreturn\n"
        result = reconstruct(f, before, after, BIG)
        assert result.render_lines() == [
            " def main():",
            " a = 1",
            "-b = 2",
            "+b = 3",
            " c = 4",
            " return",
        ]
        removed = [line for line in result.lines if line.tag == LineTag.REMOVED]
        assert removed[0].line_number == 3

    def test_removal_at_end_of_file(self):
        f = DiffFile(
            "t.txt", "t.txt",
            hunks=(Hunk(2, 2, 2, 1, lines=(" keep", "-gone")),),
        )
        result = reconstruct(f, "first\nkeep\ngone\n", "first\nkeep\n", BIG)
        assert result.render_lines() == [" first", " keep", "-gone"]

    def test_pure_deletion_hunk_at_start(self):
        # zero-length new side: removed lines precede after-line 1
        f = DiffFile("t.txt", "t.txt", hunks=(Hunk(1, 1, 0, 0, lines=("-header",)),))
        result = reconstruct(f, "header\nbody\n", "body\n", BIG)
        assert result.render_lines() == ["-header", " body"]

    def test_changed_region_when_before_missing(self):
        hunk = Hunk(10, 3, 10, 3, lines=("-a", "-b", "-c", "+x", "+y", "+z"))
        f = DiffFile("big.txt", "big.txt", hunks=(hunk,))
        result = reconstruct(f, None, _numbered(40), BIG)
        assert result.strategy == Strategy.CHANGED_REGION
        changed = [line.line_number for line in result.lines if line.tag == LineTag.CHANGED]
        assert changed == [10, 11, 12]
        assert len(result.lines) == 40
        assert result.lines[9].render() == "!line 10"

    def test_changed_lines_independent_of_length(self):
        hunk = Hunk(10, 3, 10, 3, lines=("-a", "-b", "-c", "+x", "+y", "+z"))
        f = DiffFile("big.txt", "big.txt", hunks=(hunk,))
        for length in (12, 200):
            result = reconstruct(f, None, _numbered(length), BIG)
            flagged = [line.line_number for line in result.lines if line.tag != LineTag.UNCHANGED]
            assert flagged == [10, 11, 12]

    def test_after_missing_uses_hunk_body(self, sample_diff_replace):
        [f] = parse_diff(sample_diff_replace)
        result = reconstruct(f, "whatever\n", None, BIG)
        assert result.strategy == Strategy.HUNKS
        assert result.render_lines() == [" a = 1", "-b = 2", "+b = 3", " c = 4"]

    def test_full_merge_added_lines_match_hunk_range(self):
        hunk = Hunk(9, 0, 10, 3, lines=("+x", "+y", "+z"))
        f = DiffFile("big.txt", "big.txt", hunks=(hunk,))
        after = _numbered(9) + "x\ny\nz\n" + "tail\n"
        result = reconstruct(f, _numbered(9) + "tail\n", after, BIG)
        added = [line.line_number for line in result.lines if line.tag == LineTag.ADDED]
        assert added == [10, 11, 12]


class TestBudget:
    def test_truncation_marker(self):
        f = DiffFile("new.txt", "new.txt", status=FileStatus.ADDED)
        # each "+line N" line costs len + 1 bytes: 8 for N < 10
        result = reconstruct(f, None, _numbered(9), 8 * 3)
        assert result.truncated
        assert len(result.lines) == 3
        assert result.truncated_at == 4
        assert result.omitted == 6
        assert result.render_lines()[-1] == truncation_marker(4, 6)
        assert result.render_lines()[-1] == "... (truncated at line 4, 6 lines omitted)"

    def test_truncation_is_deterministic(self):
        f = DiffFile("new.txt", "new.txt", status=FileStatus.ADDED)
        content = _numbered(500)
        first = reconstruct(f, None, content, 1234).to_text()
        second = reconstruct(f, None, content, 1234).to_text()
        assert first == second
        assert "truncated at line" in first

    def test_exact_fit_not_truncated(self):
        f = DiffFile("new.txt", "new.txt", status=FileStatus.ADDED)
        result = reconstruct(f, None, _numbered(3), 8 * 3)
        assert not result.truncated
        assert len(result.lines) == 3

    def test_multibyte_counted_in_bytes(self):
        result = apply_budget(
            hunk_lines([Hunk(0, 0, 1, 2, lines=("+é", "+é"))]), max_bytes=4
        )
        # "+é" is 3 bytes plus newline
        assert len(result.lines) == 1
        assert result.truncated

    def test_non_positive_budget_rejected(self):
        f = DiffFile("a", "a", status=FileStatus.ADDED)
        with pytest.raises(ValueError):
            reconstruct(f, None, "x\n", 0)


class TestBinary:
    @pytest.mark.parametrize("detect_binary", [True, False])
    def test_png_always_omitted(self, sample_diff_binary, detect_binary):
        [f] = parse_diff(sample_diff_binary)
        result = reconstruct(f, None, "not really png\n", BIG, detect_binary=detect_binary)
        assert result.is_binary
        assert result.lines == ()

    def test_allow_listed_name_reconstructed(self):
        f = DiffFile("Dockerfile", "Dockerfile", status=FileStatus.ADDED, is_binary=True)
        result = reconstruct(f, None, "FROM python:3.12\n", BIG)
        assert not result.is_binary
        assert result.render_lines() == ["+FROM python:3.12"]

    def test_nul_bytes_detected(self):
        f = DiffFile("blob.dat", "blob.dat", status=FileStatus.ADDED)
        assert reconstruct(f, None, "a\x00b\n", BIG).is_binary
        assert not reconstruct(f, None, "a\x00b\n", BIG, detect_binary=False).is_binary


class TestFileTypes:
    def test_language_lookup(self):
        assert language_for("src/app.tsx") == "typescript"
        assert language_for("lib/thing.py") == "python"
        assert language_for("notes.weird") == "weird"
        assert language_for("LICENSE") == ""

    def test_text_allow_list(self):
        assert is_likely_text("Makefile")
        assert is_likely_text(".eslintrc")
        assert is_likely_text("config/.env")
        assert not is_likely_text("photo.png")

    def test_looks_binary(self):
        assert looks_binary("abc\x00")
        assert not looks_binary("plain text")

    def test_omits_content(self):
        assert omits_content(DiffFile("a.png", "a.png", is_binary=True))
        assert not omits_content(DiffFile("Dockerfile", "Dockerfile", is_binary=True))
        assert not omits_content(DiffFile("a.png", "a.png"))
