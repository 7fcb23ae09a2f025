"""Tests for the analysis history store."""

import json
from pathlib import Path

import pytest

from diffscribe.git.models import CommitMeta, FileStatus
from diffscribe.history import (
    DAY_SECONDS,
    AnalysisHistory,
    AnalysisRecord,
    HistoryError,
)
from diffscribe.render.supervisor import FileHighlights, SupervisorSummary

NOW = 1_700_000_000.0


def _record(commit, *, days_ago=0.0, author="ada", files=("a.py",), risks=()):
    return AnalysisRecord(
        commit_hash=commit,
        author=author,
        title=f"commit {commit}",
        timestamp=NOW - days_ago * DAY_SECONDS,
        files=list(files),
        risk_indicators=list(risks),
    )


@pytest.fixture
def history():
    return AnalysisHistory(clock=lambda: NOW)


class TestStore:
    def test_add_and_get(self, history):
        history.add(_record("abc1234def"))
        assert "abc1234def" in history
        assert history.get("abc1234def").title == "commit abc1234def"

    def test_get_by_unique_prefix(self, history):
        history.add(_record("abc1234def"))
        history.add(_record("abd9999aaa"))
        assert history.get("abc1").commit_hash == "abc1234def"
        assert history.get("ab") is None

    def test_replace_same_commit(self, history):
        history.add(_record("c1", files=("old.py",)))
        history.add(_record("c1", files=("new.py",)))
        assert len(history) == 1
        assert history.stats().unique_files == 1

    def test_prune_by_age(self, history):
        history.add(_record("old", days_ago=31))
        history.add(_record("new", days_ago=1))
        assert "old" not in history
        assert "new" in history

    def test_prune_by_size_drops_oldest(self):
        history = AnalysisHistory(max_entries=2, clock=lambda: NOW)
        history.add(_record("c1", days_ago=3))
        history.add(_record("c2", days_ago=2))
        history.add(_record("c3", days_ago=1))
        assert [r.commit_hash for r in history.query()] == ["c3", "c2"]

    def test_clear(self, history):
        history.add(_record("c1"))
        history.clear()
        assert len(history) == 0
        assert history.stats().unique_authors == 0

    def test_stats(self, history):
        history.add(_record("c1", days_ago=2, files=("a.py", "b.py")))
        history.add(_record("c2", days_ago=1, author="bob"))
        stats = history.stats()
        assert stats.total == 2
        assert stats.unique_files == 2
        assert stats.unique_authors == 2
        assert stats.oldest == NOW - 2 * DAY_SECONDS
        assert stats.newest == NOW - DAY_SECONDS

    def test_empty_stats(self, history):
        stats = history.stats()
        assert stats.total == 0
        assert stats.oldest is None


class TestRelated:
    def test_scores(self, history):
        history.add(_record("base", files=("a.py",), author="ada"))
        history.add(_record("same_file", days_ago=10, files=("a.py",), author="bob"))
        history.add(_record("same_author", days_ago=10, files=("z.py",), author="ada"))
        history.add(_record("recent", days_ago=0, files=("z.py",), author="bob", risks=("r",)))

        related = {item.record.commit_hash: item.relevance for item in history.related("base")}
        # file 0.4 + same (empty) risk flag 0.1
        assert related["same_file"] == pytest.approx(0.5)
        # author 0.2 + risk flag 0.1
        assert related["same_author"] == pytest.approx(0.3)
        # full time score only
        assert related["recent"] == pytest.approx(0.3)

    def test_ranked_best_first(self, history):
        history.add(_record("base"))
        history.add(_record("close", days_ago=0.5))
        history.add(_record("far", days_ago=20, author="bob", files=("x",), risks=("r",)))
        order = [item.record.commit_hash for item in history.related("base")]
        assert order[0] == "close"
        assert "far" not in order

    def test_excludes_self_and_limits(self, history):
        history.add(_record("base"))
        for i in range(15):
            history.add(_record(f"c{i:02d}", days_ago=i * 0.1))
        related = history.related("base")
        assert len(related) == 10
        assert all(item.record.commit_hash != "base" for item in related)

    def test_unknown_commit(self, history):
        assert history.related("nope") == []
        assert history.summary("nope") == "No history recorded for this commit."

    def test_summary(self, history):
        history.add(_record("base0000"))
        history.add(_record("other000", days_ago=1))
        text = history.summary("base0000")
        assert text.startswith("Found 1 related analyses for commit base000.")
        assert "1 related commits modified the same files" in text


class TestQuery:
    def test_filters_and_order(self, history):
        history.add(_record("c1", days_ago=3, files=("a.py",)))
        history.add(_record("c2", days_ago=2, files=("b.py",), author="bob"))
        history.add(_record("c3", days_ago=1, files=("a.py", "c.py")))

        assert [r.commit_hash for r in history.query()] == ["c3", "c2", "c1"]
        assert [r.commit_hash for r in history.query(files=["a.py"])] == ["c3", "c1"]
        assert [r.commit_hash for r in history.query(author="bob")] == ["c2"]
        since = NOW - 2.5 * DAY_SECONDS
        assert [r.commit_hash for r in history.query(since=since)] == ["c3", "c2"]
        assert [r.commit_hash for r in history.query(until=since)] == ["c1"]
        assert [r.commit_hash for r in history.query(limit=1)] == ["c3"]


class TestPersistence:
    def test_save_and_load(self, tmp_path: Path, history):
        history.add(_record("c1", risks=("Sensitive file modified: .env",)))
        path = tmp_path / "nested" / "history.json"
        history.save(path)

        loaded = AnalysisHistory.open(path, clock=lambda: NOW)
        assert loaded.get("c1").risk_indicators == ["Sensitive file modified: .env"]
        assert json.loads(path.read_text())["version"] == 1

    def test_missing_file_is_empty(self, tmp_path: Path):
        loaded = AnalysisHistory.open(tmp_path / "absent.json")
        assert len(loaded) == 0

    def test_corrupt_file(self, tmp_path: Path):
        path = tmp_path / "history.json"
        path.write_text("{not json")
        with pytest.raises(HistoryError):
            AnalysisHistory.open(path)

    def test_wrong_shape(self, tmp_path: Path):
        path = tmp_path / "history.json"
        path.write_text('{"records": {"a": 1}}')
        with pytest.raises(HistoryError):
            AnalysisHistory.open(path)

    @pytest.mark.parametrize(
        "limits",
        [
            {"max_entries": 0},
            {"max_entries": "100"},
            {"max_entries": True},
            {"max_age_days": -1},
            {"max_age_days": "30"},
        ],
    )
    def test_bad_limits(self, limits):
        with pytest.raises(HistoryError):
            AnalysisHistory(**limits)

    def test_malformed_record(self, history):
        with pytest.raises(HistoryError):
            history.import_records([{"author": "no hash"}])

    def test_context_manager_saves(self, tmp_path: Path):
        path = tmp_path / "history.json"
        with AnalysisHistory.open(path, clock=lambda: NOW) as store:
            store.add(_record("c1"))
        assert "c1" in AnalysisHistory.open(path, clock=lambda: NOW)

    def test_context_manager_skips_save_on_error(self, tmp_path: Path):
        path = tmp_path / "history.json"
        with pytest.raises(RuntimeError):
            with AnalysisHistory.open(path, clock=lambda: NOW) as store:
                store.add(_record("c1"))
                raise RuntimeError("boom")
        assert not path.exists()

    def test_save_without_path(self, history):
        with pytest.raises(HistoryError):
            history.save()

    def test_export_import(self, history):
        history.add(_record("c1", days_ago=1))
        history.add(_record("c2"))
        other = AnalysisHistory(clock=lambda: NOW)
        other.import_records(history.export_records())
        assert [r.commit_hash for r in other.query()] == ["c2", "c1"]


class TestFromSummary:
    def test_builds_record(self):
        meta = CommitMeta(title="t", author="ada", hash="f" * 40)
        summary = SupervisorSummary(
            files_changed=1,
            additions=3,
            deletions=1,
            risk_indicators=["Large change in a.py: +3 lines"],
            key_changes=[FileHighlights("a.py", FileStatus.MODIFIED, 3, 1, 1)],
        )
        record = AnalysisRecord.from_summary(meta, summary, NOW)
        assert record.commit_hash == "f" * 40
        assert record.files == ["a.py"]
        assert record.has_risks
