"""Tests for loguru setup."""

import subprocess
import sys
import textwrap

import pytest
from loguru import logger
from rich.console import Console

from diffscribe.git.diff_parser import parse_diff
from diffscribe.log import LOG_LEVEL_ENV, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def _restore_logger(monkeypatch):
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    yield
    logger.remove()
    logger.disable("diffscribe")


class TestResolveLevel:
    def test_default_warning(self):
        assert resolve_level() == "WARNING"

    def test_verbose(self):
        assert resolve_level(verbose=True) == "INFO"

    def test_debug_wins(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
        assert resolve_level(verbose=True, debug=True) == "DEBUG"

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "debug")
        assert resolve_level() == "DEBUG"

    def test_unknown_env_level_ignored(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "chatty")
        assert resolve_level(verbose=True) == "INFO"


class TestSetupLogging:
    def test_filters_below_level(self):
        console = Console(record=True, width=200)
        setup_logging(console=console)
        logger.info("quiet detail")
        logger.warning("Could not reconstruct a.py")
        out = console.export_text()
        assert "quiet detail" not in out
        assert "warning: Could not reconstruct a.py" in out

    def test_markup_in_messages_escaped(self):
        console = Console(record=True, width=200)
        setup_logging(debug=True, console=console)
        logger.debug("path [bold]weird[/bold].py")
        assert "path [bold]weird[/bold].py" in console.export_text()


MALFORMED = textwrap.dedent("""\
    diff --git a/v b/v
    --- a/v
    +++ b/v
    @@ garbage @@
    +ignored
""")


class TestLibraryLogging:
    def test_silent_on_import(self):
        code = (
            "from diffscribe.git.diff_parser import parse_diff\n"
            f"parse_diff({MALFORMED!r})\n"
        )
        result = subprocess.run(
            [sys.executable, "-c", code], capture_output=True, text=True, check=True
        )
        assert result.stderr == ""

    def test_setup_enables_package_records(self):
        console = Console(record=True, width=200)
        setup_logging(debug=True, console=console)
        parse_diff(MALFORMED)
        assert "Skipping malformed hunk header" in console.export_text()
