"""
Tests for the shellkeep CLI.
"""

import shutil

import pytest
from typer.testing import CliRunner

from shellkeep.cli import app
from shellkeep.config import DEFAULT_BANNED_COMMANDS
from shellkeep.logger import setup_logging

runner = CliRunner()

requires_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not installed")


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    yield
    # The CLI points loguru at the runner's (now closed) stderr.
    setup_logging()


class TestRoot:
    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "exec" in result.output
        assert "shell" in result.output
        assert "banned" in result.output


class TestBanned:
    def test_defaults(self):
        result = runner.invoke(app, ["banned"])
        assert result.exit_code == 0
        assert result.stdout.split() == DEFAULT_BANNED_COMMANDS

    def test_extra_ban(self):
        result = runner.invoke(app, ["banned", "--ban", "rm", "-b", "shred"])
        assert result.exit_code == 0
        assert result.stdout.split()[-2:] == ["rm", "shred"]


@requires_bash
class TestExec:
    def test_exec_prints_output(self):
        result = runner.invoke(app, ["exec", "echo hi"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "hi"

    def test_exec_banned_fails(self):
        result = runner.invoke(app, ["exec", "curl example.com"])
        assert result.exit_code == 1
        assert "banned command" in result.output

    def test_exec_error_output_fails(self):
        result = runner.invoke(app, ["exec", "nonexistentcommand"])
        assert result.exit_code == 1
        assert "command not found" in result.output


@requires_bash
class TestShell:
    def test_lines_share_a_session(self):
        result = runner.invoke(app, ["shell"], input="X=42\necho $X\n:quit\n")
        assert result.exit_code == 0
        assert "42" in result.output

    def test_restart(self):
        result = runner.invoke(
            app, ["shell"], input='X=42\n:restart\necho "X=$X"\n'
        )
        assert result.exit_code == 0
        assert "tool has been restarted" in result.output
        assert "X=\n" in result.output
