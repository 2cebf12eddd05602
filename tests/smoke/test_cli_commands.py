"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from tandem.transcript import project_log_dir

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def cli_env(tmp_path):
    """Environment pointing the CLI at a temporary data root."""
    env = dict(os.environ)
    env.update(
        {
            "TANDEM_DATA_DIR": str(tmp_path / "data"),
            "TANDEM_AGENT_PROJECTS_DIR": str(tmp_path / "projects"),
            "TANDEM_LOG_FILE": "",
            "PYTHONIOENCODING": "utf-8",
        }
    )
    return env


@pytest.fixture
def run_cli(cli_env):
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args are passed after 'python -m tandem'.
    """

    def run(*args: str, timeout: int = 30) -> tuple[int, str, str]:
        result = subprocess.run(
            [sys.executable, "-m", "tandem", *args],
            cwd=PROJECT_ROOT,
            env=cli_env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr

    return run


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, run_cli):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "tandem" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize("command", ["bootstrap", "send", "chat", "history", "vocabulary", "word", "rule"])
    def test_command_help(self, run_cli, command):
        """Each command should have help."""
        code, stdout, stderr = run_cli(command, "--help")

        assert code == 0, f"{command} help failed: {stderr}"
        assert "Usage" in stdout


class TestWorkspaceCommands:
    """Test workspace lifecycle commands."""

    def test_languages_empty(self, run_cli):
        code, stdout, stderr = run_cli("languages")

        assert code == 0, stderr
        assert "No languages yet" in stdout

    def test_bootstrap_then_list(self, run_cli):
        code, stdout, stderr = run_cli("bootstrap", "Korean")
        assert code == 0, stderr
        assert "Successfully bootstrapped Korean" in stdout

        code, stdout, _ = run_cli("languages")
        assert code == 0
        assert "Korean" in stdout
        assert "한글" in stdout

    def test_bootstrap_twice_fails(self, run_cli):
        run_cli("bootstrap", "Korean")

        code, stdout, _ = run_cli("bootstrap", "korean")

        assert code == 1
        assert "already exists" in stdout

    def test_bootstrap_invalid_name(self, run_cli, tmp_path):
        code, stdout, _ = run_cli("bootstrap", "../escape")

        assert code == 1
        assert "invalid characters" in stdout
        assert not (tmp_path / "escape").exists()

    def test_raw_vocabulary(self, run_cli):
        run_cli("bootstrap", "Korean")

        code, stdout, stderr = run_cli("vocabulary", "Korean", "--raw")

        assert code == 0, stderr
        assert json.loads(stdout) == {"language": "Korean", "words": []}

    def test_delete_with_yes(self, run_cli, tmp_path):
        run_cli("bootstrap", "Korean")

        code, stdout, stderr = run_cli("delete", "Korean", "--yes")

        assert code == 0, stderr
        assert "Deleted Korean" in stdout
        assert not (tmp_path / "data" / "korean").exists()

    def test_send_requires_bootstrap(self, run_cli):
        code, stdout, _ = run_cli("send", "Korean", "안녕")

        assert code == 1
        assert "bootstrap it first" in stdout

    def test_history_json_empty(self, run_cli):
        run_cli("bootstrap", "Korean")

        code, stdout, stderr = run_cli("history", "Korean", "--json")

        assert code == 0, stderr
        assert json.loads(stdout) == []

    def test_history_json_reads_latest_log(self, run_cli, tmp_path):
        run_cli("bootstrap", "Korean")
        log_dir = project_log_dir(tmp_path / "data" / "korean", tmp_path / "projects")
        log_dir.mkdir(parents=True)
        records = [
            {"type": "user", "message": {"role": "user", "content": "안녕"}},
            {"type": "assistant", "message": {"role": "assistant", "content": [{"type": "text", "text": "안녕하세요!"}]}},
        ]
        (log_dir / "session.jsonl").write_text(
            "\n".join(json.dumps(r, ensure_ascii=False) for r in records), encoding="utf-8"
        )

        code, stdout, stderr = run_cli("history", "Korean", "--json")

        assert code == 0, stderr
        assert json.loads(stdout) == [
            {"role": "user", "content": "안녕"},
            {"role": "assistant", "content": "안녕하세요!"},
        ]


class TestProgressCommands:
    """Test direct progress updates."""

    def test_word_lifecycle(self, run_cli):
        run_cli("bootstrap", "Korean")

        code, stdout, stderr = run_cli("word", "add", "Korean", "학교", "school")
        assert code == 0, stderr
        assert "Added word: 학교" in stdout

        code, stdout, stderr = run_cli("word", "use", "Korean", "학교")
        assert code == 0, stderr
        assert "repetitions=2 interval=6d" in stdout

        code, stdout, stderr = run_cli("word", "recall", "Korean", "학교", "forgot")
        assert code == 0, stderr
        assert "as forgot" in stdout

    def test_recall_unknown_word(self, run_cli):
        run_cli("bootstrap", "Korean")

        code, stdout, _ = run_cli("word", "recall", "Korean", "학교", "good")

        assert code == 1
        assert "not found" in stdout

    def test_rule_use(self, run_cli):
        run_cli("bootstrap", "Korean")

        code, stdout, stderr = run_cli("rule", "use", "Korean", "은/는")

        assert code == 0, stderr
        assert "stars=1 streak=1" in stdout

    def test_invalid_difficulty(self, run_cli):
        run_cli("bootstrap", "Korean")

        code, stdout, _ = run_cli("difficulty", "Korean", "sideways")

        assert code == 1
        assert "Invalid direction" in stdout


@pytest.mark.slow
@pytest.mark.skipif(sys.platform == "win32", reason="fake agent relies on a shebang")
class TestSendEndToEnd:
    """Send a message through a stand-in agent script."""

    @pytest.fixture
    def fake_agent(self, tmp_path):
        script = tmp_path / "fake-agent"
        script.write_text(
            f"#!{sys.executable}\n"
            "import pathlib, sys\n"
            "args = sys.argv[1:]\n"
            "if '--continue' in args:\n"
            "    print('**Reply:** ' + args[-1])\n"
            "else:\n"
            "    pathlib.Path('tracked.txt').write_text(args[-1], encoding='utf-8')\n",
            encoding="utf-8",
        )
        script.chmod(0o755)
        return script

    def test_send_prints_reply_and_runs_tracker(self, run_cli, cli_env, fake_agent, tmp_path):
        cli_env["TANDEM_AGENT_BINARY"] = str(fake_agent)
        run_cli("bootstrap", "Korean")

        code, stdout, stderr = run_cli("send", "Korean", "안녕")

        assert code == 0, stderr
        assert "Reply: 안녕" in stdout
        tracked = tmp_path / "data" / "korean" / ".tracker" / "tracked.txt"
        assert "Learner said: 안녕" in tracked.read_text(encoding="utf-8")
