import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from postdeploy.util.shell import run_cmd, which


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_run_cmd_success(tmp_path):
    stdout = tmp_path / "out.log"
    stderr = tmp_path / "err.log"

    res = run_cmd("echo 'hello'", tmp_path, stdout, stderr)

    assert res.returncode == 0
    assert res.ok
    assert "hello" in stdout.read_text()
    assert res.stdout_bytes > 0
    assert res.elapsed_s >= 0


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_run_cmd_failure(tmp_path):
    res = run_cmd("false", tmp_path, tmp_path / "out.log", tmp_path / "err.log")
    assert res.returncode != 0
    assert not res.ok


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_run_cmd_timeout(tmp_path):
    stderr = tmp_path / "err.log"
    res = run_cmd("sleep 2", tmp_path, tmp_path / "out.log", stderr, timeout_s=0.5)
    assert res.returncode == 124
    assert "Timeout expired" in stderr.read_text()


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_run_cmd_combined_output(tmp_path):
    res = run_cmd("echo out; echo 'error message' >&2", tmp_path)
    assert res.returncode == 0
    assert "error message" in res.read_stderr()
    combined = res.read_output()
    assert combined.index("out") < combined.index("error message")


def test_run_cmd_missing_binary(tmp_path):
    res = run_cmd(["definitely-not-a-real-binary-xyz"], tmp_path)
    assert res.returncode == 1
    assert "Exception" in res.read_stderr()


def test_run_cmd_list_mode(tmp_path):
    """A list command is run without a shell."""
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0)

        cmd = ["docker", "compose", "ps"]
        res = run_cmd(cmd, tmp_path)

        args, kwargs = mock_run.call_args
        assert args[0] == cmd
        assert kwargs["shell"] is False
        assert kwargs["cwd"] == str(tmp_path)
        assert res.cmd == "docker compose ps"


def test_which_finds_executable(tmp_path, monkeypatch):
    exe = tmp_path / "mytool"
    exe.write_text("#!/bin/sh\n")
    exe.chmod(0o755)
    monkeypatch.setenv("PATH", str(tmp_path))
    assert which("mytool") == str(Path(tmp_path) / "mytool")
    assert which("othertool") is None
