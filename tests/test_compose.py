from pathlib import Path
from unittest.mock import patch

from postdeploy.artifacts.store import ArtifactStore
from postdeploy.compose import ComposeClient, parse_ps_json, ps_reports_up
from postdeploy.util.shell import CmdResult

PS_OUTPUT = """\
NAME              IMAGE              COMMAND                  SERVICE   CREATED       STATUS                 PORTS
pixelfed-db       mariadb:11         "docker-entrypoint.s…"   db        2 hours ago   Up 2 hours             3306/tcp
pixelfed-redis    redis:7            "docker-entrypoint.s…"   redis     2 hours ago   Up 2 hours             6379/tcp
pixelfed-web      pixelfed:latest    "/docker/entrypoint.…"   web       2 hours ago   Up 3 seconds (healthy) 0.0.0.0:8080->80/tcp
"""


def _result(tmp_path: Path, rc: int = 0, stdout: str = "") -> CmdResult:
    out = tmp_path / "out.log"
    err = tmp_path / "err.log"
    out.write_text(stdout)
    err.write_text("")
    return CmdResult("cmd", rc, out, err, 0.0, len(stdout), 0)


def test_base_cmd_variants(tmp_path):
    assert ComposeClient(tmp_path).base_cmd() == ["sudo", "docker", "compose"]
    assert ComposeClient(tmp_path, use_sudo=False).base_cmd() == ["docker", "compose"]
    assert ComposeClient(tmp_path, use_sudo=False, compose_file="prod.yml").base_cmd() == [
        "docker",
        "compose",
        "-f",
        "prod.yml",
    ]


def test_ps_reports_up():
    assert ps_reports_up(PS_OUTPUT, "pixelfed-web")
    assert not ps_reports_up(PS_OUTPUT, "pixelfed-worker")
    exited = PS_OUTPUT.replace("Up 3 seconds (healthy)", "Exited (1) 3 seconds ago")
    assert not ps_reports_up(exited, "pixelfed-web")


def test_parse_ps_json_lines_and_array():
    lines = '{"Service": "web", "State": "running", "Health": "healthy"}\n{"Service": "redis", "State": "running", "Health": ""}\n'
    array = '[{"Service": "web", "State": "running"}]'
    assert [e["Service"] for e in parse_ps_json(lines)] == ["web", "redis"]
    assert parse_ps_json(array) == [{"Service": "web", "State": "running"}]
    assert parse_ps_json("") == []
    assert parse_ps_json("[not json") == []


def test_exec_builds_non_interactive_argv(tmp_path):
    client = ComposeClient(tmp_path, timeout_s=30)
    with patch("postdeploy.compose.run_cmd") as mock_run:
        mock_run.return_value = _result(tmp_path)
        client.exec("web", ["php", "artisan", "config:cache"])

    args, kwargs = mock_run.call_args
    assert args[0] == ["sudo", "docker", "compose", "exec", "-T", "web", "php", "artisan", "config:cache"]
    assert kwargs["cwd"] == tmp_path
    assert kwargs["timeout_s"] == 30


def test_restart_argv(tmp_path):
    client = ComposeClient(tmp_path, use_sudo=False)
    with patch("postdeploy.compose.run_cmd") as mock_run:
        mock_run.return_value = _result(tmp_path)
        client.restart("web")
    assert mock_run.call_args.args[0] == ["docker", "compose", "restart", "web"]


def test_logs_are_numbered_per_command(tmp_path):
    store = ArtifactStore(tmp_path / "run")
    store.ensure()
    client = ComposeClient(tmp_path, store=store)
    with patch("postdeploy.compose.run_cmd") as mock_run:
        mock_run.return_value = _result(tmp_path)
        client.exec("web", ["php", "artisan", "route:cache"], log_name="artisan_route:cache")
        client.exec("web", ["php", "artisan", "route:cache"], log_name="artisan_route:cache")

    first, second = (c.kwargs["stdout_path"] for c in mock_run.call_args_list)
    assert first.name == "01_artisan_route_cache.stdout.log"
    assert second.name == "02_artisan_route_cache.stdout.log"


def test_is_up_uses_ps_output(tmp_path):
    client = ComposeClient(tmp_path)
    with patch("postdeploy.compose.run_cmd") as mock_run:
        mock_run.return_value = _result(tmp_path, stdout=PS_OUTPUT)
        assert client.is_up("pixelfed-web")
        assert mock_run.call_args.args[0][-1] == "ps"

        mock_run.return_value = _result(tmp_path, rc=1, stdout=PS_OUTPUT)
        assert not client.is_up("pixelfed-web")


def test_service_health(tmp_path):
    client = ComposeClient(tmp_path)
    with patch.object(
        ComposeClient,
        "ps_json",
        return_value=[
            {"Service": "redis", "State": "running", "Health": ""},
            {"Service": "web", "State": "running", "Health": "starting"},
        ],
    ):
        assert client.service_health("web") == "starting"
        assert client.service_health("redis") == "running"
        assert client.service_health("worker") is None
