import io
from pathlib import Path

import pytest
from rich.console import Console

from postdeploy.artifacts.store import ArtifactStore
from postdeploy.config import SetupConfig
from postdeploy.reporter import Reporter
from postdeploy.steps.base import SetupContext
from postdeploy.util.events import EventLog
from postdeploy.util.shell import CmdResult


class FakeCompose:
    """Stands in for ComposeClient; records every call, never touches docker.

    fail: maps "php artisan route:cache" / "redis-cli CONFIG SET save " /
    "restart web" to a non-zero exit code.
    up: bool or list of bools consumed by successive is_up() calls.
    output / errors: stdout / stderr text per command key.
    """

    def __init__(self, log_dir: Path, up=True, fail=None, output=None, errors=None, health=None):
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.up = up
        self.fail = fail or {}
        self.output = output or {}
        self.errors = errors or {}
        self.health = list(health or [])
        self.calls = []

    def _result(self, key: str, rc: int) -> CmdResult:
        n = len(self.calls)
        out = self.log_dir / f"{n:02d}.stdout.log"
        err = self.log_dir / f"{n:02d}.stderr.log"
        out.write_text(self.output.get(key, ""), encoding="utf-8")
        err.write_text(self.errors.get(key, ""), encoding="utf-8")
        return CmdResult(
            cmd=key,
            returncode=rc,
            stdout_path=out,
            stderr_path=err,
            elapsed_s=0.0,
            stdout_bytes=out.stat().st_size,
            stderr_bytes=err.stat().st_size,
        )

    def is_up(self, container_pattern, log_name="compose_ps"):
        self.calls.append("ps")
        if isinstance(self.up, list):
            return self.up.pop(0)
        return self.up

    def service_health(self, service):
        self.calls.append(f"health {service}")
        return self.health.pop(0) if self.health else None

    def exec(self, service, argv, log_name=None):
        key = " ".join(argv)
        self.calls.append(f"exec {service} {key}")
        return self._result(key, self.fail.get(key, 0))

    def restart(self, service, log_name=None):
        key = f"restart {service}"
        self.calls.append(key)
        return self._result(key, self.fail.get(key, 0))

    def execs(self):
        return [c for c in self.calls if c.startswith("exec ")]


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def console_buffer():
    return io.StringIO()


@pytest.fixture
def reporter(console_buffer):
    return Reporter(console=Console(file=console_buffer, width=200, color_system=None))


@pytest.fixture
def project(tmp_path):
    p = tmp_path / "project"
    p.mkdir()
    return p


@pytest.fixture
def make_ctx(tmp_path, project, reporter):
    def _make(compose, setup=None, sleep=None):
        store = ArtifactStore(tmp_path / "run")
        store.ensure()
        return SetupContext(
            project_dir=project,
            setup=setup or SetupConfig(),
            compose=compose,
            store=store,
            events=EventLog(store.path("events.jsonl"), run_id="test"),
            reporter=reporter,
            sleep=sleep or SleepRecorder(),
        )

    return _make


@pytest.fixture
def fake_compose(tmp_path):
    def _make(**kwargs):
        return FakeCompose(tmp_path / "fake_logs", **kwargs)

    return _make


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
