from __future__ import annotations

"""docker compose client.

CONTRACT
- Inputs: Project dir (holding the compose file), sudo flag, optional compose file
- Outputs (required):
  - CmdResult for every command; output captured to the run's logs/ dir
- Invariants:
  - Every command is built as an argv list (no host shell)
  - exec is always non-interactive (`-T`)
  - Log files are numbered so repeated commands never overwrite each other
- Failure:
  - Never raises on non-zero exit; callers inspect CmdResult.returncode
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from .artifacts.store import ArtifactStore
from .util.paths import safe_filename
from .util.shell import CmdResult, run_cmd


@dataclass
class ComposeClient:
    project_dir: Path
    store: ArtifactStore | None = None
    use_sudo: bool = True
    compose_file: str | None = None
    timeout_s: float | None = None
    _seq: int = field(default=0, init=False, repr=False)

    def base_cmd(self) -> list[str]:
        cmd = ["sudo"] if self.use_sudo else []
        cmd += ["docker", "compose"]
        if self.compose_file:
            cmd += ["-f", self.compose_file]
        return cmd

    def _run(self, args: list[str], log_name: str, timeout_s: float | None = None) -> CmdResult:
        stdout_path = stderr_path = None
        if self.store is not None:
            self._seq += 1
            stdout_path, stderr_path = self.store.log_paths(
                f"{self._seq:02d}_{safe_filename(log_name)}"
            )
        return run_cmd(
            self.base_cmd() + args,
            cwd=self.project_dir,
            stdout_path=stdout_path,
            stderr_path=stderr_path,
            timeout_s=timeout_s if timeout_s is not None else self.timeout_s,
        )

    def ps(self, log_name: str = "compose_ps") -> CmdResult:
        return self._run(["ps"], log_name, timeout_s=60)

    def is_up(self, container_pattern: str, log_name: str = "compose_ps") -> bool:
        """True when `docker compose ps` lists the container with an `Up` status."""
        res = self.ps(log_name)
        if not res.ok:
            logger.warning("docker compose ps failed (exit {})", res.returncode)
            return False
        return ps_reports_up(res.read_stdout(), container_pattern)

    def ps_json(self, log_name: str = "compose_ps_json") -> list[dict[str, Any]]:
        res = self._run(["ps", "--format", "json"], log_name, timeout_s=60)
        if not res.ok:
            return []
        return parse_ps_json(res.read_stdout())

    def service_health(self, service: str) -> str | None:
        """Health of a compose service: healthy/starting/unhealthy, its State, or None."""
        for entry in self.ps_json():
            if entry.get("Service") != service:
                continue
            health = str(entry.get("Health") or "").strip()
            if health:
                return health
            return str(entry.get("State") or "").strip() or None
        return None

    def exec(self, service: str, argv: list[str], log_name: str | None = None) -> CmdResult:
        return self._run(["exec", "-T", service, *argv], log_name or f"exec_{service}")

    def restart(self, service: str, log_name: str | None = None) -> CmdResult:
        return self._run(["restart", service], log_name or f"restart_{service}")


def ps_reports_up(ps_output: str, container_pattern: str) -> bool:
    pattern = re.compile(re.escape(container_pattern) + r".*\bUp\b")
    return any(pattern.search(line) for line in ps_output.splitlines())


def parse_ps_json(text: str) -> list[dict[str, Any]]:
    """Parse `docker compose ps --format json`.

    Older compose releases print one JSON array, newer ones one object per line.
    """
    text = text.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Unparseable compose ps output")
            return []
        return [d for d in data if isinstance(d, dict)]
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping non-JSON compose ps line: {}", line)
            continue
        if isinstance(obj, dict):
            entries.append(obj)
    return entries
