from __future__ import annotations

"""Environment health checks.

CONTRACT
- Inputs: Project path, SetupConfig
- Outputs (required):
  - DoctorReport (ok=bool, items=[(name, status, details)])
- Invariants:
  - Checks: docker binary, compose plugin, docker daemon, sudo, compose file,
    storage directory, setup.yaml validity
  - Does not modify system state (read-only checks)
- Failure:
  - Returns DoctorReport with ok=False if critical checks fail
    (docker binary, compose plugin, compose file)
"""

from dataclasses import dataclass
from pathlib import Path

from .config import DEFAULT_CONFIG_REL, SetupConfig, load_setup_file
from .util.shell import run_cmd, which

COMPOSE_FILE_NAMES = ("compose.yaml", "compose.yml", "docker-compose.yml", "docker-compose.yaml")


@dataclass(frozen=True)
class DoctorItem:
    name: str
    status: str
    details: str


@dataclass(frozen=True)
class DoctorReport:
    ok: bool
    items: list[DoctorItem]


def _find_compose_file(project: Path, setup: SetupConfig) -> Path | None:
    if setup.compose.file:
        candidate = project / setup.compose.file
        return candidate if candidate.exists() else None
    for name in COMPOSE_FILE_NAMES:
        if (project / name).exists():
            return project / name
    return None


def doctor_report(project: Path, setup: SetupConfig | None = None) -> DoctorReport:
    items: list[DoctorItem] = []
    ok = True

    # 1. setup.yaml (optional)
    config_path = project / DEFAULT_CONFIG_REL
    if setup is None:
        setup = SetupConfig()
        if config_path.exists():
            try:
                setup = load_setup_file(config_path)
                items.append(DoctorItem("setup.yaml", "OK", str(config_path)))
            except ValueError as e:
                ok = False
                items.append(DoctorItem("setup.yaml", "FAIL", str(e)))
        else:
            items.append(DoctorItem("setup.yaml", "INFO", "Not found; using defaults"))

    # 2. Critical: compose file
    compose_file = _find_compose_file(project, setup)
    if compose_file:
        items.append(DoctorItem("compose file", "OK", str(compose_file)))
    else:
        ok = False
        items.append(DoctorItem("compose file", "FAIL", f"No compose file in {project}"))

    # 3. Critical: docker + compose plugin
    docker_bin = which("docker")
    if docker_bin:
        items.append(DoctorItem("docker binary", "OK", docker_bin))
        res = run_cmd(["docker", "compose", "version"], cwd=project, timeout_s=10)
        if res.ok:
            items.append(DoctorItem("compose plugin", "OK", res.read_stdout().strip()))
        else:
            ok = False
            items.append(DoctorItem("compose plugin", "FAIL", "`docker compose` is not available"))
        info_cmd = ["docker", "info"]
        if setup.compose.use_sudo:
            info_cmd = ["sudo", "-n", *info_cmd]
        res = run_cmd(info_cmd, cwd=project, timeout_s=10)
        if res.ok:
            items.append(DoctorItem("docker daemon", "OK", "reachable"))
        else:
            items.append(
                DoctorItem("docker daemon", "WARN", "docker daemon not running/accessible")
            )
    else:
        ok = False
        items.append(DoctorItem("docker binary", "FAIL", "docker not found in PATH"))

    # 4. sudo
    if setup.compose.use_sudo:
        sudo_bin = which("sudo")
        if sudo_bin:
            items.append(DoctorItem("sudo", "OK", sudo_bin))
        else:
            ok = False
            items.append(
                DoctorItem("sudo", "FAIL", "sudo not found; set compose.use_sudo: false or use --no-sudo")
            )

    # 5. storage directory
    if setup.ownership:
        storage = project / setup.ownership[0].path
        if storage.is_dir():
            items.append(DoctorItem("storage dir", "OK", str(storage)))
        else:
            items.append(
                DoctorItem("storage dir", "INFO", f"{storage} missing (first run; ownership fix skipped)")
            )

    return DoctorReport(ok=ok, items=items)
