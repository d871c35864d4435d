from __future__ import annotations

"""Configuration models.

CONTRACT
- Inputs: YAML file path (.postdeploy/setup.yaml) or dictionary data
- Outputs (required):
  - Validated SetupConfig (and nested) objects
  - RunConfig describing a single invocation
- Invariants:
  - Every key is optional; defaults reproduce the stock PixelFed deployment
  - The first ownership rule gates the ownership step
- Failure:
  - Raises ValueError on invalid schema or values
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

import yaml

WaitMode = Literal["fixed", "poll"]

DEFAULT_CONFIG_REL = Path(".postdeploy") / "setup.yaml"
DEFAULT_ARTIFACTS_REL = Path(".postdeploy") / "runs"


@dataclass(frozen=True)
class OwnershipRule:
    path: str
    uid: int
    gid: int


def _default_ownership() -> list[OwnershipRule]:
    return [
        # Web container runs as www-data
        OwnershipRule(path="storage", uid=33, gid=33),
        # Redis container runs as redis
        OwnershipRule(path="storage/docker/redis/data", uid=999, gid=1000),
    ]


@dataclass(frozen=True)
class ComposeConfig:
    use_sudo: bool = True
    file: str | None = None
    web_service: str = "web"
    web_container: str = "pixelfed-web"
    redis_service: str = "redis"


@dataclass(frozen=True)
class WaitConfig:
    mode: WaitMode = "fixed"
    seconds: float = 60
    poll_interval_s: float = 5


@dataclass(frozen=True)
class BannerConfig:
    ip_lookup_url: str = "http://checkip.amazonaws.com"
    ip_lookup_timeout_s: float = 5
    app_port: int = 8080


@dataclass(frozen=True)
class SetupConfig:
    compose: ComposeConfig = field(default_factory=ComposeConfig)
    ownership: list[OwnershipRule] = field(default_factory=_default_ownership)
    wait: WaitConfig = field(default_factory=WaitConfig)
    restart_pause_s: float = 3
    verify_pause_s: float = 5
    banner: BannerConfig = field(default_factory=BannerConfig)
    command_timeout_s: float | None = 600


@dataclass(frozen=True)
class RunConfig:
    project_dir: Path
    run_id: str
    artifacts_root: Path
    setup: SetupConfig = field(default_factory=SetupConfig)
    config_file: Path | None = None

    def run_dir(self) -> Path:
        return self.artifacts_root / self.run_id


_NUMBER = {"type": "number", "minimum": 0}

SETUP_SCHEMA = {
    "type": "object",
    "properties": {
        "compose": {
            "type": "object",
            "properties": {
                "use_sudo": {"type": "boolean"},
                "file": {"type": ["string", "null"]},
                "web_service": {"type": "string", "minLength": 1},
                "web_container": {"type": "string", "minLength": 1},
                "redis_service": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "ownership": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "path": {"type": "string", "minLength": 1},
                    "uid": {"type": "integer", "minimum": 0},
                    "gid": {"type": "integer", "minimum": 0},
                },
                "required": ["path", "uid", "gid"],
                "additionalProperties": False,
            },
        },
        "wait": {
            "type": "object",
            "properties": {
                "mode": {"type": "string", "enum": ["fixed", "poll"]},
                "seconds": _NUMBER,
                "poll_interval_s": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
        "restart_pause_s": _NUMBER,
        "verify_pause_s": _NUMBER,
        "banner": {
            "type": "object",
            "properties": {
                "ip_lookup_url": {"type": "string"},
                "ip_lookup_timeout_s": {"type": "number", "exclusiveMinimum": 0},
                "app_port": {"type": "integer", "minimum": 1, "maximum": 65535},
            },
            "additionalProperties": False,
        },
        "command_timeout_s": {"type": ["number", "null"], "exclusiveMinimum": 0},
    },
    "additionalProperties": False,
}


def parse_setup_config(data: dict[str, Any]) -> SetupConfig:
    import jsonschema  # lazy import

    try:
        jsonschema.validate(instance=data, schema=SETUP_SCHEMA)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ValueError(f"Invalid setup.yaml schema at {where}: {e.message}") from e

    defaults = SetupConfig()
    compose_raw = data.get("compose", {}) or {}
    wait_raw = data.get("wait", {}) or {}
    banner_raw = data.get("banner", {}) or {}

    if "ownership" in data:
        ownership = [
            OwnershipRule(path=str(r["path"]), uid=int(r["uid"]), gid=int(r["gid"]))
            for r in data["ownership"] or []
        ]
    else:
        ownership = defaults.ownership

    return SetupConfig(
        compose=ComposeConfig(
            use_sudo=bool(compose_raw.get("use_sudo", defaults.compose.use_sudo)),
            file=compose_raw.get("file", defaults.compose.file),
            web_service=str(compose_raw.get("web_service", defaults.compose.web_service)),
            web_container=str(compose_raw.get("web_container", defaults.compose.web_container)),
            redis_service=str(compose_raw.get("redis_service", defaults.compose.redis_service)),
        ),
        ownership=ownership,
        wait=WaitConfig(
            mode=wait_raw.get("mode", defaults.wait.mode),
            seconds=float(wait_raw.get("seconds", defaults.wait.seconds)),
            poll_interval_s=float(wait_raw.get("poll_interval_s", defaults.wait.poll_interval_s)),
        ),
        restart_pause_s=float(data.get("restart_pause_s", defaults.restart_pause_s)),
        verify_pause_s=float(data.get("verify_pause_s", defaults.verify_pause_s)),
        banner=BannerConfig(
            ip_lookup_url=str(banner_raw.get("ip_lookup_url", defaults.banner.ip_lookup_url)),
            ip_lookup_timeout_s=float(
                banner_raw.get("ip_lookup_timeout_s", defaults.banner.ip_lookup_timeout_s)
            ),
            app_port=int(banner_raw.get("app_port", defaults.banner.app_port)),
        ),
        command_timeout_s=data.get("command_timeout_s", defaults.command_timeout_s),
    )


def load_setup_file(path: Path) -> SetupConfig:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid setup.yaml schema at <root>: expected a mapping in {path}")
    return parse_setup_config(data)


def resolve_setup_config(
    project_dir: Path,
    config_file: Path | None = None,
    *,
    wait_mode: WaitMode | None = None,
    wait_seconds: float | None = None,
    use_sudo: bool | None = None,
) -> tuple[SetupConfig, Path | None]:
    """Load the explicit config file, else the project's setup.yaml, else defaults.

    Command line overrides are applied on top.
    """
    if config_file is not None:
        if not config_file.exists():
            raise ValueError(f"Config file not found: {config_file}")
        cfg, source = load_setup_file(config_file), config_file
    elif (project_dir / DEFAULT_CONFIG_REL).exists():
        source = project_dir / DEFAULT_CONFIG_REL
        cfg = load_setup_file(source)
    else:
        cfg, source = SetupConfig(), None

    if wait_mode is not None or wait_seconds is not None:
        cfg = replace(
            cfg,
            wait=replace(
                cfg.wait,
                mode=wait_mode or cfg.wait.mode,
                seconds=cfg.wait.seconds if wait_seconds is None else float(wait_seconds),
            ),
        )
    if use_sudo is not None:
        cfg = replace(cfg, compose=replace(cfg.compose, use_sudo=use_sudo))
    return cfg, source
