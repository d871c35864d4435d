"""Laravel artisan steps.

CONTRACT
- Inputs: compose client, web service name
- Outputs (required):
  - PrimeCaches: config:cache, route:cache, view:cache
  - DiscoverPackages: package:discover (captured output kept for display)
  - InstallHorizon: horizon:install
  - RebuildAndRestart: route:cache, `docker compose restart <web>`, pause
- Invariants:
  - Commands run in declared order inside the web container (`exec -T`)
  - The web container is restarted exactly once per run
- Failure:
  - PrimeCaches / DiscoverPackages / RebuildAndRestart: first failure fails the step (ABORT)
  - InstallHorizon: failure means "already installed" (IGNORE)
"""

from __future__ import annotations

from dataclasses import dataclass

from ..util.paths import safe_filename
from ..util.shell import CmdResult
from .base import Policy, SetupContext, StepOutcome

CACHE_COMMANDS: list[tuple[str, str]] = [
    ("Config cache...", "config:cache"),
    ("Route cache...", "route:cache"),
    ("View cache...", "view:cache"),
]


def artisan(ctx: SetupContext, command: str) -> CmdResult:
    return ctx.compose.exec(
        ctx.setup.compose.web_service,
        ["php", "artisan", command],
        log_name=f"artisan_{command.replace(':', '_')}",
    )


def _failed(ctx: SetupContext, command: str, res: CmdResult) -> StepOutcome:
    log_path = ctx.store.write_text(f"artisan_{command.replace(':', '_')}.log", res.read_output())
    return StepOutcome(
        ok=False,
        message=f"php artisan {command} failed (exit {res.returncode})",
        log_path=log_path,
        details={"command": command, "exit_code": res.returncode},
    )


@dataclass
class PrimeCaches:
    name: str = "prime_caches"
    label: str = "Creating caches..."
    policy: Policy = Policy.ABORT

    def run(self, ctx: SetupContext) -> StepOutcome:
        for description, command in CACHE_COMMANDS:
            ctx.reporter.detail(description)
            res = artisan(ctx, command)
            if not res.ok:
                return _failed(ctx, command, res)
        return StepOutcome(ok=True, message="All caches created (config, route, view)")


@dataclass
class DiscoverPackages:
    name: str = "discover_packages"
    label: str = "Discovering Laravel packages..."
    policy: Policy = Policy.ABORT

    def run(self, ctx: SetupContext) -> StepOutcome:
        res = artisan(ctx, "package:discover")
        if res.ok:
            return StepOutcome(ok=True, message="Packages discovered")
        log_path = ctx.store.write_text("discover.log", res.read_output())
        return StepOutcome(
            ok=False,
            message="Package discovery failed!",
            log_path=log_path,
            details={"exit_code": res.returncode, "show_log": True},
        )


@dataclass
class InstallHorizon:
    name: str = "install_horizon"
    label: str = "Installing Horizon..."
    policy: Policy = Policy.IGNORE

    def run(self, ctx: SetupContext) -> StepOutcome:
        res = artisan(ctx, "horizon:install")
        log_path = ctx.store.write_text("horizon.log", res.read_output())
        if res.ok:
            return StepOutcome(ok=True, message="Horizon installed", log_path=log_path)
        return StepOutcome(
            ok=False,
            message="Horizon already installed or installation completed",
            log_path=log_path,
            details={"exit_code": res.returncode},
        )


@dataclass
class RebuildAndRestart:
    name: str = "rebuild_and_restart"
    label: str = "Final cache rebuild and container restart..."
    policy: Policy = Policy.ABORT

    def run(self, ctx: SetupContext) -> StepOutcome:
        web = ctx.setup.compose.web_service

        ctx.reporter.detail("Rebuilding route cache...")
        res = artisan(ctx, "route:cache")
        if not res.ok:
            return _failed(ctx, "route:cache", res)

        ctx.reporter.detail(f"Restarting {web} container...")
        res = ctx.compose.restart(web)
        if not res.ok:
            return StepOutcome(
                ok=False,
                message=f"Restarting {web} failed (exit {res.returncode})",
                log_path=ctx.store.write_text(f"restart_{safe_filename(web)}.log", res.read_output()),
                details={"exit_code": res.returncode},
            )

        ctx.reporter.detail("Waiting for container to be ready...")
        ctx.sleep(ctx.setup.restart_pause_s)
        return StepOutcome(ok=True, message="Cache rebuild and restart completed")
