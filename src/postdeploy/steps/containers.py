"""Container liveness steps.

CONTRACT
- Inputs: compose client, web container name pattern
- Outputs (required):
  - CheckContainers: gate before any in-container work
  - VerifyContainers: advisory re-check after the restart
- Invariants:
  - "Up" means a `docker compose ps` line matches `<web_container>.*Up`
  - VerifyContainers pauses `verify_pause_s` before checking
- Failure:
  - CheckContainers fails the run (policy ABORT) with a hint
  - VerifyContainers only reports (policy WARN)
"""

from __future__ import annotations

from dataclasses import dataclass

from .base import Policy, SetupContext, StepOutcome


@dataclass
class CheckContainers:
    name: str = "check_containers"
    label: str = "Checking container status..."
    policy: Policy = Policy.ABORT

    def run(self, ctx: SetupContext) -> StepOutcome:
        container = ctx.setup.compose.web_container
        if ctx.compose.is_up(container, log_name="check_containers_ps"):
            return StepOutcome(ok=True, message="Containers are running")
        prefix = "sudo " if ctx.setup.compose.use_sudo else ""
        return StepOutcome(
            ok=False,
            message=f"{container} container is not running!",
            details={"hint": f"Please run '{prefix}docker compose up -d' first."},
        )


@dataclass
class VerifyContainers:
    name: str = "verify_containers"
    label: str = "Verifying setup..."
    policy: Policy = Policy.WARN

    def run(self, ctx: SetupContext) -> StepOutcome:
        ctx.sleep(ctx.setup.verify_pause_s)
        if ctx.compose.is_up(ctx.setup.compose.web_container, log_name="verify_containers_ps"):
            return StepOutcome(ok=True, message="All containers are running")
        return StepOutcome(ok=False, message="Some containers are not running")
