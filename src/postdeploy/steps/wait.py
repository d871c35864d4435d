"""Initialization wait step.

CONTRACT
- Inputs: wait mode (fixed | poll), wait seconds, poll interval
- Outputs:
  - fixed: one unconditional sleep of `seconds`
  - poll: `docker compose ps --format json` every `poll_interval_s` until the
    web service is healthy (or running without a healthcheck), at most `seconds`
- Invariants:
  - Never waits longer than `seconds` (plus one poll interval)
- Failure:
  - A poll timeout is not a failure: noted as a detail line and details["timed_out"]
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from loguru import logger

from .base import Policy, SetupContext, StepOutcome

READY_STATES = {"healthy", "running"}


def _minutes(seconds: float) -> str:
    if seconds == 60:
        return "1 minute"
    if seconds % 60 == 0:
        return f"{int(seconds // 60)} minutes"
    return f"{seconds:g} seconds"


@dataclass
class WaitForInit:
    name: str = "wait_for_init"
    label: str = "Waiting for containers to fully initialize..."
    policy: Policy = Policy.IGNORE

    def run(self, ctx: SetupContext) -> StepOutcome:
        wait = ctx.setup.wait
        if wait.mode == "poll":
            ctx.reporter.detail(f"(Polling for up to {_minutes(wait.seconds)})", arrow=False)
        else:
            ctx.reporter.detail(f"(Waiting {_minutes(wait.seconds)})", arrow=False)
        ctx.reporter.detail("(Container entrypoint scripts are completing setup...)", arrow=False)
        ctx.reporter.detail(
            "(This includes database initialization and migrations...)", arrow=False
        )
        if wait.mode == "poll":
            return self._poll(ctx)
        ctx.sleep(wait.seconds)
        return StepOutcome(ok=True, message="Containers initialized", details={"waited_s": wait.seconds})

    def _poll(self, ctx: SetupContext) -> StepOutcome:
        wait = ctx.setup.wait
        service = ctx.setup.compose.web_service
        waited = 0.0
        health = None
        while True:
            health = ctx.compose.service_health(service)
            logger.debug("{} health after {:.0f}s: {}", service, waited, health)
            if health in READY_STATES:
                return StepOutcome(
                    ok=True,
                    message="Containers initialized",
                    details={"waited_s": waited, "health": health},
                )
            if waited >= wait.seconds:
                break
            pause = min(wait.poll_interval_s, wait.seconds - waited)
            ctx.sleep(pause)
            waited += pause
        ctx.reporter.detail(
            f"(Not reported ready after {waited:g}s, last state: {health}; continuing)", arrow=False
        )
        return StepOutcome(
            ok=True,
            message="Containers initialized",
            details={"waited_s": waited, "health": health, "timed_out": True},
        )


def real_sleep(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)
