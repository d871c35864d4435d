"""Redis runtime configuration step.

CONTRACT
- Inputs: compose client, redis service name
- Outputs:
  - `redis-cli CONFIG SET stop-writes-on-bgsave-error no`
  - `redis-cli CONFIG SET save ""`
- Invariants:
  - Both commands are always attempted
- Failure:
  - Best-effort (policy IGNORE); failures are recorded, never fatal
"""

from __future__ import annotations

from dataclasses import dataclass

from .base import Policy, SetupContext, StepOutcome

REDIS_SETTINGS: list[tuple[str, list[str]]] = [
    (
        "Disabling Redis write blocking on save error...",
        ["CONFIG", "SET", "stop-writes-on-bgsave-error", "no"],
    ),
    (
        "Disabling Redis persistence (for development)...",
        ["CONFIG", "SET", "save", ""],
    ),
]


@dataclass
class TuneRedis:
    name: str = "tune_redis"
    label: str = "Fixing Redis configuration..."
    policy: Policy = Policy.IGNORE

    def run(self, ctx: SetupContext) -> StepOutcome:
        service = ctx.setup.compose.redis_service
        failed: list[str] = []
        for description, args in REDIS_SETTINGS:
            ctx.reporter.detail(description)
            res = ctx.compose.exec(service, ["redis-cli", *args], log_name=f"redis_{args[2]}")
            if not res.ok:
                failed.append(args[2])
        return StepOutcome(
            ok=not failed,
            message="Redis configuration fixed",
            details={"failed": failed},
        )
