"""Storage ownership step.

CONTRACT
- Inputs: project dir, ownership rules (path, uid, gid)
- Outputs (required):
  - `chown -R uid:gid path` for each rule whose path exists
  - logs/NN_chown_<path>.{stdout,stderr}.log
- Invariants:
  - The first rule's path gates the step: when absent, nothing is changed
  - Later rules only apply when their path exists
- Failure:
  - Any chown failure fails the step (policy ABORT)
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from ..util.paths import safe_filename
from ..util.shell import run_cmd
from .base import Policy, SetupContext, StepOutcome


@dataclass
class FixOwnership:
    name: str = "fix_ownership"
    label: str = "Fixing storage directory ownership..."
    policy: Policy = Policy.ABORT

    def run(self, ctx: SetupContext) -> StepOutcome:
        rules = ctx.setup.ownership
        if not rules:
            return StepOutcome(ok=True, message="No ownership rules configured")

        root = ctx.project_dir / rules[0].path
        if not root.is_dir():
            logger.info("{} does not exist; skipping ownership fix", root)
            return StepOutcome(
                ok=True,
                message="Storage directory not yet created (first run)",
                details={"skipped": True},
            )

        applied: list[str] = []
        for rule in rules:
            target = ctx.project_dir / rule.path
            if not target.is_dir():
                logger.debug("Ownership target {} missing; skipped", target)
                continue
            cmd = ["chown", "-R", f"{rule.uid}:{rule.gid}", rule.path]
            if ctx.setup.compose.use_sudo:
                cmd.insert(0, "sudo")
            stdout_path, stderr_path = ctx.store.log_paths(f"chown_{safe_filename(rule.path)}")
            res = run_cmd(
                cmd,
                cwd=ctx.project_dir,
                stdout_path=stdout_path,
                stderr_path=stderr_path,
                timeout_s=ctx.setup.command_timeout_s,
            )
            if not res.ok:
                return StepOutcome(
                    ok=False,
                    message=f"Failed to change ownership of {rule.path} to {rule.uid}:{rule.gid}",
                    log_path=stderr_path,
                    details={"applied": applied, "exit_code": res.returncode},
                )
            applied.append(f"{rule.path}={rule.uid}:{rule.gid}")

        return StepOutcome(
            ok=True,
            message=f"Storage ownership fixed ({', '.join(applied)})",
            details={"applied": applied},
        )
