from __future__ import annotations

"""Orchestrator for the post-deployment setup run.

CONTRACT
- Inputs: RunConfig (project dir, run id, artifacts root, setup config)
- Outputs (required):
  - RunResult (status, exit_code, run_dir)
  - Artifacts in .postdeploy/runs/<run_id>/
    - RUN.json, RUN_STATUS.json, STEPS.json, events.jsonl
    - logs/ with the captured output of every command
- Invariants:
  - Steps execute strictly in declared order, one at a time
  - Every executed step gets exactly one StepRecord
  - No step runs after an ABORT failure
  - Always writes RUN.json and RUN_STATUS.json
- Failure:
  - ABORT failure -> RunResult(status="FAIL", exit_code=1)
  - Catches top-level exceptions, writes CRASH.txt, reports FAIL
  - KeyboardInterrupt -> RunResult(status="ABORTED", exit_code=130)
"""

import time
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from loguru import logger

from .artifacts.schemas import RunMeta, RunStatus, StepRecord
from .artifacts.store import ArtifactStore
from .banner import print_completion_banner
from .compose import ComposeClient
from .config import RunConfig
from .netinfo import lookup_public_ip
from .reporter import Reporter
from .steps import Policy, SetupContext, Step, StepOutcome, default_steps
from .steps.wait import real_sleep
from .util.events import EventLog
from .util.redaction import Redactor


@dataclass(frozen=True)
class RunResult:
    status: str
    exit_code: int
    run_dir: Path
    failed_step: str | None = None
    steps: list[StepRecord] = field(default_factory=list)


def _report_outcome(reporter: Reporter, step: Step, outcome: StepOutcome) -> None:
    if outcome.ok or step.policy is Policy.IGNORE:
        reporter.success(outcome.message)
    else:
        reporter.error(outcome.message)


def _report_abort(reporter: Reporter, outcome: StepOutcome, redactor: Redactor) -> None:
    hint = outcome.details.get("hint")
    if hint:
        reporter.plain(str(hint))
    if outcome.log_path is None or not outcome.log_path.exists():
        return
    if outcome.details.get("show_log"):
        text = outcome.log_path.read_text(encoding="utf-8", errors="replace")
        reporter.dump(redactor.redact(text))
    else:
        reporter.detail(f"(Output: {outcome.log_path})", arrow=False)


def _record_unfinished(
    store: ArtifactStore, records: list[StepRecord], step: Step, message: str, elapsed: float
) -> None:
    if any(r.name == step.name for r in records):
        return
    records.append(
        StepRecord(
            name=step.name,
            label=step.label,
            policy=step.policy.value,
            ok=False,
            message=message,
            elapsed_s=round(elapsed, 3),
        )
    )
    store.write_steps(records)


def run_setup(
    cfg: RunConfig,
    *,
    reporter: Reporter | None = None,
    steps: list[Step] | None = None,
    compose: ComposeClient | None = None,
    sleep: Callable[[float], None] = real_sleep,
    ip_lookup: Callable[[str, float], str | None] = lookup_public_ip,
) -> RunResult:
    reporter = reporter or Reporter()
    steps = default_steps() if steps is None else steps
    store = ArtifactStore(cfg.run_dir())
    store.ensure()
    ev = EventLog(store.path("events.jsonl"), run_id=cfg.run_id)
    setup = cfg.setup
    if compose is None:
        compose = ComposeClient(
            project_dir=cfg.project_dir,
            store=store,
            use_sudo=setup.compose.use_sudo,
            compose_file=setup.compose.file,
            timeout_s=setup.command_timeout_s,
        )
    ctx = SetupContext(
        project_dir=cfg.project_dir,
        setup=setup,
        compose=compose,
        store=store,
        events=ev,
        reporter=reporter,
        sleep=sleep,
    )
    redactor = Redactor()
    records: list[StepRecord] = []
    warnings: list[str] = []

    store.write_run_meta(
        RunMeta(
            run_id=cfg.run_id,
            project_dir=str(cfg.project_dir),
            config_file=str(cfg.config_file) if cfg.config_file else None,
            wait_mode=setup.wait.mode,
            use_sudo=setup.compose.use_sudo,
            steps=[s.name for s in steps],
        )
    )
    store.write_status(RunStatus(run_id=cfg.run_id, status="RUNNING", message="starting"))
    ev.emit(stage="run", action="start", project_dir=str(cfg.project_dir), steps=len(steps))
    logger.info("Run {} started in {}", cfg.run_id, cfg.project_dir)

    reporter.header("Starting post-deployment setup...")

    current: Step | None = None
    start_t = time.time()
    try:
        for index, step in enumerate(steps, start=1):
            current = step
            reporter.progress(f"Step {index}/{len(steps)}: {step.label}")
            ev.emit(stage=step.name, action="start", policy=step.policy.value)

            start_t = time.time()
            outcome = step.run(ctx)
            elapsed = time.time() - start_t

            records.append(
                StepRecord(
                    name=step.name,
                    label=step.label,
                    policy=step.policy.value,
                    ok=outcome.ok,
                    message=outcome.message,
                    elapsed_s=round(elapsed, 3),
                    log_path=str(outcome.log_path) if outcome.log_path else None,
                    details={k: v for k, v in outcome.details.items() if k != "show_log"},
                )
            )
            store.write_steps(records)
            ev.emit(stage=step.name, action="done", ok=outcome.ok, elapsed_s=round(elapsed, 3))

            _report_outcome(reporter, step, outcome)

            if not outcome.ok:
                if step.policy is Policy.ABORT:
                    logger.error("Step {} failed: {}", step.name, outcome.message)
                    _report_abort(reporter, outcome, redactor)
                    ev.emit(stage=step.name, action="abort", message=outcome.message)
                    store.write_status(
                        RunStatus(
                            run_id=cfg.run_id,
                            status="FAIL",
                            message=outcome.message,
                            exit_code=1,
                            failed_step=step.name,
                            warnings=warnings,
                        )
                    )
                    return RunResult(
                        status="FAIL",
                        exit_code=1,
                        run_dir=store.run_dir,
                        failed_step=step.name,
                        steps=records,
                    )
                logger.warning("Step {} failed ({}): {}", step.name, step.policy.value, outcome.message)
                warnings.append(step.name)
            reporter.blank()
        current = None

        print_completion_banner(reporter, setup, lookup=ip_lookup)

        store.write_status(
            RunStatus(
                run_id=cfg.run_id,
                status="OK",
                message="completed",
                exit_code=0,
                warnings=warnings,
            )
        )
        ev.emit(stage="run", action="done", warnings=warnings)
        return RunResult(status="OK", exit_code=0, run_dir=store.run_dir, steps=records)
    except KeyboardInterrupt:
        name = current.name if current else None
        if current is not None:
            _record_unfinished(store, records, current, "interrupted", time.time() - start_t)
        ev.emit(stage="run", action="interrupted", step=name)
        reporter.error("Setup interrupted")
        store.write_status(
            RunStatus(
                run_id=cfg.run_id,
                status="ABORTED",
                message="interrupted",
                exit_code=130,
                failed_step=name,
                warnings=warnings,
            )
        )
        return RunResult(
            status="ABORTED", exit_code=130, run_dir=store.run_dir, failed_step=name, steps=records
        )
    except Exception as exc:
        name = current.name if current else None
        if current is not None:
            _record_unfinished(store, records, current, f"crash: {exc}", time.time() - start_t)
        ev.emit(stage="crash", action="exception", step=name, error=str(exc))
        store.write_text("CRASH.txt", traceback.format_exc())
        logger.exception("Run {} crashed", cfg.run_id)
        reporter.error(f"Setup crashed: {exc}")
        store.write_status(
            RunStatus(
                run_id=cfg.run_id,
                status="FAIL",
                message=f"crash: {exc}",
                exit_code=1,
                failed_step=name,
                warnings=warnings,
            )
        )
        return RunResult(
            status="FAIL", exit_code=1, run_dir=store.run_dir, failed_step=name, steps=records
        )
