from __future__ import annotations

"""Step protocol definition.

CONTRACT
- Inputs: SetupContext (config, compose client, store, events, reporter, sleep)
- Outputs:
  - run(): returns a StepOutcome; may print `→` detail lines
- Invariants:
  - All steps have `name`, `label`, `policy` and implement `run`
  - Steps never raise for a failing external command; they return ok=False
  - What happens after a failure is decided by the runner from `policy`
- Failure:
  - ABORT stops the run, WARN reports and continues, IGNORE continues
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Protocol

from ..artifacts.store import ArtifactStore
from ..compose import ComposeClient
from ..config import SetupConfig
from ..reporter import Reporter
from ..util.events import EventLog


class Policy(str, enum.Enum):
    ABORT = "abort"
    WARN = "warn"
    IGNORE = "ignore"


@dataclass(frozen=True)
class StepOutcome:
    ok: bool
    message: str
    log_path: Path | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class SetupContext:
    project_dir: Path
    setup: SetupConfig
    compose: ComposeClient
    store: ArtifactStore
    events: EventLog
    reporter: Reporter
    sleep: Callable[[float], None]


class Step(Protocol):
    name: str
    label: str
    policy: Policy

    def run(self, ctx: SetupContext) -> StepOutcome: ...
