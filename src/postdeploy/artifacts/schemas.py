from __future__ import annotations

"""Artifact schemas.

CONTRACT
- Inputs: Pydantic models
- Outputs:
  - Validated JSON-serializable objects
- Invariants:
  - Defines the shape of all run artifacts (RUN.json, RUN_STATUS.json, STEPS.json)
  - All schemas have schema_version int field
- Failure:
  - Raises ValidationError on schema mismatch
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

RunState = Literal["RUNNING", "OK", "FAIL", "ABORTED"]
PolicyName = Literal["abort", "warn", "ignore"]


class RunStatus(BaseModel):
    schema_version: int = 1
    run_id: str
    status: RunState
    message: str = ""
    exit_code: int | None = None
    failed_step: str | None = None
    warnings: list[str] = Field(default_factory=list)


class RunMeta(BaseModel):
    schema_version: int = 1
    run_id: str
    project_dir: str
    config_file: str | None = None
    wait_mode: Literal["fixed", "poll"] = "fixed"
    use_sudo: bool = True
    steps: list[str] = Field(default_factory=list)


class StepRecord(BaseModel):
    schema_version: int = 1
    name: str
    label: str
    policy: PolicyName
    ok: bool
    message: str = ""
    elapsed_s: float = 0.0
    log_path: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


def validate_run_status(data: dict[str, Any]) -> tuple[bool, RunStatus | None, str]:
    """Validate RUN_STATUS.json against schema."""
    try:
        status = RunStatus(**data)
        return True, status, ""
    except Exception as e:
        return False, None, str(e)
