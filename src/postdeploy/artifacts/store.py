from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .schemas import RunMeta, RunStatus, StepRecord


@dataclass(frozen=True)
class ArtifactStore:
    """Artifact storage manager.

    CONTRACT
    - Inputs: Run directory path
    - Outputs:
      - Writes files to .postdeploy/runs/<id>/...
    - Invariants:
      - Enforces path safety (prevents traversal outside run_dir)
      - Ensures parent directories exist on write
    - Failure:
      - Raises ValueError on unsafe path access
    """
    run_dir: Path

    def ensure(self) -> None:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        (self.run_dir / "logs").mkdir(exist_ok=True)

    def path(self, *parts: str) -> Path:
        p = self.run_dir.joinpath(*parts)
        base = self.run_dir.resolve(strict=False)
        try:
            p.resolve(strict=False).relative_to(base)
        except ValueError as exc:
            raise ValueError(f"Refusing to access path outside run_dir: {p}") from exc
        return p

    def log_paths(self, name: str) -> tuple[Path, Path]:
        return (
            self.path("logs", f"{name}.stdout.log"),
            self.path("logs", f"{name}.stderr.log"),
        )

    def write_json(self, rel: str, data: Any) -> Path:
        p = self.path(rel)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        return p

    def read_json(self, rel: str) -> Any:
        p = self.path(rel)
        return json.loads(p.read_text(encoding="utf-8"))

    def write_text(self, rel: str, text: str) -> Path:
        p = self.path(rel)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p

    def write_run_meta(self, meta: RunMeta) -> Path:
        return self.write_json("RUN.json", meta.model_dump())

    def write_status(self, status: RunStatus) -> Path:
        return self.write_json("RUN_STATUS.json", status.model_dump())

    def read_status(self) -> RunStatus:
        return RunStatus(**self.read_json("RUN_STATUS.json"))

    def write_steps(self, records: list[StepRecord]) -> Path:
        return self.write_json("STEPS.json", [r.model_dump() for r in records])

    def read_steps(self) -> list[StepRecord]:
        if not self.path("STEPS.json").exists():
            return []
        return [StepRecord(**r) for r in self.read_json("STEPS.json")]


def latest_run_dir(artifacts_root: Path) -> Path | None:
    """Most recent run directory (run ids sort by creation time)."""
    if not artifacts_root.exists():
        return None
    runs = sorted(
        d for d in artifacts_root.iterdir() if d.is_dir() and (d / "RUN_STATUS.json").exists()
    )
    return runs[-1] if runs else None
