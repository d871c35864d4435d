"""CLI entrypoint.

Primary mode:
- postdeploy run        (also the default when no command is given)

Utilities:
- postdeploy status
- postdeploy doctor
- postdeploy init

CONTRACT
- Inputs: Command line arguments (parsed by Typer)
- Outputs (required):
  - Exit code 0 on success, non-zero on failure
  - Console output (stdout/stderr) describing progress/results
- Invariants:
  - `postdeploy` with no arguments runs the full setup with stock defaults
  - Orchestrator actions are delegated to the orchestrator module
- Failure:
  - Invalid arguments / config raise Typer errors (exit 2)
  - A failed setup exits 1, an interrupted one 130
"""

from __future__ import annotations

import enum
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .artifacts.store import ArtifactStore, latest_run_dir
from .config import DEFAULT_ARTIFACTS_REL, RunConfig, resolve_setup_config
from .doctor import doctor_report
from .orchestrator import run_setup
from .reporter import Reporter
from .util.ids import new_run_id, validate_run_id
from .util.log import configure_logging

app = typer.Typer(add_completion=False, help="Post-deployment setup for docker compose Laravel apps.")

console = Console()


class WaitModeChoice(str, enum.Enum):
    fixed = "fixed"
    poll = "poll"


def _version_callback(value: bool):
    if value:
        from . import __version__

        console.print(f"postdeploy version: {__version__}")
        raise typer.Exit()


_PROJECT_OPTION = typer.Option(
    Path("."),
    "--project-dir",
    help="Directory holding the compose file and storage/ (default: current dir).",
)
_ARTIFACTS_DIR_OPTION = typer.Option(
    None,
    "--artifacts-dir",
    help="Artifacts root dir (default: <project>/.postdeploy/runs).",
)
_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="setup.yaml file (default: <project>/.postdeploy/setup.yaml if present).",
)
_VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    help="Show diagnostic logs.",
)


def _artifacts_root(project: Path, artifacts_dir: Path | None) -> Path:
    return artifacts_dir if artifacts_dir is not None else project / DEFAULT_ARTIFACTS_REL


def _run_setup_command(
    project_dir: Path = Path("."),
    config: Path | None = None,
    artifacts_dir: Path | None = None,
    run_id: str | None = None,
    wait_mode: WaitModeChoice | None = None,
    wait_seconds: float | None = None,
    no_sudo: bool = False,
    verbose: bool = False,
) -> None:
    configure_logging(verbose)
    project = project_dir.resolve()
    if not project.is_dir():
        raise typer.BadParameter(f"Project directory not found: {project_dir}")
    try:
        setup, source = resolve_setup_config(
            project,
            config,
            wait_mode=wait_mode.value if wait_mode else None,
            wait_seconds=wait_seconds,
            use_sudo=False if no_sudo else None,
        )
        rid = validate_run_id(run_id or new_run_id())
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    cfg = RunConfig(
        project_dir=project,
        run_id=rid,
        artifacts_root=_artifacts_root(project, artifacts_dir),
        setup=setup,
        config_file=source,
    )
    result = run_setup(cfg, reporter=Reporter(console=console, verbose=verbose))
    if verbose or result.exit_code != 0:
        console.print(f"Artifacts: {result.run_dir}")
    if result.exit_code != 0:
        raise typer.Exit(code=result.exit_code)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    ),
):
    if ctx.invoked_subcommand is None:
        _run_setup_command()


@app.command()
def run(
    project_dir: Path = _PROJECT_OPTION,
    config: Path | None = _CONFIG_OPTION,
    artifacts_dir: Path | None = _ARTIFACTS_DIR_OPTION,
    run_id: str | None = typer.Option(None, "--run-id", help="Run id (default: auto)."),
    wait_mode: WaitModeChoice | None = typer.Option(
        None, "--wait-mode", help="fixed: sleep; poll: wait for the web service to be healthy."
    ),
    wait_seconds: float | None = typer.Option(
        None, "--wait-seconds", min=0, help="Initialization wait (or poll timeout) in seconds."
    ),
    no_sudo: bool = typer.Option(False, "--no-sudo", help="Do not prefix commands with sudo."),
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Run the post-deployment setup sequence."""
    _run_setup_command(
        project_dir=project_dir,
        config=config,
        artifacts_dir=artifacts_dir,
        run_id=run_id,
        wait_mode=wait_mode,
        wait_seconds=wait_seconds,
        no_sudo=no_sudo,
        verbose=verbose,
    )


@app.command()
def status(
    project_dir: Path = _PROJECT_OPTION,
    run_id: str = typer.Option("latest", "--run", help="Run id, or 'latest'."),
    artifacts_dir: Path | None = _ARTIFACTS_DIR_OPTION,
) -> None:
    """Show the status and step results of a previous run."""
    root = _artifacts_root(project_dir, artifacts_dir)
    if run_id == "latest":
        run_dir = latest_run_dir(root)
        if run_dir is None:
            raise typer.BadParameter(f"No runs found in {root}")
    else:
        try:
            validate_run_id(run_id)
        except ValueError as e:
            raise typer.BadParameter(str(e)) from e
        run_dir = root / run_id

    store = ArtifactStore(run_dir)
    status_path = store.path("RUN_STATUS.json")
    if not status_path.exists():
        raise typer.BadParameter(f"No status found: {status_path}")
    console.print_json(status_path.read_text(encoding="utf-8"))

    records = store.read_steps()
    if records:
        table = Table(title=f"Run {run_dir.name}")
        table.add_column("Step")
        table.add_column("Policy")
        table.add_column("Result")
        table.add_column("Message")
        for r in records:
            table.add_row(r.name, r.policy, "ok" if r.ok else "failed", r.message)
        console.print(table)


@app.command()
def doctor(
    project_dir: Path = _PROJECT_OPTION,
) -> None:
    """Environment and preflight checks."""
    report = doctor_report(project=project_dir)
    table = Table(title="postdeploy doctor")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")
    for item in report.items:
        table.add_row(item.name, item.status, item.details)
    console.print(table)
    if report.ok:
        console.print("[green]OK[/green]")
    else:
        raise typer.Exit(code=2)


@app.command()
def init(
    project_dir: Path = _PROJECT_OPTION,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing setup.yaml."),
) -> None:
    """Write a `.postdeploy/setup.yaml` template into the project."""
    from .init import write_templates

    written = write_templates(project_dir, force=force)
    if written:
        console.print(f"[green]Wrote template to[/green] {written}")
    else:
        console.print("[yellow]setup.yaml already exists (use --force to overwrite)[/yellow]")


if __name__ == "__main__":
    app()
