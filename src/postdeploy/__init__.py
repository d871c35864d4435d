"""postdeploy package.

Simple API for deployment scripts:

    import postdeploy

    result = postdeploy.setup("/srv/pixelfed")
    if result["exit_code"] != 0:
        ...
"""

from pathlib import Path
from typing import Optional

from .config import DEFAULT_ARTIFACTS_REL, RunConfig, resolve_setup_config
from .orchestrator import RunResult, run_setup
from .util.ids import new_run_id, validate_run_id
from .util.log import configure_logging

__version__ = "0.1.0"


def setup(
    project_dir: str | Path = ".",
    *,
    config_file: Optional[str | Path] = None,
    run_id: Optional[str] = None,
    verbose: bool = False,
) -> dict:
    """Run the post-deployment setup. Returns structured result.

    Args:
        project_dir: Directory holding the compose file and storage/
        config_file: Optional path to setup.yaml
        run_id: Optional custom run ID (auto-generated if not provided)
        verbose: Log at DEBUG instead of POSTDEPLOY_LOG_LEVEL

    Returns:
        dict with keys: status, exit_code, run_dir, failed_step, steps
    """
    configure_logging(verbose)
    project = Path(project_dir).resolve()
    setup_cfg, source = resolve_setup_config(
        project, Path(config_file) if config_file else None
    )
    cfg = RunConfig(
        project_dir=project,
        run_id=validate_run_id(run_id or new_run_id()),
        artifacts_root=project / DEFAULT_ARTIFACTS_REL,
        setup=setup_cfg,
        config_file=source,
    )
    result = run_setup(cfg)
    return {
        "status": result.status,
        "exit_code": result.exit_code,
        "run_dir": str(result.run_dir),
        "failed_step": result.failed_step,
        "steps": [r.model_dump() for r in result.steps],
    }


__all__ = ["RunResult", "__version__", "run_setup", "setup"]
