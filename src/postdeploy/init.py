from __future__ import annotations

"""Template initializer.

CONTRACT
- Inputs: Project path
- Outputs (required):
  - Writes .postdeploy/setup.yaml
- Invariants:
  - Creates .postdeploy directory if missing
  - Does not overwrite existing files (by default)
- Failure:
  - Raises OSError on permission issues
"""

from pathlib import Path

from .config import DEFAULT_CONFIG_REL
from .util.paths import copy_template


def write_templates(project: Path, force: bool = False) -> Path | None:
    """Returns the written path, or None when an existing file was kept."""
    dest = project / DEFAULT_CONFIG_REL
    if copy_template("setup.yaml", dest, overwrite=force):
        return dest
    return None
