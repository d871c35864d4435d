"""Ordered post-deployment setup steps."""

from __future__ import annotations

from .artisan import DiscoverPackages, InstallHorizon, PrimeCaches, RebuildAndRestart
from .base import Policy, SetupContext, Step, StepOutcome
from .containers import CheckContainers, VerifyContainers
from .ownership import FixOwnership
from .redis_tune import TuneRedis
from .wait import WaitForInit


def default_steps() -> list[Step]:
    """The post-deployment sequence, in execution order."""
    return [
        FixOwnership(),
        CheckContainers(),
        WaitForInit(),
        TuneRedis(),
        PrimeCaches(),
        DiscoverPackages(),
        InstallHorizon(),
        RebuildAndRestart(),
        VerifyContainers(),
    ]


__all__ = [
    "CheckContainers",
    "DiscoverPackages",
    "FixOwnership",
    "InstallHorizon",
    "Policy",
    "PrimeCaches",
    "RebuildAndRestart",
    "SetupContext",
    "Step",
    "StepOutcome",
    "TuneRedis",
    "VerifyContainers",
    "WaitForInit",
    "default_steps",
]
