"""
Domain models — Pydantic types for the toolchain builder.

All models are re-exported here for convenient access:

    from gccforge.core.models import BuildPlan, Workspace, Stage, Action, Receipt
"""

from gccforge.core.models.action import Action, Receipt
from gccforge.core.models.plan import (
    Architecture,
    BuildPlan,
    Codec,
    Dependency,
    DependencySource,
    FetchMode,
    Flavor,
    HostInfo,
    LibcBackend,
    Revision,
    RevisionKind,
)
from gccforge.core.models.request import BuildRequest
from gccforge.core.models.stage import STAGE_ORDER, Stage, StageResult
from gccforge.core.models.workspace import BackingMode, Workspace

__all__ = [
    # action.py
    "Action",
    # plan.py
    "Architecture",
    "BackingMode",
    "BuildPlan",
    # request.py
    "BuildRequest",
    "Codec",
    "Dependency",
    "DependencySource",
    "FetchMode",
    "Flavor",
    "HostInfo",
    "LibcBackend",
    "Receipt",
    "Revision",
    "RevisionKind",
    # stage.py
    "STAGE_ORDER",
    "Stage",
    "StageResult",
    # workspace.py
    "Workspace",
]
