"""
Stage model — the five compile stages and their outcomes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from gccforge.core.models.action import Receipt


class Stage(StrEnum):
    """Build stages, in execution order."""

    BINUTILS = "binutils"
    HEADERS = "headers"
    GCC_FRONTEND = "gcc-frontend"
    RUNTIME_LIBRARY = "runtime-library"
    GCC_FINALIZE = "gcc-finalize"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)

STAGE_TITLES: dict[Stage, str] = {
    Stage.BINUTILS: "MAKING BINUTILS",
    Stage.HEADERS: "MAKING LINUX HEADERS",
    Stage.GCC_FRONTEND: "MAKING GCC",
    Stage.RUNTIME_LIBRARY: "MAKING RUNTIME LIBRARY",
    Stage.GCC_FINALIZE: "INSTALLING GCC",
}


class StageResult(BaseModel):
    """Outcome of one stage."""

    stage: Stage
    status: Literal["ok", "failed", "skipped"] = "ok"
    cause: str | None = None
    receipts: list[Receipt] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def duration_ms(self) -> int:
        return sum(r.duration_ms for r in self.receipts)
