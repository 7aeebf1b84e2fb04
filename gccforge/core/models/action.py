"""
Action and Receipt models — one external invocation and its outcome.

Stages and services describe every clone, configure, make, mount or
upload as an Action. The registry hands it to an adapter and always
gets a Receipt back; nothing below the services layer raises.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """One invocation of an external tool, addressed to an adapter.

    ``id`` is ``<stage or service>:<step>`` (``binutils:configure``,
    ``fetch:gcc``, ``workspace:mount:build-gcc``). Two params are read
    outside the adapters: ``_optional`` lets a stage continue past a
    failure, ``secrets`` lists values masked in logs and receipts.
    """

    id: str
    name: str = ""
    adapter: str
    stage: str | None = None        # None = outside the stage runner
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def optional(self) -> bool:
        return bool(self.params.get("_optional"))

    @property
    def label(self) -> str:
        return self.name or self.id


class Receipt(BaseModel):
    """Outcome of an Action.

    ``metadata`` carries adapter specifics; the process adapters all
    record ``return_code`` and, on failure, ``tail`` (the last lines of
    combined output), which is what error reports show.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0
    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def return_code(self) -> int | None:
        return self.metadata.get("return_code")

    @property
    def tail(self) -> str:
        """Last lines of tool output, falling back to the error text."""
        return self.metadata.get("tail") or self.error or ""

    # ── Constructors ────────────────────────────────────────────

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        """A step that had nothing to do (source present, not mounted, ...)."""
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)

    @classmethod
    def for_action(cls, action: Action, status: str, **kwargs: Any) -> Receipt:
        return cls(adapter=action.adapter, action_id=action.id, status=status, **kwargs)
