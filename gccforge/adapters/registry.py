"""
Adapter registry — routes each Action to the adapter that runs it.

Services and the stage runner never hold adapters themselves; they
hand Actions to ``BuildContext.run`` which calls ``execute_action``
here. Tests swap individual adapters for ``MockAdapter`` instances.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.core.errors import BuildAborted
from gccforge.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus the dispatch that never raises."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Register an adapter, replacing any with the same name."""
        if adapter.name in self._adapters:
            logger.debug("Replacing adapter: %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)

    def execute_action(
        self,
        action: Action,
        workspace_root: str = ".",
        search_path: list[str] | None = None,
    ) -> Receipt:
        """Run one action and return its receipt.

        Lookup, validation and execution problems all come back as
        failed receipts. BuildAborted from the signal handler propagates.

        Args:
            action: What to run.
            workspace_root: Directory relative ``cwd``/``path`` params resolve against.
            search_path: Directories searched for tools ahead of ``PATH``.
        """
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.for_action(action, "failed", error=f"No adapter registered for '{action.adapter}'")

        context = ExecutionContext(
            action=action,
            workspace_root=workspace_root,
            search_path=list(search_path or []),
            params=action.params,
        )

        try:
            valid, problem = adapter.validate(context)
        except BuildAborted:
            raise
        except Exception as e:
            valid, problem = False, str(e)
        if not valid:
            logger.debug("%s rejected by %s: %s", action.id, action.adapter, problem)
            return Receipt.for_action(action, "failed", error=f"Validation failed: {problem}")

        started = datetime.now(UTC)
        clock = time.monotonic()
        try:
            receipt = adapter.execute(context)
        except BuildAborted:
            raise
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", action.adapter, action.id, e)
            receipt = Receipt.for_action(action, "failed", error=f"Unexpected error: {e}")

        receipt.started_at = started.isoformat()
        receipt.ended_at = datetime.now(UTC).isoformat()
        receipt.duration_ms = int((time.monotonic() - clock) * 1000)
        return receipt
