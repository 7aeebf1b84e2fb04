"""
Build context — the one explicit object every service runs actions through.

Holds the adapter registry, the workspace root and the ordered tool
search path. Services never ``chdir`` or touch ``os.environ``: working
directories are per-action parameters and the search path is handed to
each child process by the adapters.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from gccforge.adapters.registry import AdapterRegistry
from gccforge.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


@dataclass
class BuildContext:
    """Explicit execution context for one run."""

    registry: AdapterRegistry
    root: Path
    search_path: list[str] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)

    def prepend_path(self, directory: Path | str) -> None:
        """Put a directory at the front of the tool search path."""
        entry = str(directory)
        if entry in self.search_path:
            self.search_path.remove(entry)
        self.search_path.insert(0, entry)

    def run(self, action: Action) -> Receipt:
        """Dispatch one action and record its receipt."""
        receipt = self.registry.execute_action(
            action,
            workspace_root=str(self.root),
            search_path=self.search_path,
        )
        self.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s %s → %s", status_marker, action.id, receipt.status)
        if receipt.failed:
            logger.debug("%s failed: %s", action.id, receipt.error)
        return receipt

    def path(self, *parts: str) -> Path:
        """Absolute path inside the workspace root."""
        return self.root.joinpath(*parts)

    def which(self, program: str) -> str | None:
        """Locate a program, searching the run's tool path first."""
        entries = [*self.search_path, os.environ.get("PATH", "")]
        return shutil.which(program, path=os.pathsep.join(entries))
