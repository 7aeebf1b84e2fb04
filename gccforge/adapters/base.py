"""
Adapter base — the protocol contract between engine and tools.

This defines the abstract interface that every adapter must implement.
Services and the stage runner only talk to adapters through this
protocol, never directly to external tools.
"""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from gccforge.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action.

    This is the adapter's view of the world: the action to perform,
    the workspace root, the ordered tool search path and any resolved
    parameters. Nothing is read from the process working directory.
    """

    action: Action
    workspace_root: str = "."
    search_path: list[str] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str:
        """Resolved working directory for the action.

        ``params["cwd"]`` is taken relative to the workspace root
        unless it is absolute.
        """
        cwd = self.params.get("cwd")
        if not cwd:
            return self.workspace_root
        if Path(cwd).is_absolute():
            return str(cwd)
        return str(Path(self.workspace_root) / cwd)

    def environment(self) -> dict[str, str]:
        """Child process environment: inherited, search path first."""
        env = dict(os.environ)
        if self.search_path:
            env["PATH"] = os.pathsep.join([*self.search_path, env.get("PATH", "")])
        env.update(self.params.get("env") or {})
        return env

    def which(self, program: str) -> str | None:
        """Locate a program on this context's search path."""
        return shutil.which(program, path=self.environment().get("PATH"))

    def redact(self, text: str) -> str:
        """Mask ``params["secrets"]`` values in text bound for logs and receipts."""
        for secret in self.params.get("secrets") or ():
            if secret:
                text = text.replace(secret, "***")
        return text


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They never raise; failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'git', 'mount')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
