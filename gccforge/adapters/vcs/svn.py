"""
Subversion adapter — checkout and update for trunk-tracked sources.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.adapters.shell.command import run_streaming
from gccforge.core.models.action import Receipt

logger = logging.getLogger(__name__)


class SvnAdapter(Adapter):
    """Subversion operations.

    Action params:
        operation (str): 'checkout' or 'update'.
        url (str): Repository URL (for 'checkout').
        dest (str): Checkout directory (for 'checkout').
        cwd (str): Checkout to update (for 'update').
    """

    @property
    def name(self) -> str:
        return "svn"

    def is_available(self) -> bool:
        return shutil.which("svn") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in ("checkout", "update"):
            return False, f"Unknown operation '{operation}'. Valid: checkout, update"
        if operation == "checkout" and not (params.get("url") and params.get("dest")):
            return False, "Missing required params: 'url' and 'dest' for checkout operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        if params["operation"] == "checkout":
            argv = ["svn", "checkout", "--quiet", params["url"], params["dest"]]
        else:
            argv = ["svn", "update", "--quiet"]

        try:
            code, tail = run_streaming(argv, cwd=context.working_dir, env=context.environment())
        except (OSError, subprocess.SubprocessError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Svn error: {e}",
            )

        if code != 0:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"svn {params['operation']} exited with code {code}",
                metadata={"return_code": code, "tail": tail},
            )
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=tail,
            metadata={"return_code": 0},
        )
