"""
Mount adapter — tmpfs and bind mounts for build directories.

Privileged operations run through ``sudo`` unless the process is
already root. Unmount is forced and reports "not mounted" as a skip,
so releasing a workspace twice is harmless.
"""

from __future__ import annotations

import logging
import shutil

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.adapters.shell.command import needs_sudo_prefix, run_captured
from gccforge.core.models.action import Receipt

logger = logging.getLogger(__name__)

_NOT_MOUNTED_MARKERS = ("not mounted", "no mount point specified", "not found")


class MountAdapter(Adapter):
    """Mount and unmount build directories.

    Action params:
        operation (str): One of 'tmpfs', 'bind', 'umount', 'check_sudo'.
        path (str): Mount point (relative to the workspace root or absolute).
        source (str): Directory to bind (for 'bind').
    """

    @property
    def name(self) -> str:
        return "mount"

    def is_available(self) -> bool:
        return shutil.which("mount") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in ("tmpfs", "bind", "umount", "check_sudo"):
            return False, f"Unknown operation '{operation}'. Valid: bind, check_sudo, tmpfs, umount"
        if operation != "check_sudo" and not params.get("path"):
            return False, "Missing required param: 'path'"
        if operation == "bind" and not params.get("source"):
            return False, "Missing required param: 'source' for bind operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        operation = params["operation"]

        if operation == "check_sudo":
            if not needs_sudo_prefix():
                return Receipt.skip(
                    adapter=self.name,
                    action_id=context.action.id,
                    reason="Running as root",
                )
            argv = ["sudo", "-v"]
        elif operation == "tmpfs":
            argv = ["mount", "-t", "tmpfs", "-o", "rw", "none", params["path"]]
        elif operation == "bind":
            argv = ["mount", "-B", params["source"], params["path"]]
        else:
            argv = ["umount", "-f", params["path"]]

        if operation != "check_sudo" and needs_sudo_prefix():
            argv = ["sudo", *argv]

        logger.debug("Executing: %s", " ".join(argv))
        try:
            result = run_captured(argv, cwd=context.workspace_root, env=context.environment())
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot run {argv[0]}: {e}",
                metadata={"operation": operation},
            )

        stderr = result.stderr.strip()
        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=result.stdout.strip(),
                metadata={"operation": operation, "path": params.get("path")},
            )

        if operation == "umount" and any(m in stderr.lower() for m in _NOT_MOUNTED_MARKERS):
            return Receipt.skip(
                adapter=self.name,
                action_id=context.action.id,
                reason=f"{params['path']} is not mounted",
            )

        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=stderr or f"{operation} exited with code {result.returncode}",
            metadata={"operation": operation, "return_code": result.returncode, "tail": stderr},
        )
