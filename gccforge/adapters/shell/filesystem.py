"""
Filesystem adapter — file and directory operations.

Provides a receipt-returning interface for the filesystem edits a
build performs (directories, symlinks, header touch-ups, clean-up) so
the tests can observe them.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.core.models.action import Receipt

logger = logging.getLogger(__name__)

_VALID_OPS = {"mkdir", "touch", "delete_line", "remove", "clear", "symlink", "move", "copy"}


class FilesystemAdapter(Adapter):
    """File and directory operations with receipts.

    Action params:
        operation (str): One of 'mkdir', 'touch', 'delete_line', 'remove',
                         'clear', 'symlink', 'move', 'copy'.
        path (str): Target path (relative to the workspace root or absolute).
        line (int): 1-based line number (for 'delete_line').
        target (str): Link target (for 'symlink').
        force (bool): Replace an existing link (for 'symlink').
        destination (str): New location (for 'move' and 'copy').
        keep (list[str]): Entry names left in place (for 'clear').
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True  # filesystem is always available

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"

        if not params.get("path"):
            return False, "Missing required param: 'path'"

        if operation == "delete_line" and not isinstance(params.get("line"), int):
            return False, "Missing required param: 'line' for delete_line operation"
        if operation == "symlink" and not params.get("target"):
            return False, "Missing required param: 'target' for symlink operation"
        if operation in ("move", "copy") and not params.get("destination"):
            return False, f"Missing required param: 'destination' for {operation} operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        target = self._resolve(context, context.action.params["path"])

        try:
            if operation == "mkdir":
                return self._mkdir(context, target)
            elif operation == "touch":
                return self._touch(context, target)
            elif operation == "delete_line":
                return self._delete_line(context, target)
            elif operation == "remove":
                return self._remove(context, target)
            elif operation == "clear":
                return self._clear(context, target)
            elif operation == "symlink":
                return self._symlink(context, target)
            elif operation == "move":
                return self._move(context, target)
            elif operation == "copy":
                return self._copy(context, target)
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target)},
            )

    # ── Operations ──────────────────────────────────────────────

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.mkdir(parents=True, exist_ok=True)
        return self._ok(ctx, f"Directory created: {target}", target)

    def _touch(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.touch()
        return self._ok(ctx, f"Touched {target}", target)

    def _delete_line(self, ctx: ExecutionContext, target: Path) -> Receipt:
        line = ctx.action.params["line"]
        if not target.is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"File not found: {target}",
                metadata={"path": str(target), "missing": True},
            )
        lines = target.read_text(encoding="utf-8", errors="surrogateescape").splitlines(
            keepends=True
        )
        if 1 <= line <= len(lines):
            del lines[line - 1]
            target.write_text("".join(lines), encoding="utf-8", errors="surrogateescape")
            return self._ok(ctx, f"Deleted line {line} of {target}", target)
        return Receipt.skip(
            adapter=self.name,
            action_id=ctx.action.id,
            reason=f"{target} has only {len(lines)} lines",
            metadata={"path": str(target)},
        )

    def _remove(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if target.is_symlink() or target.is_file():
            target.unlink()
        elif target.is_dir():
            shutil.rmtree(target)
        else:
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"Nothing to remove at {target}",
            )
        return self._ok(ctx, f"Removed {target}", target)

    def _clear(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if not target.is_dir():
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"Not a directory: {target}",
            )
        keep = set(ctx.action.params.get("keep") or ())
        count = 0
        for entry in target.iterdir():
            if entry.name in keep:
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            count += 1
        return self._ok(ctx, f"Cleared {count} entries from {target}", target)

    def _symlink(self, ctx: ExecutionContext, target: Path) -> Receipt:
        link_target = ctx.action.params["target"]
        if target.is_symlink() or target.exists():
            if not ctx.action.params.get("force"):
                return Receipt.skip(
                    adapter=self.name,
                    action_id=ctx.action.id,
                    reason=f"{target} already exists",
                )
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        target.symlink_to(link_target)
        return self._ok(ctx, f"{target} -> {link_target}", target)

    def _move(self, ctx: ExecutionContext, target: Path) -> Receipt:
        destination = self._resolve(ctx, ctx.action.params["destination"])
        if destination.is_dir() and not destination.is_symlink():
            shutil.rmtree(destination)
        elif destination.is_symlink() or destination.exists():
            destination.unlink()
        shutil.move(str(target), str(destination))
        return self._ok(ctx, f"Moved {target} to {destination}", destination)

    def _copy(self, ctx: ExecutionContext, target: Path) -> Receipt:
        """Copy a directory's contents into ``destination``, keeping symlinks."""
        destination = self._resolve(ctx, ctx.action.params["destination"])
        if not target.is_dir():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Not a directory: {target}",
            )
        shutil.copytree(target, destination, symlinks=True, dirs_exist_ok=True)
        return self._ok(ctx, f"Copied {target} into {destination}", destination)

    # ── Helpers ─────────────────────────────────────────────────

    def _resolve(self, ctx: ExecutionContext, raw_path: str) -> Path:
        path = Path(raw_path)
        if not path.is_absolute():
            path = Path(ctx.workspace_root) / path
        return path

    def _ok(self, ctx: ExecutionContext, output: str, target: Path) -> Receipt:
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=output,
            metadata={"path": str(target)},
        )
