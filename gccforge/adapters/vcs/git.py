"""
Git adapter — clone and sync source checkouts.

Provides the git operations a build needs (clone, branch sync, clean,
pull, rev-parse, commit, push) through the adapter protocol. Uses the
git CLI — never raw API calls.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.adapters.shell.command import run_captured
from gccforge.core.models.action import Receipt

logger = logging.getLogger(__name__)

_VALID_OPS = {"clone", "sync", "clean", "pull", "rev_parse", "commit", "push"}


class GitAdapter(Adapter):
    """Git version control operations.

    Action params:
        operation (str): One of 'clone', 'sync', 'clean', 'pull',
                         'rev_parse', 'commit', 'push'.
        url (str): Repository URL (for 'clone').
        dest (str): Checkout directory (for 'clone').
        branch (str): Branch or tag (for 'clone' and 'sync').
        shallow (bool): Use ``--depth=1`` (for 'clone' and 'sync', default: True).
        message (str): Commit message (for 'commit').
        cwd (str): Repository directory, relative to the workspace root.
        secrets (list[str]): Values masked in logs and receipts.
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"

        if operation == "clone" and not (params.get("url") and params.get("dest")):
            return False, "Missing required params: 'url' and 'dest' for clone operation"
        if operation == "sync" and not params.get("branch"):
            return False, "Missing required param: 'branch' for sync operation"
        if operation == "commit" and not params.get("message"):
            return False, "Missing required param: 'message' for commit operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        try:
            if operation == "clone":
                return self._clone(context)
            elif operation == "sync":
                return self._sync(context)
            elif operation == "clean":
                return self._simple(context, ["clean", "-fxdq"])
            elif operation == "pull":
                return self._simple(context, ["pull", "--quiet"])
            elif operation == "rev_parse":
                return self._rev_parse(context)
            elif operation == "commit":
                return self._commit(context)
            elif operation == "push":
                return self._simple(context, ["push", "--quiet"])
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except RuntimeError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Git error: {e}",
                metadata={"operation": operation, "tail": str(e)},
            )
        except (OSError, subprocess.SubprocessError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Git error: {e}",
                metadata={"operation": operation},
            )

    # ── Operations ──────────────────────────────────────────────

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        params = ctx.action.params
        args = ["clone", "--quiet"]
        if params.get("shallow", True):
            args.append("--depth=1")
        if params.get("branch"):
            args += ["-b", params["branch"]]
        args += [params["url"], params["dest"]]

        self._git(args, ctx)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=ctx.redact(f"Cloned {params['url']} into {params['dest']}"),
            metadata={"url": ctx.redact(params["url"]), "branch": params.get("branch")},
        )

    def _sync(self, ctx: ExecutionContext) -> Receipt:
        """Fetch a branch and hard-reset the checkout onto it."""
        branch = ctx.action.params["branch"]
        shallow = ctx.action.params.get("shallow", True)

        fetch = ["fetch", "--quiet"]
        if shallow:
            fetch.append("--depth=1")
        self._git([*fetch, "origin", branch], ctx)

        ref = "FETCH_HEAD" if shallow else f"origin/{branch}"
        try:
            self._git(["checkout", "-f", branch], ctx)
        except RuntimeError:
            self._git(["checkout", "-f", "-b", branch, ref], ctx)
        self._git(["reset", "--hard", ref], ctx)

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Synced to {branch} ({ref})",
            metadata={"branch": branch, "ref": ref},
        )

    def _rev_parse(self, ctx: ExecutionContext) -> Receipt:
        rev = ctx.action.params.get("rev", "HEAD")
        sha = self._git(["rev-parse", rev], ctx).strip()
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=sha,
            metadata={"rev": rev, "sha": sha},
        )

    def _commit(self, ctx: ExecutionContext) -> Receipt:
        message = ctx.action.params["message"]
        self._git(["add", "-A"], ctx)
        output = self._git(["commit", "--quiet", "-m", message], ctx)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=output,
            metadata={"message": message},
        )

    def _simple(self, ctx: ExecutionContext, args: list[str]) -> Receipt:
        output = self._git(args, ctx)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=output.strip(),
        )

    # ── Helpers ─────────────────────────────────────────────────

    def _git(self, args: list[str], ctx: ExecutionContext, timeout: int | None = None) -> str:
        """Run a git command and return stdout."""
        logger.debug("git %s (cwd=%s)", ctx.redact(" ".join(args)), ctx.working_dir)
        result = run_captured(["git", *args], cwd=ctx.working_dir, env=ctx.environment(), timeout=timeout)
        if result.returncode != 0:
            raise RuntimeError(ctx.redact(result.stderr.strip()) or f"git {args[0]} failed")
        return result.stdout
