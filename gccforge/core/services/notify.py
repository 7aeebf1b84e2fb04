"""
Notification side channel — ship the run log and publish releases.

Both operations run after the build verdict is known and never change
it: every failure here is logged as a warning and reported back as
``False``. Credentials travel as action ``secrets`` so they are masked
in the run log that gets shipped.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gccforge.core.config.settings import Settings
from gccforge.core.context import BuildContext
from gccforge.core.data.sources import GCC_COMMIT_URL
from gccforge.core.models.action import Action, Receipt
from gccforge.core.models.plan import BuildPlan
from gccforge.core.services.packaging import BuildReport, build_date

logger = logging.getLogger(__name__)

# Checkout of the publish repository, relative to the workspace root.
RELEASE_CHECKOUT = "upstream"


class Notifier:
    """Talks to the Telegram bot and the publish repository."""

    def __init__(self, ctx: BuildContext, settings: Settings):
        self.ctx = ctx
        self.notify = settings.notify
        self.publish = settings.publish
        self.timezone = settings.timezone

    # ── Logs ────────────────────────────────────────────────────

    def push_logs(self, target: str, log_path: Path, gcc_version: str | None = None) -> bool:
        """Upload the run log as a document to the configured chat."""
        if not self.notify.enabled:
            logger.debug("Telegram not configured; not shipping %s", log_path)
            return False
        if not log_path.is_file():
            logger.warning("Run log %s does not exist; nothing to ship", log_path)
            return False

        token = self.notify.bot_token or ""
        caption = f"Build logs GCC for Target: {target}. GCC Version: {gcc_version or 'unknown'}"
        receipt = self.ctx.run(Action(
            id="notify:logs",
            adapter="shell",
            params={
                "argv": [
                    "curl", "-s",
                    "-F", f"document=@{log_path}",
                    f"{self.notify.api_base}/bot{token}/sendDocument",
                    "-F", f"chat_id={self.notify.chat_id}",
                    "-F", "disable_web_page_preview=false",
                    "-F", "parse_mode=html",
                    "-F", f"caption={caption}",
                ],
                "cwd": str(self.ctx.root),
                "secrets": [token],
            },
        ))
        return self._warn_unless_ok(receipt, "Failed to ship the run log")

    # ── Release ─────────────────────────────────────────────────

    def publish_release(self, plan: BuildPlan, report: BuildReport) -> bool:
        """Push the install tree to the publish repository and announce it.

        Returns:
            True when the push succeeded (the announcement is best-effort).
        """
        if not self.publish.enabled:
            logger.warning("Release requested but no publish repository is configured")
            return False
        if not report.success:
            logger.warning("Not publishing a failed build")
            return False

        logger.warning("Publishing %s", plan.target)
        token = self.publish.token or ""
        secrets = [token] if token else []
        url = (self.publish.repository or "").format(target=plan.target, token=token)
        message = self.commit_message(plan, report, self._builder_commit())

        steps = [
            Action(
                id="release:reset",
                adapter="filesystem",
                params={"operation": "remove", "path": RELEASE_CHECKOUT},
            ),
            Action(
                id="release:clone",
                adapter="git",
                params={
                    "operation": "clone",
                    "url": url,
                    "dest": RELEASE_CHECKOUT,
                    "cwd": str(self.ctx.root),
                    "secrets": secrets,
                },
            ),
            Action(
                id="release:clear",
                adapter="filesystem",
                params={
                    "operation": "clear",
                    "path": RELEASE_CHECKOUT,
                    "keep": [".git", *self.publish.keep],
                },
            ),
            Action(
                id="release:copy",
                adapter="filesystem",
                params={"operation": "copy", "path": plan.target, "destination": RELEASE_CHECKOUT},
            ),
            Action(
                id="release:commit",
                adapter="git",
                params={
                    "operation": "commit",
                    "message": message,
                    "cwd": RELEASE_CHECKOUT,
                    "env": self._identity(),
                },
            ),
            Action(
                id="release:push",
                adapter="git",
                params={"operation": "push", "cwd": RELEASE_CHECKOUT, "secrets": secrets},
            ),
        ]
        for action in steps:
            if not self._warn_unless_ok(self.ctx.run(action), f"Release step {action.id} failed"):
                return False

        head = self.ctx.run(Action(
            id="release:head",
            adapter="git",
            params={"operation": "rev_parse", "cwd": RELEASE_CHECKOUT},
        ))
        if head.ok and head.output:
            self.announce(plan, head.output.strip(), message)
        return True

    def commit_message(self, plan: BuildPlan, report: BuildReport, builder_commit: str) -> str:
        """Commit message for the publish repository."""
        version = report.gcc_version or "unknown"
        if plan.tarballs or not report.gcc_commit:
            return f"toolchain: Bump GCC version: {version}\n\nBUILDER COMMIT: {builder_commit}"

        commit_url = GCC_COMMIT_URL.format(sha=report.gcc_commit)
        date = build_date(self.timezone, fmt="%d%m%Y")
        return (
            f"Update to {commit_url}, {date} build.\n\n"
            f"GCC VERSION: {version}\n"
            f"GCC COMMIT URL: {commit_url}\n"
            f"BUILDER COMMIT: {builder_commit}"
        )

    def announce(self, plan: BuildPlan, sha: str, message: str) -> bool:
        """Post the new publish-repository commit to the channel."""
        if not (self.notify.bot_token and self.notify.channel_id):
            logger.debug("No channel configured; skipping release announcement")
            return False

        branch = "stable" if plan.tarballs else "master"
        short = sha[:8]
        if self.publish.commit_url:
            link = f"[{short}]({self.publish.commit_url.format(target=plan.target, sha=sha)})"
        else:
            link = short
        text = f"⚒️ New commit to {plan.target}:{branch}\n\n{link}: {message}"

        token = self.notify.bot_token
        receipt = self.ctx.run(Action(
            id="release:announce",
            adapter="shell",
            params={
                "argv": [
                    "curl", "-s", "-X", "POST",
                    f"{self.notify.api_base}/bot{token}/sendMessage?chat_id={self.notify.channel_id}",
                    "-d", "disable_web_page_preview=true",
                    "-d", f"parse_mode=markdown&text={text}",
                ],
                "cwd": str(self.ctx.root),
                "secrets": [token],
            },
        ))
        return self._warn_unless_ok(receipt, "Failed to announce the release")

    # ── Helpers ─────────────────────────────────────────────────

    def _builder_commit(self) -> str:
        receipt = self.ctx.run(Action(
            id="release:builder-commit",
            adapter="git",
            params={"operation": "rev_parse", "cwd": str(self.ctx.root)},
        ))
        return receipt.output.strip() if receipt.ok and receipt.output else "unknown"

    def _identity(self) -> dict[str, str]:
        env = {}
        if self.publish.user_name:
            env["GIT_AUTHOR_NAME"] = env["GIT_COMMITTER_NAME"] = self.publish.user_name
        if self.publish.user_email:
            env["GIT_AUTHOR_EMAIL"] = env["GIT_COMMITTER_EMAIL"] = self.publish.user_email
        return env

    def _warn_unless_ok(self, receipt: Receipt, message: str) -> bool:
        if receipt.failed:
            logger.warning("%s: %s", message, receipt.error)
            return False
        return True
