"""
Download adapter — fetch a release archive with the best available tool.

Prefers ``aria2c`` with split connections, then ``wget``, then
``curl -LO``. The tool is looked up on the context's search path, so
prebuilt helpers take precedence over system ones.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.adapters.shell.command import run_streaming
from gccforge.core.data.constants import DOWNLOADERS
from gccforge.core.models.action import Receipt

logger = logging.getLogger(__name__)


def pick_downloader(context: ExecutionContext) -> list[str] | None:
    """Return the downloader argv prefix, or None when none is installed."""
    for program, args in DOWNLOADERS:
        path = context.which(program)
        if path:
            return [path, *args]
    return None


class DownloadAdapter(Adapter):
    """Download one URL into the working directory.

    Action params:
        url (str): What to fetch.
        cwd (str): Destination directory.
    """

    @property
    def name(self) -> str:
        return "download"

    def is_available(self) -> bool:
        return any(shutil.which(program) for program, _ in DOWNLOADERS)

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.action.params.get("url"):
            return False, "Missing required param: 'url'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        url = context.action.params["url"]
        downloader = pick_downloader(context)
        if downloader is None:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error="Neither aria2c, wget nor curl could be found on your system!",
                metadata={"url": url, "no_downloader": True},
            )

        argv = [*downloader, url]
        logger.info("Downloading %s", url)
        try:
            code, tail = run_streaming(argv, cwd=context.working_dir, env=context.environment())
        except (OSError, subprocess.SubprocessError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Download error: {e}",
                metadata={"url": url},
            )

        if code != 0:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Download of {url} failed with code {code}",
                metadata={"url": url, "return_code": code, "tail": tail},
            )
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Downloaded {url}",
            metadata={"url": url, "downloader": downloader[0]},
        )

