"""
Source acquisition — fetch, extract, sync and link every dependency.

Fetching is idempotent: a source whose checkout directory (or archive
file) is already present is skipped without any VCS or network action.
Auxiliary tools (txt2man, pigz) are provisioned once per run into the
prebuilts directory, which then leads the tool search path.

Any failure here is fatal and raises AcquisitionError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gccforge.core.config.settings import Settings
from gccforge.core.context import BuildContext
from gccforge.core.data.constants import AUTOTOOLS_BOOTSTRAP, ROOT_LINKED_SOURCES
from gccforge.core.data.sources import PIGZ_REPO, TXT2MAN_REPO
from gccforge.core.errors import AcquisitionError
from gccforge.core.models.action import Action, Receipt
from gccforge.core.models.plan import BuildPlan, DependencySource, FetchMode

logger = logging.getLogger(__name__)


@dataclass
class SourceStatus:
    """Whether one dependency is already on disk."""

    source: DependencySource
    location: Path
    present: bool

    def to_dict(self) -> dict:
        return {
            "dependency": self.source.dependency.value,
            "mode": self.source.mode.value,
            "revision": str(self.source.revision),
            "url": self.source.url,
            "location": str(self.location),
            "present": self.present,
        }


class SourceAcquirer:
    """Brings every source a plan needs into the workspace."""

    def __init__(self, ctx: BuildContext, settings: Settings):
        self.ctx = ctx
        self.sources_dir = settings.sources_path
        self.prebuilts_dir = settings.prebuilts_path
        self.prebuilts_bin = settings.prebuilts_path / "bin"
        self.tool_cache = settings.tool_cache_dir
        self._tools_ready = False

    # ── Full sequence ───────────────────────────────────────────

    def acquire(self, plan: BuildPlan) -> list[Receipt]:
        """Fetch, extract, sync and link everything the plan needs."""
        self.prepare_sources_dir()
        self.provision_tools(plan.jobs)
        receipts = self.fetch_all(plan)
        self.extract(plan)
        self.update(plan)
        self.link(plan)
        return receipts

    def prepare_sources_dir(self) -> None:
        receipt = self.ctx.run(Action(
            id="sources:mkdir",
            adapter="filesystem",
            params={"operation": "mkdir", "path": str(self.sources_dir)},
        ))
        if receipt.failed:
            raise AcquisitionError(
                f"Failed to create sources directory: {receipt.error}",
                hint="Check that the working directory is writable.",
            )

    def fetch_all(self, plan: BuildPlan) -> list[Receipt]:
        return [self.ensure(source, full_history=plan.full_history) for source in plan.sources]

    # ── Fetch ───────────────────────────────────────────────────

    def location(self, source: DependencySource) -> Path:
        return self.sources_dir / source.path

    def is_present(self, source: DependencySource) -> bool:
        target = self.location(source)
        return target.is_file() if source.is_archive else target.is_dir()

    def status(self, plan: BuildPlan) -> list[SourceStatus]:
        return [
            SourceStatus(source=s, location=self.location(s), present=self.is_present(s))
            for s in plan.sources
        ]

    def ensure(self, source: DependencySource, full_history: bool = False) -> Receipt:
        """Fetch one source unless it is already present.

        Returns:
            The fetch receipt, or a skip receipt when nothing was done.

        Raises:
            AcquisitionError: If the fetch fails.
        """
        dep = source.dependency.value
        action_id = f"fetch:{dep}"

        if self.is_present(source):
            logger.debug("%s already present at %s", dep, self.location(source))
            return Receipt.skip(
                adapter="acquisition",
                action_id=action_id,
                reason=f"{source.path} already present",
            )

        logger.warning("Downloading %s (%s)", dep.upper(), source.revision.value)
        if source.mode == FetchMode.CLONE:
            action = Action(id=action_id, adapter="git", params={
                "operation": "clone",
                "url": source.url,
                "dest": source.path,
                "branch": source.revision.value,
                "shallow": not full_history,
                "cwd": str(self.sources_dir),
            })
        elif source.mode == FetchMode.CHECKOUT:
            action = Action(id=action_id, adapter="svn", params={
                "operation": "checkout",
                "url": source.url,
                "dest": source.path,
                "cwd": str(self.sources_dir),
            })
        else:
            action = Action(id=action_id, adapter="download", params={
                "url": source.url,
                "cwd": str(self.sources_dir),
            })

        receipt = self.ctx.run(action)
        if receipt.failed:
            hint = None
            if receipt.metadata.get("no_downloader"):
                hint = "Install aria2c, wget or curl."
            raise AcquisitionError(f"Failed to fetch {dep}: {receipt.error}", hint=hint)
        return receipt

    # ── Auxiliary tools ─────────────────────────────────────────

    def provision_tools(self, jobs: int) -> None:
        """Build txt2man and pigz into the prebuilts directory, once per run."""
        if self._tools_ready:
            return

        self._require(Action(
            id="tools:mkdir",
            adapter="filesystem",
            params={"operation": "mkdir", "path": str(self.prebuilts_bin)},
        ), "Failed to create prebuilts directory")

        if self.ctx.which("axel") is None and not (self.prebuilts_bin / "txt2man").is_file():
            checkout = self._refresh_tool_checkout("txt2man", TXT2MAN_REPO)
            self._require(Action(
                id="tools:txt2man:install",
                adapter="shell",
                params={
                    "argv": ["make", f"prefix={self.prebuilts_dir}", "install"],
                    "cwd": str(checkout),
                },
            ), "Error installing txt2man")

        self.ctx.prepend_path(self.prebuilts_bin)

        if not (self.prebuilts_bin / "pigz").is_file():
            checkout = self._refresh_tool_checkout("pigz", PIGZ_REPO)
            self._require(Action(
                id="tools:pigz:build",
                adapter="shell",
                params={
                    "argv": ["make", "-C", str(checkout), f"-j{jobs}", "pigz"],
                    "cwd": str(self.tool_cache),
                },
            ), "Error building pigz")
            self._require(Action(
                id="tools:pigz:install",
                adapter="filesystem",
                params={
                    "operation": "move",
                    "path": str(checkout / "pigz"),
                    "destination": str(self.prebuilts_bin / "pigz"),
                },
            ), "Error installing pigz")

        self._tools_ready = True

    def _refresh_tool_checkout(self, name: str, url: str) -> Path:
        checkout = self.tool_cache / name
        self._require(Action(
            id=f"tools:{name}:cache",
            adapter="filesystem",
            params={"operation": "mkdir", "path": str(self.tool_cache)},
        ), f"Failed to create tool cache for {name}")
        if not checkout.is_dir():
            self._require(Action(
                id=f"tools:{name}:clone",
                adapter="git",
                params={"operation": "clone", "url": url, "dest": name, "cwd": str(self.tool_cache)},
            ), f"Issue with cloning {name} source")
        for operation in ("clean", "pull"):
            self._require(Action(
                id=f"tools:{name}:{operation}",
                adapter="git",
                params={"operation": operation, "cwd": str(checkout)},
            ), f"Issue refreshing {name} source")
        return checkout

    # ── Extract ─────────────────────────────────────────────────

    def extract(self, plan: BuildPlan) -> None:
        """Unpack every archive source into its workspace directory."""
        for source in plan.sources:
            if source.is_archive:
                self._extract_one(source)

    def _extract_one(self, source: DependencySource) -> None:
        dep = source.dependency.value
        archive = self.location(source)
        if not source.extract_to:
            raise AcquisitionError(f"No extraction directory for {archive.name}")
        dest = self.ctx.path(source.extract_to)

        if source.member:
            # Only one subtree of the archive is wanted; unpack it
            # next to its destination and rename it into place.
            argv = ["tar", "-x"]
            if source.decompressor:
                argv.append(f"--use-compress-program={source.decompressor}")
            argv += ["-f", str(archive), "-C", str(self.ctx.root), source.member]
            self._require(Action(
                id=f"extract:{dep}",
                adapter="shell",
                params={"argv": argv},
            ), f"Error extracting {archive.name}")
            self._require(Action(
                id=f"extract:{dep}:rename",
                adapter="filesystem",
                params={
                    "operation": "move",
                    "path": source.member,
                    "destination": source.extract_to,
                },
            ), f"Error moving {source.member} into place")
            return

        self._require(Action(
            id=f"extract:{dep}:mkdir",
            adapter="filesystem",
            params={"operation": "mkdir", "path": str(dest)},
        ), f"Cannot create {dest}")
        self._require(Action(
            id=f"extract:{dep}",
            adapter="shell",
            params={"argv": [
                "tar", "xf", str(archive), "-C", str(dest),
                f"--strip-components={source.strip_components}",
            ]},
        ), f"Error extracting {archive.name}")

    # ── Update ──────────────────────────────────────────────────

    def update(self, plan: BuildPlan) -> None:
        """Sync VCS checkouts to their revisions and bootstrap autotools.

        With updates disabled (``no_update`` or tarball mode) existing
        checkouts only get their autotools bootstrap.
        """
        if not plan.updates_enabled:
            for name, commands in AUTOTOOLS_BOOTSTRAP.items():
                checkout = self.sources_dir / name
                if checkout.is_dir():
                    self._bootstrap(name, checkout, commands)
            return

        logger.warning("Updating sources")
        for source in plan.sources:
            if source.is_archive:
                continue
            dep = source.dependency.value
            checkout = self.location(source)
            if source.mode == FetchMode.CHECKOUT:
                action = Action(
                    id=f"update:{dep}",
                    adapter="svn",
                    params={"operation": "update", "cwd": str(checkout)},
                )
            else:
                action = Action(
                    id=f"update:{dep}",
                    adapter="git",
                    params={
                        "operation": "sync",
                        "branch": source.revision.value,
                        "shallow": not plan.full_history,
                        "cwd": str(checkout),
                    },
                )
            self._require(action, f"{dep} did not get fetched properly")
            if dep in AUTOTOOLS_BOOTSTRAP:
                self._bootstrap(dep, checkout, AUTOTOOLS_BOOTSTRAP[dep])

    def _bootstrap(self, name: str, checkout: Path, commands: tuple[tuple[str, ...], ...]) -> None:
        for index, argv in enumerate(commands):
            self._require(Action(
                id=f"bootstrap:{name}:{index}",
                adapter="shell",
                params={"argv": list(argv), "cwd": str(checkout)},
            ), f"Autotools bootstrap of {name} failed")

    # ── Link ────────────────────────────────────────────────────

    def link(self, plan: BuildPlan) -> None:
        """Expose checked-out sources at the workspace root."""
        if plan.tarballs:
            return
        for name in (*ROOT_LINKED_SOURCES, plan.libc_dependency.value):
            link = self.ctx.path(name)
            if link.is_dir():
                continue
            self._require(Action(
                id=f"link:{name}",
                adapter="filesystem",
                params={
                    "operation": "symlink",
                    "path": name,
                    "target": str(self.sources_dir / name),
                },
            ), f"Cannot link {name} into the workspace")

    # ── Helpers ─────────────────────────────────────────────────

    def _require(self, action: Action, message: str) -> Receipt:
        receipt = self.ctx.run(action)
        if receipt.failed:
            raise AcquisitionError(f"{message}: {receipt.error}")
        return receipt
