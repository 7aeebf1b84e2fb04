"""
Workspace preparation — build directories, mounts, GCC tree links, patch.

``prepare`` creates one build directory per active component, backs
each with tmpfs, a bind mount or nothing, links the math libraries
into the GCC tree and applies the compatibility patch. ``release``
unmounts whatever ``prepare`` mounted and is safe to call any number
of times. ``mounted`` wraps both so the release runs on every exit path.

``clean_up`` removes everything a previous run generated and refuses to
continue if anything survives.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from gccforge.core.config.settings import Settings
from gccforge.core.context import BuildContext
from gccforge.core.data.constants import ALL_BUILD_COMPONENTS, BUILD_DIR_PREFIX
from gccforge.core.errors import AcquisitionError, IntegrityError, MissingSourceError, PatchError
from gccforge.core.models.action import Action, Receipt
from gccforge.core.models.plan import BuildPlan, Dependency
from gccforge.core.models.workspace import BackingMode, Workspace

logger = logging.getLogger(__name__)

# Root-level entries a run generates (besides the install tree and
# every root-level symlink).
GENERATED_PATTERNS: tuple[str, ...] = (
    *(f"{BUILD_DIR_PREFIX}{c}" for c in ALL_BUILD_COMPONENTS),
    "binutils",
    "gcc",
    "glibc",
    "newlib",
    "linux",
    "gmp-*",
    "mpfr-*",
    "mpc-*",
    "isl-*",
    "glibc-*",
    "newlib-*",
    "gcc-arm-src-snapshot-*",
    "*.tar.*",
    "upstream",
)

# Entries that must be gone after clean-up.
MUST_BE_ABSENT: tuple[str, ...] = (
    "binutils",
    *(f"{BUILD_DIR_PREFIX}{c}" for c in ALL_BUILD_COMPONENTS),
    "gcc",
    "linux",
)

# Math libraries linked into the GCC tree.
GCC_TREE_LINKS: tuple[Dependency, ...] = (
    Dependency.GMP,
    Dependency.MPFR,
    Dependency.ISL,
    Dependency.MPC,
)


def build_components(plan: BuildPlan) -> list[str]:
    """Components that get a build directory for this plan."""
    return [plan.libc_dependency.value, "gcc", "binutils"]


class WorkspacePreparer:
    """Creates and tears down the build workspace."""

    def __init__(self, ctx: BuildContext, settings: Settings, tmpfs: bool = False):
        self.ctx = ctx
        self.settings = settings
        self.tmpfs = tmpfs
        self.workspace: Workspace | None = None

    @property
    def backing(self) -> BackingMode:
        if self.tmpfs:
            return BackingMode.TMPFS
        if self.settings.bind_root is not None:
            return BackingMode.BIND
        return BackingMode.PLAIN

    # ── Clean up ────────────────────────────────────────────────

    def clean_up(self, target: str | None = None) -> None:
        """Remove the previous run's build trees and verify they are gone.

        Args:
            target: Target triple whose install tree is removed too.

        Raises:
            IntegrityError: If anything generated survives.
        """
        logger.warning("Cleaning up")
        root = self.ctx.root

        if self.backing != BackingMode.TMPFS:
            for component in ALL_BUILD_COMPONENTS:
                build_dir = root / f"{BUILD_DIR_PREFIX}{component}"
                if build_dir.is_dir():
                    self._run_tolerated(Action(
                        id=f"clean:{BUILD_DIR_PREFIX}{component}:contents",
                        adapter="filesystem",
                        params={"operation": "clear", "path": str(build_dir)},
                    ))

        self.release_all()

        doomed: set[Path] = {p for p in root.iterdir() if p.is_symlink()}
        for pattern in GENERATED_PATTERNS:
            doomed.update(root.glob(pattern))
        if target:
            doomed.add(root / target)
        for path in sorted(doomed):
            if path.is_symlink() or path.exists():
                self._run_tolerated(Action(
                    id=f"clean:{path.name}",
                    adapter="filesystem",
                    params={"operation": "remove", "path": str(path)},
                ))

        leftovers = [name for name in MUST_BE_ABSENT if (root / name).is_dir()]
        if target and (root / target).exists():
            leftovers.append(target)
        leftovers += [p.name for p in root.glob("*.tar.*") if p.is_file()]
        if leftovers:
            raise IntegrityError(
                "Clean up failed! Aborting.",
                hint="Check that you have proper permissions to delete "
                + ", ".join(sorted(leftovers)),
            )
        logger.info("Clean up successful!")

    # ── Prepare ─────────────────────────────────────────────────

    def prepare(self, plan: BuildPlan) -> Workspace:
        """Create the build workspace for a plan.

        Raises:
            MissingSourceError: If the GCC tree is absent.
            AcquisitionError: If a directory or mount cannot be created.
            PatchError: If the compatibility patch does not apply.
        """
        root = self.ctx.root
        install_dir = root / plan.target
        self.ctx.prepend_path(install_dir / "bin")

        gcc_tree = root / "gcc"
        if not gcc_tree.is_dir():
            raise MissingSourceError(
                "GCC source is missing!",
                hint="Please check your connection and rerun the build.",
            )

        workspace = Workspace(root=root, install_dir=install_dir, backing=self.backing)
        self.workspace = workspace

        for component in build_components(plan):
            build_dir = root / f"{BUILD_DIR_PREFIX}{component}"
            workspace.build_dirs[component] = build_dir
            self._require(Action(
                id=f"workspace:{BUILD_DIR_PREFIX}{component}",
                adapter="filesystem",
                params={"operation": "mkdir", "path": str(build_dir)},
            ), f"Cannot create {build_dir.name}")

        if workspace.backing != BackingMode.PLAIN:
            self._check_sudo()
            for component, build_dir in workspace.build_dirs.items():
                self._mount(workspace, component, build_dir)

        self._link_gcc_tree(plan, gcc_tree)

        if not plan.no_update:
            self._apply_patch(plan, gcc_tree)

        logger.info(
            "Workspace ready (%s): %s",
            workspace.backing.value,
            ", ".join(p.name for p in workspace.build_dirs.values()),
        )
        return workspace

    def _check_sudo(self) -> None:
        receipt = self.ctx.run(Action(
            id="workspace:sudo",
            adapter="mount",
            params={"operation": "check_sudo"},
        ))
        if receipt.failed:
            raise AcquisitionError(
                "Sudo is not available!",
                hint="Mounting build directories needs root; run plain or as root.",
            )

    def _mount(self, workspace: Workspace, component: str, build_dir: Path) -> None:
        bind_root = self.settings.bind_root
        if workspace.backing == BackingMode.TMPFS:
            params = {"operation": "tmpfs", "path": str(build_dir)}
        elif bind_root is None:
            raise AcquisitionError(
                f"No bind root configured for {build_dir.name}",
                hint="Set bind_root in gccforge.yml or build with --tmpfs.",
            )
        else:
            source = bind_root / component
            self._require(Action(
                id=f"workspace:bind-source:{component}",
                adapter="filesystem",
                params={"operation": "mkdir", "path": str(source)},
            ), f"Cannot create bind source {source}")
            params = {"operation": "bind", "source": str(source), "path": str(build_dir)}

        self._require(Action(
            id=f"workspace:mount:{component}",
            adapter="mount",
            params=params,
        ), f"Cannot mount {build_dir.name}")
        workspace.mounted.add(build_dir)

    def _link_gcc_tree(self, plan: BuildPlan, gcc_tree: Path) -> None:
        for dep in GCC_TREE_LINKS:
            revision = plan.revisions[dep]
            if dep == Dependency.GMP or plan.tarballs:
                target = self.ctx.path(revision.value)
            else:
                target = self.settings.sources_path / dep.value
            self._require(Action(
                id=f"workspace:link:{dep.value}",
                adapter="filesystem",
                params={
                    "operation": "symlink",
                    "path": str(gcc_tree / dep.value),
                    "target": str(target),
                    "force": True,
                },
            ), f"Cannot link {dep.value} into the GCC tree")

    def _apply_patch(self, plan: BuildPlan, gcc_tree: Path) -> None:
        patch_file = self.settings.patches_path / f"{plan.patch}.patch"
        if not patch_file.is_file():
            raise PatchError(
                f"Patch {patch_file.name} not found",
                hint=f"Place it in {self.settings.patches_path} or pass --no-update.",
            )
        receipt = self.ctx.run(Action(
            id=f"workspace:patch:{plan.patch}",
            adapter="shell",
            params={
                "argv": ["patch", "-Np1"],
                "stdin_path": str(patch_file),
                "cwd": str(gcc_tree),
            },
        ))
        if receipt.failed:
            raise PatchError(
                "Failed to patch GCC source!",
                hint=receipt.tail,
            )

    # ── Release ─────────────────────────────────────────────────

    def release(self, workspace: Workspace | None = None) -> list[Receipt]:
        """Unmount every build directory this preparer mounted.

        Idempotent; unmount failures are logged, never raised.
        """
        workspace = workspace or self.workspace
        if workspace is None or not workspace.mounted:
            return []
        receipts = []
        for build_dir in sorted(workspace.mounted):
            receipts.append(self._umount(build_dir))
        workspace.mounted.clear()
        return receipts

    def release_all(self) -> list[Receipt]:
        """Unmount every build directory on disk, mounted or not."""
        receipts = []
        for component in ALL_BUILD_COMPONENTS:
            build_dir = self.ctx.root / f"{BUILD_DIR_PREFIX}{component}"
            if build_dir.is_dir() and build_dir.is_mount():
                receipts.append(self._umount(build_dir))
        if self.workspace is not None:
            self.workspace.mounted.clear()
        return receipts

    def _umount(self, build_dir: Path) -> Receipt:
        return self._run_tolerated(Action(
            id=f"workspace:umount:{build_dir.name}",
            adapter="mount",
            params={"operation": "umount", "path": str(build_dir)},
        ))

    @contextmanager
    def mounted(self, plan: BuildPlan) -> Iterator[Workspace]:
        """Prepare the workspace and release it however the block exits."""
        try:
            yield self.prepare(plan)
        finally:
            self.release()

    # ── Helpers ─────────────────────────────────────────────────

    def _require(self, action: Action, message: str) -> Receipt:
        receipt = self.ctx.run(action)
        if receipt.failed:
            raise AcquisitionError(f"{message}: {receipt.error}")
        return receipt

    def _run_tolerated(self, action: Action) -> Receipt:
        receipt = self.ctx.run(action)
        if receipt.failed:
            logger.warning("%s failed (ignored): %s", action.id, receipt.error)
        return receipt
