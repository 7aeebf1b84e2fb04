"""
Shared test fixtures and configuration.

Builds run against a registry where the filesystem adapter is real and
every other tool (shell, git, svn, download, mount) is a MockAdapter,
so a whole toolchain build completes inside ``tmp_path`` in
milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from gccforge.adapters.base import ExecutionContext
from gccforge.adapters.mock import MockAdapter
from gccforge.adapters.registry import AdapterRegistry
from gccforge.adapters.shell.filesystem import FilesystemAdapter
from gccforge.core.config.settings import Settings
from gccforge.core.context import BuildContext
from gccforge.core.models.plan import HostInfo

MOCKED_TOOLS = ("shell", "git", "svn", "download", "mount")


@dataclass
class Tools:
    """A registry plus direct handles on its mock adapters."""

    registry: AdapterRegistry
    shell: MockAdapter
    git: MockAdapter
    svn: MockAdapter
    download: MockAdapter
    mount: MockAdapter


def _create_checkout(ctx: ExecutionContext) -> None:
    (Path(ctx.working_dir) / ctx.action.params["dest"]).mkdir(parents=True, exist_ok=True)


def _create_archive(ctx: ExecutionContext) -> None:
    name = ctx.action.params["url"].rsplit("/", 1)[-1]
    Path(ctx.working_dir).mkdir(parents=True, exist_ok=True)
    (Path(ctx.working_dir) / name).write_bytes(b"archive")


@pytest.fixture
def tools() -> Tools:
    """Registry with a real filesystem adapter and mocks for every tool.

    Clones, checkouts and downloads create what the real tool would,
    so later steps (linking, workspace preparation) see the sources.
    """
    registry = AdapterRegistry()
    registry.register(FilesystemAdapter())
    mocks = {name: MockAdapter(adapter_name=name) for name in MOCKED_TOOLS}
    for mock in mocks.values():
        registry.register(mock)

    mocks["git"].set_side_effect("fetch:*", _create_checkout)
    mocks["svn"].set_side_effect("fetch:*", _create_checkout)
    mocks["download"].set_side_effect("fetch:*", _create_archive)
    return Tools(registry=registry, **mocks)


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Workspace root with the auxiliary tools and patches already in place."""
    root = tmp_path / "work"
    bin_dir = root / "prebuilts" / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / "pigz").write_text("#!/bin/sh\n")
    (bin_dir / "txt2man").write_text("#!/bin/sh\n")

    patches = root / "patches"
    patches.mkdir()
    for name in ("GCC_10_up", "GCC_9", "GCC_6-8", "942-asan-fix-missing-include-signal-h"):
        (patches / f"{name}.patch").write_text("--- a\n+++ b\n")
    return root


@pytest.fixture
def settings(workdir: Path, tmp_path: Path) -> Settings:
    """Settings rooted at the test workspace, with no side channels."""
    return Settings(workdir=workdir, tool_cache_dir=tmp_path / "tool-cache")


@pytest.fixture
def ctx(tools: Tools, settings: Settings) -> BuildContext:
    return BuildContext(registry=tools.registry, root=settings.root)


@pytest.fixture
def host() -> HostInfo:
    """An x86_64 build machine running GCC 9."""
    return HostInfo(machine="x86_64", triple="x86_64-pc-linux-gnu", gcc_major=9)
