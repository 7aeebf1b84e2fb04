"""Adapters — tool bindings for every external program a build invokes.

Public re-exports for convenient access.
"""

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.adapters.mock import MockAdapter
from gccforge.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]


def default_registry() -> AdapterRegistry:
    """Registry with every real adapter registered."""
    from gccforge.adapters.net.download import DownloadAdapter
    from gccforge.adapters.shell.command import ShellCommandAdapter
    from gccforge.adapters.shell.filesystem import FilesystemAdapter
    from gccforge.adapters.system.mount import MountAdapter
    from gccforge.adapters.vcs.git import GitAdapter
    from gccforge.adapters.vcs.svn import SvnAdapter

    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter())
    registry.register(FilesystemAdapter())
    registry.register(GitAdapter())
    registry.register(SvnAdapter())
    registry.register(DownloadAdapter())
    registry.register(MountAdapter())
    return registry
