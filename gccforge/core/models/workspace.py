"""
Workspace model — build directories, install prefix and mount state.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field


class BackingMode(StrEnum):
    """How each build directory is backed."""

    TMPFS = "tmpfs"  # memory-backed mount
    BIND = "bind"    # bind mount of an operator-supplied directory
    PLAIN = "plain"  # ordinary directory


class Workspace(BaseModel):
    """The per-stage build directories plus the install prefix.

    ``mounted`` tracks which build directories currently hold a mount
    so that release can be repeated safely.
    """

    root: Path
    install_dir: Path
    build_dirs: dict[str, Path] = Field(default_factory=dict)
    backing: BackingMode = BackingMode.PLAIN
    mounted: set[Path] = Field(default_factory=set)

    def build_dir(self, name: str) -> Path:
        """Return the build directory for a component (binutils, gcc, glibc, newlib)."""
        try:
            return self.build_dirs[name]
        except KeyError:
            raise KeyError(f"No build directory for '{name}'") from None

    @property
    def has_mounts(self) -> bool:
        return bool(self.mounted)
