"""
Build plan model — the immutable result of configuration resolution.

A BuildPlan is produced once by the resolver and threaded read-only
through acquisition, workspace preparation, the stage runner and
packaging. Nothing downstream re-derives a triple or a revision.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class Architecture(StrEnum):
    """Target instruction-set architecture tag."""

    ARM = "arm"
    ARM64 = "arm64"
    I686 = "i686"
    X86_64 = "x86_64"
    HOST = "host"


class Flavor(StrEnum):
    """Compiler source flavor: upstream GNU or the Linaro fork."""

    GNU = "gnu"
    LINARO = "linaro"


class LibcBackend(StrEnum):
    GLIBC = "glibc"
    NEWLIB = "newlib"


class Codec(StrEnum):
    """Compression codec for the packaged toolchain."""

    GZ = "gz"
    XZ = "xz"
    ZSTD = "zstd"


class Dependency(StrEnum):
    BINUTILS = "binutils"
    GMP = "gmp"
    MPFR = "mpfr"
    MPC = "mpc"
    ISL = "isl"
    LINUX = "linux"
    GLIBC = "glibc"
    NEWLIB = "newlib"
    GCC = "gcc"


class RevisionKind(StrEnum):
    GIT = "git"          # branch or tag
    SVN = "svn"          # trunk id
    TARBALL = "tarball"  # release version string


class FetchMode(StrEnum):
    CLONE = "clone"
    CHECKOUT = "checkout"
    ARCHIVE = "archive"


class Revision(BaseModel):
    """One resolved revision descriptor."""

    model_config = ConfigDict(frozen=True)

    kind: RevisionKind
    value: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.value}"


class DependencySource(BaseModel):
    """A single fetch target for one dependency.

    ``path`` is relative to the sources directory: the checkout
    directory for clone/checkout modes, the archive file name for
    archive mode. ``extract_to`` is relative to the workspace root.
    """

    model_config = ConfigDict(frozen=True)

    dependency: Dependency
    mode: FetchMode
    revision: Revision
    url: str
    path: str
    extract_to: str | None = None
    strip_components: int = 1
    member: str | None = None        # archive subtree to extract
    decompressor: str | None = None  # external filter for piped extraction

    @property
    def is_archive(self) -> bool:
        return self.mode == FetchMode.ARCHIVE


class HostInfo(BaseModel):
    """Facts about the machine running the build.

    Detected by ``gccforge.core.services.host`` and handed to the
    resolver so resolution itself never shells out.
    """

    model_config = ConfigDict(frozen=True)

    machine: str         # uname -m
    triple: str          # gcc -dumpmachine
    gcc_major: int = 0   # gcc -dumpversion, major component


class BuildPlan(BaseModel):
    """Everything needed to drive one toolchain build.

    Invariant: every dependency in ``revisions`` has exactly one
    entry in ``sources``. The model is frozen.
    """

    model_config = ConfigDict(frozen=True)

    architecture: Architecture
    for_host: bool = False
    target: str
    kernel_arch: str
    flavor: Flavor
    version: int
    bare_metal: bool = False
    libc: LibcBackend = LibcBackend.GLIBC
    tarballs: bool = False
    revisions: Mapping[Dependency, Revision] = Field(default_factory=dict, validate_default=True)
    sources: tuple[DependencySource, ...] = ()
    patch: str
    jobs: int = 1
    codec: Codec | None = None
    full_history: bool = False
    no_update: bool = False
    build_triple: str = ""

    @field_validator("revisions")
    @classmethod
    def _freeze_revisions(cls, value: Mapping[Dependency, Revision]) -> Mapping[Dependency, Revision]:
        return MappingProxyType(dict(value))

    @field_serializer("revisions")
    def _dump_revisions(self, value: Mapping[Dependency, Revision]) -> dict[Dependency, Revision]:
        return dict(value)

    # ── Derived views ───────────────────────────────────────────

    @property
    def use_newlib(self) -> bool:
        return self.libc == LibcBackend.NEWLIB

    @property
    def libgcc_early(self) -> bool:
        """Whether libgcc is completed right after the compiler front-end.

        Host and x86_64 builds do this; every other target finishes
        libgcc in the middle of the glibc stage instead.
        """
        return self.for_host or self.architecture == Architecture.X86_64

    @property
    def updates_enabled(self) -> bool:
        """Whether existing checkouts get synced to their branches."""
        return not (self.no_update or self.tarballs)

    @property
    def libc_dependency(self) -> Dependency:
        return Dependency.NEWLIB if self.use_newlib else Dependency.GLIBC

    @property
    def libc_source_dir(self) -> str:
        """Root-relative directory holding the libc sources."""
        dep = self.libc_dependency
        if self.tarballs:
            return self.revisions[dep].value
        return dep.value

    @property
    def gcc_binary(self) -> str:
        """Path of the final compiler, relative to the workspace root."""
        return f"{self.target}/bin/{self.target}-gcc"

    def source(self, dependency: Dependency) -> DependencySource:
        """Look up the fetch target for a dependency."""
        for src in self.sources:
            if src.dependency == dependency:
                return src
        raise KeyError(dependency)

    def summary(self) -> dict:
        """Flat JSON-friendly view for the CLI."""
        return {
            "architecture": self.architecture.value,
            "for_host": self.for_host,
            "target": self.target,
            "kernel_arch": self.kernel_arch,
            "flavor": self.flavor.value,
            "version": self.version,
            "bare_metal": self.bare_metal,
            "libc": self.libc.value,
            "tarballs": self.tarballs,
            "jobs": self.jobs,
            "codec": self.codec.value if self.codec else None,
            "patch": self.patch,
            "revisions": {dep.value: str(rev) for dep, rev in self.revisions.items()},
            "sources": [s.model_dump(mode="json") for s in self.sources],
        }
