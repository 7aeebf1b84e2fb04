"""
Configuration resolver — (architecture, flavor, version) → BuildPlan.

Pure and table-driven: every decision is a lookup in
``gccforge.core.data``, and any combination the tables do not cover
is rejected with a ValidationError before a single byte is fetched.
Host facts (for ``--arch host``) are detected elsewhere and passed in.
"""

from __future__ import annotations

import logging
import os

from gccforge.core.data.patches import (
    GCC_PATCH_OPEN_ENDED,
    GCC_PATCH_OPEN_ENDED_FROM,
    GCC_PATCHES,
)
from gccforge.core.data.revisions import (
    GCC_TARBALL_EXT,
    GIT_DEFAULTS,
    GIT_REVISIONS,
    GMP_RELEASE,
    KNOWN_UNAVAILABLE,
    LINARO_ARM_SNAPSHOT_FROM,
    LINUX_RELEASE,
    SVN_DEFAULTS,
    TARBALL_DEFAULTS,
    TARBALL_REVISIONS,
)
from gccforge.core.data.sources import (
    FIXED_EXTRACT_DIRS,
    GCC_ARM_SNAPSHOT_DECOMPRESSOR,
    GCC_ARM_SNAPSHOT_MEMBER,
    GCC_ARM_SNAPSHOT_URL,
    GCC_GNU_URL,
    GCC_LINARO_URL,
    GIT_REPOSITORIES,
    GMP_ARCHIVE,
    GMP_URL,
    LINUX_ARCHIVE,
    LINUX_URL,
    SVN_REPOSITORIES,
    TARBALL_URLS,
)
from gccforge.core.data.triples import (
    BARE_METAL_TRIPLES,
    HOSTED_TRIPLES,
    KERNEL_ARCHES,
    MACHINE_ARCHES,
    X86_64_MIN_EXCLUSIVE,
)
from gccforge.core.errors import ValidationError
from gccforge.core.models.plan import (
    Architecture,
    BuildPlan,
    Codec,
    Dependency,
    DependencySource,
    FetchMode,
    Flavor,
    HostInfo,
    LibcBackend,
    Revision,
    RevisionKind,
)

logger = logging.getLogger(__name__)

_USAGE_HINT = "Run 'gccforge build --help' for the supported values."


def default_jobs() -> int:
    """One more job than there are CPUs."""
    return (os.cpu_count() or 1) + 1


def resolve(
    architecture: Architecture | str,
    flavor: Flavor | str,
    version: int,
    bare_metal: bool = False,
    use_newlib: bool = False,
    tarball_mode: bool = False,
    *,
    host: HostInfo | None = None,
    jobs: int | None = None,
    codec: Codec | str | None = None,
    full_history: bool = False,
    no_update: bool = False,
) -> BuildPlan:
    """Resolve a build request into an immutable BuildPlan.

    Args:
        architecture: Target architecture tag, or ``host``.
        flavor: ``gnu`` or ``linaro``.
        version: GCC major version.
        bare_metal: Build a bare-metal (ELF) toolchain; implies newlib.
        use_newlib: Use newlib instead of glibc.
        tarball_mode: Fetch release archives instead of VCS checkouts.
        host: Facts about the build machine. Required for ``host``.
        jobs: Parallel job count (default: CPU count + 1).
        codec: Optional compression codec for packaging.
        full_history: Clone with full history instead of ``--depth=1``.
        no_update: Do not sync existing checkouts or apply patches.

    Returns:
        A frozen BuildPlan.

    Raises:
        ValidationError: For any unsupported combination.
    """
    arch = _parse_architecture(architecture)
    source = _parse_flavor(flavor)
    codec_value = _parse_codec(codec)

    # ── Architecture and triple ─────────────────────────────────
    for_host = False
    if arch == Architecture.HOST:
        if host is None:
            raise ValidationError(
                "Host details are required to build for the host",
                hint="Detect the host compiler first (gcc -dumpmachine / -dumpversion).",
            )
        if version <= host.gcc_major:
            raise ValidationError(
                "Building toolchain older than distribution one is not supported on host target!",
                hint=f"The host compiler is GCC {host.gcc_major}; pick a newer version.",
            )
        mapped = MACHINE_ARCHES.get(host.machine)
        if mapped is None:
            raise ValidationError(
                f"Unsupported host machine '{host.machine}'",
                hint=_USAGE_HINT,
            )
        arch = Architecture(mapped)
        target = host.triple
        for_host = True
    else:
        if arch == Architecture.X86_64 and version <= X86_64_MIN_EXCLUSIVE:
            raise ValidationError(
                "Will not build, Use newer version instead",
                hint=f"x86_64 toolchains need GCC {X86_64_MIN_EXCLUSIVE + 1} or newer.",
            )
        target = HOSTED_TRIPLES[arch.value]

    libc = LibcBackend.NEWLIB if use_newlib else LibcBackend.GLIBC
    if bare_metal:
        target = BARE_METAL_TRIPLES.get(target, target)
        libc = LibcBackend.NEWLIB

    kernel_arch = KERNEL_ARCHES[arch.value]

    # ── Revisions ───────────────────────────────────────────────
    revisions, gcc_ext = _resolve_revisions(source, version, tarball_mode, libc)
    sources = _build_sources(source, version, tarball_mode, revisions, gcc_ext)

    plan = BuildPlan(
        architecture=arch,
        for_host=for_host,
        target=target,
        kernel_arch=kernel_arch,
        flavor=source,
        version=version,
        bare_metal=bare_metal,
        libc=libc,
        tarballs=tarball_mode,
        revisions=revisions,
        sources=sources,
        patch=patch_for(version),
        jobs=jobs if jobs is not None else default_jobs(),
        codec=codec_value,
        full_history=full_history,
        no_update=no_update,
        build_triple=host.triple if host else "",
    )
    logger.info(
        "Resolved %s %s %d → %s (%s, %s)",
        arch.value, source.value, version, target, libc.value,
        "tarballs" if tarball_mode else "git",
    )
    return plan


def patch_for(version: int) -> str:
    """Name of the compatibility patch for a GCC major version."""
    if version >= GCC_PATCH_OPEN_ENDED_FROM:
        return GCC_PATCH_OPEN_ENDED
    try:
        return GCC_PATCHES[version]
    except KeyError:
        raise ValidationError(
            f"No compatibility patch known for GCC {version}",
            hint=_USAGE_HINT,
        ) from None


# ── Parsing ─────────────────────────────────────────────────────


def _parse_architecture(value: Architecture | str) -> Architecture:
    try:
        return Architecture(value)
    except ValueError:
        raise ValidationError(
            "Absent or invalid arch specified!",
            hint="Possible values: arm, arm64, host, i686, or x86_64.",
        ) from None


def _parse_flavor(value: Flavor | str) -> Flavor:
    try:
        return Flavor(value)
    except ValueError:
        raise ValidationError(
            "Absent or invalid GCC version or source specified!",
            hint="Possible sources: gnu, linaro.",
        ) from None


def _parse_codec(value: Codec | str | None) -> Codec | None:
    if value is None or value == "":
        return None
    try:
        return Codec(value)
    except ValueError:
        raise ValidationError(
            f"Invalid compression '{value}' specified",
            hint="Possible values: gz, xz, zstd.",
        ) from None


# ── Revision tables ─────────────────────────────────────────────


def _resolve_revisions(
    flavor: Flavor,
    version: int,
    tarball_mode: bool,
    libc: LibcBackend,
) -> tuple[dict[Dependency, Revision], str]:
    """Look up the revision of every dependency.

    Returns:
        (revisions, gcc archive extension).
    """
    for mode in (tarball_mode, None):
        message = KNOWN_UNAVAILABLE.get((flavor.value, version, mode))
        if message:
            raise ValidationError(
                message,
                hint="Use the git sources or choose another version."
                if tarball_mode else _USAGE_HINT,
            )

    table = TARBALL_REVISIONS if tarball_mode else GIT_REVISIONS
    entry = table.get((flavor.value, version))
    if entry is None:
        raise ValidationError(
            "Absent or invalid GCC version or source specified!",
            hint=_USAGE_HINT,
        )

    wanted = [Dependency.BINUTILS, Dependency.MPFR, Dependency.MPC, Dependency.ISL]
    wanted.append(Dependency.NEWLIB if libc == LibcBackend.NEWLIB else Dependency.GLIBC)

    revisions: dict[Dependency, Revision] = {
        Dependency.GMP: Revision(kind=RevisionKind.TARBALL, value=GMP_RELEASE),
        Dependency.LINUX: Revision(kind=RevisionKind.TARBALL, value=LINUX_RELEASE),
    }
    for dep in wanted:
        name = dep.value
        if tarball_mode:
            revisions[dep] = Revision(
                kind=RevisionKind.TARBALL,
                value=entry.get(name, TARBALL_DEFAULTS[name]),
            )
        elif name in SVN_DEFAULTS:
            revisions[dep] = Revision(kind=RevisionKind.SVN, value=SVN_DEFAULTS[name])
        else:
            revisions[dep] = Revision(
                kind=RevisionKind.GIT,
                value=entry.get(name, GIT_DEFAULTS[name]),
            )

    revisions[Dependency.GCC] = Revision(
        kind=RevisionKind.TARBALL if tarball_mode else RevisionKind.GIT,
        value=entry["gcc"],
    )
    return revisions, entry.get("gcc_ext", GCC_TARBALL_EXT)


def _build_sources(
    flavor: Flavor,
    version: int,
    tarball_mode: bool,
    revisions: dict[Dependency, Revision],
    gcc_ext: str,
) -> tuple[DependencySource, ...]:
    """Turn resolved revisions into concrete fetch targets."""
    sources: list[DependencySource] = []

    gmp = revisions[Dependency.GMP]
    sources.append(DependencySource(
        dependency=Dependency.GMP,
        mode=FetchMode.ARCHIVE,
        revision=gmp,
        url=GMP_URL.format(rev=gmp.value),
        path=GMP_ARCHIVE.format(rev=gmp.value),
        extract_to=gmp.value,
    ))

    linux = revisions[Dependency.LINUX]
    sources.append(DependencySource(
        dependency=Dependency.LINUX,
        mode=FetchMode.ARCHIVE,
        revision=linux,
        url=LINUX_URL.format(rev=linux.value, major=linux.value.split(".")[0]),
        path=LINUX_ARCHIVE.format(rev=linux.value),
        extract_to=FIXED_EXTRACT_DIRS["linux"],
    ))

    for dep, rev in revisions.items():
        if dep in (Dependency.GMP, Dependency.LINUX, Dependency.GCC):
            continue
        name = dep.value
        if rev.kind == RevisionKind.SVN:
            url, directory = SVN_REPOSITORIES[name]
            sources.append(DependencySource(
                dependency=dep,
                mode=FetchMode.CHECKOUT,
                revision=rev,
                url=url.format(rev=rev.value),
                path=directory,
            ))
        elif rev.kind == RevisionKind.GIT:
            url, directory = GIT_REPOSITORIES[name]
            sources.append(DependencySource(
                dependency=dep,
                mode=FetchMode.CLONE,
                revision=rev,
                url=url,
                path=directory,
            ))
        else:
            url, archive = TARBALL_URLS[name]
            sources.append(DependencySource(
                dependency=dep,
                mode=FetchMode.ARCHIVE,
                revision=rev,
                url=url.format(rev=rev.value),
                path=archive.format(rev=rev.value),
                extract_to=FIXED_EXTRACT_DIRS.get(name, rev.value),
            ))

    sources.append(_gcc_source(flavor, version, tarball_mode, revisions[Dependency.GCC], gcc_ext))
    return tuple(sources)


def _gcc_source(
    flavor: Flavor,
    version: int,
    tarball_mode: bool,
    rev: Revision,
    ext: str,
) -> DependencySource:
    if not tarball_mode:
        url, directory = GIT_REPOSITORIES["gcc"]
        return DependencySource(
            dependency=Dependency.GCC,
            mode=FetchMode.CLONE,
            revision=rev,
            url=url,
            path=directory,
        )

    if flavor == Flavor.GNU:
        url, archive = GCC_GNU_URL
        return DependencySource(
            dependency=Dependency.GCC,
            mode=FetchMode.ARCHIVE,
            revision=rev,
            url=url.format(rev=rev.value, ext=ext),
            path=archive.format(rev=rev.value, ext=ext),
            extract_to=FIXED_EXTRACT_DIRS["gcc"],
        )

    if version >= LINARO_ARM_SNAPSHOT_FROM:
        # The ARM snapshot bundles other GNU tools; only the gcc subtree
        # is unpacked, then renamed.
        url, archive = GCC_ARM_SNAPSHOT_URL
        return DependencySource(
            dependency=Dependency.GCC,
            mode=FetchMode.ARCHIVE,
            revision=rev,
            url=url.format(rev=rev.value),
            path=archive.format(rev=rev.value),
            extract_to=FIXED_EXTRACT_DIRS["gcc"],
            strip_components=0,
            member=GCC_ARM_SNAPSHOT_MEMBER.format(rev=rev.value),
            decompressor=GCC_ARM_SNAPSHOT_DECOMPRESSOR,
        )

    url, archive = GCC_LINARO_URL
    return DependencySource(
        dependency=Dependency.GCC,
        mode=FetchMode.ARCHIVE,
        revision=rev,
        url=url.format(rev=rev.value),
        path=archive.format(rev=rev.value),
        extract_to=FIXED_EXTRACT_DIRS["gcc"],
    )
