"""
Source locations — repositories and archive URL templates.

Pure data, no logic. Templates are ``str.format`` patterns; the
resolver fills in the resolved revision as ``{rev}`` (and ``{major}``
for the kernel, ``{ext}`` for GCC release archives).
"""

from __future__ import annotations

# ── Always-archive dependencies ─────────────────────────────────

GMP_URL = "https://gmplib.org/download/gmp/{rev}.tar.lz"
GMP_ARCHIVE = "{rev}.tar.lz"

LINUX_URL = "https://cdn.kernel.org/pub/linux/kernel/v{major}.x/linux-{rev}.tar.xz"
LINUX_ARCHIVE = "linux-{rev}.tar.xz"


# ── Version control ─────────────────────────────────────────────
#   dependency: (url, checkout directory under sources/)

GIT_REPOSITORIES: dict[str, tuple[str, str]] = {
    "mpc": ("https://scm.gforge.inria.fr/anonscm/git/mpc/mpc.git", "mpc"),
    "newlib": ("git://sourceware.org/git/newlib-cygwin.git", "newlib"),
    "glibc": ("git://sourceware.org/git/glibc.git", "glibc"),
    "binutils": ("https://git.linaro.org/toolchain/binutils-gdb.git", "binutils"),
    "isl": ("git://repo.or.cz/isl.git", "isl"),
    "gcc": ("https://gcc.gnu.org/git/gcc.git", "gcc"),
}

SVN_REPOSITORIES: dict[str, tuple[str, str]] = {
    "mpfr": ("svn://scm.gforge.inria.fr/svnroot/mpfr/{rev}", "mpfr"),
}


# ── Release archives ────────────────────────────────────────────
#   dependency: (url template, archive file name template)

TARBALL_URLS: dict[str, tuple[str, str]] = {
    "mpfr": ("https://www.mpfr.org/mpfr-current/{rev}.tar.xz", "{rev}.tar.xz"),
    "mpc": ("https://ftp.gnu.org/gnu/mpc/{rev}.tar.gz", "{rev}.tar.gz"),
    "newlib": ("ftp://sourceware.org/pub/newlib/{rev}.tar.gz", "{rev}.tar.gz"),
    "glibc": ("https://ftp.gnu.org/gnu/glibc/{rev}.tar.xz", "{rev}.tar.xz"),
    "binutils": (
        "https://ftp.gnu.org/gnu/binutils/binutils-{rev}.tar.xz",
        "binutils-{rev}.tar.xz",
    ),
    "isl": ("http://isl.gforge.inria.fr/{rev}.tar.xz", "{rev}.tar.xz"),
}

GCC_GNU_URL = ("https://mirrors.kernel.org/gnu/gcc/{rev}/{rev}.tar.{ext}", "{rev}.tar.{ext}")
GCC_LINARO_URL = (
    "https://git.linaro.org/toolchain/gcc.git/snapshot/gcc-{rev}.tar.gz",
    "gcc-{rev}.tar.gz",
)
GCC_ARM_SNAPSHOT_URL = (
    "https://developer.arm.com/-/media/Files/downloads/gnu-a/{rev}/srcrel/"
    "gcc-arm-src-snapshot-{rev}.tar.xz",
    "gcc-arm-src-snapshot-{rev}.tar.xz",
)
GCC_ARM_SNAPSHOT_MEMBER = "gcc-arm-src-snapshot-{rev}"
GCC_ARM_SNAPSHOT_DECOMPRESSOR = "pxz"

# Root-relative extraction directories for archives whose target is
# not named after the revision itself.
FIXED_EXTRACT_DIRS: dict[str, str] = {
    "linux": "linux",
    "binutils": "binutils",
    "gcc": "gcc",
}


# ── Auxiliary tools ─────────────────────────────────────────────

TXT2MAN_REPO = "https://github.com/mvertes/txt2man"
PIGZ_REPO = "https://github.com/madler/pigz"


# ── Release notes ───────────────────────────────────────────────

GCC_COMMIT_URL = "https://gcc.gnu.org/git/?p=gcc.git;a=commit;h={sha}"
