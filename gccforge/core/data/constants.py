"""
Build constants — flags, tool invocations and workspace names.

Pure data, no logic.
"""

from __future__ import annotations

# Flags appended to every configure invocation.
CONFIGURE_BASELINE: tuple[str, ...] = (
    "--disable-multilib",
    "--disable-werror",
    "CFLAGS=-g0 -O3 -fstack-protector-strong",
    "CXXFLAGS=-g0 -O3 -fstack-protector-strong",
)

# Downloaders in preference order: (executable, extra args before the URL).
DOWNLOADERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("aria2c", ("--split=16", "--max-connection-per-server=16", "--summary-interval=0")),
    ("wget", ()),
    ("curl", ("-LO",)),
)

# Compression program passed to ``tar --use-compress-program``.
CODEC_PROGRAMS: dict[str, str] = {
    "gz": "pigz -9",
    "xz": "pxz -9",
    "zstd": "zstd -19",
}

# Autotools bootstrap run in a VCS checkout after it is fetched or synced.
AUTOTOOLS_BOOTSTRAP: dict[str, tuple[tuple[str, ...], ...]] = {
    "mpfr": (("./autogen.sh",), ("automake", "--add-missing")),
    "mpc": (("autoreconf", "-i"),),
    "isl": (("./autogen.sh",),),
}

# Sources symlinked into the workspace root after a VCS fetch.
ROOT_LINKED_SOURCES: tuple[str, ...] = ("binutils", "gcc")

# Workspace layout, relative to the workspace root.
SOURCES_DIR = "sources"
PREBUILTS_DIR = "prebuilts"
PATCHES_DIR = "patches"
BUILD_DIR_PREFIX = "build-"

# Every build directory a run can create.
ALL_BUILD_COMPONENTS: tuple[str, ...] = ("binutils", "gcc", "glibc", "newlib")

# Default run log name (what the notification channel ships).
DEFAULT_LOG_FILE = "build-gnu-gcc-tc.log"

# Header touched so glibc's configure self-check passes.
GLIBC_STUBS_HEADER = "include/gnu/stubs.h"

# Lines removed (in this order) from the fixed-include statx header
# before the final compiler build.
STATX_HEADER = "gcc/include-fixed/bits/statx.h"
STATX_DELETE_LINES: tuple[int, ...] = (38, 43)
