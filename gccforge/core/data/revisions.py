"""
Revision tables — which branch or release each dependency resolves to.

Pure data, no logic. Keyed by (flavor, gcc major version). Each entry
names the GCC revision and, for legacy versions, the binutils, glibc
and isl revisions that must accompany it. Dependencies missing from an
entry fall back to ``*_DEFAULTS``.
"""

from __future__ import annotations

# ── Default revisions ──────────────────────────────────────────

GIT_DEFAULTS: dict[str, str] = {
    "binutils": "master",
    "mpc": "master",
    "isl": "master",
    "glibc": "master",
    "newlib": "master",
}

SVN_DEFAULTS: dict[str, str] = {
    "mpfr": "trunk",
}

TARBALL_DEFAULTS: dict[str, str] = {
    "binutils": "2.38",
    "mpfr": "mpfr-4.1.0",
    "mpc": "mpc-1.2.1",
    "isl": "isl-0.24",
    "glibc": "glibc-2.35",
    "newlib": "newlib-4.1.0",
}

# Always fetched as release archives, whatever the mode.
GMP_RELEASE = "gmp-6.2.1"
LINUX_RELEASE = "5.18"


# ── Git mode ────────────────────────────────────────────────────

GIT_REVISIONS: dict[tuple[str, int], dict[str, str]] = {
    ("gnu", 4): {
        "gcc": "gcc-4_9-branch",
        "binutils": "binutils-2_29-branch",
        "glibc": "release/2.26/master",
        "isl": "isl-0.17.1",
    },
    ("gnu", 5): {
        "gcc": "gcc-5-branch",
        "glibc": "release/2.27/master",
        "isl": "isl-0.17.1",
    },
    ("gnu", 6): {"gcc": "gcc-6-branch"},
    ("gnu", 7): {"gcc": "gcc-7-branch"},
    ("gnu", 8): {"gcc": "gcc-8-branch"},
    ("gnu", 9): {"gcc": "gcc-9-branch"},
    ("gnu", 10): {"gcc": "gcc-10-branch"},
    ("gnu", 11): {"gcc": "master"},
    ("linaro", 4): {
        "gcc": "linaro-local/releases/linaro-4.9-2017.01",
        "glibc": "release/2.27/master",
        "isl": "isl-0.17.1",
    },
    ("linaro", 5): {
        "gcc": "linaro-local/gcc-5-integration-branch",
        "glibc": "release/2.27/master",
        "isl": "isl-0.17.1",
    },
    ("linaro", 6): {"gcc": "linaro-local/gcc-6-integration-branch"},
    ("linaro", 7): {"gcc": "linaro-local/gcc-7-integration-branch"},
    ("linaro", 8): {"gcc": "linaro-local/ARM/arm-8-branch"},
}


# ── Tarball mode ────────────────────────────────────────────────

TARBALL_REVISIONS: dict[tuple[str, int], dict[str, str]] = {
    ("gnu", 4): {
        "gcc": "gcc-4.9.4",
        "gcc_ext": "gz",
        "binutils": "2.29.1",
        "glibc": "glibc-2.26",
        "isl": "isl-0.17.1",
    },
    ("gnu", 5): {
        "gcc": "gcc-5.5.0",
        "glibc": "glibc-2.27",
        "isl": "isl-0.17.1",
    },
    ("gnu", 6): {"gcc": "gcc-6.5.0"},
    ("gnu", 7): {"gcc": "gcc-7.4.0"},
    ("gnu", 8): {"gcc": "gcc-8.3.0"},
    ("gnu", 9): {"gcc": "gcc-9.2.0"},
    ("gnu", 10): {"gcc": "gcc-10.2.0"},
    ("linaro", 4): {
        "gcc": "linaro-4.9-2017.01",
        "glibc": "glibc-2.27",
        "isl": "isl-0.17.1",
    },
    ("linaro", 5): {
        "gcc": "linaro-5.5-2017.10",
        "glibc": "glibc-2.27",
        "isl": "isl-0.17.1",
    },
    ("linaro", 6): {"gcc": "linaro-snapshot-6.5-2018.11"},
    ("linaro", 7): {"gcc": "linaro-snapshot-7.4-2019.01"},
    ("linaro", 8): {"gcc": "8.3-2019.03"},
}

# Default extension of upstream GCC release archives.
GCC_TARBALL_EXT = "xz"

# Combinations that are rejected with a specific message instead of
# the generic "invalid version" error.
#   key: (flavor, version, tarball_mode or None for both modes)
KNOWN_UNAVAILABLE: dict[tuple[str, int, bool | None], str] = {
    ("linaro", 9, None): "There's no such thing as Linaro 9.x, use GNU instead",
    ("linaro", 10, None): "There's no such thing as Linaro 10.x, use GNU instead",
    ("gnu", 11, True): "GCC 11.0 is currently a WIP so there is no tarball to download",
}

# Linaro releases from this major onward ship as ARM source snapshots.
LINARO_ARM_SNAPSHOT_FROM = 8
