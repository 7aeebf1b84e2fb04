"""
Compatibility patch table for the GCC tree.

Pure data, no logic. Patch files themselves are supplied by the
operator in ``patches_dir`` as ``<name>.patch``.
"""

from __future__ import annotations

GCC_PATCHES: dict[int, str] = {
    4: "942-asan-fix-missing-include-signal-h",
    5: "GCC_10_up",
    6: "GCC_6-8",
    7: "GCC_6-8",
    8: "GCC_6-8",
    9: "GCC_9",
}

# Every major from this one onward uses the same patch.
GCC_PATCH_OPEN_ENDED_FROM = 10
GCC_PATCH_OPEN_ENDED = "GCC_10_up"
