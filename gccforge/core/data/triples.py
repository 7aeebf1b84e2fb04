"""
Target triple tables.

Pure data, no logic.
"""

from __future__ import annotations

# Hosted target triple for each architecture tag.
HOSTED_TRIPLES: dict[str, str] = {
    "arm": "arm-linux-gnueabi",
    "arm64": "aarch64-linux-gnu",
    "i686": "i686-linux-gnu",
    "x86_64": "x86_64-linux-gnu",
}

# Bare-metal substitution, keyed by the hosted triple. Triples not
# listed here are kept as they are.
BARE_METAL_TRIPLES: dict[str, str] = {
    "arm-linux-gnueabi": "arm-eabi",
    "aarch64-linux-gnu": "aarch64-elf",
    "i686-linux-gnu": "i686-elf",
    "x86_64-linux-gnu": "x86_64-elf",
}

# Linux ``ARCH=`` value for the kernel headers install.
KERNEL_ARCHES: dict[str, str] = {
    "arm": "arm",
    "arm64": "arm64",
    "i686": "x86",
    "x86_64": "x86",
}

# ``uname -m`` of the build machine → architecture tag.
MACHINE_ARCHES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i686": "i686",
    "i386": "i686",
    "armv7l": "arm",
    "armv6l": "arm",
}

# x86_64 toolchains at or below this GCC major are not buildable.
X86_64_MIN_EXCLUSIVE = 5
